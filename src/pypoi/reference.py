"""Reference augmentation table.

Maps source feature ids to attributes the feed does not carry itself:
a NUTS statistical-area code, a Wikidata identifier and a fallback
temperature sensor.  The table is loaded data, passed to the ingester,
so tests and deployments can supply their own.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel, ValidationError

from pypoi.exceptions import PoiConfigError


class ReferenceEntry(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
    )

    nuts_code: str | None = Field(default=None, validation_alias=AliasChoices("nuts", "nuts_code"))
    wikidata_id: str | None = Field(default=None, validation_alias=AliasChoices("wikidata", "wikidata_id"))
    sensor: str | None = None
    """Bare device name; the ingester applies the sensor namespace prefix."""


class ReferenceTable(RootModel[dict[int, ReferenceEntry]]):
    model_config = ConfigDict(frozen=True)

    root: dict[int, ReferenceEntry] = Field(default_factory=dict)

    def lookup(self, feature_id: int) -> ReferenceEntry | None:
        return self.root.get(feature_id)

    def __len__(self) -> int:
        return len(self.root)

    @classmethod
    def empty(cls) -> ReferenceTable:
        return cls({})

    @classmethod
    def from_json(cls, data: str | bytes) -> ReferenceTable:
        try:
            return cls.model_validate_json(data)
        except ValidationError as exc:
            raise PoiConfigError(f"Invalid reference table: {exc}") from exc

    @classmethod
    def load(cls, path: str | Path) -> ReferenceTable:
        """Load a table from a JSON file keyed by feature id."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise PoiConfigError(f"Cannot read reference table {path}: {exc}") from exc
        return cls.from_json(data)

    @classmethod
    def default(cls) -> ReferenceTable:
        """The table shipped with the package."""
        data = resources.files("pypoi").joinpath("data").joinpath("reference.json").read_bytes()
        return cls.from_json(data)
