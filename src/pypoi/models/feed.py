"""Source feature feed models.

The top-level envelope is validated eagerly.  ``fields`` and
``coordinates`` are kept as raw JSON values and only decoded for features
the ingester selects, so a broken record that is filtered out anyway does
not fail the load.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter

from pypoi.models.entities import EntityVariant


class FeatureField(BaseModel):
    """One ``{id, value}`` attribute pair."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    value: Any = None


class FeatureProperties(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str | None = None
    type: str | None = None
    published: bool | None = None
    fields: Any = Field(default_factory=list)
    # Free-form until parsed; an unusable timestamp only leaves the entity field empty.
    created: Any = None
    updated: Any = None


class FeatureGeometry(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = ""
    coordinates: Any = None


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    properties: FeatureProperties = Field(default_factory=FeatureProperties)
    geometry: FeatureGeometry = Field(default_factory=FeatureGeometry)


class FeatureCollection(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str = ""
    features: list[Feature] = Field(default_factory=list)


def _check_pair(value: list[float]) -> list[float]:
    if len(value) < 2:
        raise ValueError("coordinate pair needs at least two ordinates")
    return value


_Pair = Annotated[list[float], AfterValidator(_check_pair)]

FIELDS_ADAPTER: TypeAdapter[list[FeatureField]] = TypeAdapter(list[FeatureField])
LINE_STRING_ADAPTER: TypeAdapter[list[_Pair]] = TypeAdapter(list[_Pair])
POLYGON_ADAPTER: TypeAdapter[list[list[_Pair]]] = TypeAdapter(list[list[_Pair]])
MULTI_POLYGON_ADAPTER: TypeAdapter[list[list[list[_Pair]]]] = TypeAdapter(list[list[list[_Pair]]])

#: Geometry types accepted per variant.
GEOMETRY_TYPES: dict[EntityVariant, frozenset[str]] = {
    EntityVariant.BEACH: frozenset({"MultiPolygon", "Polygon"}),
    EntityVariant.EXERCISE_TRAIL: frozenset({"LineString"}),
}
