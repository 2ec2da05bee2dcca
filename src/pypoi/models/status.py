"""Trail preparation status feed model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from pypoi.ingestion.normalize import safe_str


class FacilityStatus(BaseModel):
    """Status of one named facility.

    Parameters
    ----------
    is_active : bool
        Whether the facility currently reports preparation status.
    external_id : str
        Source feed feature id of the matching trail, as a string.
    last_preparation : str
        RFC 3339 timestamp of the last grooming. Parsed by the poller.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    is_active: bool = Field(default=False, validation_alias=AliasChoices("isActive", "is_active"))
    external_id: str = Field(default="", validation_alias=AliasChoices("externalId", "external_id"))
    last_preparation: str = Field(default="", validation_alias=AliasChoices("lastPreparation", "last_preparation"))

    @field_validator("external_id", "last_preparation", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return (safe_str(value) or "").strip()


class StatusFeed(BaseModel):
    """Top-level status document.

    Facility records stay raw here and are validated one at a time with
    :data:`FACILITY_STATUS_ADAPTER`, so one broken record does not reject
    the others.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    ski: dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("Ski", "ski"))


FACILITY_STATUS_ADAPTER: TypeAdapter[FacilityStatus] = TypeAdapter(FacilityStatus)
