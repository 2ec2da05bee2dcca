"""Domain entity models.

Entities are frozen.  The store replaces a whole instance when one of its
mutable fields changes, so any reference a reader holds is a complete,
consistent snapshot.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

Position = tuple[float, float]
"""A ``(longitude, latitude)`` pair in degrees."""

LineString = tuple[Position, ...]
Ring = tuple[Position, ...]
Polygon = tuple[Ring, ...]
MultiPolygon = tuple[Polygon, ...]


class EntityVariant(StrEnum):
    BEACH = "Beach"
    EXERCISE_TRAIL = "ExerciseTrail"


class PoiEntity(BaseModel):
    """Fields shared by every point of interest."""

    variant: ClassVar[EntityVariant]

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    id: str = Field(..., min_length=1)
    name: str | None = None
    description: str | None = None
    date_created: datetime | None = None
    date_modified: datetime | None = None


class Beach(PoiEntity):
    """A bathing site.

    ``water_temperature`` is the latest accepted telemetry reading in
    degrees Celsius, rounded to one decimal.  ``sensor_id`` is already
    namespaced (``se:servanet:lora:<device>``).
    """

    variant: ClassVar[EntityVariant] = EntityVariant.BEACH

    geometry: MultiPolygon
    nuts_code: str | None = None
    wikidata_id: str | None = None
    sensor_id: str | None = None
    water_temperature: float | None = None


class ExerciseTrail(PoiEntity):
    """An exercise or ski trail."""

    variant: ClassVar[EntityVariant] = EntityVariant.EXERCISE_TRAIL

    geometry: LineString
    length: float | None = None
    """Trail length in kilometres."""
    source: str | None = None
    date_last_prepared: datetime | None = None


Entity = Beach | ExerciseTrail


def coordinate_count(entity: Entity) -> int:
    """Number of ``(longitude, latitude)`` pairs in an entity's geometry."""
    if isinstance(entity, Beach):
        return sum(len(ring) for polygon in entity.geometry for ring in polygon)
    return len(entity.geometry)
