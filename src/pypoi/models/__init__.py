"""Data models for entities and the feeds they are built from."""

from pypoi.models.entities import (
    Beach,
    Entity,
    EntityVariant,
    ExerciseTrail,
    LineString,
    MultiPolygon,
    PoiEntity,
    Position,
    coordinate_count,
)
from pypoi.models.feed import Feature, FeatureCollection, FeatureField, FeatureGeometry, FeatureProperties
from pypoi.models.status import FacilityStatus, StatusFeed
from pypoi.models.telemetry import TelemetryOrigin, WaterTemperatureTelemetry

__all__ = [
    "Beach",
    "Entity",
    "EntityVariant",
    "ExerciseTrail",
    "FacilityStatus",
    "Feature",
    "FeatureCollection",
    "FeatureField",
    "FeatureGeometry",
    "FeatureProperties",
    "LineString",
    "MultiPolygon",
    "PoiEntity",
    "Position",
    "StatusFeed",
    "TelemetryOrigin",
    "WaterTemperatureTelemetry",
    "coordinate_count",
]
