"""Feature feed ingestion + parsing.

Turns the municipal feature feed into :class:`Beach` and
:class:`ExerciseTrail` entities.  Ingestion is fail-closed: any selected
feature whose geometry or field list cannot be decoded aborts the whole
load, so a corrupt feed never yields a partial registry.
"""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import TypeAdapter, ValidationError

from pypoi._constants import APIKEY_HEADER, FIELD_DESCRIPTION, FIELD_LENGTH, FIELD_SENSOR, SENSOR_ID_PREFIX
from pypoi._transport import Transport
from pypoi.config import PoiConfig
from pypoi.exceptions import MalformedAttributesError, MalformedFeedError, MalformedGeometryError
from pypoi.ingestion.normalize import parse_feed_timestamp, safe_float
from pypoi.models.entities import Beach, Entity, EntityVariant, ExerciseTrail
from pypoi.models.feed import (
    FIELDS_ADAPTER,
    GEOMETRY_TYPES,
    LINE_STRING_ADAPTER,
    MULTI_POLYGON_ADAPTER,
    POLYGON_ADAPTER,
    Feature,
    FeatureCollection,
    FeatureField,
)
from pypoi.projection import project_positions
from pypoi.reference import ReferenceTable

_logger = logging.getLogger(__name__)


async def fetch_source_feed(transport: Transport, config: PoiConfig) -> bytes:
    """Download the raw feature feed.

    Raises :class:`pypoi.exceptions.SourceUnavailableError` on any
    transport failure.
    """
    headers: dict[str, str] = {}
    if config.source_apikey:
        headers[APIKEY_HEADER] = config.source_apikey
    _logger.info("Loading data from %s ...", config.source_url)
    return await transport.get(config.source_url, headers=headers)


class FeatureIngester:
    """Parse a raw feature feed into domain entities.

    Parameters
    ----------
    reference_table
        Augmentation data keyed by feature id.  Defaults to an empty table.
    beach_id_prefix, trail_id_prefix
        Namespace prefixes joined with the numeric feature id.
    beach_category, trail_category
        Feed ``type`` values selecting each variant.
    time_zone
        Zone the feed's naive timestamps are local to.
    trail_source
        Source attribution stored on every exercise trail.
    """

    def __init__(
        self,
        *,
        reference_table: ReferenceTable | None = None,
        beach_id_prefix: str,
        trail_id_prefix: str,
        beach_category: str,
        trail_category: str,
        time_zone: tzinfo,
        trail_source: str | None = None,
    ) -> None:
        self._reference = reference_table if reference_table is not None else ReferenceTable.empty()
        self._prefixes = {
            EntityVariant.BEACH: beach_id_prefix,
            EntityVariant.EXERCISE_TRAIL: trail_id_prefix,
        }
        self._categories = {
            beach_category: EntityVariant.BEACH,
            trail_category: EntityVariant.EXERCISE_TRAIL,
        }
        self._tz = time_zone
        self._trail_source = trail_source

    @classmethod
    def from_config(cls, config: PoiConfig, reference_table: ReferenceTable | None = None) -> FeatureIngester:
        return cls(
            reference_table=reference_table,
            beach_id_prefix=config.beach_id_prefix,
            trail_id_prefix=config.trail_id_prefix,
            beach_category=config.beach_category,
            trail_category=config.trail_category,
            time_zone=ZoneInfo(config.time_zone),
            trail_source=config.trail_source or config.source_url,
        )

    def entity_id(self, variant: EntityVariant, feature_id: int | str) -> str:
        return f"{self._prefixes[variant]}{feature_id}"

    def ingest(self, raw: bytes | str) -> list[Entity]:
        """Parse *raw* and return every published entity of a known category."""
        try:
            collection = FeatureCollection.model_validate_json(raw)
        except ValidationError as exc:
            raise MalformedFeedError(f"Failed to decode feature feed: {exc}") from exc

        entities: list[Entity] = []
        for feature in collection.features:
            if not feature.properties.published:
                continue
            variant = self._categories.get(feature.properties.type or "")
            if variant is None:
                continue

            if variant == EntityVariant.BEACH:
                entity: Entity = self._build_beach(feature)
            else:
                entity = self._build_trail(feature)
            _logger.debug("Found published %s %d %s", variant, feature.id, feature.properties.name)
            entities.append(entity)

        _logger.info("Ingested %d entities from %d features", len(entities), len(collection.features))
        return entities

    # ------------------------------------------------------------------
    # Variant builders
    # ------------------------------------------------------------------

    def _build_beach(self, feature: Feature) -> Beach:
        fields = _decode_fields(feature)
        geometry = _decode_geometry(feature, EntityVariant.BEACH)

        description = _text_field(feature, fields, FIELD_DESCRIPTION)
        device = _text_field(feature, fields, FIELD_SENSOR)

        reference = self._reference.lookup(feature.id)
        if device is None and reference is not None:
            device = reference.sensor

        props = feature.properties
        return Beach(
            id=self.entity_id(EntityVariant.BEACH, feature.id),
            name=props.name or None,
            description=description,
            geometry=geometry,
            nuts_code=reference.nuts_code if reference is not None else None,
            wikidata_id=reference.wikidata_id if reference is not None else None,
            sensor_id=f"{SENSOR_ID_PREFIX}{device}" if device else None,
            date_created=parse_feed_timestamp(props.created, self._tz),
            date_modified=parse_feed_timestamp(props.updated, self._tz),
        )

    def _build_trail(self, feature: Feature) -> ExerciseTrail:
        fields = _decode_fields(feature)
        geometry = _decode_geometry(feature, EntityVariant.EXERCISE_TRAIL)

        length_field = fields.get(FIELD_LENGTH)
        props = feature.properties
        return ExerciseTrail(
            id=self.entity_id(EntityVariant.EXERCISE_TRAIL, feature.id),
            name=props.name or None,
            description=_text_field(feature, fields, FIELD_DESCRIPTION),
            geometry=geometry,
            length=safe_float(length_field.value) if length_field is not None else None,
            source=self._trail_source,
            date_created=parse_feed_timestamp(props.created, self._tz),
            date_modified=parse_feed_timestamp(props.updated, self._tz),
        )


# ----------------------------------------------------------------------
# Decoding helpers
# ----------------------------------------------------------------------


def _decode_fields(feature: Feature) -> dict[int, FeatureField]:
    """Decode the ``fields`` list; the first occurrence of an id wins."""
    raw_fields = feature.properties.fields
    if raw_fields is None:
        return {}
    try:
        fields = FIELDS_ADAPTER.validate_python(raw_fields)
    except ValidationError as exc:
        raise MalformedAttributesError(
            f"Failed to decode property fields of feature {feature.id}: {exc}",
            feature_id=feature.id,
        ) from exc

    by_id: dict[int, FeatureField] = {}
    for field in fields:
        by_id.setdefault(field.id, field)
    return by_id


def _text_field(feature: Feature, fields: dict[int, FeatureField], field_id: int) -> str | None:
    field = fields.get(field_id)
    if field is None or field.value is None:
        return None
    if not isinstance(field.value, str):
        raise MalformedAttributesError(
            f"Field {field_id} of feature {feature.id} is not text: {field.value!r}",
            feature_id=feature.id,
        )
    text = field.value.strip()
    return text or None


def _decode_geometry(feature: Feature, variant: EntityVariant) -> Any:
    geometry = feature.geometry
    if geometry.type not in GEOMETRY_TYPES[variant]:
        raise MalformedGeometryError(
            f"Unsupported geometry type {geometry.type!r} for {variant} feature {feature.id}",
            feature_id=feature.id,
        )

    adapter: TypeAdapter[Any]
    if geometry.type == "MultiPolygon":
        adapter = MULTI_POLYGON_ADAPTER
    elif geometry.type == "Polygon":
        adapter = POLYGON_ADAPTER
    else:
        adapter = LINE_STRING_ADAPTER

    try:
        coordinates = adapter.validate_python(geometry.coordinates)
    except ValidationError as exc:
        raise MalformedGeometryError(
            f"Failed to decode {geometry.type} geometry of feature {feature.id}: {exc}",
            feature_id=feature.id,
        ) from exc

    if not coordinates:
        raise MalformedGeometryError(f"Feature {feature.id} has empty geometry", feature_id=feature.id)

    if geometry.type == "Polygon":
        coordinates = [coordinates]
    return project_positions(coordinates)
