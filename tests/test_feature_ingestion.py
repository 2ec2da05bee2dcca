from __future__ import annotations

import json
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest
from feeds import BEACH_RING, TRAIL_LINE, FakeTransport, beach_1545, feature, feed

from pypoi.config import PoiConfig
from pypoi.exceptions import (
    MalformedAttributesError,
    MalformedFeedError,
    MalformedGeometryError,
    SourceUnavailableError,
)
from pypoi.ingestion.features import FeatureIngester, fetch_source_feed
from pypoi.models.entities import Beach, EntityVariant, ExerciseTrail, coordinate_count
from pypoi.projection import project
from pypoi.reference import ReferenceTable
from pypoi.state.store import EntityStore

PREFIX = "se:sundsvall:anlaggning:"


def _ingester(reference_table: ReferenceTable | None = None) -> FeatureIngester:
    return FeatureIngester(
        reference_table=reference_table,
        beach_id_prefix=PREFIX,
        trail_id_prefix=PREFIX,
        beach_category="Strandbad",
        trail_category="Motionsspår",
        time_zone=ZoneInfo("Europe/Stockholm"),
        trail_source="https://example.invalid/feed",
    )


def test_published_beach_becomes_one_entity() -> None:
    entities = _ingester().ingest(feed(beach_1545()))

    assert len(entities) == 1
    beach = entities[0]
    assert isinstance(beach, Beach)
    assert beach.id == "se:sundsvall:anlaggning:1545"
    assert beach.name == "Lillsjöns vinterbad"
    assert beach.description == "En beskrivning om stranden"
    assert beach.sensor_id == "se:servanet:lora:sk-elt-temp-01"
    assert beach.water_temperature is None
    assert coordinate_count(beach) == 6


def test_geometry_is_reprojected_in_lon_lat_order() -> None:
    (beach,) = _ingester().ingest(feed(beach_1545()))

    assert isinstance(beach, Beach)
    ring = beach.geometry[0][0]
    assert ring[0] == project(*BEACH_RING[0])
    lon, lat = ring[0]
    assert 17.0 < lon < 17.6
    assert 62.2 < lat < 62.6


def test_unpublished_or_unknown_category_yields_nothing() -> None:
    raw = feed(
        feature(1, published=False),
        feature(2, type="Lekplats"),
        feature(3, type="strandbad"),
    )

    assert _ingester().ingest(raw) == []


def test_round_trip_through_store_keeps_coordinate_count() -> None:
    rings = [BEACH_RING, BEACH_RING[:4]]
    raw = feed(feature(42, coordinates=[rings, [BEACH_RING]]))
    store = EntityStore(_ingester().ingest(raw))

    beach = store.get_by_id(f"{PREFIX}42")

    source_count = sum(len(ring) for ring in rings) + len(BEACH_RING)
    assert coordinate_count(beach) == source_count


def test_feed_timestamps_are_local_time() -> None:
    (beach,) = _ingester().ingest(feed(beach_1545()))

    # Summer time (UTC+2) and winter time (UTC+1) in Stockholm.
    assert beach.date_created == datetime(2020, 6, 4, 12, 26, 58, tzinfo=UTC)
    assert beach.date_modified == datetime(2020, 12, 2, 7, 46, 56, tzinfo=UTC)


def test_unparseable_timestamps_are_left_absent() -> None:
    (beach,) = _ingester().ingest(feed(feature(7, created="yesterday", updated="2020-12-02T08:46:56")))

    assert beach.date_created is None
    assert beach.date_modified is None


def test_reference_table_supplies_sensor_and_codes() -> None:
    table = ReferenceTable.model_validate(
        {660: {"sensor": "sk-elt-temp-01", "nuts": "SE0712281000003473", "wikidata": "Q10571096"}}
    )

    (beach,) = _ingester(table).ingest(feed(feature(660)))

    assert beach.sensor_id == "se:servanet:lora:sk-elt-temp-01"
    assert beach.nuts_code == "SE0712281000003473"
    assert beach.wikidata_id == "Q10571096"


def test_explicit_sensor_field_wins_over_reference_table() -> None:
    table = ReferenceTable.model_validate({1545: {"sensor": "sk-elt-temp-99"}})

    (beach,) = _ingester(table).ingest(feed(beach_1545()))

    assert beach.sensor_id == "se:servanet:lora:sk-elt-temp-01"


def test_beach_without_sensor_field_or_reference_has_no_sensor() -> None:
    (beach,) = _ingester(ReferenceTable.empty()).ingest(feed(feature(9)))

    assert beach.sensor_id is None
    assert beach.nuts_code is None


def test_unknown_field_ids_are_ignored() -> None:
    raw = feed(feature(11, fields=[{"id": 4711, "value": {"nested": True}}, {"id": 1, "value": "Fin strand"}]))

    (beach,) = _ingester().ingest(raw)

    assert beach.description == "Fin strand"


def test_exercise_trail_is_ingested() -> None:
    raw = feed(
        feature(
            88,
            type="Motionsspår",
            name="Elljusspåret",
            geometry_type="LineString",
            fields=[{"id": 99, "value": "2,5"}, {"id": 1, "value": "Belyst spår"}],
        )
    )

    (trail,) = _ingester().ingest(raw)

    assert isinstance(trail, ExerciseTrail)
    assert trail.variant == EntityVariant.EXERCISE_TRAIL
    assert trail.id == f"{PREFIX}88"
    assert trail.length == 2.5
    assert trail.description == "Belyst spår"
    assert trail.source == "https://example.invalid/feed"
    assert trail.date_last_prepared is None
    assert len(trail.geometry) == len(TRAIL_LINE)
    assert trail.geometry[1] == project(*TRAIL_LINE[1])


def test_polygon_geometry_is_wrapped_as_multipolygon() -> None:
    (beach,) = _ingester().ingest(feed(feature(12, geometry_type="Polygon", coordinates=[BEACH_RING])))

    assert isinstance(beach, Beach)
    assert len(beach.geometry) == 1
    assert coordinate_count(beach) == len(BEACH_RING)


def test_undecodable_feed_raises_malformed_feed() -> None:
    with pytest.raises(MalformedFeedError):
        _ingester().ingest(b"<html>Service Unavailable</html>")

    with pytest.raises(MalformedFeedError):
        _ingester().ingest(json.dumps({"features": "none"}).encode())


def test_bad_coordinates_abort_ingestion() -> None:
    raw = feed(beach_1545(), feature(13, coordinates=[[[["x", "y"]]]]))

    with pytest.raises(MalformedGeometryError) as exc_info:
        _ingester().ingest(raw)

    assert exc_info.value.feature_id == 13


def test_wrong_geometry_type_aborts_ingestion() -> None:
    raw = feed(feature(14, type="Motionsspår", geometry_type="Point", coordinates=[617000.0, 6917000.0]))

    with pytest.raises(MalformedGeometryError):
        _ingester().ingest(raw)


def test_bad_field_list_aborts_ingestion() -> None:
    with pytest.raises(MalformedAttributesError) as exc_info:
        _ingester().ingest(feed(feature(15, fields="Beskrivning")))

    assert exc_info.value.feature_id == 15


def test_non_text_description_aborts_ingestion() -> None:
    with pytest.raises(MalformedAttributesError):
        _ingester().ingest(feed(feature(16, fields=[{"id": 1, "value": 5}])))


def test_malformed_unpublished_feature_is_skipped() -> None:
    nulls = feature(19)
    nulls["properties"].update(name=None, type=None, published=None)
    raw = feed(
        beach_1545(),
        feature(17, published=False, fields="broken", coordinates="broken"),
        nulls,
    )

    assert [entity.id for entity in _ingester().ingest(raw)] == [f"{PREFIX}1545"]


def test_beach_with_null_name_has_no_name() -> None:
    selected = feature(20)
    selected["properties"]["name"] = None

    (beach,) = _ingester().ingest(feed(selected))

    assert beach.name is None


def test_non_text_timestamps_are_left_absent() -> None:
    (beach,) = _ingester().ingest(feed(feature(1545, created=20200604, updated={"date": "2020-12-02"})))

    assert beach.id == f"{PREFIX}1545"
    assert beach.date_created is None
    assert beach.date_modified is None


def test_from_config_uses_source_url_as_trail_source() -> None:
    config = PoiConfig(source_url="https://feed.example.invalid/poi")
    ingester = FeatureIngester.from_config(config)

    raw = feed(feature(18, type="Motionsspår", geometry_type="LineString"))
    (trail,) = ingester.ingest(raw)

    assert isinstance(trail, ExerciseTrail)
    assert trail.source == "https://feed.example.invalid/poi"


@pytest.mark.asyncio
async def test_fetch_source_feed_sends_apikey() -> None:
    config = PoiConfig(source_url="https://feed.example.invalid/poi", source_apikey="secret-key")
    transport = FakeTransport({config.source_url: b"{}"})

    body = await fetch_source_feed(transport, config)

    assert body == b"{}"
    assert transport.calls == [(config.source_url, {"apikey": "secret-key"})]


@pytest.mark.asyncio
async def test_fetch_source_feed_propagates_unavailability() -> None:
    config = PoiConfig(source_url="https://feed.example.invalid/poi")

    with pytest.raises(SourceUnavailableError):
        await fetch_source_feed(FakeTransport(), config)
