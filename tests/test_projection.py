from __future__ import annotations

import pytest

from pypoi.projection import project, project_positions


def test_central_meridian_on_equator() -> None:
    lon, lat = project(500000.0, 0.0)

    assert lon == pytest.approx(15.0, abs=1e-12)
    assert lat == pytest.approx(0.0, abs=1e-12)


@pytest.mark.parametrize(
    ("northing", "latitude"),
    [
        # 0.9996 times the GRS 80 meridian arc length from the equator.
        (6874180.147715, 62.0),
        (6206079.587128, 56.0),
    ],
)
def test_central_meridian_matches_meridian_arc(northing: float, latitude: float) -> None:
    lon, lat = project(500000.0, northing)

    assert lon == pytest.approx(15.0, abs=1e-12)
    assert lat == pytest.approx(latitude, abs=1e-7)


def test_sundsvall_survey_point_lands_in_sundsvall() -> None:
    lon, lat = project(617691.144, 6917407.84)

    assert 17.0 < lon < 17.6
    assert 62.2 < lat < 62.6


def test_projection_is_deterministic() -> None:
    assert project(617702.344, 6917414.112) == project(617702.344, 6917414.112)


def test_symmetric_about_central_meridian() -> None:
    east_lon, east_lat = project(500000.0 + 120000.0, 6900000.0)
    west_lon, west_lat = project(500000.0 - 120000.0, 6900000.0)

    assert east_lon - 15.0 == pytest.approx(15.0 - west_lon, abs=1e-9)
    assert east_lat == pytest.approx(west_lat, abs=1e-9)


def test_latitude_grows_with_northing() -> None:
    _, south = project(600000.0, 6500000.0)
    _, north = project(600000.0, 7500000.0)

    assert south < north


def test_project_positions_preserves_nesting() -> None:
    multipolygon = [
        [
            [[617691.144, 6917407.84], [617702.008, 6917408.4], [617691.144, 6917407.84]],
            [[617695.0, 6917410.0], [617696.0, 6917411.0], [617695.0, 6917410.0]],
        ],
        [
            [[600000.0, 6900000.0], [600010.0, 6900010.0], [600000.0, 6900000.0]],
        ],
    ]

    projected = project_positions(multipolygon)

    assert [len(polygon) for polygon in projected] == [2, 1]
    assert [len(ring) for ring in projected[0]] == [3, 3]
    assert projected[0][0][0] == project(617691.144, 6917407.84)
    assert projected[1][0][1] == project(600010.0, 6900010.0)


def test_project_positions_drops_elevation() -> None:
    line = project_positions([[617691.144, 6917407.84, 12.5]])

    assert line == (project(617691.144, 6917407.84),)
