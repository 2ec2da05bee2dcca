from __future__ import annotations

from pathlib import Path

import pytest

from pypoi.exceptions import PoiConfigError
from pypoi.reference import ReferenceTable


def test_packaged_table_maps_features_to_sensors() -> None:
    table = ReferenceTable.default()

    assert len(table) == 28
    entry = table.lookup(660)
    assert entry is not None
    assert entry.sensor == "sk-elt-temp-01"
    assert entry.nuts_code is None
    assert table.lookup(1) is None


def test_load_from_file(tmp_path: Path) -> None:
    path = tmp_path / "reference.json"
    path.write_text('{"1545": {"nuts": "SE0712281000003473", "wikidata": "Q10571096"}}', encoding="utf-8")

    table = ReferenceTable.load(path)

    entry = table.lookup(1545)
    assert entry is not None
    assert entry.nuts_code == "SE0712281000003473"
    assert entry.wikidata_id == "Q10571096"
    assert entry.sensor is None


@pytest.mark.parametrize(
    "data",
    ['{"abc": {"sensor": "x"}}', '{"1": {"colour": "blue"}}', "[]", "not json"],
)
def test_invalid_table_is_a_config_error(data: str) -> None:
    with pytest.raises(PoiConfigError):
        ReferenceTable.from_json(data)


def test_missing_file_is_a_config_error(tmp_path: Path) -> None:
    with pytest.raises(PoiConfigError):
        ReferenceTable.load(tmp_path / "missing.json")
