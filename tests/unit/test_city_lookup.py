from __future__ import annotations

from pathlib import Path

import pytest

from stations.common.errors import ConfigError
from stations.common.fs import write_json
from stations.sources.city_lookup import load_city_lookup


def test_load_city_lookup_resolves_through_city_code(tmp_path: Path):
    write_json(
        tmp_path / "airports.json",
        {"response": [{"code": "LGA", "city_code": "NYC"}, {"code": "ORD", "city_code": "CHI"}, {"code": "XXX"}]},
    )
    write_json(tmp_path / "cities.json", [{"code": "NYC", "name": "New York"}])

    lookup = load_city_lookup(tmp_path / "airports.json", tmp_path / "cities.json")

    assert lookup.resolve("LGA") == "New York"
    assert lookup.resolve("ORD") is None
    assert lookup.resolve("XXX") is None


def test_load_city_lookup_rejects_bad_reference(tmp_path: Path):
    write_json(tmp_path / "airports.json", {"unexpected": True})
    write_json(tmp_path / "cities.json", [])

    with pytest.raises(ConfigError):
        load_city_lookup(tmp_path / "airports.json", tmp_path / "cities.json")

    with pytest.raises(ConfigError):
        load_city_lookup(tmp_path / "missing.json", tmp_path / "cities.json")


def test_load_city_lookup_rejects_undecodable_reference(tmp_path: Path):
    (tmp_path / "airports.json").write_bytes(b'[{"code": "LGA", "city_code": "\xff"}]')
    write_json(tmp_path / "cities.json", [])

    with pytest.raises(ConfigError):
        load_city_lookup(tmp_path / "airports.json", tmp_path / "cities.json")
