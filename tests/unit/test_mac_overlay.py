from __future__ import annotations

import json
from pathlib import Path

import pytest

from stations.common.errors import OverlayLoadError
from stations.common.fs import read_json, write_json
from stations.sources.mac_overlay import CodeOverlay, MacGrouping, build_overlay, load_overlay, write_overlay


class FakeProvider:
    def __init__(self):
        self.airport_calls: list[str] = []

    def list_cities(self):
        return [
            {"code": "NYC", "name": "NEW YORK", "countryCode": "US", "countryName": "UNITED STATES", "Links": []},
            {"code": "QDF", "name": "DALLAS FT WORTH", "countryCode": "US", "countryName": "UNITED STATES"},
            {"code": "WAS", "name": "WASHINGTON", "countryCode": "US", "countryName": "UNITED STATES"},
            {"name": "no code"},
        ]

    def list_city_airports(self, city_code: str):
        self.airport_calls.append(city_code)
        members = {
            "NYC": [{"code": "JFK"}, {"code": "LGA"}, {"code": "EWR"}],
            "WAS": [{"code": "IAD"}, {"code": "DCA"}, {"name": "missing code"}],
        }
        return members[city_code]


def test_load_overlay_reads_map_and_groupings(tmp_path: Path):
    path = tmp_path / "mac_codes.json"
    write_json(
        path,
        {
            "airports": [{"code": "NYC", "name": "NEW YORK", "countryName": "UNITED STATES"}],
            "map": {"LGA": "NYC", "JFK": "NYC"},
        },
    )

    overlay = load_overlay(path)

    assert overlay.lookup("LGA") == "NYC"
    assert overlay.lookup("ORD") is None
    assert len(overlay) == 2
    assert "JFK" in overlay
    assert overlay.groupings["NYC"].country_name == "UNITED STATES"


def test_overlay_is_read_only():
    overlay = CodeOverlay({"LGA": "NYC"})

    with pytest.raises(TypeError):
        overlay.groupings["NYC"] = MacGrouping(code="NYC", name="x")


def test_load_overlay_missing_file_raises(tmp_path: Path):
    with pytest.raises(OverlayLoadError):
        load_overlay(tmp_path / "absent.json")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps(["LGA", "NYC"]),
        json.dumps({"airports": []}),
        json.dumps({"map": {"LGA": 1}}),
        json.dumps({"map": {}, "airports": [{"name": "no code"}]}),
    ],
)
def test_load_overlay_rejects_malformed_files(tmp_path: Path, content: str):
    path = tmp_path / "mac_codes.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(OverlayLoadError):
        load_overlay(path)


def test_load_overlay_rejects_undecodable_file(tmp_path: Path):
    path = tmp_path / "mac_codes.json"
    path.write_bytes(b'{"map": {"LGA": "\xff\xfe"}}')

    with pytest.raises(OverlayLoadError):
        load_overlay(path)


def test_build_overlay_applies_ignore_list_and_name_overrides():
    provider = FakeProvider()

    overlay = build_overlay(
        provider,
        ignore_codes=["QDF"],
        name_overrides={"WAS": "Washington DC"},
    )

    assert sorted(provider.airport_calls) == ["NYC", "WAS"]
    assert overlay.lookup("LGA") == "NYC"
    assert overlay.lookup("DCA") == "WAS"
    assert "QDF" not in overlay.groupings
    assert overlay.groupings["WAS"].name == "Washington DC"
    assert overlay.groupings["NYC"].name == "NEW YORK"
    assert len(overlay) == 5


def test_write_overlay_uses_airports_and_map_layout(tmp_path: Path):
    overlay = CodeOverlay({"LGA": "NYC"}, [MacGrouping(code="NYC", name="NEW YORK", country_code="US")])
    path = tmp_path / "out" / "mac_codes.json"

    write_overlay(path, overlay)
    payload = read_json(path)

    assert payload["map"] == {"LGA": "NYC"}
    assert payload["airports"][0]["code"] == "NYC"
    assert payload["airports"][0]["countryCode"] == "US"
