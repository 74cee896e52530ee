from __future__ import annotations

import csv
from pathlib import Path

import pytest

from stations.common.errors import GeocodeHardFailure
from stations.common.fs import read_json
from stations.pipeline.mac import regenerate_mac_codes
from stations.pipeline.rail import regenerate_rail_csv
from stations.sources.geocoder import GeocodeResult
from stations.sources.mac_overlay import load_overlay

AMTRAK_HEADER = "STNCODE,STNNAME,ADDRESS1,CITY,STATE,ZIP,STNTYPE\n"


class FakeGeocoder:
    def __init__(self, outcomes: dict):
        self.outcomes = outcomes
        self.calls: list[str] = []

    def geocode(self, address: str):
        self.calls.append(address)
        outcome = self.outcomes.get(address)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeProvider:
    def list_cities(self):
        return [
            {"code": "NYC", "name": "NEW YORK", "countryCode": "US", "countryName": "UNITED STATES"},
            {"code": "QHO", "name": "HOUSTON", "countryCode": "US", "countryName": "UNITED STATES"},
        ]

    def list_city_airports(self, city_code: str):
        return {"NYC": [{"code": "JFK"}, {"code": "LGA"}], "QHO": [{"code": "IAH"}]}[city_code]


def _config() -> dict:
    return {
        "geocoder": {"limit": 2, "delay_seconds": 0},
        "rail": {
            "input_path": "sources/amtrak_stations.csv",
            "output_path": "sources/rail.csv",
            "type": "Railway Stations",
            "country": "United States",
        },
        "multi_airport_city": {
            "map_file": "sources/mac_codes.json",
            "csv_path": "sources/mac.csv",
            "ignore_codes": ["QHO"],
            "name_overrides": {"NYC": "New York City"},
            "provider": {"limit": 1, "delay_seconds": 0},
        },
    }


def _write_amtrak(data_dir: Path) -> None:
    (data_dir / "sources").mkdir(parents=True, exist_ok=True)
    (data_dir / "sources" / "amtrak_stations.csv").write_text(
        AMTRAK_HEADER
        + "ALB,Albany-Rensselaer,525 East St,Rensselaer,NY,12144,RAIL\n"
        + "ABQ,Albuquerque,214 1st St SW,Albuquerque,NM,87102,BUS\n"
        + "XXX,Nowhere,1 Lost Rd,Ghost,ZZ,00000,RAIL\n",
        encoding="utf-8",
    )


@pytest.mark.integration
def test_regenerate_rail_csv_geocodes_rail_rows_only(tmp_path: Path):
    _write_amtrak(tmp_path)
    geocoder = FakeGeocoder({"525 East St Rensselaer, NY 12144": GeocodeResult(lat=42.64, lon=-73.74)})

    out_path = regenerate_rail_csv(_config(), tmp_path, geocoder)

    with out_path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert sorted(geocoder.calls) == ["1 Lost Rd Ghost, ZZ 00000", "525 East St Rensselaer, NY 12144"]
    assert len(rows) == 1
    assert rows[0]["code"] == "ALB"
    assert (rows[0]["lat"], rows[0]["lon"]) == ("42.64", "-73.74")
    assert rows[0]["type"] == "Railway Stations"
    assert rows[0]["country"] == "United States"
    assert rows[0]["direct_flights"] == "0"


@pytest.mark.integration
def test_regenerate_rail_csv_skips_rows_without_address(tmp_path: Path):
    _write_amtrak(tmp_path)
    with (tmp_path / "sources" / "amtrak_stations.csv").open("a", encoding="utf-8") as f:
        f.write("NAD,No Address,,,,,RAIL\n")
    geocoder = FakeGeocoder({"525 East St Rensselaer, NY 12144": GeocodeResult(lat=42.64, lon=-73.74)})

    out_path = regenerate_rail_csv(_config(), tmp_path, geocoder)

    with out_path.open(encoding="utf-8", newline="") as f:
        codes = [row["code"] for row in csv.DictReader(f)]
    assert "" not in geocoder.calls
    assert len(geocoder.calls) == 2
    assert codes == ["ALB"]


@pytest.mark.integration
def test_regenerate_rail_csv_hard_failure_writes_nothing(tmp_path: Path):
    _write_amtrak(tmp_path)
    geocoder = FakeGeocoder({"1 Lost Rd Ghost, ZZ 00000": GeocodeHardFailure("denied", status="REQUEST_DENIED")})

    with pytest.raises(GeocodeHardFailure):
        regenerate_rail_csv(_config(), tmp_path, geocoder)

    assert not (tmp_path / "sources" / "rail.csv").exists()


@pytest.mark.integration
def test_regenerate_mac_codes_writes_map_and_station_csv(tmp_path: Path):
    overlay = regenerate_mac_codes(_config(), tmp_path, FakeProvider())

    assert overlay.lookup("LGA") == "NYC"
    assert overlay.lookup("IAH") is None
    assert load_overlay(tmp_path / "sources" / "mac_codes.json").lookup("JFK") == "NYC"
    assert read_json(tmp_path / "sources" / "mac_codes.json")["airports"][0]["name"] == "New York City"

    with (tmp_path / "sources" / "mac.csv").open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [(row["code"], row["type"], row["city"], row["country"]) for row in rows] == [
        ("NYC", "Mac Airports", "New York City", "UNITED STATES")
    ]
