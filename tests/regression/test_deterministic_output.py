from pathlib import Path

import pytest

from stations.common.fs import write_json
from stations.pipeline import driver
from stations.sources.geocoder import GeocodeResult

HEADER = "code,lat,lon,name,city,state,country,type,direct_flights,carriers\n"


class FakeGeocoder:
    def geocode(self, address: str):
        return GeocodeResult(lat=float(len(address)), lon=-float(len(address)))

    def close(self):
        return None


def _run_once(data_dir: Path, workers: int) -> bytes:
    (data_dir / "sources").mkdir(parents=True)
    rows = "".join(
        f"C{idx:02d},,,Station {idx},City {idx},ST,Country {'x' * idx},Railway Stations,0,0\n" for idx in range(20)
    )
    (data_dir / "sources" / "rail.csv").write_text(HEADER + rows, encoding="utf-8")
    write_json(data_dir / "sources" / "mac_codes.json", {"map": {}})
    cfg = {
        "output": {"stations_file": "stations.json"},
        "skip_fields": ["direct_flights", "carriers"],
        "filter": {
            "airport_types": ["Airports"],
            "min_direct_flights": 5,
            "min_carriers": 2,
            "coerce_counts_to_integer": True,
        },
        "geocoder": {"endpoint": "x", "api_key_env": "X", "mode": "always", "limit": workers, "delay_seconds": 0},
        "sources": [{"path": "sources/rail.csv"}],
        "multi_airport_city": {"map_file": "sources/mac_codes.json", "ignore_codes": []},
    }
    driver.run_regen(cfg, data_dir, geocoder=FakeGeocoder())
    return (data_dir / "stations.json").read_bytes()


@pytest.mark.regression
def test_stations_json_is_byte_stable_across_worker_counts(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(driver, "utc_timestamp_iso", lambda: "2026-10-19T00:00:00.000+00:00")

    sequential = _run_once(tmp_path / "sequential", workers=1)
    pooled = _run_once(tmp_path / "pooled", workers=8)

    assert sequential == pooled
