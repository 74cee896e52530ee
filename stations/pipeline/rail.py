"""Regenerate the rail source CSV from the Amtrak station export."""

from __future__ import annotations

import logging
from pathlib import Path

from stations.common.config_loader import resolve_path
from stations.common.constants import RAIL_TYPE, STATION_CSV_HEADERS
from stations.common.fs import write_csv
from stations.common.logging import default_logger, log_event
from stations.common.throttle import ThrottleConfig, map_in_order
from stations.pipeline.normalize import Geocoder, build_address, geocode_address
from stations.sources.csv_reader import RawRow, read_rows

RAIL_STATION_TYPE = "RAIL"


def _rail_row(row: RawRow, geocoder: Geocoder, rail_cfg: dict, logger: logging.Logger) -> dict | None:
    result = geocode_address(geocoder, build_address(row, "amtrak"), logger=logger, stage="rail")
    if result is None:
        return None
    out = {header: "" for header in STATION_CSV_HEADERS}
    out.update(
        {
            "code": row.get("STNCODE", ""),
            "lat": result.lat,
            "lon": result.lon,
            "name": row.get("STNNAME", ""),
            "city": row.get("CITY", ""),
            "state": row.get("STATE", ""),
            "country": rail_cfg.get("country", "United States"),
            "type": rail_cfg.get("type", RAIL_TYPE),
            "direct_flights": 0,
            "carriers": 0,
        }
    )
    return out


def regenerate_rail_csv(
    cfg: dict,
    data_dir: Path,
    geocoder: Geocoder,
    *,
    run_id: str | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """Geocode every RAIL row of the Amtrak export into a station-schema CSV.

    Non-rail rows and addresses the geocoder cannot place are left out.
    Nothing is written when a geocode call fails outright.
    """
    logger = logger or default_logger()
    rail_cfg = cfg["rail"]
    input_path = resolve_path(data_dir, rail_cfg["input_path"])
    output_path = resolve_path(data_dir, rail_cfg["output_path"])

    rows = [row for row in read_rows(input_path) if row.get("STNTYPE") == RAIL_STATION_TYPE]
    log_event(logger, "Re-geocoding rail stations", run_id=run_id, stage="rail", event="RAIL_START", rows_in=len(rows))

    workers = ThrottleConfig.from_config(cfg["geocoder"]).limit
    results = map_in_order(rows, lambda row: _rail_row(row, geocoder, rail_cfg, logger), workers=workers)
    out_rows = [row for row in results if row is not None]

    write_csv(output_path, STATION_CSV_HEADERS, out_rows)
    log_event(
        logger,
        f"Wrote {len(out_rows)} rail stations to {output_path}",
        run_id=run_id,
        stage="rail",
        event="RAIL_END",
        status="ok",
        rows_in=len(rows),
        rows_out=len(out_rows),
    )
    return output_path
