"""Rebuild the multi-airport city map and its station source CSV."""

from __future__ import annotations

import logging
from pathlib import Path

from stations.common.config_loader import resolve_path
from stations.common.constants import MAC_TYPE, STATION_CSV_HEADERS
from stations.common.fs import write_csv
from stations.common.logging import default_logger
from stations.common.throttle import ThrottleConfig
from stations.sources.mac_overlay import CodeOverlay, GroupingProvider, build_overlay, write_overlay


def mac_station_rows(overlay: CodeOverlay) -> list[dict]:
    rows = []
    for grouping in overlay.groupings.values():
        row = {header: "" for header in STATION_CSV_HEADERS}
        row.update(
            {
                "code": grouping.code,
                "name": grouping.name,
                "city": grouping.name,
                "country": grouping.country_name or "",
                "type": MAC_TYPE,
                "direct_flights": 0,
                "carriers": 0,
            }
        )
        rows.append(row)
    return rows


def regenerate_mac_codes(
    cfg: dict,
    data_dir: Path,
    provider: GroupingProvider,
    *,
    logger: logging.Logger | None = None,
) -> CodeOverlay:
    mac_cfg = cfg["multi_airport_city"]
    overlay = build_overlay(
        provider,
        ignore_codes=mac_cfg["ignore_codes"],
        name_overrides=mac_cfg.get("name_overrides") or {},
        throttle=ThrottleConfig.from_config(mac_cfg.get("provider") or {}),
        logger=logger or default_logger(),
    )
    write_overlay(resolve_path(data_dir, mac_cfg["map_file"]), overlay)
    if mac_cfg.get("csv_path"):
        write_csv(resolve_path(data_dir, mac_cfg["csv_path"]), STATION_CSV_HEADERS, mac_station_rows(overlay))
    return overlay
