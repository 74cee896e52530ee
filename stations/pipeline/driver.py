"""Run every configured source through the normaliser, in order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stations.common.config_loader import read_secret, resolve_path
from stations.common.errors import PipelineError
from stations.common.logging import default_logger, log_event
from stations.common.models import StationRecord
from stations.common.throttle import DispatchThrottle, ThrottleConfig, map_in_order
from stations.common.time_utils import utc_timestamp_iso
from stations.pipeline.export import write_stations_json
from stations.pipeline.normalize import FilterPolicy, NormalizeContext, SourceSpec, normalize_row
from stations.sources.city_lookup import CityLookup, load_city_lookup
from stations.sources.csv_reader import read_rows
from stations.sources.geocoder import GeocoderClient
from stations.sources.mac_overlay import CodeOverlay, load_overlay


@dataclass(frozen=True)
class SourceReport:
    source: str
    rows_in: int
    filtered: int
    emitted: int

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "rows_in": self.rows_in,
            "filtered": self.filtered,
            "emitted": self.emitted,
        }


@dataclass
class PipelineResult:
    run_timestamp: str
    records: list[StationRecord] = field(default_factory=list)
    sources: list[SourceReport] = field(default_factory=list)
    output_path: Path | None = None


def sources_from_config(cfg: dict, data_dir: Path) -> list[SourceSpec]:
    return [
        SourceSpec(
            path=resolve_path(data_dir, source["path"]),
            has_header=bool(source.get("has_header", True)),
            address=source.get("address", "station"),
            default_type=source.get("type"),
        )
        for source in cfg["sources"]
    ]


def build_geocoder(cfg: dict, logger: logging.Logger | None = None) -> GeocoderClient:
    geocoder_cfg = cfg["geocoder"]
    return GeocoderClient(
        geocoder_cfg["endpoint"],
        read_secret(geocoder_cfg["api_key_env"], required=bool(geocoder_cfg.get("require_api_key", True))),
        throttle=DispatchThrottle(ThrottleConfig.from_config(geocoder_cfg)),
        logger=logger,
    )


def load_run_city_lookup(cfg: dict, data_dir: Path) -> CityLookup | None:
    lookup_cfg = cfg.get("city_lookup")
    if not lookup_cfg or not lookup_cfg.get("airports_file") or not lookup_cfg.get("cities_file"):
        return None
    return load_city_lookup(
        resolve_path(data_dir, lookup_cfg["airports_file"]),
        resolve_path(data_dir, lookup_cfg["cities_file"]),
    )


def process_source(
    source: SourceSpec,
    context: NormalizeContext,
    *,
    workers: int = 1,
    run_id: str | None = None,
) -> tuple[list[StationRecord], SourceReport]:
    logger = context.logger or default_logger()
    log_event(logger, f"Reading {source.label}", run_id=run_id, stage="regen", source=source.label, event="SOURCE_START")

    rows = list(read_rows(source.path, has_header=source.has_header))
    try:
        results = map_in_order(rows, lambda row: normalize_row(row, source, context), workers=workers)
    except PipelineError as exc:
        log_event(
            logger,
            f"Aborting {source.label}: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage="regen",
            source=source.label,
            event="SOURCE_FAIL",
            status="error",
            rows_in=len(rows),
            error_code=exc.error_code,
        )
        raise

    records = [record for record in results if record is not None]
    report = SourceReport(
        source=source.label,
        rows_in=len(rows),
        filtered=len(rows) - len(records),
        emitted=len(records),
    )
    log_event(
        logger,
        f"Done with {source.label}",
        run_id=run_id,
        stage="regen",
        source=source.label,
        event="SOURCE_END",
        status="ok",
        rows_in=report.rows_in,
        rows_out=report.emitted,
    )
    return records, report


def run_pipeline(
    sources: list[SourceSpec],
    context: NormalizeContext,
    *,
    workers: int = 1,
    run_id: str | None = None,
) -> PipelineResult:
    """Normalise every source file in order and accumulate the records.

    Files are never interleaved and codes are not deduplicated across
    files. Any error other than a zero-result geocode aborts the run.
    """
    result = PipelineResult(run_timestamp=context.run_timestamp)
    for source in sources:
        records, report = process_source(source, context, workers=workers, run_id=run_id)
        result.records.extend(records)
        result.sources.append(report)
    return result


def run_regen(
    cfg: dict,
    data_dir: Path,
    *,
    run_id: str | None = None,
    logger: logging.Logger | None = None,
    geocoder=None,
    overlay: CodeOverlay | None = None,
) -> PipelineResult:
    """Rebuild the stations JSON artifact from the configured sources."""
    logger = logger or default_logger()
    if overlay is None:
        overlay = load_overlay(resolve_path(data_dir, cfg["multi_airport_city"]["map_file"]))
    log_event(logger, f"Loaded {len(overlay)} multi-airport city codes", run_id=run_id, stage="regen", event="OVERLAY_LOADED")

    owns_geocoder = geocoder is None
    geocoder = geocoder or build_geocoder(cfg, logger)
    try:
        context = NormalizeContext(
            policy=FilterPolicy.from_config(cfg["filter"]),
            overlay=overlay,
            geocoder=geocoder,
            run_timestamp=utc_timestamp_iso(),
            geocode_mode=cfg["geocoder"]["mode"],
            city_lookup=load_run_city_lookup(cfg, data_dir),
            logger=logger,
        )
        workers = ThrottleConfig.from_config(cfg["geocoder"]).limit
        result = run_pipeline(sources_from_config(cfg, data_dir), context, workers=workers, run_id=run_id)
    finally:
        if owns_geocoder:
            geocoder.close()

    output_path = resolve_path(data_dir, cfg["output"]["stations_file"])
    result.output_path = write_stations_json(output_path, result.records, cfg["skip_fields"])
    log_event(
        logger,
        f"Wrote {len(result.records)} stations to {output_path}",
        run_id=run_id,
        stage="regen",
        event="OUTPUT_WRITTEN",
        status="ok",
        rows_out=len(result.records),
    )
    return result
