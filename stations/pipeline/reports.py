"""Run report aggregation."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

from stations.common.fs import write_json
from stations.pipeline.driver import PipelineResult


def write_run_summary(data_dir: Path, run_id: str, result: PipelineResult) -> Path:
    totals = {"rows_in": 0, "filtered": 0, "emitted": 0}
    for report in result.sources:
        totals["rows_in"] += report.rows_in
        totals["filtered"] += report.filtered
        totals["emitted"] += report.emitted

    counts = Counter(record.code for record in result.records)
    duplicate_codes = sorted(code for code, seen in counts.items() if seen > 1)

    summary_path = data_dir / "reports" / "run_summary.json"
    payload = {
        "run_id": run_id,
        "run_timestamp": result.run_timestamp,
        "status": "success",
        "output_path": str(result.output_path) if result.output_path else None,
        "totals": totals,
        "duplicate_codes": duplicate_codes,
        "sources": [report.to_dict() for report in result.sources],
    }
    write_json(summary_path, payload)
    return summary_path
