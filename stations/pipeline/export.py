"""Stations JSON export."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from stations.common.fs import write_json_atomic
from stations.common.models import StationRecord


def station_documents(records: Sequence[StationRecord], skip_fields: Iterable[str]) -> list[dict]:
    skip = tuple(skip_fields)
    return [record.to_document(skip) for record in records]


def write_stations_json(path: Path, records: Sequence[StationRecord], skip_fields: Iterable[str]) -> Path:
    # Source order is kept; the load step relies on it for its insert batches.
    write_json_atomic(path, station_documents(records, skip_fields))
    return path
