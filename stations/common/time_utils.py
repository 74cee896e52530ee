"""UTC helpers for run metadata."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso(moment: datetime | None = None) -> str:
    moment = moment or utc_now()
    return moment.isoformat(timespec="milliseconds")


def generate_run_id(prefix: str = "run") -> str:
    # Sortable and unique enough for one operator running the CLI.
    return utc_now().strftime(f"{prefix}-%Y%m%dT%H%M%S%fZ")
