"""Multi-airport-city (MAC) code overlay: loading, building, persisting."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Protocol

from stations.common.errors import OverlayLoadError
from stations.common.fs import read_json, write_json
from stations.common.logging import default_logger, log_event
from stations.common.throttle import DispatchThrottle, ThrottleConfig, map_in_order


@dataclass(frozen=True)
class MacGrouping:
    code: str
    name: str
    country_code: str | None = None
    country_name: str | None = None
    region_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "countryCode": self.country_code,
            "countryName": self.country_name,
            "regionName": self.region_name,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MacGrouping":
        return cls(
            code=str(raw["code"]),
            name=str(raw.get("name") or ""),
            country_code=raw.get("countryCode"),
            country_name=raw.get("countryName"),
            region_name=raw.get("regionName"),
        )


class CodeOverlay:
    """Read-only station code -> grouping code map."""

    def __init__(self, mapping: Mapping[str, str], groupings: Iterable[MacGrouping] = ()) -> None:
        self._map = MappingProxyType(dict(mapping))
        self._groupings = MappingProxyType({g.code: g for g in groupings})

    @property
    def groupings(self) -> Mapping[str, MacGrouping]:
        return self._groupings

    def lookup(self, code: str) -> str | None:
        return self._map.get(code)

    def __len__(self) -> int:
        return len(self._map)

    def __contains__(self, code: object) -> bool:
        return code in self._map

    def to_payload(self) -> dict[str, Any]:
        return {
            "airports": [g.to_dict() for g in self._groupings.values()],
            "map": dict(self._map),
        }


def load_overlay(path: Path) -> CodeOverlay:
    try:
        payload = read_json(path)
    except (OSError, ValueError) as exc:
        raise OverlayLoadError(f"Cannot read MAC code map {path}: {exc}") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("map"), dict):
        raise OverlayLoadError(f"MAC code map {path} has no 'map' object")
    mapping = payload["map"]
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()):
        raise OverlayLoadError(f"MAC code map {path} must map codes to codes")

    try:
        groupings = [MacGrouping.from_dict(raw) for raw in payload.get("airports") or []]
    except (KeyError, TypeError, AttributeError) as exc:
        raise OverlayLoadError(f"MAC code map {path} has a malformed airports list") from exc
    return CodeOverlay(mapping, groupings)


def write_overlay(path: Path, overlay: CodeOverlay) -> None:
    write_json(path, overlay.to_payload())


class GroupingProvider(Protocol):
    def list_cities(self) -> list[dict[str, Any]]: ...

    def list_city_airports(self, city_code: str) -> list[dict[str, Any]]: ...


def build_overlay(
    provider: GroupingProvider,
    *,
    ignore_codes: Iterable[str] = (),
    name_overrides: Mapping[str, str] | None = None,
    throttle: ThrottleConfig | None = None,
    logger: logging.Logger | None = None,
) -> CodeOverlay:
    """Query the provider for every multi-airport city and its airports."""
    logger = logger or default_logger()
    ignored = set(ignore_codes)
    overrides = dict(name_overrides or {})
    throttle = throttle or ThrottleConfig()
    dispatch = DispatchThrottle(throttle)

    cities = provider.list_cities()
    kept: list[MacGrouping] = []
    for raw in cities:
        code = raw.get("code")
        if not code:
            continue
        if code in ignored:
            log_event(logger, f"Skipping code for {code}", stage="mac", event="MAC_IGNORED", code=code)
            continue
        grouping = MacGrouping.from_dict(raw)
        if code in overrides:
            grouping = MacGrouping(
                code=grouping.code,
                name=overrides[code],
                country_code=grouping.country_code,
                country_name=grouping.country_name,
                region_name=grouping.region_name,
            )
        kept.append(grouping)

    def _members(grouping: MacGrouping) -> list[str]:
        with dispatch.slot():
            airports = provider.list_city_airports(grouping.code)
        return [str(a["code"]) for a in airports if a.get("code")]

    members = map_in_order(kept, _members, workers=throttle.limit)

    mapping: dict[str, str] = {}
    for grouping, airport_codes in zip(kept, members):
        for airport_code in airport_codes:
            mapping[airport_code] = grouping.code

    log_event(
        logger,
        "Built multi-airport city map",
        stage="mac",
        event="MAC_BUILT",
        status="ok",
        rows_in=len(cities),
        rows_out=len(mapping),
    )
    return CodeOverlay(mapping, kept)
