"""Row filtering, geocoding and projection into station records."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol

from stations.common.constants import DEFAULT_AIRPORT_TYPES
from stations.common.logging import default_logger, log_event
from stations.common.models import DOCUMENT_FIELDS, GeoPoint, StationRecord
from stations.sources.city_lookup import CityLookup
from stations.sources.geocoder import GeocodeResult
from stations.sources.mac_overlay import CodeOverlay

# Source columns consumed into typed record fields.
TYPED_COLUMNS = {"code", "name", "city", "state", "country", "type", "direct_flights", "carriers"}


class Geocoder(Protocol):
    def geocode(self, address: str) -> GeocodeResult | None: ...


@dataclass(frozen=True)
class FilterPolicy:
    airport_types: frozenset[str] = frozenset(DEFAULT_AIRPORT_TYPES)
    min_direct_flights: int = 5
    min_carriers: int = 2
    coerce_counts_to_integer: bool = True

    @classmethod
    def from_config(cls, cfg: dict) -> "FilterPolicy":
        return cls(
            airport_types=frozenset(cfg["airport_types"]),
            min_direct_flights=int(cfg["min_direct_flights"]),
            min_carriers=int(cfg["min_carriers"]),
            coerce_counts_to_integer=bool(cfg["coerce_counts_to_integer"]),
        )

    def is_airport(self, station_type: str) -> bool:
        return station_type in self.airport_types

    def rejects(self, station_type: str, direct_flights: int, carriers: int) -> bool:
        return (
            self.is_airport(station_type)
            and direct_flights < self.min_direct_flights
            and carriers < self.min_carriers
        )


@dataclass(frozen=True)
class SourceSpec:
    path: Path
    has_header: bool = True
    address: str = "station"
    default_type: str | None = None

    @property
    def label(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class NormalizeContext:
    policy: FilterPolicy
    overlay: CodeOverlay
    geocoder: Geocoder
    run_timestamp: str
    geocode_mode: str = "always"
    city_lookup: CityLookup | None = None
    logger: logging.Logger | None = None


def parse_count(value: object) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


def parse_coordinate(value: object) -> float:
    try:
        return float(str(value).strip())
    except ValueError:
        return math.nan


def _join(parts: list[str], sep: str) -> str:
    return sep.join(part for part in parts if part)


def build_address(row: Mapping[str, str], style: str = "station") -> str:
    def col(name: str) -> str:
        return (row.get(name) or "").strip()

    if style == "amtrak":
        street_city = _join([col("ADDRESS1"), col("CITY")], " ")
        state_zip = _join([col("STATE"), col("ZIP")], " ")
        return _join([street_city, state_zip], ", ")
    return _join([col("city"), col("state"), col("country")], ", ")


def geocode_address(
    geocoder: Geocoder, address: str, *, logger: logging.Logger | None = None, stage: str = "normalize"
) -> GeocodeResult | None:
    """Geocode ``address``; an empty address is treated like a zero-result lookup."""
    if not address:
        log_event(
            logger or default_logger(),
            "Row has no address to geocode",
            level=logging.WARNING,
            stage=stage,
            event="GEOCODE_NO_ADDRESS",
            status="warning",
        )
        return None
    return geocoder.geocode(address)


def normalize_row(raw_row: Mapping[str, str], source: SourceSpec, context: NormalizeContext) -> StationRecord | None:
    """Build a station record from one source row, or ``None`` when filtered.

    Geocoder hard failures propagate; zero-result lookups leave the state
    and country codes blank.
    """
    policy = context.policy
    code = (raw_row.get("code") or "").strip()
    station_type = raw_row.get("type") or source.default_type or ""

    direct_flights = parse_count(raw_row.get("direct_flights", ""))
    carriers = parse_count(raw_row.get("carriers", ""))
    if policy.rejects(station_type, direct_flights, carriers):
        return None

    lat = parse_coordinate(raw_row.get("lat", ""))
    lon = parse_coordinate(raw_row.get("lon", ""))
    has_coordinates = math.isfinite(lat) and math.isfinite(lon)

    result = None
    if context.geocode_mode == "always" or not has_coordinates:
        result = geocode_address(context.geocoder, build_address(raw_row, source.address), logger=context.logger)
    if result is not None and not has_coordinates:
        lat, lon = result.lat, result.lon

    city = raw_row.get("city", "")
    if context.city_lookup is not None:
        city = context.city_lookup.resolve(code) or city

    mac_code = context.overlay.lookup(code) if policy.is_airport(station_type) else None

    if policy.coerce_counts_to_integer:
        counts: tuple[int | str, int | str] = (direct_flights, carriers)
    else:
        counts = (raw_row.get("direct_flights", ""), raw_row.get("carriers", ""))

    wire_names = set(DOCUMENT_FIELDS.values())
    extra = {
        key: value
        for key, value in raw_row.items()
        if key not in TYPED_COLUMNS and key not in wire_names
    }

    return StationRecord(
        code=code,
        name=raw_row.get("name", ""),
        city=city,
        state=raw_row.get("state", ""),
        country=raw_row.get("country", ""),
        type=station_type,
        location=GeoPoint(lon=lon, lat=lat),
        direct_flights=counts[0],
        carriers=counts[1],
        state_code=(result.state_code if result else None) or "",
        country_code=(result.country_code if result else None) or "",
        created=context.run_timestamp,
        updated=context.run_timestamp,
        mac_code=mac_code,
        extra=extra,
    )
