"""Data models used across the pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

# Wire names of the typed fields, in document order.
DOCUMENT_FIELDS = {
    "code": "code",
    "name": "name",
    "city": "city",
    "state": "state",
    "country": "country",
    "type": "type",
    "location": "location",
    "direct_flights": "direct_flights",
    "carriers": "carriers",
    "mac_code": "macCode",
    "state_code": "stateCode",
    "country_code": "countryCode",
    "created": "created",
    "updated": "updated",
}


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class GeoPoint:
    lon: float
    lat: float

    def to_geojson(self) -> dict[str, Any]:
        # Non-finite coordinates are written as null; NaN is not valid JSON.
        return {"type": "Point", "coordinates": [_finite_or_none(self.lon), _finite_or_none(self.lat)]}


@dataclass(frozen=True)
class StationRecord:
    code: str
    name: str
    city: str
    state: str
    country: str
    type: str
    location: GeoPoint
    direct_flights: int | str
    carriers: int | str
    state_code: str
    country_code: str
    created: str
    updated: str
    mac_code: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def to_document(self, skip_fields: Iterable[str] = ()) -> dict[str, Any]:
        """Project the record onto its stored document shape.

        Skip fields are removed last, so a skipped name never survives even
        when enrichment produced a value for it.
        """
        doc: dict[str, Any] = {}
        for key, value in self.extra.items():
            if key not in DOCUMENT_FIELDS.values():
                doc[key] = value
        for attr, wire_name in DOCUMENT_FIELDS.items():
            value = getattr(self, attr)
            if attr == "mac_code" and value is None:
                continue
            if attr == "location":
                value = value.to_geojson()
            doc[wire_name] = value
        for name in skip_fields:
            doc.pop(name, None)
        return doc
