"""Airport code -> city name reference used to tidy source city names."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from stations.common.errors import ConfigError
from stations.common.fs import read_json


def _entries(payload: Any, path: Path) -> list[dict]:
    # Accept both a bare list and the {"response": [...]} envelope of
    # iatacodes-style dumps.
    if isinstance(payload, dict):
        payload = payload.get("response")
    if not isinstance(payload, list):
        raise ConfigError(f"Reference file {path} must hold a list of entries")
    return [entry for entry in payload if isinstance(entry, dict)]


def _read_reference(path: Path) -> list[dict]:
    try:
        return _entries(read_json(path), path)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read reference file {path}: {exc}") from exc


class CityLookup:
    def __init__(self, airport_city_codes: Mapping[str, str], city_names: Mapping[str, str]) -> None:
        self.airport_city_codes = MappingProxyType(dict(airport_city_codes))
        self.city_names = MappingProxyType(dict(city_names))

    def resolve(self, airport_code: str) -> str | None:
        city_code = self.airport_city_codes.get(airport_code)
        if not city_code:
            return None
        return self.city_names.get(city_code) or None


def load_city_lookup(airports_file: Path, cities_file: Path) -> CityLookup:
    airport_city_codes = {
        str(entry["code"]): str(entry["city_code"])
        for entry in _read_reference(airports_file)
        if entry.get("code") and entry.get("city_code")
    }
    city_names = {
        str(entry["code"]): str(entry["name"])
        for entry in _read_reference(cities_file)
        if entry.get("code") and entry.get("name")
    }
    return CityLookup(airport_city_codes, city_names)
