"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from stations.common.errors import ConfigError

GEOCODE_MODES = {"always", "missing"}
ADDRESS_STYLES = {"station", "amtrak"}


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_number(value: object, ctx: str, *, allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{ctx} must be a number")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{ctx} must be {'non-negative' if allow_zero else 'positive'}")


def _validate_throttle(cfg: dict, ctx: str) -> None:
    _assert_required_keys(cfg, {"limit", "delay_seconds"}, ctx)
    _assert_positive_number(cfg["limit"], f"{ctx}.limit")
    _assert_positive_number(cfg["delay_seconds"], f"{ctx}.delay_seconds", allow_zero=True)


def validate_pipeline_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "stations config")
    top_required = {"output", "skip_fields", "filter", "geocoder", "sources", "multi_airport_city"}
    top_known = top_required | {"city_lookup", "rail"}
    _assert_required_keys(cfg, top_required, "stations config")
    _assert_no_unknown_keys(cfg, top_known, "stations config", allow_unknown)

    _assert_required_keys(_assert_mapping(cfg["output"], "output"), {"stations_file"}, "output")

    if not isinstance(cfg["skip_fields"], list) or not all(isinstance(v, str) for v in cfg["skip_fields"]):
        raise ConfigError("skip_fields must be a list of field names")

    flt = _assert_mapping(cfg["filter"], "filter")
    _assert_required_keys(
        flt,
        {"airport_types", "min_direct_flights", "min_carriers", "coerce_counts_to_integer"},
        "filter",
    )
    if not isinstance(flt["airport_types"], list) or not flt["airport_types"]:
        raise ConfigError("filter.airport_types must be a non-empty list")

    geocoder = _assert_mapping(cfg["geocoder"], "geocoder")
    _assert_required_keys(geocoder, {"endpoint", "api_key_env", "mode"}, "geocoder")
    _validate_throttle(geocoder, "geocoder")
    if geocoder["mode"] not in GEOCODE_MODES:
        raise ConfigError(f"geocoder.mode must be one of: {', '.join(sorted(GEOCODE_MODES))}")

    if not isinstance(cfg["sources"], list) or not cfg["sources"]:
        raise ConfigError("sources must be a non-empty list")
    for idx, source in enumerate(cfg["sources"]):
        source = _assert_mapping(source, f"sources[{idx}]")
        _assert_required_keys(source, {"path"}, f"sources[{idx}]")
        style = source.get("address", "station")
        if style not in ADDRESS_STYLES:
            raise ConfigError(f"sources[{idx}].address must be one of: {', '.join(sorted(ADDRESS_STYLES))}")

    mac = _assert_mapping(cfg["multi_airport_city"], "multi_airport_city")
    _assert_required_keys(mac, {"map_file", "ignore_codes"}, "multi_airport_city")
    provider = mac.get("provider")
    if provider is not None:
        provider = _assert_mapping(provider, "multi_airport_city.provider")
        _assert_required_keys(
            provider,
            {"base_url", "client_id_env", "client_secret_env"},
            "multi_airport_city.provider",
        )
        _validate_throttle(provider, "multi_airport_city.provider")

    if cfg.get("city_lookup") is not None:
        lookup = _assert_mapping(cfg["city_lookup"], "city_lookup")
        _assert_required_keys(lookup, {"airports_file", "cities_file"}, "city_lookup")

    if cfg.get("rail") is not None:
        rail = _assert_mapping(cfg["rail"], "rail")
        _assert_required_keys(rail, {"input_path", "output_path", "type"}, "rail")

    return cfg
