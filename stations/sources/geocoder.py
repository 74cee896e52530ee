"""Address geocoding against a Google-compatible geocode endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from stations.common.errors import GeocodeHardFailure, GeocodeSoftMiss
from stations.common.http import NO_RETRY, HttpClient, HttpRequestError, TimeoutConfig
from stations.common.logging import default_logger, log_event
from stations.common.throttle import DispatchThrottle, ThrottleConfig

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"


@dataclass(frozen=True)
class AddressComponent:
    long_name: str | None
    short_name: str | None
    types: tuple[str, ...]

    @property
    def label(self) -> str | None:
        if self.short_name is not None:
            return self.short_name
        return self.long_name


@dataclass(frozen=True)
class GeocodeResult:
    lat: float
    lon: float
    components: tuple[AddressComponent, ...] = ()

    def component_code(self, role: str) -> str | None:
        """Label of the component tagged ``role``; later matches win."""
        found = None
        for component in self.components:
            if role in component.types:
                found = component.label
        return found

    @property
    def state_code(self) -> str | None:
        return self.component_code("administrative_area_level_1")

    @property
    def country_code(self) -> str | None:
        return self.component_code("country")


def _parse_component(raw: dict[str, Any]) -> AddressComponent:
    return AddressComponent(
        long_name=raw.get("long_name"),
        short_name=raw.get("short_name"),
        types=tuple(raw.get("types") or ()),
    )


def parse_geocode_payload(payload: Any, address: str) -> GeocodeResult:
    """Turn a geocode response body into a result or a typed failure."""
    if not isinstance(payload, dict):
        raise GeocodeHardFailure(f"Unexpected geocode payload for {address!r}")

    status = payload.get("status")
    results = payload.get("results") or []
    if status == STATUS_ZERO_RESULTS or (status == STATUS_OK and not results):
        raise GeocodeSoftMiss(f"No geocode results for {address!r}")
    if status != STATUS_OK:
        detail = payload.get("error_message") or status
        raise GeocodeHardFailure(f"Geocoding {address!r} failed: {detail}", status=status)

    best = results[0]
    location = (best.get("geometry") or {}).get("location") or {}
    try:
        lat = float(location["lat"])
        lon = float(location["lng"])
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodeHardFailure(f"Geocode result for {address!r} has no location", status=status) from exc

    components = tuple(_parse_component(c) for c in best.get("address_components") or [])
    return GeocodeResult(lat=lat, lon=lon, components=components)


class GeocoderClient:
    def __init__(
        self,
        endpoint: str,
        api_key: str | None,
        *,
        throttle: DispatchThrottle | None = None,
        http_client: HttpClient | None = None,
        timeout: TimeoutConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.throttle = throttle or DispatchThrottle(ThrottleConfig())
        self.owns_client = http_client is None
        self.http = http_client or HttpClient(retry=NO_RETRY, pool_maxsize=self.throttle.config.limit)
        self.timeout = timeout or TimeoutConfig(connect=10, read=30)
        self.logger = logger or default_logger()

    def close(self) -> None:
        if self.owns_client:
            self.http.close()

    def __enter__(self) -> "GeocoderClient":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def _fetch(self, address: str) -> Any:
        params = {"address": address}
        if self.api_key:
            params["key"] = self.api_key
        with self.throttle.slot():
            try:
                return self.http.get_json(self.endpoint, params=params, timeout=self.timeout)
            except HttpRequestError as exc:
                raise GeocodeHardFailure(f"Geocoding {address!r} failed: {exc}") from exc

    def geocode_strict(self, address: str) -> GeocodeResult:
        return parse_geocode_payload(self._fetch(address), address)

    def geocode(self, address: str) -> GeocodeResult | None:
        """Geocode ``address``; ``None`` when the service finds nothing."""
        try:
            return self.geocode_strict(address)
        except GeocodeSoftMiss as exc:
            log_event(
                self.logger,
                str(exc),
                level=logging.WARNING,
                stage="geocode",
                event="GEOCODE_SOFT_MISS",
                status="warning",
                error_code=exc.error_code,
            )
            return None
