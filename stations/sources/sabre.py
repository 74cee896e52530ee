"""Sabre supported-cities listing, the source of multi-airport city groupings."""

from __future__ import annotations

import base64
import threading
from typing import Any

from stations.common.http import HttpClient, HttpRequestError, TimeoutConfig

TOKEN_PATH = "/v2/auth/token"
CITIES_PATH = "/v1/lists/supported/cities"


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def basic_credentials(client_id: str, client_secret: str) -> str:
    # Sabre expects each part encoded on its own before the pair is encoded.
    return _b64(f"{_b64(client_id)}:{_b64(client_secret)}")


def _next_link(payload: dict) -> str | None:
    for link in payload.get("Links") or []:
        if link.get("rel") == "next" and link.get("href"):
            return link["href"]
    return None


class SabreListsClient:
    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        *,
        http_client: HttpClient | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.owns_client = http_client is None
        self.http = http_client or HttpClient()
        self.timeout = timeout or TimeoutConfig(connect=20, read=60)
        self._token: str | None = None
        self._token_lock = threading.Lock()

    def close(self) -> None:
        if self.owns_client:
            self.http.close()

    def __enter__(self) -> "SabreListsClient":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def _access_token(self) -> str:
        with self._token_lock:
            if self._token is None:
                payload = self.http.post_form_json(
                    f"{self.base_url}{TOKEN_PATH}",
                    data={"grant_type": "client_credentials"},
                    headers={"Authorization": f"Basic {basic_credentials(self.client_id, self.client_secret)}"},
                    timeout=self.timeout,
                )
                token = payload.get("access_token") if isinstance(payload, dict) else None
                if not token:
                    raise HttpRequestError("Sabre token response has no access_token")
                self._token = token
            return self._token

    def _get_all(self, url: str, list_key: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        next_url: str | None = url
        seen: set[str] = set()
        while next_url and next_url not in seen:
            seen.add(next_url)
            payload = self.http.get_json(
                next_url,
                headers={"Authorization": f"Bearer {self._access_token()}"},
                timeout=self.timeout,
            )
            if not isinstance(payload, dict):
                raise HttpRequestError(f"Unexpected Sabre payload from {next_url}")
            items.extend(payload.get(list_key) or [])
            next_url = _next_link(payload)
        return items

    def list_cities(self) -> list[dict[str, Any]]:
        return self._get_all(f"{self.base_url}{CITIES_PATH}", "Cities")

    def list_city_airports(self, city_code: str) -> list[dict[str, Any]]:
        return self._get_all(f"{self.base_url}{CITIES_PATH}/{city_code}/airports", "Airports")
