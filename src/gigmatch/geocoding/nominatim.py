"""OpenStreetMap Nominatim geocoding client."""

from __future__ import annotations

import http.client
import json
import socket
from typing import Any
from urllib import error, parse, request

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..errors import UpstreamUnavailableError
from ..schemas import Coordinates


class NominatimGeocoder:
    """HTTP client for the Nominatim search and reverse endpoints."""

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org",
        *,
        timeout: float = 5.0,
        user_agent: str = "gigmatch/0.1",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._logger = structlog.get_logger(__name__)

    def forward(self, address: str) -> Coordinates | None:
        query = address.strip()
        if not query:
            return None
        payload = self._get("search", {"format": "json", "q": query, "limit": "1"})
        if not isinstance(payload, list) or not payload:
            return None
        first = payload[0]
        try:
            return Coordinates(lat=float(first["lat"]), lng=float(first["lon"]))
        except (KeyError, TypeError, ValueError, PydanticValidationError) as exc:
            raise UpstreamUnavailableError("geocoding", f"malformed search result: {exc}") from exc

    def reverse(self, coordinates: Coordinates) -> str | None:
        payload = self._get(
            "reverse",
            {"format": "json", "lat": str(coordinates.lat), "lon": str(coordinates.lng)},
        )
        if not isinstance(payload, dict):
            return None
        name = payload.get("display_name")
        return str(name) if name else None

    def _get(self, endpoint: str, params: dict[str, str]) -> Any:
        url = f"{self._base_url}/{endpoint}?{parse.urlencode(params)}"
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}
        req = request.Request(url, headers=headers, method="GET")
        try:
            with request.urlopen(req, timeout=self._timeout) as resp:
                body = resp.read().decode("utf-8")
        except (
            error.URLError,
            socket.timeout,
            TimeoutError,
            OSError,
            http.client.HTTPException,
            UnicodeDecodeError,
        ) as exc:
            self._logger.warning("geocoding.request_failed", endpoint=endpoint, error=str(exc))
            raise UpstreamUnavailableError("geocoding", str(exc)) from exc
        if not body:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise UpstreamUnavailableError("geocoding", f"invalid JSON response: {exc}") from exc


class NullGeocoder:
    """Geocoder used when lookups are disabled; never resolves anything."""

    def forward(self, address: str) -> Coordinates | None:
        return None

    def reverse(self, coordinates: Coordinates) -> str | None:
        return None
