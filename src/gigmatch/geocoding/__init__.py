"""Geocoding adapters resolving addresses to coordinates and back."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..schemas import Coordinates
from .cache import CachingGeocoder, normalize_address
from .nominatim import NominatimGeocoder, NullGeocoder


@runtime_checkable
class Geocoder(Protocol):
    """Address lookup contract.

    Both directions return None when nothing matches. Implementations raise
    ``UpstreamUnavailableError`` on network or service failure; when a
    lookup yields several candidates only the first is returned.
    """

    def forward(self, address: str) -> Coordinates | None:
        """Resolve an address to coordinates."""

    def reverse(self, coordinates: Coordinates) -> str | None:
        """Resolve coordinates to a display address."""


__all__ = [
    "Geocoder",
    "CachingGeocoder",
    "NominatimGeocoder",
    "NullGeocoder",
    "normalize_address",
]
