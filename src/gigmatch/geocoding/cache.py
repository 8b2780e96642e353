"""Lookup cache in front of a geocoder."""

from __future__ import annotations

import re
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING

from ..schemas import Coordinates

if TYPE_CHECKING:
    from . import Geocoder

_WHITESPACE_RE = re.compile(r"\s+")
_MISSING = object()


def normalize_address(address: str) -> str:
    """Cache key for an address: trimmed, whitespace-collapsed, lower-cased."""
    return _WHITESPACE_RE.sub(" ", address.strip()).lower()


class CachingGeocoder:
    """LRU cache for forward and reverse lookups.

    Misses (None) are cached; upstream failures propagate and are not.
    """

    def __init__(self, inner: "Geocoder", *, max_size: int = 256) -> None:
        self._inner = inner
        self._max_size = max_size
        self._forward: OrderedDict[str, Coordinates | None] = OrderedDict()
        self._reverse: OrderedDict[tuple[float, float], str | None] = OrderedDict()
        self._lock = threading.Lock()

    def forward(self, address: str) -> Coordinates | None:
        key = normalize_address(address)
        cached = self._lookup(self._forward, key)
        if cached is not _MISSING:
            return cached
        result = self._inner.forward(address)
        self._store(self._forward, key, result)
        return result

    def reverse(self, coordinates: Coordinates) -> str | None:
        key = coordinates.as_tuple()
        cached = self._lookup(self._reverse, key)
        if cached is not _MISSING:
            return cached
        result = self._inner.reverse(coordinates)
        self._store(self._reverse, key, result)
        return result

    def __len__(self) -> int:
        return len(self._forward) + len(self._reverse)

    def _lookup(self, table: OrderedDict, key):  # type: ignore[no-untyped-def]
        with self._lock:
            if key not in table:
                return _MISSING
            table.move_to_end(key)
            return table[key]

    def _store(self, table: OrderedDict, key, value) -> None:  # type: ignore[no-untyped-def]
        with self._lock:
            table[key] = value
            table.move_to_end(key)
            while len(table) > self._max_size:
                table.popitem(last=False)
