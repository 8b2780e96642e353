"""Process-local collection store."""

from __future__ import annotations

import copy
from typing import Any


class InMemoryStorage:
    """Dictionary-backed store; records are deep-copied on the way in and out."""

    def __init__(self, initial: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._collections: dict[str, list[dict[str, Any]]] = copy.deepcopy(initial or {})

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        return copy.deepcopy(self._collections.get(name, []))

    def write_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        self._collections[name] = copy.deepcopy(list(records))
