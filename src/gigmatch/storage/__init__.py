"""Key-value collection stores standing in for a database."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .json_file import JsonFileStorage
from .memory import InMemoryStorage


@runtime_checkable
class Storage(Protocol):
    """Collection store contract.

    Collections are JSON-serializable lists of records keyed by ``id``.
    Writes replace the whole collection, so callers read-modify-write.
    """

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        """Return the records of ``name``; an absent collection is empty."""

    def write_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        """Replace the records of ``name``."""


__all__ = ["Storage", "InMemoryStorage", "JsonFileStorage"]
