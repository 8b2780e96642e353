"""JSON file collection store, one file per collection."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import structlog

from ..errors import UpstreamUnavailableError, ValidationError

_COLLECTION_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonFileStorage:
    """Persist each collection as ``<base_path>/<name>.json``."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)
        self._logger = structlog.get_logger(__name__)

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        path = self._path_for(name)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self._logger.error("storage.read_failed", collection=name, error=str(exc))
            raise UpstreamUnavailableError("storage", f"cannot read {path}: {exc}") from exc
        if not isinstance(data, list):
            raise UpstreamUnavailableError("storage", f"{path} does not hold a JSON array")
        return data

    def write_collection(self, name: str, records: list[dict[str, Any]]) -> None:
        path = self._path_for(name)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(list(records), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            self._logger.error("storage.write_failed", collection=name, error=str(exc))
            raise UpstreamUnavailableError("storage", f"cannot write {path}: {exc}") from exc

    def _path_for(self, name: str) -> Path:
        if not _COLLECTION_NAME_RE.match(name):
            raise ValidationError(f"Invalid collection name: {name!r}")
        return self._base_path / f"{name}.json"
