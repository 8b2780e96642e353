"""Configuration loading from YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..errors import ValidationError


def read_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping; an empty file yields an empty mapping."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValidationError(f"{path} must contain a YAML mapping")
    return loaded


__all__ = ["read_yaml"]
