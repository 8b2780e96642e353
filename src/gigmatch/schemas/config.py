"""Pydantic configuration schema for YAML input."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError


class StorageConfig(BaseModel):
    backend: Literal["memory", "json"] = "memory"
    path: str | None = None


class GeocodingConfig(BaseModel):
    provider: Literal["nominatim", "none"] = "nominatim"
    base_url: str = "https://nominatim.openstreetmap.org"
    timeout_seconds: float = Field(default=5.0, gt=0)
    user_agent: str = "gigmatch/0.1"
    cache: bool = True
    cache_size: int = Field(default=256, ge=1)


class MatchingConfig(BaseModel):
    default_radius_km: float = Field(default=10.0, gt=0)
    distance_precision: int = Field(default=1, ge=0)


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)

    def to_settings(self) -> dict[str, Any]:
        return {
            "storage": self.storage.model_dump(exclude_none=True),
            "geocoding": self.geocoding.model_dump(exclude_none=True),
            "matching": self.matching.model_dump(exclude_none=True),
        }


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
