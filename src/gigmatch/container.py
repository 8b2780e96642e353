"""Dependency injection container for the matching core."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers
from pydantic import ValidationError as PydanticValidationError

from .board import JobBoard
from .core import ApplicationStore, JobCatalog, MatchEngine
from .errors import ValidationError, from_pydantic
from .geocoding import CachingGeocoder, NominatimGeocoder, NullGeocoder
from .identity import StaticIdentity
from .schemas.config import load_config
from .storage import InMemoryStorage, JsonFileStorage


class MarketplaceContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    storage = providers.Singleton(InMemoryStorage)

    identity = providers.Singleton(StaticIdentity, user_id=config.identity.user_id)

    nominatim = providers.Singleton(
        NominatimGeocoder,
        base_url=config.geocoding.base_url,
        timeout=config.geocoding.timeout_seconds,
        user_agent=config.geocoding.user_agent,
    )

    geocoder = providers.Singleton(
        CachingGeocoder,
        inner=nominatim,
        max_size=config.geocoding.cache_size,
    )

    catalog = providers.Singleton(
        JobCatalog,
        storage=storage,
        geocoder=geocoder,
        identity=identity,
    )

    applications = providers.Singleton(
        ApplicationStore,
        storage=storage,
        identity=identity,
    )

    engine = providers.Singleton(
        MatchEngine,
        precision=config.matching.distance_precision,
    )

    board = providers.Factory(
        JobBoard,
        catalog=catalog,
        engine=engine,
        applications=applications,
        geocoder=geocoder,
        identity=identity,
        default_radius_km=config.matching.default_radius_km,
    )


def create_container(
    *,
    settings: dict[str, Any] | None = None,
    user_id: str | None = None,
) -> MarketplaceContainer:
    """Instantiate container with optional overrides."""

    try:
        app_config = load_config(settings or {})
    except PydanticValidationError as exc:
        raise from_pydantic("Invalid configuration", exc) from exc
    resolved = app_config.to_settings()
    resolved["identity"] = {"user_id": user_id}

    container = MarketplaceContainer()
    container.config.from_dict(resolved)

    storage_settings = app_config.storage
    if storage_settings.backend == "json":
        if not storage_settings.path:
            raise ValidationError("storage.path is required for the json backend")
        container.storage.override(
            providers.Singleton(JsonFileStorage, base_path=storage_settings.path)
        )

    geocoding_settings = app_config.geocoding
    if geocoding_settings.provider == "none":
        container.geocoder.override(providers.Singleton(NullGeocoder))
    elif not geocoding_settings.cache:
        container.geocoder.override(container.nominatim)

    return container
