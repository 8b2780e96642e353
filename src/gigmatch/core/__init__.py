"""Catalog, application and matching components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .applications import ApplicationStore
from .catalog import JobCatalog, JobFilters
from .distance import EARTH_RADIUS_KM, haversine_km, round_distance
from .matching import (
    ALL_STATUSES,
    MatchedJob,
    MatchEngine,
    MatchResult,
    matches_search,
    sort_by_distance,
)

__all__ = [
    "ALL_STATUSES",
    "ApplicationStore",
    "EARTH_RADIUS_KM",
    "JobCatalog",
    "JobFilters",
    "MatchedJob",
    "MatchEngine",
    "MatchResult",
    "haversine_km",
    "matches_search",
    "round_distance",
    "sort_by_distance",
]
