"""Great-circle distance on a spherical Earth."""

from __future__ import annotations

import math

from ..schemas import Coordinates

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    """Return the Haversine distance in kilometres between two points.

    Spherical approximation with a 6371 km radius; expect errors of a few
    hundred metres over long distances.
    """
    lat1 = math.radians(origin.lat)
    lat2 = math.radians(target.lat)
    d_lat = math.radians(target.lat - origin.lat)
    d_lng = math.radians(target.lng - origin.lng)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    # Rounding can push a fractionally outside [0, 1] for antipodal points.
    a = min(max(a, 0.0), 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def round_distance(distance_km: float, precision: int = 1) -> float:
    """Round a distance for display."""
    return round(distance_km, precision)


def format_distance(distance_km: float, precision: int = 1) -> str:
    return f"{distance_km:.{precision}f} km away"
