from __future__ import annotations

import math

from ..catalog import MODE_PROFILES, WALKING_ROAD_FACTOR, WALKING_SPEED_KMH, TravelMode
from ..places.models import Coordinates

EARTH_RADIUS_KM = 6371.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def walking_minutes(a: Coordinates, b: Coordinates) -> int:
    km = haversine_km(a, b) * WALKING_ROAD_FACTOR
    return round_half_up(km / WALKING_SPEED_KMH * 60)


def quick_travel_estimate(a: Coordinates, b: Coordinates, mode: TravelMode = TravelMode.driving) -> int:
    """Untrafficked minutes between two points for ``mode``."""
    profile = MODE_PROFILES[mode]
    return round_half_up(haversine_km(a, b) * profile.road_factor / profile.speed_kmh * 60)


def is_walking_distance(a: Coordinates, b: Coordinates, max_minutes: int = 15) -> bool:
    return quick_travel_estimate(a, b, TravelMode.walking) <= max_minutes
