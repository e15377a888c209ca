"""
Point-to-point distance used by the route heuristics.

Riders with coordinates are measured great-circle (haversine). When either
side has no coordinates we hand back a placeholder drawn uniformly from
[1, 11) km; `GeoDistance.between` is the single place to swap that for a
routing provider.
"""

import math
import random
from typing import Optional, Protocol

EARTH_RADIUS_KM = 6371.0
PLACEHOLDER_MIN_KM = 1.0
PLACEHOLDER_SPAN_KM = 10.0
DEFAULT_SPEED_KMH = 30.0


class GeoPoint(Protocol):
    latitude: Optional[float]
    longitude: Optional[float]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2.0) ** 2
    )
    # Rounding can push a past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def travel_minutes(distance_km: float, speed_kmh: float = DEFAULT_SPEED_KMH) -> float:
    return distance_km / speed_kmh * 60.0


class GeoDistance:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def between(self, a: GeoPoint, b: GeoPoint) -> float:
        """Distance in km from `a` to `b`."""
        if _has_coordinates(a) and _has_coordinates(b):
            return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
        return self.placeholder_km()

    def placeholder_km(self) -> float:
        # Stand-in for a map provider call
        return PLACEHOLDER_MIN_KM + self.rng.random() * PLACEHOLDER_SPAN_KM


def _has_coordinates(point: GeoPoint) -> bool:
    return point.latitude is not None and point.longitude is not None
