"""
Distance calculation using the Haversine formula.

Assumption
----------
Matching uses great-circle (Haversine) distance instead of a routing engine
because it is an in-memory filter over a small candidate set.  Real road
distance for fares comes from the OSRM client in
``src.infrastructure.routing_client``.

Complexity: O(1) per call.
"""

import math

from .entities import GeoPoint

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def point_distance_km(a: GeoPoint | None, b: GeoPoint | None) -> float:
    """Distance between two points, or ``+inf`` if either has no usable coordinates."""
    if a is None or b is None or not a.has_coordinates or not b.has_coordinates:
        return math.inf
    return haversine_km(a.lat, a.lng, b.lat, b.lng)
