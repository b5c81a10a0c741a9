"""
Geographic distance helpers for radius searches.
"""

import math
from typing import Tuple

from core.constants import EARTH_RADIUS_KM, KM_PER_DEGREE_LATITUDE


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates, in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lng: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Latitude/longitude box enclosing a circle of ``radius_km`` around a point.

    Returns:
        (min_lat, max_lat, min_lng, max_lng). The box is a superset of the
        circle; callers must still filter candidates with haversine_km().
    """
    d_lat = radius_km / KM_PER_DEGREE_LATITUDE
    # Longitude degrees shrink towards the poles
    cos_lat = max(math.cos(math.radians(lat)), 0.01)
    d_lng = radius_km / (KM_PER_DEGREE_LATITUDE * cos_lat)
    return lat - d_lat, lat + d_lat, lng - d_lng, lng + d_lng
