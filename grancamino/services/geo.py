"""
Geographic utility functions.

Great-circle distances over track points.
"""

import math
from typing import Sequence

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points, in kilometers.

    Example:
        >>> round(haversine(43.0, -8.0, 43.0, -7.9), 1)
        8.1
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def total_distance_km(points: Sequence) -> float:
    """
    Cumulative distance over consecutive points.

    Args:
        points: ordered objects with ``latitude`` and ``longitude`` attributes

    Returns:
        Distance in kilometers, 0.0 for fewer than two points. Not rounded.
    """
    total = 0.0
    for i in range(1, len(points)):
        prev, cur = points[i - 1], points[i]
        total += haversine(prev.latitude, prev.longitude, cur.latitude, cur.longitude)
    return total

