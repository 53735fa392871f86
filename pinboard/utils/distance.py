# pinboard/utils/distance.py
# Planar helpers in raw degree space. Not geodesic: only used to decide whether
# two labels would overlap on screen at street-level zoom.

from math import cos, hypot, radians, sin
from typing import Tuple


def degree_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Euclidean distance between two points treating (lat, lng) as plane coordinates.

    Args:
        lat1: Latitude of point 1.
        lng1: Longitude of point 1.
        lat2: Latitude of point 2.
        lng2: Longitude of point 2.

    Returns:
        Distance in degrees.
    """
    return hypot(lat2 - lat1, lng2 - lng1)


def polar_offset(lat: float, lng: float, radius: float, angle_deg: float) -> Tuple[float, float]:
    """Move (lat, lng) by ``radius`` degrees along ``angle_deg`` (0 = east, counter-clockwise)."""
    theta = radians(angle_deg)
    return lat + radius * sin(theta), lng + radius * cos(theta)
