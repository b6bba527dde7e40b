"""
Great-circle distance and bounding-box helpers (WGS84 degrees).
"""

import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

EARTH_RADIUS_M = 6371000.0


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    # rounding can push a marginally past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_meters_array(
    lat: float, lon: float, lats: np.ndarray, lons: np.ndarray
) -> np.ndarray:
    """Vectorized haversine from one point to many."""
    lats = np.asarray(lats, dtype=float)
    lons = np.asarray(lons, dtype=float)
    d_lat = np.radians(lats - lat)
    d_lon = np.radians(lons - lon)
    a = (
        np.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat)) * np.cos(np.radians(lats))
        * np.sin(d_lon / 2) ** 2
    )
    # rounding can push a marginally past 1 for antipodal points
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned lat/lng box, inclusive on every edge."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def from_points(cls, lats: Iterable[float], lons: Iterable[float]) -> "BoundingBox":
        lats = list(lats)
        lons = list(lons)
        if not lats or not lons:
            raise ValueError("Cannot build a bounding box from no points")
        return cls(min(lats), max(lats), min(lons), max(lons))

    @classmethod
    def around(cls, lat: float, lon: float, half_span: float) -> "BoundingBox":
        return cls(lat - half_span, lat + half_span, lon - half_span, lon + half_span)

    def contains(self, lat: float, lon: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon
