"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Great-circle distances and a locally flat frame for projecting points on the route.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from haversine import Unit, haversine, haversine_vector

from utils.constants import EARTH_RADIUS_M, METERS_PER_DEG_LAT, METERS_PER_DEG_LNG_AT_EQUATOR


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters on a sphere of radius 6 371 000 m."""
    return haversine((lat1, lng1), (lat2, lng2), unit=Unit.RADIANS) * EARTH_RADIUS_M


def consecutive_distances_m(lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """Distance between each point and the previous one, 0 for the first point."""
    n = len(lats)
    if n < 2:
        return np.zeros(n, dtype=float)
    start = np.column_stack([lats[:-1], lngs[:-1]])
    end = np.column_stack([lats[1:], lngs[1:]])
    steps = np.asarray(haversine_vector(start, end, Unit.RADIANS), dtype=float) * EARTH_RADIUS_M
    return np.concatenate([[0.0], steps])


@dataclass(frozen=True)
class TrackSegment:
    """One leg of the route between two consecutive profile points."""

    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    cumulative_start_m: float = 0.0
    length_m: float = 0.0


def local_xy(lat: float, lng: float, ref_lat: float, ref_lng: float) -> tuple[float, float]:
    """Equirectangular offset (meters) of (lat, lng) from a reference point."""
    cos_ref = math.cos(math.radians(ref_lat))
    x = (lng - ref_lng) * METERS_PER_DEG_LNG_AT_EQUATOR * cos_ref
    y = (lat - ref_lat) * METERS_PER_DEG_LAT
    return x, y
