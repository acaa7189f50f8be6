"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Distance-based interpolation on an elevation profile and point snapping onto the route.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

import config
from services.pacing.models import ElevationPoint
from utils.geo import TrackSegment, haversine_m, local_xy

logger = get_logger(__name__)


@dataclass(frozen=True)
class SegmentProjection:
    t: float
    snapped_lat: float
    snapped_lng: float


@dataclass(frozen=True)
class RouteMatch:
    route_distance_m: float
    pointer_distance_m: float
    snapped_lat: float
    snapped_lng: float


def _point_at(profile: pd.DataFrame, i: int) -> ElevationPoint:
    row = profile.iloc[i]
    return ElevationPoint(
        distance=float(row["distance"]),
        elevation=float(row["elevation"]),
        lat=float(row["lat"]),
        lng=float(row["lng"]),
        original_index=int(row["originalIndex"]),
    )


def _interp_columns(distances: np.ndarray, values: np.ndarray, targets: np.ndarray) -> np.ndarray:
    """Piecewise-linear interpolation clamped to the profile ends.

    A zero-length bracketing pair yields the earlier point.
    """
    if len(distances) == 1:
        return np.full(targets.shape, values[0], dtype=float)

    t = np.clip(targets, distances[0], distances[-1])
    i = np.clip(np.searchsorted(distances, t, side="left"), 1, len(distances) - 1)
    d0 = distances[i - 1]
    span = distances[i] - d0
    ratio = np.divide(t - d0, span, out=np.zeros_like(t, dtype=float), where=span > 0)
    ratio = np.clip(ratio, 0.0, 1.0)
    return values[i - 1] + ratio * (values[i] - values[i - 1])


def interpolate_elevations(profile: pd.DataFrame, distances) -> np.ndarray:
    """Vectorized elevation lookup at arbitrary distances (meters)."""
    targets = np.atleast_1d(np.asarray(distances, dtype=float))
    if profile.empty:
        return np.zeros(targets.shape, dtype=float)
    return _interp_columns(
        profile["distance"].to_numpy(dtype=float),
        profile["elevation"].to_numpy(dtype=float),
        targets,
    )


def interpolate_at_distance(profile: pd.DataFrame, distance: float) -> Optional[ElevationPoint]:
    """Interpolate elevation and coordinates at a distance along the profile.

    The distance is clamped to [0, last distance]; profile points are
    returned as-is when hit exactly.

    Args:
        profile: Profile DataFrame
        distance: Distance from start in meters

    Returns:
        ElevationPoint (original_index -1 when interpolated), or None for an empty profile
    """
    if profile.empty:
        return None

    distances = profile["distance"].to_numpy(dtype=float)
    last = len(distances) - 1
    if distance <= distances[0]:
        return _point_at(profile, 0)
    if distance >= distances[last]:
        return _point_at(profile, last)

    i = int(np.searchsorted(distances, distance, side="left"))
    i = min(max(i, 1), last)
    if distances[i] == distance:
        return _point_at(profile, i)

    prev = _point_at(profile, i - 1)
    curr = _point_at(profile, i)
    span = curr.distance - prev.distance
    if span <= 0:
        return prev

    ratio = (distance - prev.distance) / span
    return ElevationPoint(
        distance=float(distance),
        elevation=prev.elevation + ratio * (curr.elevation - prev.elevation),
        lat=prev.lat + ratio * (curr.lat - prev.lat),
        lng=prev.lng + ratio * (curr.lng - prev.lng),
        original_index=-1,
    )


def project_point_on_track_segment(lat: float, lng: float, segment: TrackSegment) -> SegmentProjection:
    """Project a point onto a segment in a locally flat frame, t clamped to [0, 1]."""
    ex, ey = local_xy(segment.end_lat, segment.end_lng, segment.start_lat, segment.start_lng)
    px, py = local_xy(lat, lng, segment.start_lat, segment.start_lng)
    len_sq = ex * ex + ey * ey

    t = 0.0
    if len_sq > 0:
        t = (px * ex + py * ey) / len_sq
    t = max(0.0, min(1.0, t))

    return SegmentProjection(
        t=t,
        snapped_lat=segment.start_lat + t * (segment.end_lat - segment.start_lat),
        snapped_lng=segment.start_lng + t * (segment.end_lng - segment.start_lng),
    )


def track_segments(profile: pd.DataFrame) -> list[TrackSegment]:
    """Consecutive profile points as TrackSegments carrying their route offsets."""
    segments = []
    rows = profile[["distance", "lat", "lng"]].to_numpy(dtype=float)
    for (d0, lat0, lng0), (d1, lat1, lng1) in zip(rows[:-1], rows[1:]):
        segments.append(
            TrackSegment(
                start_lat=lat0,
                start_lng=lng0,
                end_lat=lat1,
                end_lng=lng1,
                cumulative_start_m=d0,
                length_m=d1 - d0,
            )
        )
    return segments


def find_nearest_point_on_route(
    profile: pd.DataFrame,
    lat: float,
    lng: float,
    near_distance: Optional[float] = None,
) -> Optional[RouteMatch]:
    """Snap a pointer (e.g. a map click) onto the route.

    When the route passes the pointer several times (out-and-back or
    looping courses), every pass within a few meters of the best lateral
    distance is a candidate; the one closest to ``near_distance`` wins.
    Without a hint the earliest of those passes wins.

    Returns:
        RouteMatch, or None for an empty profile
    """
    if profile.empty:
        return None

    if len(profile) == 1:
        point = _point_at(profile, 0)
        return RouteMatch(
            route_distance_m=point.distance,
            pointer_distance_m=haversine_m(lat, lng, point.lat, point.lng),
            snapped_lat=point.lat,
            snapped_lng=point.lng,
        )

    candidates = []
    for segment in track_segments(profile):
        projection = project_point_on_track_segment(lat, lng, segment)
        lateral = haversine_m(lat, lng, projection.snapped_lat, projection.snapped_lng)
        candidates.append(
            RouteMatch(
                route_distance_m=segment.cumulative_start_m + projection.t * segment.length_m,
                pointer_distance_m=lateral,
                snapped_lat=projection.snapped_lat,
                snapped_lng=projection.snapped_lng,
            )
        )

    best_lateral = min(c.pointer_distance_m for c in candidates)
    close = [
        c for c in candidates if c.pointer_distance_m <= best_lateral + config.ROUTE_OVERLAP_TOLERANCE_M
    ]

    if near_distance is None:
        return min(close, key=lambda c: c.route_distance_m)

    if len(close) > 1:
        logger.debug(f"Pointer matches {len(close)} overlapping passes, using hint {near_distance:.0f} m")
    return min(close, key=lambda c: (abs(c.route_distance_m - near_distance), c.pointer_distance_m))
