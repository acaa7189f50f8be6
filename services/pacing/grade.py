"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Local slope (percent) along an elevation profile.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

import config
from services.pacing.interpolation import interpolate_elevations


def grades_at_distances(profile: pd.DataFrame, distances, window_m: float) -> np.ndarray:
    """Vectorized grade (%) at each distance.

    With a positive window, elevation is sampled at d - window/2 and
    d + window/2 (clamped to the profile) and the rise is divided by the
    window length actually used. A zero window uses the rise/run of the
    profile pair bracketing d. Collapsed runs give 0.
    """
    targets = np.atleast_1d(np.asarray(distances, dtype=float))
    if len(profile) < 2:
        return np.zeros(targets.shape, dtype=float)

    dist = profile["distance"].to_numpy(dtype=float)
    elev = profile["elevation"].to_numpy(dtype=float)

    if window_m > 0:
        half = window_m / 2.0
        lo = np.clip(targets - half, dist[0], dist[-1])
        hi = np.clip(targets + half, dist[0], dist[-1])
        run = hi - lo
        rise = interpolate_elevations(profile, hi) - interpolate_elevations(profile, lo)
    else:
        i = np.clip(np.searchsorted(dist, targets, side="left"), 1, len(dist) - 1)
        run = dist[i] - dist[i - 1]
        rise = elev[i] - elev[i - 1]

    grade = np.divide(rise * 100.0, run, out=np.zeros_like(targets, dtype=float), where=run > 0)
    return np.clip(grade, -config.GRADE_RESULT_CLAMP_PCT, config.GRADE_RESULT_CLAMP_PCT)


def calculate_grade_at_distance(
    profile: pd.DataFrame, distance: float, window_m: float = config.DEFAULT_GRADE_WINDOW_M
) -> float:
    """Grade percentage at a distance (positive is uphill)."""
    return float(grades_at_distances(profile, [distance], window_m)[0])


def average_grade_between(profile: pd.DataFrame, start_m: float, end_m: float) -> float:
    """Net rise over run (%) between two distances, using interpolated end elevations."""
    run = end_m - start_m
    if profile.empty or run <= 0:
        return 0.0
    start_elev, end_elev = interpolate_elevations(profile, [start_m, end_m])
    return float((end_elev - start_elev) / run * 100.0)


def gain_loss_between(profile: pd.DataFrame, start_m: float, end_m: float) -> tuple[float, float]:
    """Cumulative elevation gain and loss between two distances.

    Every profile point strictly inside the interval is used, bracketed by
    the interpolated elevations at both ends, so interior peaks and valleys
    are counted.
    """
    if profile.empty or end_m <= start_m:
        return 0.0, 0.0

    dist = profile["distance"].to_numpy(dtype=float)
    elev = profile["elevation"].to_numpy(dtype=float)
    inside = (dist > start_m) & (dist < end_m)
    start_elev, end_elev = interpolate_elevations(profile, [start_m, end_m])
    series = np.concatenate([[start_elev], elev[inside], [end_elev]])

    deltas = np.diff(series)
    return float(deltas[deltas > 0].sum()), float(-deltas[deltas < 0].sum())
