"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Split and waypoint-segment tables built on top of a PacingIntegrator.

Every table ends with a final rescale of its travel times so that the last
row's ``elapsedSec`` is exact: the target finish time in ``time`` mode, the
whole-course total rounded to the second otherwise. The same factor is applied
to every earlier row so that rows stay consistent with the total.
"""

from __future__ import annotations

import math
from typing import Any, Optional

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

from services.pacing.grade import average_grade_between, gain_loss_between
from services.pacing.integrator import PacingIntegrator
from services.pacing.models import Plan, SmoothingConfig, Waypoint
from services.pacing.profile import as_profile, is_usable, total_distance
from services.pacing.stoppage import (
    StoppageOverrides,
    cumulative_stoppage,
    sort_waypoints,
    stoppage_by_waypoint,
)
from utils.constants import SPLIT_COLUMNS, WAYPOINT_SEGMENT_COLUMNS, meters_per_distance_unit

logger = get_logger(__name__)


def course_end_distance(profile: pd.DataFrame, waypoints: Optional[list[Waypoint]] = None) -> float:
    """Distance of the Finish waypoint, or the profile length without waypoints."""
    total = total_distance(profile)
    if waypoints:
        finish = sort_waypoints(waypoints)[-1]
        if finish.distance > 0:
            return min(finish.distance, total) if total > 0 else 0.0
    return total


def build_integrator(
    profile: Any,
    plan: Plan,
    smoothing: Optional[SmoothingConfig] = None,
    waypoints: Optional[list[Waypoint]] = None,
    overrides: StoppageOverrides = None,
    grade_model: str = "polynomial",
) -> PacingIntegrator:
    profile = as_profile(profile)
    course_end = course_end_distance(profile, waypoints)
    stoppage_total = cumulative_stoppage(
        waypoints or [], overrides, plan.stoppage_default, up_to_m=course_end
    )
    return PacingIntegrator(
        profile,
        plan,
        smoothing=smoothing,
        course_end_m=course_end,
        stoppage_total_s=stoppage_total,
        grade_model=grade_model,
    )


def _final_elapsed(plan: Plan, travel_total: float, stoppage_total: float) -> float:
    if plan.pace_mode == "time" and plan.target_time_sec:
        if plan.target_includes_stoppages:
            return float(plan.target_time_sec)
        return float(plan.target_time_sec) + stoppage_total
    return float(round(travel_total + stoppage_total))


def _rescale_to_final(
    plan: Plan, travel_ends: np.ndarray, stoppage_ends: np.ndarray
) -> tuple[np.ndarray, float]:
    """Elapsed times whose last value is exact, and the travel scale used."""
    travel_total = float(travel_ends[-1])
    stoppage_total = float(stoppage_ends[-1])
    final = _final_elapsed(plan, travel_total, stoppage_total)
    desired_travel = final - stoppage_total

    if travel_total <= 0 or desired_travel <= 0:
        logger.debug(
            f"Final rescale skipped (travel={travel_total:.1f}s, desired travel={desired_travel:.1f}s)"
        )
        return travel_ends + stoppage_ends, 1.0

    extra_scale = desired_travel / travel_total
    elapsed = travel_ends * extra_scale + stoppage_ends
    elapsed[-1] = final
    return elapsed, extra_scale


def _segment_paces(
    integrator: PacingIntegrator,
    starts: np.ndarray,
    travel_ends: np.ndarray,
    dists: np.ndarray,
    extra_scale: float,
) -> np.ndarray:
    """Seconds per pace unit for each row: scaled travel time over distance."""
    travel_starts = np.array([integrator.elapsed_at(s) for s in starts], dtype=float)
    unit_dists = dists / integrator.plan.unit_meters
    paces = np.empty(len(dists), dtype=float)
    for i, (t0, t1, units) in enumerate(zip(travel_starts, travel_ends, unit_dists)):
        if units > 0:
            paces[i] = (t1 - t0) * extra_scale / units
        else:
            # Co-located boundaries: report the local pace
            paces[i] = integrator.actual_pace_at(starts[i]) * extra_scale
    return paces


def _metric_rows(
    integrator: PacingIntegrator, starts: np.ndarray, ends: np.ndarray
) -> pd.DataFrame:
    profile = integrator.profile
    rows = []
    for i, (start, end) in enumerate(zip(starts, ends), start=1):
        gain, loss = gain_loss_between(profile, start, end)
        rows.append(
            {
                "index": i,
                "start": float(start),
                "end": float(end),
                "dist": float(end - start),
                "gain": gain,
                "loss": loss,
                "avgGrade": average_grade_between(profile, start, end),
                "gradeFactor": integrator.mean_grade_factor(start, end),
            }
        )
    return pd.DataFrame(rows)


def _fill_times(
    df: pd.DataFrame,
    integrator: PacingIntegrator,
    stoppage_ends: np.ndarray,
) -> None:
    """Set paceSecPerUnit and elapsedSec in place."""
    if not integrator.has_pace:
        df["paceSecPerUnit"] = np.nan
        df["elapsedSec"] = np.nan
        return

    starts = df["start"].to_numpy(dtype=float)
    ends = df["end"].to_numpy(dtype=float)
    travel_ends = np.array([integrator.elapsed_at(e) for e in ends], dtype=float)
    elapsed, extra_scale = _rescale_to_final(integrator.plan, travel_ends, stoppage_ends)

    df["paceSecPerUnit"] = _segment_paces(
        integrator, starts, travel_ends, df["dist"].to_numpy(dtype=float), extra_scale
    )
    df["elapsedSec"] = elapsed


def compute_fixed_splits(
    profile: Any,
    plan: Plan,
    smoothing: Optional[SmoothingConfig] = None,
    waypoints: Optional[list[Waypoint]] = None,
    overrides: StoppageOverrides = None,
    distance_unit: str = "kilometers",
    grade_model: str = "polynomial",
    integrator: Optional[PacingIntegrator] = None,
) -> pd.DataFrame:
    """Per-kilometer (or per-mile) split table, last split partial.

    Args:
        profile: Profile DataFrame (or list of points)
        plan: Pacing plan
        smoothing: Smoothing settings, defaults when None
        waypoints: Course waypoints; the Finish sets the course end
        overrides: Per-waypoint stoppage overrides
        distance_unit: "kilometers" or "miles"
        grade_model: Grade model name
        integrator: Prebuilt integrator for the same inputs (skips integration)

    Returns:
        DataFrame with SPLIT_COLUMNS, empty for an unusable profile
    """
    waypoints = waypoints or []
    if integrator is None:
        integrator = build_integrator(profile, plan, smoothing, waypoints, overrides, grade_model)

    course_end = integrator.course_end_m
    if not is_usable(integrator.profile) or course_end <= 0:
        logger.debug("No splits: unusable profile or zero course distance")
        return pd.DataFrame(columns=SPLIT_COLUMNS)

    unit = meters_per_distance_unit(distance_unit)
    count = max(1, int(math.ceil(course_end / unit - 1e-9)))
    starts = np.arange(count, dtype=float) * unit
    ends = np.minimum(starts + unit, course_end)

    df = _metric_rows(integrator, starts, ends)
    stoppage_ends = np.array(
        [cumulative_stoppage(waypoints, overrides, plan.stoppage_default, up_to_m=e) for e in ends],
        dtype=float,
    )
    _fill_times(df, integrator, stoppage_ends)
    return df[SPLIT_COLUMNS]


def compute_waypoint_segments(
    profile: Any,
    plan: Plan,
    smoothing: Optional[SmoothingConfig] = None,
    waypoints: Optional[list[Waypoint]] = None,
    overrides: StoppageOverrides = None,
    grade_model: str = "polynomial",
    integrator: Optional[PacingIntegrator] = None,
) -> pd.DataFrame:
    """One row per consecutive waypoint pair (by order).

    ``arrivalSec`` is the elapsed time on reaching ``toWaypoint``,
    ``delaySec`` the stoppage spent there and ``elapsedSec`` the departure
    time (arrival plus delay).
    """
    ordered = sort_waypoints(waypoints or [])
    if len(ordered) < 2:
        return pd.DataFrame(columns=WAYPOINT_SEGMENT_COLUMNS)

    if integrator is None:
        integrator = build_integrator(profile, plan, smoothing, ordered, overrides, grade_model)

    course_end = integrator.course_end_m
    if not is_usable(integrator.profile) or course_end <= 0:
        logger.debug("No waypoint segments: unusable profile or zero course distance")
        return pd.DataFrame(columns=WAYPOINT_SEGMENT_COLUMNS)

    delays = stoppage_by_waypoint(ordered, overrides, plan.stoppage_default)
    pairs = list(zip(ordered[:-1], ordered[1:]))
    starts = np.array(
        [min(max(min(a.distance, b.distance), 0.0), course_end) for a, b in pairs], dtype=float
    )
    ends = np.array(
        [min(max(max(a.distance, b.distance), 0.0), course_end) for a, b in pairs], dtype=float
    )

    df = _metric_rows(integrator, starts, ends)
    df["fromWaypoint"] = [a.id for a, _ in pairs]
    df["toWaypoint"] = [b.id for _, b in pairs]
    df["delaySec"] = [delays[b.id] for _, b in pairs]

    stoppage_ends = np.cumsum([delays[ordered[0].id]] + [delays[b.id] for _, b in pairs])[1:]
    _fill_times(df, integrator, stoppage_ends.astype(float))
    df["arrivalSec"] = df["elapsedSec"] - df["delaySec"]
    return df[WAYPOINT_SEGMENT_COLUMNS]


def compute_waypoint_times(
    profile: Any,
    plan: Plan,
    smoothing: Optional[SmoothingConfig] = None,
    waypoints: Optional[list[Waypoint]] = None,
    overrides: StoppageOverrides = None,
    grade_model: str = "polynomial",
    integrator: Optional[PacingIntegrator] = None,
) -> dict[str, Optional[float]]:
    """Departure time (seconds) at every waypoint, the Start included.

    Values are None when the plan has no pace.
    """
    ordered = sort_waypoints(waypoints or [])
    if not ordered:
        return {}

    segments = compute_waypoint_segments(
        profile, plan, smoothing, ordered, overrides, grade_model, integrator
    )
    if segments.empty:
        return {w.id: None for w in ordered}

    start_delay = stoppage_by_waypoint(ordered, overrides, plan.stoppage_default)[ordered[0].id]
    times: dict[str, Optional[float]] = {}
    has_pace = not segments["elapsedSec"].isna().any()
    times[ordered[0].id] = start_delay if has_pace else None
    for _, row in segments.iterrows():
        times[row["toWaypoint"]] = float(row["elapsedSec"]) if has_pace else None
    return times


def course_summary(
    profile: Any,
    plan: Plan,
    smoothing: Optional[SmoothingConfig] = None,
    waypoints: Optional[list[Waypoint]] = None,
    overrides: StoppageOverrides = None,
    grade_model: str = "polynomial",
    integrator: Optional[PacingIntegrator] = None,
) -> dict[str, Optional[float]]:
    """Whole-course totals consistent with the last split row."""
    waypoints = waypoints or []
    if integrator is None:
        integrator = build_integrator(profile, plan, smoothing, waypoints, overrides, grade_model)

    gain, loss = gain_loss_between(integrator.profile, 0.0, integrator.course_end_m)
    summary: dict[str, Optional[float]] = {
        "totalDistance": integrator.course_end_m,
        "elevationGain": gain,
        "elevationLoss": loss,
        "stoppageSec": integrator.stoppage_total_s,
        "travelSec": None,
        "finishSec": None,
        "averagePaceSecPerUnit": None,
    }

    splits = compute_fixed_splits(
        integrator.profile, plan, waypoints=waypoints, overrides=overrides, integrator=integrator
    )
    if splits.empty or splits["elapsedSec"].isna().any():
        return summary

    finish = float(splits["elapsedSec"].iloc[-1])
    travel = finish - integrator.stoppage_total_s
    summary["finishSec"] = finish
    summary["travelSec"] = travel
    if integrator.course_end_m > 0:
        summary["averagePaceSecPerUnit"] = travel / (integrator.course_end_m / plan.unit_meters)
    return summary
