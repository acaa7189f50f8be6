"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union

from services.pacing.models import Waypoint, WaypointStoppageTime
from utils.coercion import safe_float_optional

StoppageOverrides = Union[Iterable[WaypointStoppageTime], Mapping[str, float], None]

# Waypoints this close past a boundary still count as reached
_DISTANCE_EPS_M = 1e-6


def sort_waypoints(waypoints: Iterable[Waypoint]) -> list[Waypoint]:
    return sorted(waypoints, key=lambda w: (w.order, w.distance))


def override_map(overrides: StoppageOverrides) -> dict[str, float]:
    if overrides is None:
        return {}
    if isinstance(overrides, Mapping):
        parsed = {str(k): safe_float_optional(v) for k, v in overrides.items()}
        # Unparseable values fall back to the plan default
        return {k: max(0.0, v) for k, v in parsed.items() if v is not None}
    return {o.waypoint_id: max(0.0, float(o.stoppage_time)) for o in overrides}


def is_start_or_finish(waypoint: Waypoint, waypoints: list[Waypoint]) -> bool:
    if not waypoints:
        return False
    orders = [w.order for w in waypoints]
    return waypoint.order == min(orders) or waypoint.order == max(orders)


def waypoint_stoppage_time(
    waypoint: Waypoint,
    waypoints: list[Waypoint],
    overrides: StoppageOverrides,
    default_stoppage: float,
) -> float:
    """Stoppage (seconds) spent at a waypoint.

    Start and Finish never stop. Intermediate waypoints use their override
    when one exists, else the plan default.
    """
    if is_start_or_finish(waypoint, waypoints):
        return 0.0
    custom = override_map(overrides).get(waypoint.id)
    if custom is not None:
        return custom
    return max(0.0, float(default_stoppage))


def stoppage_by_waypoint(
    waypoints: list[Waypoint], overrides: StoppageOverrides, default_stoppage: float
) -> dict[str, float]:
    custom = override_map(overrides)
    return {
        w.id: waypoint_stoppage_time(w, waypoints, custom, default_stoppage) for w in waypoints
    }


def cumulative_stoppage(
    waypoints: list[Waypoint],
    overrides: StoppageOverrides,
    default_stoppage: float,
    up_to_m: Optional[float] = None,
) -> float:
    """Total stoppage of waypoints located at or before ``up_to_m`` (all when None)."""
    delays = stoppage_by_waypoint(waypoints, overrides, default_stoppage)
    return float(
        sum(delays[w.id] for w in waypoints if up_to_m is None or w.distance <= up_to_m + _DISTANCE_EPS_M)
    )
