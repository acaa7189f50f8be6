"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Pacing service: grade-adjusted pace and time tables for a course and a plan.

Entry point used by the host application. Accepts plans, waypoints and
stoppage overrides either as model objects or as REST payload dicts
(camelCase keys), resolves smoothing defaults from configuration and keeps
integrators in an LRU cache so repeated interactions do not re-integrate.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd
from streamlit.logger import get_logger

from services.pacing.cache import PacingCache
from services.pacing.grade import average_grade_between
from services.pacing.integrator import PacingIntegrator
from services.pacing.interpolation import RouteMatch, find_nearest_point_on_route
from services.pacing.models import Plan, SmoothingConfig, Waypoint, WaypointStoppageTime
from services.pacing.profile import (
    as_profile,
    elevation_stats,
    extract_elevation_profile,
    has_elevation_samples,
    is_usable,
)
from services.pacing.splits import (
    compute_fixed_splits,
    compute_waypoint_segments,
    compute_waypoint_times,
    course_end_distance,
    course_summary,
)
from services.pacing.stoppage import cumulative_stoppage, override_map
from utils.config import Config, load_config
from utils.formatting import (
    fmt_delay,
    fmt_distance,
    fmt_elapsed,
    fmt_elevation,
    fmt_grade,
    fmt_pace,
    set_locale,
)

logger = get_logger(__name__)

PlanLike = Union[Plan, Mapping[str, Any]]
WaypointsLike = Optional[Iterable[Union[Waypoint, Mapping[str, Any]]]]
OverridesLike = Optional[Union[Mapping[str, float], Iterable[Union[WaypointStoppageTime, Mapping[str, Any]]]]]


class PacingService:
    """Service for grade-adjusted pacing of a race course."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config if config is not None else load_config()
        self.cache = PacingCache(self.config.cache_size)
        set_locale(self.config.display_locale)

    # ------------------------------------------------------------------
    # Input normalization
    # ------------------------------------------------------------------

    def smoothing(self, settings: Optional[Union[SmoothingConfig, Mapping[str, Any]]] = None) -> SmoothingConfig:
        """Per-course smoothing settings, falling back to configured defaults."""
        if isinstance(settings, SmoothingConfig):
            return settings.normalized()
        settings = settings or {}
        return SmoothingConfig.from_dict(
            {
                "gradeWindowMeters": settings.get("gradeWindowMeters", self.config.grade_window_m),
                "paceSmoothingMeters": settings.get(
                    "paceSmoothingMeters", self.config.pace_smoothing_m
                ),
                "sampleStepMeters": settings.get("sampleStepMeters", self.config.sample_step_m),
            }
        )

    @staticmethod
    def _plan(plan: PlanLike) -> Plan:
        return plan if isinstance(plan, Plan) else Plan.from_dict(plan)

    @staticmethod
    def _waypoints(waypoints: WaypointsLike) -> list[Waypoint]:
        return [w if isinstance(w, Waypoint) else Waypoint.from_dict(w) for w in waypoints or []]

    @staticmethod
    def _overrides(overrides: OverridesLike) -> dict[str, float]:
        if overrides is None:
            return {}
        if isinstance(overrides, Mapping):
            return override_map(overrides)
        result = {}
        for item in overrides:
            if not isinstance(item, WaypointStoppageTime):
                item = WaypointStoppageTime.from_dict(item)
            result[item.waypoint_id] = item.stoppage_time
        return result

    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------

    def profile_from_geojson(self, geojson: Mapping[str, Any]) -> pd.DataFrame:
        profile = extract_elevation_profile(geojson)
        if not is_usable(profile):
            logger.warning(f"Course geometry yields an unusable profile ({len(profile)} points)")
        return profile

    @staticmethod
    def has_elevation(geojson: Mapping[str, Any]) -> bool:
        return has_elevation_samples(geojson)

    @staticmethod
    def elevation_stats(profile: Any) -> dict[str, float]:
        return elevation_stats(as_profile(profile))

    @staticmethod
    def nearest_point(
        profile: Any, lat: float, lng: float, near_distance: Optional[float] = None
    ) -> Optional[RouteMatch]:
        """Snap a map position onto the course, preferring the pass nearest ``near_distance``."""
        return find_nearest_point_on_route(as_profile(profile), lat, lng, near_distance)

    def integrator(
        self,
        profile: Any,
        plan: PlanLike,
        smoothing: Optional[Union[SmoothingConfig, Mapping[str, Any]]] = None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
    ) -> PacingIntegrator:
        """Cached integrator for one (profile, plan, smoothing, waypoints) combination."""
        profile = as_profile(profile)
        plan = self._plan(plan)
        waypoints = self._waypoints(waypoints)
        course_end = course_end_distance(profile, waypoints)
        stoppage_total = cumulative_stoppage(
            waypoints, self._overrides(overrides), plan.stoppage_default, up_to_m=course_end
        )
        return self.cache.get_or_build(
            profile,
            plan,
            self.smoothing(smoothing),
            course_end,
            stoppage_total,
            self.config.grade_model,
        )

    def _prepare(self, profile, plan, smoothing, waypoints, overrides):
        plan = self._plan(plan)
        waypoints = self._waypoints(waypoints)
        overrides = self._overrides(overrides)
        integrator = self.integrator(profile, plan, smoothing, waypoints, overrides)
        if not integrator.has_pace:
            if integrator.is_empty:
                logger.warning("No pacing possible: unusable profile or zero course distance")
            else:
                logger.warning("No pace set for this plan")
        return plan, waypoints, overrides, integrator

    def fixed_splits(
        self,
        profile: Any,
        plan: PlanLike,
        smoothing=None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
        distance_unit: Optional[str] = None,
    ) -> pd.DataFrame:
        plan, waypoints, overrides, integrator = self._prepare(
            profile, plan, smoothing, waypoints, overrides
        )
        return compute_fixed_splits(
            integrator.profile,
            plan,
            waypoints=waypoints,
            overrides=overrides,
            distance_unit=distance_unit or self.config.distance_unit,
            integrator=integrator,
        )

    def waypoint_segments(
        self,
        profile: Any,
        plan: PlanLike,
        smoothing=None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
    ) -> pd.DataFrame:
        plan, waypoints, overrides, integrator = self._prepare(
            profile, plan, smoothing, waypoints, overrides
        )
        return compute_waypoint_segments(
            integrator.profile, plan, waypoints=waypoints, overrides=overrides, integrator=integrator
        )

    def waypoint_times(
        self,
        profile: Any,
        plan: PlanLike,
        smoothing=None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
    ) -> dict[str, Optional[float]]:
        plan, waypoints, overrides, integrator = self._prepare(
            profile, plan, smoothing, waypoints, overrides
        )
        return compute_waypoint_times(
            integrator.profile, plan, waypoints=waypoints, overrides=overrides, integrator=integrator
        )

    def summary(
        self,
        profile: Any,
        plan: PlanLike,
        smoothing=None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
    ) -> dict[str, Optional[float]]:
        plan, waypoints, overrides, integrator = self._prepare(
            profile, plan, smoothing, waypoints, overrides
        )
        return course_summary(
            integrator.profile, plan, waypoints=waypoints, overrides=overrides, integrator=integrator
        )

    def pace_series(
        self,
        profile: Any,
        plan: PlanLike,
        smoothing=None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
    ) -> pd.DataFrame:
        return self.integrator(profile, plan, smoothing, waypoints, overrides).pace_series()

    def grade_adjustment_for_segment(
        self,
        profile: Any,
        plan: PlanLike,
        from_distance: float,
        to_distance: float,
        smoothing=None,
        waypoints: WaypointsLike = None,
        overrides: OverridesLike = None,
    ) -> dict[str, Optional[float]]:
        """Grade adjustment between two waypoints.

        Args:
            profile: Profile DataFrame
            plan: Plan or plan payload
            from_distance: Distance of the first waypoint (meters)
            to_distance: Distance of the second waypoint (meters)

        Returns:
            Dict with averageGrade (%), adjustmentFactor (mean combined factor),
            adjustedPace (sec per pace unit, None without a pace) and
            paceAdjustment (adjusted minus base pace)
        """
        plan = self._plan(plan)
        integrator = self.integrator(profile, plan, smoothing, waypoints, overrides)
        start, end = sorted((float(from_distance), float(to_distance)))

        result: dict[str, Optional[float]] = {
            "averageGrade": average_grade_between(integrator.profile, start, end),
            "adjustmentFactor": integrator.mean_combined_factor(start, end),
            "adjustedPace": None,
            "paceAdjustment": 0.0,
        }
        if integrator.has_pace:
            adjusted = (
                integrator.base_pace
                * result["adjustmentFactor"]
                * integrator.normalization_scale
                * integrator.time_scale
            )
            result["adjustedPace"] = adjusted
            result["paceAdjustment"] = adjusted - integrator.base_pace
        return result

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def format_splits(self, splits: pd.DataFrame, pace_unit: str = "min_per_km") -> pd.DataFrame:
        """Display strings for a split or waypoint-segment table."""
        if splits.empty:
            return pd.DataFrame()

        unit = self.config.distance_unit
        elevation_unit = "feet" if unit == "miles" else "meters"
        display = pd.DataFrame(
            {
                "Split": splits["index"].astype(int),
                "Distance": splits["end"].map(lambda m: fmt_distance(m, unit)),
                "Gain": splits["gain"].map(lambda m: fmt_elevation(m, elevation_unit)),
                "Loss": splits["loss"].map(lambda m: fmt_elevation(m, elevation_unit)),
                "Grade": splits["avgGrade"].map(fmt_grade),
                "Pace": splits["paceSecPerUnit"].map(lambda p: fmt_pace(p, pace_unit)),
                "Elapsed": splits["elapsedSec"].map(fmt_elapsed),
            }
        )
        if "delaySec" in splits.columns:
            display["Stop"] = splits["delaySec"].map(fmt_delay)
        return display
