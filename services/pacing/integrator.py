"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Pacing strategy integration along a course.

The course [0, course_end] is cut into fixed intervals of ``sample_step_m``
(last one clipped). At each interval midpoint a combined factor is computed:

    combined = grade_factor * pacing_factor

and local pace is ``base_pace * combined * normalization_scale * time_scale``.

- ``normalization_scale`` makes the distance-weighted mean of the combined
  factor equal to 1, so the user's average pace is preserved
  (``pace`` and ``time`` modes; 1.0 in ``normalized`` mode).
- ``time_scale`` (``time`` mode only) rescales travel time so that it hits
  the target finish time, minus stoppages when the target includes them.

A third correction happens in the split aggregator, which rescales its rows
to an exact final total.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

from services.pacing.grade import grades_at_distances
from services.pacing.models import Plan, SmoothingConfig
from services.pacing.pace_adjustment import grade_adjustment_factors
from services.pacing.profile import is_usable, total_distance

logger = get_logger(__name__)


class PacingIntegrator:
    """Pace and elapsed travel time at any distance for one plan on one course."""

    def __init__(
        self,
        profile: pd.DataFrame,
        plan: Plan,
        smoothing: Optional[SmoothingConfig] = None,
        course_end_m: Optional[float] = None,
        stoppage_total_s: float = 0.0,
        grade_model: str = "polynomial",
    ):
        self.profile = profile
        self.plan = plan
        self.smoothing = (smoothing or SmoothingConfig()).normalized()
        self.grade_model = grade_model
        self.stoppage_total_s = max(0.0, float(stoppage_total_s or 0.0))
        if course_end_m is None:
            course_end_m = total_distance(profile)
        self.course_end_m = max(0.0, float(course_end_m))

        self._build_samples()
        self.base_pace = self._resolve_base_pace()
        self.normalization_scale = self._compute_normalization_scale()
        self.time_scale = self._compute_time_scale()
        self._build_cumulative()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return len(self.starts) == 0

    def _build_samples(self) -> None:
        if not is_usable(self.profile) or self.course_end_m <= 0:
            if self.course_end_m > 0:
                logger.debug("Profile unusable for pacing (fewer than 2 points or zero length)")
            empty = np.zeros(0, dtype=float)
            self.starts = self.ends = self.mids = self.lengths = empty
            self.grades = self.grade_factors = self.pacing_factors = self.combined = empty
            return

        step = self.smoothing.sample_step_m
        count = max(1, int(math.ceil(self.course_end_m / step - 1e-9)))
        self.starts = np.arange(count, dtype=float) * step
        self.ends = np.minimum(self.starts + step, self.course_end_m)
        self.mids = (self.starts + self.ends) / 2.0
        self.lengths = self.ends - self.starts

        self.grades = grades_at_distances(self.profile, self.mids, self.smoothing.grade_window_m)
        if self.plan.use_grade_adjustment:
            self.grade_factors = grade_adjustment_factors(self.grades, self.grade_model)
        else:
            self.grade_factors = np.ones_like(self.mids)
        self.pacing_factors = self._pacing_factors(self.mids)
        self.combined = self.grade_factors * self.pacing_factors

    def _pacing_factors(self, distances: np.ndarray) -> np.ndarray:
        distances = np.asarray(distances, dtype=float)
        if self.plan.pacing_strategy != "linear" or self.course_end_m <= 0:
            return np.ones_like(distances)
        t = np.clip(distances / self.course_end_m, 0.0, 1.0)
        return 1.0 + (t - 0.5) * self.plan.linear_fraction

    def _resolve_base_pace(self) -> Optional[float]:
        """Seconds per pace unit before any scaling, or None when the plan has no pace."""
        if self.plan.pace_mode == "time":
            target = self.plan.target_time_sec
            if not target or target <= 0 or self.course_end_m <= 0:
                return None
            return float(target) / (self.course_end_m / self.plan.unit_meters)

        pace = self.plan.pace
        if pace is None or pace <= 0:
            return None
        return float(pace)

    def _compute_normalization_scale(self) -> float:
        if not self.plan.maintain_target_average or self.is_empty:
            return 1.0
        equivalent_distance = float(np.sum(self.combined * self.lengths))
        if equivalent_distance <= 0:
            return 1.0
        return float(np.sum(self.lengths)) / equivalent_distance

    def _unscaled_sample_times(self) -> np.ndarray:
        pace = self.base_pace * self.combined * self.normalization_scale
        return pace * self.lengths / self.plan.unit_meters

    def _compute_time_scale(self) -> float:
        if self.plan.pace_mode != "time" or self.base_pace is None or self.is_empty:
            return 1.0

        desired_travel = float(self.plan.target_time_sec)
        if self.plan.target_includes_stoppages:
            desired_travel -= self.stoppage_total_s
        travel_base = float(np.sum(self._unscaled_sample_times()))

        if desired_travel <= 0 or travel_base <= 0:
            logger.debug(
                f"Cannot rescale travel time (desired={desired_travel:.1f}s, base={travel_base:.1f}s)"
            )
            return 1.0
        return desired_travel / travel_base

    def _build_cumulative(self) -> None:
        self.boundaries = np.concatenate([[0.0], self.ends])
        if self.base_pace is None or self.is_empty:
            self.sample_paces = np.full_like(self.mids, np.nan)
            self.cumulative = np.zeros_like(self.boundaries)
            return
        self.sample_paces = self.base_pace * self.combined * self.normalization_scale * self.time_scale
        sample_times = self.sample_paces * self.lengths / self.plan.unit_meters
        self.cumulative = np.concatenate([[0.0], np.cumsum(sample_times)])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def has_pace(self) -> bool:
        return self.base_pace is not None and not self.is_empty

    @property
    def total_travel_time(self) -> Optional[float]:
        if not self.has_pace:
            return None
        return float(self.cumulative[-1])

    def pacing_factor_at(self, distance: float) -> float:
        return float(self._pacing_factors(np.array([distance]))[0])

    def grade_at(self, distance: float) -> float:
        return float(grades_at_distances(self.profile, [distance], self.smoothing.grade_window_m)[0])

    def grade_factor_at(self, distance: float) -> float:
        if not self.plan.use_grade_adjustment:
            return 1.0
        return float(grade_adjustment_factors(np.array([self.grade_at(distance)]), self.grade_model)[0])

    def combined_factor_at(self, distance: float) -> float:
        return self.grade_factor_at(distance) * self.pacing_factor_at(distance)

    def actual_pace_at(self, distance: float) -> Optional[float]:
        """Local pace (seconds per pace unit) at a distance, None without a pace."""
        if not self.has_pace:
            return None
        return (
            self.base_pace
            * self.combined_factor_at(distance)
            * self.normalization_scale
            * self.time_scale
        )

    def elapsed_at(self, distance: float) -> Optional[float]:
        """Travel time (seconds, stoppages excluded) from the start to a distance."""
        if not self.has_pace:
            return None
        d = min(max(float(distance), 0.0), self.course_end_m)
        return float(np.interp(d, self.boundaries, self.cumulative))

    def travel_time_between(self, start_m: float, end_m: float) -> Optional[float]:
        if not self.has_pace:
            return None
        if end_m <= start_m:
            return 0.0
        return self.elapsed_at(end_m) - self.elapsed_at(start_m)

    def _weighted_mean(self, values: np.ndarray, start_m: float, end_m: float) -> float:
        if self.is_empty or end_m <= start_m:
            return 1.0
        overlap = np.clip(np.minimum(self.ends, end_m) - np.maximum(self.starts, start_m), 0.0, None)
        covered = float(np.sum(overlap))
        if covered <= 0:
            return 1.0
        return float(np.sum(values * overlap)) / covered

    def mean_combined_factor(self, start_m: float, end_m: float) -> float:
        """Distance-weighted mean combined factor over [start_m, end_m] (1.0 when empty)."""
        return self._weighted_mean(self.combined, start_m, end_m)

    def mean_grade_factor(self, start_m: float, end_m: float) -> float:
        return self._weighted_mean(self.grade_factors, start_m, end_m)

    def pace_series(self) -> pd.DataFrame:
        """Per-sample pace table; ``actualPaceSmoothed`` is for display only."""
        df = pd.DataFrame(
            {
                "distance": self.mids,
                "grade": self.grades,
                "gradeFactor": self.grade_factors,
                "pacingFactor": self.pacing_factors,
                "actualPace": self.sample_paces,
            }
        )
        half_window = self.smoothing.pace_smoothing_m / 2.0
        window = 2 * int(half_window // self.smoothing.sample_step_m) + 1
        df["actualPaceSmoothed"] = (
            df["actualPace"].rolling(window=window, min_periods=1, center=True).mean()
        )
        return df
