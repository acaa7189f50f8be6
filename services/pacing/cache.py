"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Hashable, Optional

import pandas as pd
from streamlit.logger import get_logger

import config
from services.pacing.integrator import PacingIntegrator
from services.pacing.models import Plan, SmoothingConfig
from services.pacing.profile import profile_fingerprint

logger = get_logger(__name__)


class PacingCache:
    """Bounded LRU of integrators, keyed on every input that changes the integral.

    The key holds the profile fingerprint, the plan, the normalized smoothing
    settings, the course end, the total stoppage and the grade model. A size
    of 0 disables caching.
    """

    def __init__(self, max_size: int = config.DEFAULT_CACHE_SIZE):
        self.max_size = max(0, int(max_size))
        self._entries: OrderedDict[Hashable, PacingIntegrator] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def make_key(
        profile: pd.DataFrame,
        plan: Plan,
        smoothing: Optional[SmoothingConfig],
        course_end_m: float,
        stoppage_total_s: float,
        grade_model: str,
    ) -> tuple:
        return (
            profile_fingerprint(profile),
            plan,
            (smoothing or SmoothingConfig()).normalized(),
            round(float(course_end_m), 6),
            round(float(stoppage_total_s), 6),
            grade_model,
        )

    def get_or_build(
        self,
        profile: pd.DataFrame,
        plan: Plan,
        smoothing: Optional[SmoothingConfig],
        course_end_m: float,
        stoppage_total_s: float,
        grade_model: str = "polynomial",
    ) -> PacingIntegrator:
        key = self.make_key(profile, plan, smoothing, course_end_m, stoppage_total_s, grade_model)
        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            return cached

        self.misses += 1
        integrator = PacingIntegrator(
            profile,
            plan,
            smoothing=smoothing,
            course_end_m=course_end_m,
            stoppage_total_s=stoppage_total_s,
            grade_model=grade_model,
        )
        if self.max_size > 0:
            self._entries[key] = integrator
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
        return integrator

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Pacing cache cleared")
