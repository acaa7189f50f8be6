"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Grade to pace multiplier models.

A model maps a grade in percent to the cost of covering ground at that grade
relative to flat ground (1.0 at 0 %). The integrator calls the vectorized
``grade_adjustment_factors``; models can be swapped by name.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

import config

# Constrained 4th-degree polynomial, intercept fixed at 1.0
_A4 = -4.3144778100289634e-7
_A3 = -2.930257313334705e-6
_A2 = 0.0018738529522439088
_A1 = 0.03076354335605815
_A0 = 1.0

# Polynomial range; tangent lines take over beyond it
_LEFT_END = -32.25
_RIGHT_END = 32.1
_SLOPE_LEFT = -0.041356411457441594
_INTERCEPT_LEFT = 0.25463237016735074
_SLOPE_RIGHT = 0.08492425850523927
_INTERCEPT_RIGHT = 0.6372687773774661

_MINETTI_FLAT_COST = 3.6


def pace_adjustment(grade_pct: float) -> float:
    """Pace multiplier for a grade (%), fitted on road/trail running data.

    Downhill lowers the multiplier down to a floor around -8 %, then it
    rises again for steep descents.
    """
    if grade_pct < _LEFT_END:
        return _SLOPE_LEFT * grade_pct + _INTERCEPT_LEFT
    if grade_pct > _RIGHT_END:
        return _SLOPE_RIGHT * grade_pct + _INTERCEPT_RIGHT
    return _A4 * grade_pct**4 + _A3 * grade_pct**3 + _A2 * grade_pct**2 + _A1 * grade_pct + _A0


def minetti_energy_cost_running(grade: float) -> float:
    """Energy cost of running (J/kg/m) at a grade (decimal) using Minetti et al. (2002)."""
    if grade >= 0.5:
        grade = 0.5
    elif grade <= -0.5:
        grade = -0.5

    return (
        155.4 * grade**5
        - 30.4 * grade**4
        - 43.3 * grade**3
        + 46.3 * grade**2
        + 19.5 * grade
        + 3.6
    )


def minetti_pace_adjustment(grade_pct: float) -> float:
    """Minetti running cost normalized to flat ground."""
    return minetti_energy_cost_running(grade_pct / 100.0) / _MINETTI_FLAT_COST


GRADE_MODELS: dict[str, Callable[[float], float]] = {
    "polynomial": pace_adjustment,
    "minetti": minetti_pace_adjustment,
}


def get_grade_model(name: str) -> Callable[[float], float]:
    try:
        return GRADE_MODELS[name]
    except KeyError:
        raise ValueError(f"Unknown grade model: {name!r}") from None


def grade_adjustment_factor(grade_pct: float, model: str = "polynomial") -> float:
    """Clamped pace multiplier: grade limited to ±50 %, factor to [0.5, 3.0]."""
    clamped = max(-config.GRADE_CLAMP_PCT, min(config.GRADE_CLAMP_PCT, grade_pct))
    factor = get_grade_model(model)(clamped)
    return max(config.FACTOR_MIN, min(config.FACTOR_MAX, factor))


def grade_adjustment_factors(grades_pct: np.ndarray, model: str = "polynomial") -> np.ndarray:
    fn = get_grade_model(model)
    clamped = np.clip(np.asarray(grades_pct, dtype=float), -config.GRADE_CLAMP_PCT, config.GRADE_CLAMP_PCT)
    factors = np.fromiter((fn(float(g)) for g in clamped), dtype=float, count=len(clamped))
    return np.clip(factors, config.FACTOR_MIN, config.FACTOR_MAX)


def adjust_pace_for_grade(base_pace: float, grade_pct: float, model: str = "polynomial") -> float:
    return base_pace * grade_adjustment_factor(grade_pct, model)
