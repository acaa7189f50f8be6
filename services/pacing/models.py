"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Value objects shared by the pacing engine.

All distances are meters, all times seconds, paces seconds per pace unit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import config
from utils.coercion import clamp, coerce_bool, coerce_choice, safe_float, safe_float_optional
from utils.constants import meters_per_pace_unit


@dataclass(frozen=True)
class ElevationPoint:
    distance: float
    elevation: float
    lat: float
    lng: float
    original_index: int = -1


@dataclass(frozen=True)
class SmoothingConfig:
    """Per-course smoothing and integration resolution."""

    grade_window_m: float = config.DEFAULT_GRADE_WINDOW_M
    pace_smoothing_m: float = config.DEFAULT_PACE_SMOOTHING_M
    sample_step_m: float = config.DEFAULT_SAMPLE_STEP_M

    def normalized(self) -> "SmoothingConfig":
        """Return a copy with every value inside its valid range.

        A zero sample step (what the settings form stores when left empty)
        or a negative one means the default step.
        """
        step = safe_float(self.sample_step_m, config.DEFAULT_SAMPLE_STEP_M)
        if step <= 0:
            step = config.DEFAULT_SAMPLE_STEP_M
        return SmoothingConfig(
            grade_window_m=max(0.0, safe_float(self.grade_window_m, config.DEFAULT_GRADE_WINDOW_M)),
            pace_smoothing_m=max(0.0, safe_float(self.pace_smoothing_m, config.DEFAULT_PACE_SMOOTHING_M)),
            sample_step_m=max(config.MIN_SAMPLE_STEP_M, step),
        )

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "SmoothingConfig":
        payload = payload or {}
        return cls(
            grade_window_m=safe_float(payload.get("gradeWindowMeters"), config.DEFAULT_GRADE_WINDOW_M),
            pace_smoothing_m=safe_float(
                payload.get("paceSmoothingMeters"), config.DEFAULT_PACE_SMOOTHING_M
            ),
            sample_step_m=safe_float(payload.get("sampleStepMeters"), config.DEFAULT_SAMPLE_STEP_M),
        ).normalized()


@dataclass(frozen=True)
class Plan:
    """A pacing plan for one course."""

    pace: Optional[float] = None
    pace_unit: str = "min_per_km"
    pace_mode: str = "pace"
    target_time_sec: Optional[float] = None
    pacing_strategy: str = "flat"
    pacing_linear_percent: float = 0.0
    use_grade_adjustment: bool = True
    default_stoppage_time: float = 0.0
    target_includes_stoppages: bool = False

    def __post_init__(self) -> None:
        if self.pace_unit not in config.PACE_UNITS:
            raise ValueError(f"Unknown pace unit: {self.pace_unit!r}")
        if self.pace_mode not in config.PACE_MODES:
            raise ValueError(f"Unknown pace mode: {self.pace_mode!r}")
        if self.pacing_strategy not in config.PACING_STRATEGIES:
            raise ValueError(f"Unknown pacing strategy: {self.pacing_strategy!r}")

    @property
    def maintain_target_average(self) -> bool:
        return self.pace_mode != "normalized"

    @property
    def unit_meters(self) -> float:
        return meters_per_pace_unit(self.pace_unit)

    @property
    def linear_fraction(self) -> float:
        """Linear pacing amplitude as a fraction, clamped to ±0.5."""
        return clamp(self.pacing_linear_percent, -config.LINEAR_PERCENT_MAX, config.LINEAR_PERCENT_MAX) / 100.0

    @property
    def stoppage_default(self) -> float:
        return max(0.0, self.default_stoppage_time)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Plan":
        """Build a plan from a REST body (camelCase keys, loosely typed values)."""
        pace = safe_float_optional(payload.get("pace"))
        target = safe_float_optional(payload.get("targetTimeSeconds"))
        return cls(
            pace=pace if pace is not None and pace > 0 else None,
            pace_unit=coerce_choice(payload.get("paceUnit"), config.PACE_UNITS, "min_per_km"),
            pace_mode=coerce_choice(payload.get("paceMode"), config.PACE_MODES, "pace"),
            target_time_sec=target if target is not None and target > 0 else None,
            pacing_strategy=coerce_choice(
                payload.get("pacingStrategy"), config.PACING_STRATEGIES, "flat"
            ),
            pacing_linear_percent=clamp(
                safe_float(payload.get("pacingLinearPercent"), 0.0),
                -config.LINEAR_PERCENT_MAX,
                config.LINEAR_PERCENT_MAX,
            ),
            use_grade_adjustment=coerce_bool(payload.get("useGradeAdjustment"), True),
            default_stoppage_time=max(0.0, safe_float(payload.get("defaultStoppageTime"), 0.0)),
            target_includes_stoppages=coerce_bool(payload.get("targetIncludesStoppages"), False),
        )


@dataclass(frozen=True)
class Waypoint:
    id: str
    distance: float
    order: int
    tags: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Waypoint":
        tags = payload.get("tags") or ()
        return cls(
            id=str(payload.get("id", "")),
            distance=max(0.0, safe_float(payload.get("distance"), 0.0)),
            order=int(safe_float(payload.get("order"), 0.0)),
            tags=tuple(str(t) for t in tags),
        )


@dataclass(frozen=True)
class WaypointStoppageTime:
    waypoint_id: str
    stoppage_time: float

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WaypointStoppageTime":
        return cls(
            waypoint_id=str(payload.get("waypointId", "")),
            stoppage_time=max(0.0, safe_float(payload.get("stoppageTime"), 0.0)),
        )
