"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

PACE_UNITS = ["min_per_km", "min_per_mi"]
PACE_MODES = ["pace", "time", "normalized"]
PACING_STRATEGIES = ["flat", "linear"]
DISTANCE_UNITS = ["kilometers", "miles"]

# Integration / smoothing defaults (meters)
DEFAULT_SAMPLE_STEP_M = 50.0
MIN_SAMPLE_STEP_M = 1.0
DEFAULT_GRADE_WINDOW_M = 100.0
DEFAULT_PACE_SMOOTHING_M = 200.0

# Hard bounds applied to user input and model output
GRADE_CLAMP_PCT = 50.0
GRADE_RESULT_CLAMP_PCT = 100.0
FACTOR_MIN = 0.5
FACTOR_MAX = 3.0
LINEAR_PERCENT_MAX = 50.0

# Two consecutive coordinates closer than this (degrees) are duplicates
DUPLICATE_COORD_EPS_DEG = 1e-6

# Pointer matches within this lateral distance (m) are treated as the same spot
# when the route overlaps itself
ROUTE_OVERLAP_TOLERANCE_M = 3.0

DEFAULT_CACHE_SIZE = 32
