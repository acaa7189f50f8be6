"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Type coercion utilities for plan, waypoint and smoothing payloads.

REST bodies arrive as loosely typed JSON (numbers as strings, nulls, NaN);
these helpers turn them into finite floats, booleans and enum strings.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional


def safe_float(value: Any, default: float = 0.0) -> float:
    """Convert a value to a finite float.

    Handles None, empty strings, "NaN", infinities and conversion errors by
    returning the default.

    Args:
        value: Value to convert
        default: Default value to return if conversion fails (default: 0.0)

    Returns:
        float: Converted value or default if conversion fails
    """
    result = safe_float_optional(value)
    return default if result is None else result


def safe_float_optional(value: Any) -> Optional[float]:
    """Convert a value to a finite float, returning None on failure."""
    if isinstance(value, bool):
        return None
    try:
        if value in (None, "", "NaN"):
            return None
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def coerce_bool(value: Any, default: bool = False) -> bool:
    """Coerce JSON-ish truthy values ("true", 1, "yes") to bool."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "y", "on"):
        return True
    if text in ("false", "0", "no", "n", "off"):
        return False
    return default


def coerce_choice(value: Any, choices: Iterable[str], default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text if text in set(choices) else default


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
