"""
Display helpers for distances, paces and elapsed times.

The engine works in meters and seconds; these helpers convert at the
formatting boundary only.
"""

from __future__ import annotations

from typing import Optional

from babel import UnknownLocaleError, numbers

from utils.constants import FEET_PER_METER, PACE_UNIT_LABELS, meters_per_distance_unit

LOCALE = "en_US"


def set_locale(locale_str: str = "en_US") -> None:
    global LOCALE
    try:
        # Validate by formatting a simple number
        numbers.format_decimal(1.0, locale=locale_str)
        LOCALE = locale_str
    except (UnknownLocaleError, ValueError):
        LOCALE = "en_US"


def _nbsp() -> str:
    return "\u00A0"


def fmt_decimal(value: Optional[float], digits: int = 1) -> str:
    if value is None:
        return ""
    fmt = "#,##0" if digits <= 0 else "#,##0." + ("0" * digits)
    return numbers.format_decimal(value, format=fmt, locale=LOCALE)


def fmt_elapsed(total_seconds: Optional[float]) -> str:
    """Format seconds as H:MM:SS (hours are not zero-padded)."""
    if total_seconds is None or total_seconds != total_seconds:
        return ""
    seconds = int(round(max(0.0, float(total_seconds))))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def fmt_pace(sec_per_unit: Optional[float], pace_unit: str = "min_per_km") -> str:
    if sec_per_unit is None or sec_per_unit != sec_per_unit or sec_per_unit <= 0:
        return ""
    seconds = int(round(sec_per_unit))
    minutes, secs = divmod(seconds, 60)
    unit = PACE_UNIT_LABELS.get(pace_unit, "km")
    return f"{minutes}:{secs:02d}{_nbsp()}/{unit}"


def fmt_distance(meters: Optional[float], unit: str = "kilometers") -> str:
    if meters is None:
        return ""
    if unit == "miles":
        miles = meters / meters_per_distance_unit("miles")
        if miles < 1:
            return f"{fmt_decimal(meters * FEET_PER_METER, 0)}{_nbsp()}ft"
        return f"{fmt_decimal(miles, 1)}{_nbsp()}mi"
    if meters < 1000:
        return f"{fmt_decimal(meters, 0)}{_nbsp()}m"
    return f"{fmt_decimal(meters / 1000.0, 1)}{_nbsp()}km"


def fmt_elevation(meters: Optional[float], unit: str = "meters") -> str:
    if meters is None:
        return ""
    if unit == "feet":
        return f"{fmt_decimal(meters * FEET_PER_METER, 0)}{_nbsp()}ft"
    return f"{fmt_decimal(meters, 0)}{_nbsp()}m"


def fmt_grade(grade_pct: float) -> str:
    if abs(grade_pct) < 0.5:
        return "flat"
    direction = "uphill" if grade_pct >= 0 else "downhill"
    return f"{fmt_decimal(abs(grade_pct), 1)}% {direction}"


def fmt_delay(seconds: Optional[float]) -> str:
    """Human-readable stoppage time: "No delay", "45s", "2m 30s", "1h 5m"."""
    total = int(round(seconds or 0))
    if total <= 0:
        return "No delay"
    if total < 60:
        return f"{total}s"
    if total < 3600:
        minutes, secs = divmod(total, 60)
        return f"{minutes}m" if secs == 0 else f"{minutes}m {secs}s"
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    parts = [f"{hours}h"]
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0:
        parts.append(f"{secs}s")
    return " ".join(parts)


def fmt_pace_adjustment(delta_sec: float, pace_unit: str = "min_per_km") -> str:
    """Describe a pace delta, e.g. "0:25 slower per km"."""
    magnitude = abs(delta_sec)
    if magnitude < 1:
        return "no adjustment"
    direction = "slower" if delta_sec > 0 else "faster"
    minutes = int(magnitude // 60)
    seconds = int(round(magnitude % 60))
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    label = f"{minutes}:{seconds:02d}" if minutes > 0 else f"{seconds}s"
    unit = "mile" if pace_unit == "min_per_mi" else "km"
    return f"{label} {direction} per {unit}"
