"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

# ==============================================================================
# UNITS
# ==============================================================================

METERS_PER_KM = 1000.0
METERS_PER_MILE = 1609.344
FEET_PER_METER = 3.28084

EARTH_RADIUS_M = 6_371_000.0

# Local equirectangular frame used for point/segment projection
METERS_PER_DEG_LAT = 110_540.0
METERS_PER_DEG_LNG_AT_EQUATOR = 111_320.0

PACE_UNIT_METERS = {
    "min_per_km": METERS_PER_KM,
    "min_per_mi": METERS_PER_MILE,
}

DISTANCE_UNIT_METERS = {
    "kilometers": METERS_PER_KM,
    "miles": METERS_PER_MILE,
}

PACE_UNIT_LABELS = {
    "min_per_km": "km",
    "min_per_mi": "mi",
}

# ==============================================================================
# SPLIT TABLE COLUMNS
# ==============================================================================

SPLIT_COLUMNS = [
    "index",
    "start",
    "end",
    "dist",
    "gain",
    "loss",
    "avgGrade",
    "gradeFactor",
    "paceSecPerUnit",
    "elapsedSec",
]

WAYPOINT_SEGMENT_COLUMNS = SPLIT_COLUMNS + [
    "fromWaypoint",
    "toWaypoint",
    "arrivalSec",
    "delaySec",
]

PROFILE_COLUMNS = ["distance", "elevation", "lat", "lng", "originalIndex"]


def meters_per_pace_unit(pace_unit: str) -> float:
    """Meters in one pace unit; unknown units fall back to kilometers."""
    return PACE_UNIT_METERS.get(pace_unit, METERS_PER_KM)


def meters_per_distance_unit(distance_unit: str) -> float:
    return DISTANCE_UNIT_METERS.get(distance_unit, METERS_PER_KM)
