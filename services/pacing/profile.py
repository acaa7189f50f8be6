"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Elevation profile extraction from GeoJSON track geometry.

A profile is a DataFrame with one row per usable coordinate:
distance (cumulative meters), elevation (m), lat, lng, originalIndex.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import asdict, is_dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

import config
from utils.constants import PROFILE_COLUMNS
from utils.geo import consecutive_distances_m

logger = get_logger(__name__)


def empty_profile() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "distance": pd.Series(dtype=float),
            "elevation": pd.Series(dtype=float),
            "lat": pd.Series(dtype=float),
            "lng": pd.Series(dtype=float),
            "originalIndex": pd.Series(dtype=int),
        }
    )


def _geometry_coordinates(geometry: Optional[Mapping[str, Any]]) -> list:
    """Flatten a GeoJSON geometry into its [lng, lat, ele?] coordinates."""
    if not geometry:
        return []

    geometry_type = geometry.get("type")
    coords = geometry.get("coordinates") or []

    if geometry_type == "Point":
        return [coords] if coords else []
    if geometry_type == "LineString":
        return list(coords)
    if geometry_type == "MultiLineString":
        return [c for line in coords for c in (line or [])]
    if geometry_type == "Polygon":
        return list(coords[0]) if coords else []
    if geometry_type == "MultiPolygon":
        return [c for polygon in coords if polygon for c in polygon[0]]
    if geometry_type == "GeometryCollection":
        return [c for sub in geometry.get("geometries") or [] for c in _geometry_coordinates(sub)]
    return []


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool) and math.isfinite(value)


def _parse_coordinate(coord: Any) -> Optional[tuple[float, float, float]]:
    """Return (lng, lat, elevation) or None when lat/lng are unusable."""
    if not isinstance(coord, (list, tuple)) or len(coord) < 2:
        return None
    lng, lat = coord[0], coord[1]
    if not (_is_number(lng) and _is_number(lat)):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    elevation = coord[2] if len(coord) >= 3 and _is_number(coord[2]) else 0.0
    return float(lng), float(lat), float(elevation)


def has_elevation_samples(geojson: Mapping[str, Any]) -> bool:
    """True when at least one coordinate carries a finite elevation."""
    for feature in geojson.get("features") or []:
        for coord in _geometry_coordinates((feature or {}).get("geometry")):
            if isinstance(coord, (list, tuple)) and len(coord) >= 3 and _is_number(coord[2]):
                return True
    return False


def profile_from_tracks(tracks: Iterable[Sequence[Any]]) -> pd.DataFrame:
    """Build a profile from raw coordinate sequences, concatenated end to end.

    Distance keeps accumulating across sequence boundaries. Coordinates are
    GeoJSON ordered: [lng, lat, elevation?].
    """
    flat: list[Any] = [coord for track in tracks for coord in (track or [])]

    rows: list[tuple[float, float, float, int]] = []
    skipped = 0
    duplicates = 0
    for index, coord in enumerate(flat):
        parsed = _parse_coordinate(coord)
        if parsed is None:
            skipped += 1
            continue
        lng, lat, elevation = parsed
        if rows:
            prev_lng, prev_lat = rows[-1][0], rows[-1][1]
            if (
                abs(lng - prev_lng) < config.DUPLICATE_COORD_EPS_DEG
                and abs(lat - prev_lat) < config.DUPLICATE_COORD_EPS_DEG
            ):
                duplicates += 1
                continue
        rows.append((lng, lat, elevation, index))

    if skipped:
        logger.debug(f"Skipped {skipped} invalid coordinates while extracting profile")
    if duplicates:
        logger.debug(f"Dropped {duplicates} duplicate consecutive coordinates")

    if not rows:
        return empty_profile()

    lngs = np.array([r[0] for r in rows], dtype=float)
    lats = np.array([r[1] for r in rows], dtype=float)
    steps = consecutive_distances_m(lats, lngs)

    return pd.DataFrame(
        {
            "distance": np.cumsum(steps),
            "elevation": np.array([r[2] for r in rows], dtype=float),
            "lat": lats,
            "lng": lngs,
            "originalIndex": np.array([r[3] for r in rows], dtype=int),
        }
    )


def extract_elevation_profile(geojson: Mapping[str, Any]) -> pd.DataFrame:
    """Extract a distance-indexed elevation profile from a FeatureCollection.

    Features are walked in order and their geometries concatenated; features
    without geometry are ignored.

    Args:
        geojson: GeoJSON FeatureCollection (dict)

    Returns:
        Profile DataFrame (empty when no usable coordinate exists)
    """
    tracks = []
    for feature in geojson.get("features") or []:
        coordinates = _geometry_coordinates((feature or {}).get("geometry"))
        if coordinates:
            tracks.append(coordinates)

    if not tracks:
        logger.debug("No coordinates found in GeoJSON features")
        return empty_profile()

    return profile_from_tracks(tracks)


def as_profile(data: Any) -> pd.DataFrame:
    """Coerce a DataFrame, or a list of ElevationPoint / dicts, into a profile.

    Missing lat/lng default to 0 and missing originalIndex to the row
    position. Rows without a finite distance, or that fall back below an
    earlier distance, are dropped and distances are shifted to start at 0.
    """
    if data is None:
        return empty_profile()

    if isinstance(data, pd.DataFrame):
        df = data.copy()
    else:
        records = []
        for item in data:
            if is_dataclass(item):
                record = asdict(item)
            else:
                record = dict(item)
            if "original_index" in record and "originalIndex" not in record:
                record["originalIndex"] = record.pop("original_index")
            records.append(record)
        if not records:
            return empty_profile()
        df = pd.DataFrame(records)

    if df.empty or "distance" not in df.columns:
        return empty_profile()

    df = df.reset_index(drop=True)
    for col in ("elevation", "lat", "lng"):
        if col not in df.columns:
            df[col] = 0.0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    if "originalIndex" not in df.columns:
        df["originalIndex"] = range(len(df))
    df["distance"] = pd.to_numeric(df["distance"], errors="coerce").astype(float)
    df = df[np.isfinite(df["distance"])].reset_index(drop=True)
    df["originalIndex"] = pd.to_numeric(df["originalIndex"], errors="coerce").fillna(-1).astype(int)

    # Rows that jump back below the furthest distance seen are out of order
    in_order = df["distance"] >= df["distance"].cummax()
    if not in_order.all():
        logger.debug(f"Dropping {int((~in_order).sum())} out-of-order profile points")
        df = df[in_order].reset_index(drop=True)
    if not df.empty and df["distance"].iloc[0] != 0:
        logger.debug(f"Shifting profile distances by {df['distance'].iloc[0]:.1f} m to start at 0")
        df["distance"] = df["distance"] - df["distance"].iloc[0]
    return df[PROFILE_COLUMNS]


def is_usable(profile: pd.DataFrame) -> bool:
    """A profile needs two points and a positive length to drive the engine."""
    return len(profile) >= 2 and float(profile["distance"].iloc[-1]) > 0


def total_distance(profile: pd.DataFrame) -> float:
    if profile.empty:
        return 0.0
    return float(profile["distance"].iloc[-1])


def elevation_stats(profile: pd.DataFrame) -> dict[str, float]:
    """Min/max elevation, total distance and cumulative gain/loss."""
    if profile.empty:
        return {
            "minElevation": 0.0,
            "maxElevation": 0.0,
            "totalDistance": 0.0,
            "elevationGain": 0.0,
            "elevationLoss": 0.0,
        }

    deltas = np.diff(profile["elevation"].to_numpy(dtype=float))
    return {
        "minElevation": float(profile["elevation"].min()),
        "maxElevation": float(profile["elevation"].max()),
        "totalDistance": total_distance(profile),
        "elevationGain": float(deltas[deltas > 0].sum()),
        "elevationLoss": float(-deltas[deltas < 0].sum()),
    }


def profile_fingerprint(profile: pd.DataFrame) -> str:
    """Stable content hash of a profile, used as a cache key."""
    if profile.empty:
        return "empty"
    hashed = pd.util.hash_pandas_object(profile[["distance", "elevation", "lat", "lng"]], index=False)
    return hashlib.blake2b(hashed.to_numpy().tobytes(), digest_size=16).hexdigest()
