"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for elevation profile extraction.
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from services.pacing.models import ElevationPoint
from services.pacing.profile import (
    as_profile,
    elevation_stats,
    extract_elevation_profile,
    has_elevation_samples,
    is_usable,
    profile_fingerprint,
    profile_from_tracks,
    total_distance,
)

DEG_EQUATOR_M = math.radians(0.001) * 6_371_000.0


def _line(coords):
    return {"type": "Feature", "geometry": {"type": "LineString", "coordinates": coords}}


def _collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


def test_empty_feature_collection_gives_empty_profile():
    profile = extract_elevation_profile({"features": []})
    assert profile.empty
    assert list(profile.columns) == ["distance", "elevation", "lat", "lng", "originalIndex"]


def test_linestring_distances_use_haversine():
    geojson = _collection(_line([[0.0, 0.0, 10.0], [0.001, 0.0, 12.0], [0.002, 0.0, 11.0]]))
    profile = extract_elevation_profile(geojson)

    assert len(profile) == 3
    assert profile["distance"].iloc[0] == 0.0
    assert profile["distance"].iloc[1] == pytest.approx(DEG_EQUATOR_M, rel=1e-9)
    assert profile["distance"].iloc[2] == pytest.approx(2 * DEG_EQUATOR_M, rel=1e-9)
    assert profile["elevation"].tolist() == [10.0, 12.0, 11.0]
    assert profile["originalIndex"].tolist() == [0, 1, 2]


def test_distance_is_monotonic_and_starts_at_zero():
    coords = [[6.0 + i * 0.0005, 45.0 + (i % 3) * 0.0002, 100.0 + i] for i in range(40)]
    profile = extract_elevation_profile(_collection(_line(coords)))

    distances = profile["distance"].to_numpy()
    assert distances[0] == 0.0
    assert np.all(np.diff(distances) >= 0)


def test_missing_elevation_defaults_to_zero():
    profile = extract_elevation_profile(_collection(_line([[0.0, 0.0], [0.001, 0.0, None]])))
    assert profile["elevation"].tolist() == [0.0, 0.0]


def test_invalid_coordinates_are_skipped_and_index_kept():
    coords = [[0.0, 0.0, 1.0], [0.0, 95.0, 2.0], ["x", 0.0, 3.0], [0.001, 0.0, 4.0]]
    profile = extract_elevation_profile(_collection(_line(coords)))

    assert profile["elevation"].tolist() == [1.0, 4.0]
    assert profile["originalIndex"].tolist() == [0, 3]


def test_duplicate_consecutive_coordinates_are_dropped():
    coords = [[0.0, 0.0, 1.0], [0.0, 0.0, 1.5], [0.001, 0.0, 2.0]]
    profile = extract_elevation_profile(_collection(_line(coords)))
    assert len(profile) == 2
    assert profile["originalIndex"].tolist() == [0, 2]


def test_multilinestring_and_features_are_concatenated():
    multi = {
        "type": "Feature",
        "geometry": {
            "type": "MultiLineString",
            "coordinates": [[[0.0, 0.0, 1.0], [0.001, 0.0, 2.0]], [[0.002, 0.0, 3.0]]],
        },
    }
    geojson = _collection(multi, _line([[0.003, 0.0, 4.0]]), {"type": "Feature", "geometry": None})
    profile = extract_elevation_profile(geojson)

    assert len(profile) == 4
    assert profile["distance"].iloc[-1] == pytest.approx(3 * DEG_EQUATOR_M, rel=1e-9)


def test_has_elevation_samples():
    assert has_elevation_samples(_collection(_line([[0.0, 0.0, 5.0]])))
    assert not has_elevation_samples(_collection(_line([[0.0, 0.0], [0.001, 0.0]])))
    assert not has_elevation_samples({"features": []})


def test_profile_from_tracks_keeps_accumulating():
    profile = profile_from_tracks([[[0.0, 0.0, 0.0], [0.001, 0.0, 0.0]], [[0.002, 0.0, 0.0]]])
    assert total_distance(profile) == pytest.approx(2 * DEG_EQUATOR_M, rel=1e-9)


def test_as_profile_accepts_points_and_dicts():
    points = [ElevationPoint(0.0, 10.0, 45.0, 6.0, 0), ElevationPoint(100.0, 12.0, 45.001, 6.0, 1)]
    from_points = as_profile(points)
    from_dicts = as_profile([{"distance": 0, "elevation": 10}, {"distance": 100, "elevation": 12}])

    assert from_points["originalIndex"].tolist() == [0, 1]
    assert from_dicts["lat"].tolist() == [0.0, 0.0]
    assert from_dicts["elevation"].tolist() == [10.0, 12.0]
    assert as_profile([]).empty
    assert as_profile(None).empty


def test_as_profile_drops_out_of_order_points():
    profile = as_profile(
        [
            {"distance": 0, "elevation": 10},
            {"distance": 600, "elevation": 20},
            {"distance": 300, "elevation": 99},
            {"distance": 1000, "elevation": 30},
        ]
    )

    assert profile["distance"].tolist() == [0.0, 600.0, 1000.0]
    assert profile["elevation"].tolist() == [10.0, 20.0, 30.0]
    assert profile["originalIndex"].tolist() == [0, 1, 3]


def test_as_profile_starts_at_zero():
    profile = as_profile([{"distance": 250, "elevation": 1}, {"distance": 1250, "elevation": 2}])

    assert profile["distance"].tolist() == [0.0, 1000.0]
    assert np.all(np.diff(profile["distance"]) >= 0)


def test_is_usable():
    assert not is_usable(as_profile([]))
    assert not is_usable(as_profile([{"distance": 0, "elevation": 1}]))
    assert not is_usable(as_profile([{"distance": 0, "elevation": 1}, {"distance": 0, "elevation": 2}]))
    assert is_usable(as_profile([{"distance": 0, "elevation": 1}, {"distance": 5, "elevation": 2}]))


def test_elevation_stats(hilly_profile):
    stats = elevation_stats(hilly_profile)
    assert stats["totalDistance"] == pytest.approx(10_000.0)
    assert stats["maxElevation"] == pytest.approx(560.0)
    assert stats["minElevation"] == pytest.approx(440.0)
    # Five full waves of 120 m peak to peak
    assert stats["elevationGain"] == pytest.approx(600.0, rel=1e-6)
    assert stats["elevationLoss"] == pytest.approx(600.0, rel=1e-6)


def test_elevation_stats_empty():
    assert elevation_stats(as_profile([]))["elevationGain"] == 0.0


def test_fingerprint_tracks_content(flat_profile):
    same = flat_profile.copy()
    changed = flat_profile.copy()
    changed.loc[3, "elevation"] += 1.0

    assert profile_fingerprint(flat_profile) == profile_fingerprint(same)
    assert profile_fingerprint(flat_profile) != profile_fingerprint(changed)
    assert profile_fingerprint(pd.DataFrame()) == "empty"
