"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import pytest

from services.pacing.grade import (
    average_grade_between,
    calculate_grade_at_distance,
    gain_loss_between,
    grades_at_distances,
)
from services.pacing.profile import as_profile


def test_grade_sign_convention(ramp_profile):
    assert calculate_grade_at_distance(ramp_profile, 500.0, 100.0) == pytest.approx(10.0, abs=0.5)


def test_two_point_course_raw_grade(two_point_profile):
    assert calculate_grade_at_distance(two_point_profile, 500.0, 0.0) == pytest.approx(10.0)


def test_downhill_is_negative():
    profile = as_profile([{"distance": 0, "elevation": 300}, {"distance": 1000, "elevation": 250}])
    assert calculate_grade_at_distance(profile, 500.0, 100.0) == pytest.approx(-5.0)


def test_window_is_clamped_at_profile_ends(ramp_profile):
    # Window [-50, 50] is clamped to [0, 50]: still a 10 % slope over 50 m
    assert calculate_grade_at_distance(ramp_profile, 0.0, 100.0) == pytest.approx(10.0)
    assert calculate_grade_at_distance(ramp_profile, 1000.0, 100.0) == pytest.approx(10.0)


def test_collapsed_window_returns_zero():
    single = as_profile([{"distance": 0, "elevation": 10}, {"distance": 0, "elevation": 20}])
    assert calculate_grade_at_distance(single, 0.0, 100.0) == 0.0
    assert calculate_grade_at_distance(single, 0.0, 0.0) == 0.0
    assert calculate_grade_at_distance(as_profile([]), 10.0) == 0.0


def test_raw_grade_outside_profile_uses_end_pairs():
    profile = as_profile(
        [
            {"distance": 0, "elevation": 0},
            {"distance": 100, "elevation": 10},
            {"distance": 200, "elevation": 0},
        ]
    )
    assert calculate_grade_at_distance(profile, -20.0, 0.0) == pytest.approx(10.0)
    assert calculate_grade_at_distance(profile, 500.0, 0.0) == pytest.approx(-10.0)


def test_grade_is_clamped_to_100_percent():
    cliff = as_profile([{"distance": 0, "elevation": 0}, {"distance": 10, "elevation": 50}])
    assert calculate_grade_at_distance(cliff, 5.0, 0.0) == 100.0


def test_vectorized_grades(ramp_profile):
    grades = grades_at_distances(ramp_profile, [100.0, 500.0, 900.0], 50.0)
    assert grades.tolist() == pytest.approx([10.0, 10.0, 10.0])


def test_average_grade_is_net_rise_over_run(hilly_profile):
    # One full wave: back to the starting elevation
    assert average_grade_between(hilly_profile, 0.0, 2000.0) == pytest.approx(0.0, abs=1e-9)
    assert average_grade_between(hilly_profile, 0.0, 500.0) == pytest.approx(60.0 / 500.0 * 100.0)
    assert average_grade_between(hilly_profile, 500.0, 500.0) == 0.0


def test_gain_loss_counts_interior_peaks(hilly_profile):
    gain, loss = gain_loss_between(hilly_profile, 0.0, 2000.0)
    assert gain == pytest.approx(120.0)
    assert loss == pytest.approx(120.0)


def test_gain_loss_uses_interpolated_boundaries(two_point_profile):
    gain, loss = gain_loss_between(two_point_profile, 250.0, 750.0)
    assert gain == pytest.approx(50.0)
    assert loss == 0.0
