import math
import sys
from pathlib import Path

import pytest

# Ensure project root is importable for tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from services.pacing.models import Plan, SmoothingConfig, Waypoint
from services.pacing.profile import as_profile


def _profile(distances, elevations):
    return as_profile(
        [
            {"distance": d, "elevation": e, "lat": 45.0, "lng": 6.0 + d / 100_000.0}
            for d, e in zip(distances, elevations)
        ]
    )


@pytest.fixture
def flat_profile():
    """5 km at constant 200 m, a point every 100 m."""
    distances = [i * 100.0 for i in range(51)]
    return _profile(distances, [200.0] * len(distances))


@pytest.fixture
def hilly_profile():
    """10 km rolling course: 2 km waves of +/-60 m around 500 m, a point every 50 m."""
    distances = [i * 50.0 for i in range(201)]
    elevations = [500.0 + 60.0 * math.sin(2 * math.pi * d / 2000.0) for d in distances]
    return _profile(distances, elevations)


@pytest.fixture
def ramp_profile():
    """Climbs 100 m over 1000 m (10 %), a point every 10 m."""
    distances = [i * 10.0 for i in range(101)]
    return _profile(distances, [d * 0.1 for d in distances])


@pytest.fixture
def two_point_profile():
    return _profile([0.0, 1000.0], [100.0, 200.0])


@pytest.fixture
def pace_plan():
    return Plan(pace=300.0, pace_unit="min_per_km", pace_mode="pace")


@pytest.fixture
def smoothing():
    return SmoothingConfig(grade_window_m=100.0, pace_smoothing_m=200.0, sample_step_m=50.0)


@pytest.fixture
def course_waypoints():
    """Start, two aid stations and the finish of the 10 km hilly course."""
    return [
        Waypoint(id="start", distance=0.0, order=0),
        Waypoint(id="aid-1", distance=3500.0, order=1),
        Waypoint(id="aid-2", distance=7000.0, order=2),
        Waypoint(id="finish", distance=10_000.0, order=3),
    ]
