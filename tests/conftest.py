"""Pytest configuration and fixtures."""

import pytest
import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path

from adaptive_lift.models.health import DailyHealthData
from adaptive_lift.models.program import ProgramGoal
from adaptive_lift.models.workout import Workout, WorkoutExercise, WorkoutSet
from adaptive_lift.services.program_store import ProgramCreationRequest, ProgramStore


class FakeClock:
    """Deterministic clock that moves forward one minute per reading."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


def make_workout(when: datetime, *exercises: tuple[str, list[tuple[float, int]]], name: str = "Workout") -> Workout:
    """Build a workout from (exercise name, [(weight, reps), ...]) pairs."""
    return Workout(
        date=when,
        name=name,
        exercises=tuple(
            WorkoutExercise(
                name=exercise_name,
                sets=tuple(
                    WorkoutSet(weight=weight, reps=reps, set_order=i)
                    for i, (weight, reps) in enumerate(sets)
                ),
            )
            for exercise_name, sets in exercises
        ),
    )


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest.fixture
def fixed_clock():
    """Clock starting at 2024-01-01 08:00."""
    return FakeClock(datetime(2024, 1, 1, 8, 0))


@pytest.fixture
def workout_factory():
    """Factory for workouts built from (name, sets) pairs."""
    return make_workout


@pytest.fixture
def sample_workouts():
    """Three weeks of upper/lower history before January 2024."""
    workouts = []
    for week in range(3):
        monday = datetime(2023, 12, 4, 18, 0) + timedelta(weeks=week)
        workouts.append(
            make_workout(
                monday,
                ("Bench Press (Barbell)", [(95 + 2.5 * week, 5)] * 3),
                ("Lat Pulldown (Machine)", [(60, 8)] * 3),
                ("Lateral Raise (Dumbbell)", [(10, 12)] * 3),
                name="Upper",
            )
        )
        workouts.append(
            make_workout(
                monday + timedelta(days=2),
                ("Squat (Smith Machine)", [(80, 5)] * 3),
                ("Romanian Deadlift (Dumbbell)", [(30, 8)] * 3),
                ("Running (Treadmill)", [(0, 0)]),
                name="Lower",
            )
        )
    return workouts


@pytest.fixture
def strength_request():
    """Strength, 4 days/week, starting Monday 2024-01-01, 5 lb increments."""
    return ProgramCreationRequest(
        goal=ProgramGoal.STRENGTH,
        days_per_week=4,
        start_date=date(2024, 1, 1),
        weight_increment=5,
    )


@pytest.fixture
def store(fixed_clock):
    """In-memory program store (no persistence)."""
    return ProgramStore(clock=fixed_clock)


@pytest.fixture
def stable_health_data():
    """Fourteen days of steady baseline health metrics before 2024-01-15."""
    start = date(2024, 1, 1)
    return {
        start + timedelta(days=i): DailyHealthData(
            day=start + timedelta(days=i),
            sleep_hours=8.0,
            resting_heart_rate=55.0,
            heart_rate_variability=60.0,
        )
        for i in range(14)
    }
