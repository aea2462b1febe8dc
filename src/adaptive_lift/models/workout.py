"""Logged workout records consumed by the program engine.

These mirror whatever the workout log produces; the engine only reads them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4


def to_local_naive(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing Z from Python 3.11 on
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class WorkoutSet:
    """Represents a single logged set."""

    weight: float
    reps: int
    set_order: int = 0

    @property
    def is_working_set(self) -> bool:
        """Loaded sets with reps; excludes cardio and bodyweight entries."""
        return self.weight > 0 and self.reps > 0


@dataclass(frozen=True)
class WorkoutExercise:
    """Represents a logged exercise within a workout."""

    name: str
    sets: tuple[WorkoutSet, ...] = ()

    @property
    def top_weight(self) -> float | None:
        weights = [s.weight for s in self.sets if s.is_working_set]
        return max(weights) if weights else None


@dataclass(frozen=True)
class Workout:
    """Represents a completed workout session."""

    date: datetime
    name: str
    exercises: tuple[WorkoutExercise, ...] = ()
    id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "date", to_local_naive(self.date))

    @classmethod
    def from_dict(cls, data: dict) -> "Workout":
        """Create from dictionary."""
        exercises = tuple(
            WorkoutExercise(
                name=ex["name"],
                sets=tuple(
                    WorkoutSet(
                        weight=float(s.get("weight", 0)),
                        reps=int(s.get("reps", 0)),
                        set_order=int(s.get("set_order", i)),
                    )
                    for i, s in enumerate(ex.get("sets", []))
                ),
            )
            for ex in data.get("exercises", [])
        )
        kwargs = {}
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(
            date=_parse_timestamp(data["date"]),
            name=data.get("name", ""),
            exercises=exercises,
            **kwargs,
        )
