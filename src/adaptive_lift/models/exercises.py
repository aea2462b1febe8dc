"""Exercise definitions and muscle-group metadata."""

from dataclasses import dataclass, field
from enum import Enum


class MuscleGroup(str, Enum):
    """Muscle groups used for day templates."""

    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    QUADS = "quads"
    HAMSTRINGS = "hamstrings"
    GLUTES = "glutes"
    CALVES = "calves"
    CORE = "core"
    CARDIO = "cardio"


@dataclass(frozen=True)
class Exercise:
    """Represents a catalog exercise with its muscle groups."""

    name: str
    muscle_groups: tuple[MuscleGroup, ...]
    aliases: tuple[str, ...] = field(default_factory=tuple)


def _ex(name: str, *groups: MuscleGroup, aliases: tuple[str, ...] = ()) -> Exercise:
    return Exercise(name=name, muscle_groups=groups, aliases=aliases)


M = MuscleGroup

# Built-in catalog. Covers every template fallback so generation never
# depends on workout history.
EXERCISE_CATALOG: list[Exercise] = [
    # Chest
    _ex("Bench Press (Barbell)", M.CHEST, M.TRICEPS, M.SHOULDERS,
        aliases=("Bench Press", "Flat Bench Press", "BB Bench")),
    _ex("Incline Bench Press (Smith Machine)", M.CHEST, M.SHOULDERS, M.TRICEPS,
        aliases=("Incline Smith Press",)),
    _ex("Chest Press (Machine)", M.CHEST, M.TRICEPS, aliases=("Machine Chest Press",)),
    _ex("Chest Fly", M.CHEST, aliases=("Pec Fly", "Pec Deck")),
    # Shoulders
    _ex("Overhead Press (Dumbbell)", M.SHOULDERS, M.TRICEPS,
        aliases=("DB Shoulder Press", "Dumbbell Shoulder Press")),
    _ex("Overhead Press (Machine)", M.SHOULDERS, M.TRICEPS),
    _ex("Shoulder Press (Machine)", M.SHOULDERS, M.TRICEPS),
    _ex("Lateral Raise (Dumbbell)", M.SHOULDERS, aliases=("DB Lateral Raise",)),
    _ex("Lateral Raise (Cable)", M.SHOULDERS),
    _ex("Face Pull (Cable)", M.SHOULDERS, M.BACK, aliases=("Face Pull",)),
    # Triceps
    _ex("Triceps Pushdown (Cable - Straight Bar)", M.TRICEPS,
        aliases=("Tricep Pushdown", "Triceps Pushdown")),
    _ex("Triceps Extension (Machine)", M.TRICEPS),
    # Back
    _ex("Lat Pulldown (Machine)", M.BACK, M.BICEPS, aliases=("Lat Pulldown",)),
    _ex("Seated Row (Cable)", M.BACK, M.BICEPS, aliases=("Cable Row", "Seated Cable Row")),
    _ex("MTS Row", M.BACK),
    _ex("Pull Up", M.BACK, M.BICEPS, aliases=("Pull-up", "Pullup")),
    # Biceps
    _ex("Bicep Curl (Dumbbell)", M.BICEPS, aliases=("Dumbbell Curl", "DB Curl")),
    _ex("Bicep Curl (Cable)", M.BICEPS, aliases=("Cable Curl",)),
    _ex("Hammer Curl (Dumbbell)", M.BICEPS, aliases=("Hammer Curl",)),
    _ex("EZ Bar Curl", M.BICEPS),
    # Legs
    _ex("Squat (Smith Machine)", M.QUADS, M.GLUTES, aliases=("Smith Squat",)),
    _ex("Leg Press", M.QUADS, M.GLUTES, aliases=("Seated Leg Press (Machine)",)),
    _ex("Hack Squat", M.QUADS, M.GLUTES),
    _ex("Bulgarian Split Squat", M.QUADS, M.GLUTES, aliases=("BSS",)),
    _ex("Leg Extension (Machine)", M.QUADS, aliases=("Leg Extension",)),
    _ex("Romanian Deadlift (Dumbbell)", M.HAMSTRINGS, M.GLUTES, aliases=("DB RDL",)),
    _ex("Lying Leg Curl (Machine)", M.HAMSTRINGS, aliases=("Lying Leg Curl",)),
    _ex("Hip Thrust Machine", M.GLUTES, aliases=("Hip Thrust",)),
    _ex("Glute Kickback (Machine)", M.GLUTES),
    _ex("Standing Calf Raise (Machine)", M.CALVES, aliases=("Standing Calf Raise",)),
    _ex("Calf Extension Machine", M.CALVES),
    # Core
    _ex("Crunch", M.CORE),
    _ex("Crunch (Machine)", M.CORE),
    _ex("Plank", M.CORE),
    # Cardio
    _ex("Running (Treadmill)", M.CARDIO, aliases=("Treadmill",)),
]

del M

DEFAULT_EXERCISE_NAMES: list[str] = [exercise.name for exercise in EXERCISE_CATALOG]
