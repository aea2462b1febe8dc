"""Utilities for exercise name normalization, matching and load rounding."""

import math
import re
from difflib import SequenceMatcher
from typing import Callable

from ..models.exercises import EXERCISE_CATALOG, Exercise, MuscleGroup

MuscleGroupResolver = Callable[[str], set[MuscleGroup]]

_ABBREVIATIONS = {
    "bb": "barbell",
    "db": "dumbbell",
    "kb": "kettlebell",
    "ohp": "overhead press",
    "rdl": "romanian deadlift",
    "bss": "bulgarian split squat",
}

# Ordered: the first rule whose keyword appears in the name wins.
_KEYWORD_RULES: list[tuple[tuple[str, ...], tuple[MuscleGroup, ...]]] = [
    (("leg curl", "hamstring", "nordic"), (MuscleGroup.HAMSTRINGS,)),
    (("leg extension",), (MuscleGroup.QUADS,)),
    (("calf",), (MuscleGroup.CALVES,)),
    (("hip thrust", "glute", "kickback", "abductor"), (MuscleGroup.GLUTES,)),
    (("deadlift", "good morning"), (MuscleGroup.HAMSTRINGS, MuscleGroup.GLUTES)),
    (("squat", "lunge", "leg press", "step up"), (MuscleGroup.QUADS, MuscleGroup.GLUTES)),
    (("bench", "chest", "fly", "push up", "pushup", "dip"), (MuscleGroup.CHEST, MuscleGroup.TRICEPS)),
    (("overhead press", "shoulder press", "lateral raise", "face pull", "rear delt"),
     (MuscleGroup.SHOULDERS,)),
    (("pulldown", "pull up", "pullup", "chin up", "row"), (MuscleGroup.BACK, MuscleGroup.BICEPS)),
    (("curl",), (MuscleGroup.BICEPS,)),
    (("tricep", "pushdown", "skull"), (MuscleGroup.TRICEPS,)),
    (("crunch", "plank", "sit up", "ab wheel"), (MuscleGroup.CORE,)),
    (("run", "treadmill", "cycling", "elliptical", "stair"), (MuscleGroup.CARDIO,)),
]


def normalize_exercise_name(name: str) -> str:
    """Normalize an exercise name for identity comparison.

    Lowercases, strips and collapses internal whitespace. Two names that
    normalize equal refer to the same exercise everywhere in a plan.
    """
    return re.sub(r"\s+", " ", name.strip().lower())


def _expand_abbreviations(name: str) -> str:
    normalized = normalize_exercise_name(name)
    if normalized in _ABBREVIATIONS:
        return _ABBREVIATIONS[normalized]
    for abbrev, full in _ABBREVIATIONS.items():
        normalized = re.sub(rf"\b{abbrev}\b", full, normalized)
    return normalized


def round_to_increment(value: float, increment: float) -> float:
    """Round half away from zero to the nearest multiple of ``increment``."""
    if increment <= 0:
        return value
    steps = value / increment
    rounded = math.floor(abs(steps) + 0.5) * increment
    return round(math.copysign(rounded, steps), 4)


def find_matching_exercise(
    name: str,
    exercises: list[Exercise] | None = None,
    threshold: float = 0.8,
) -> Exercise | None:
    """Find the best matching exercise from the catalog.

    Args:
        name: The exercise name to match
        exercises: List of exercises to search (defaults to EXERCISE_CATALOG)
        threshold: Minimum similarity ratio (0-1) to consider a match

    Returns:
        The best matching Exercise or None if no match above threshold
    """
    if exercises is None:
        exercises = EXERCISE_CATALOG

    expanded = _expand_abbreviations(name)

    best_match: Exercise | None = None
    best_score = 0.0

    for exercise in exercises:
        candidates = [exercise.name, *exercise.aliases]
        for candidate in candidates:
            candidate_expanded = _expand_abbreviations(candidate)
            if candidate_expanded == expanded:
                return exercise

            score = SequenceMatcher(None, expanded, candidate_expanded).ratio()
            if score > best_score:
                best_score = score
                best_match = exercise

    if best_score >= threshold:
        return best_match

    return None


def resolve_muscle_groups(name: str) -> set[MuscleGroup]:
    """Default exercise name -> muscle group lookup.

    Tries an exact catalog hit, then keyword rules, then a fuzzy catalog
    match. Unknown names resolve to an empty set.
    """
    expanded = _expand_abbreviations(name)
    if not expanded:
        return set()

    for exercise in EXERCISE_CATALOG:
        names = [exercise.name, *exercise.aliases]
        if any(_expand_abbreviations(n) == expanded for n in names):
            return set(exercise.muscle_groups)

    for keywords, groups in _KEYWORD_RULES:
        if any(keyword in expanded for keyword in keywords):
            return set(groups)

    match = find_matching_exercise(name)
    if match:
        return set(match.muscle_groups)

    return set()
