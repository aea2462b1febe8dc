"""Workout history and health data loaders from JSON."""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, TypeVar

from ..models.health import DailyHealthData, WellnessScoreDay
from ..models.workout import Workout

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _read_records(path: Path, container_key: str) -> list[dict]:
    """Read a JSON file holding either a list or ``{container_key: [...]}``."""
    try:
        with open(path) as f:
            data: Any = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get(container_key)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of records or a '{container_key}' list")
    return data


def _parse_records(records: list[dict], parse: Callable[[dict], T], kind: str) -> list[T]:
    parsed = []
    for record in records:
        try:
            parsed.append(parse(record))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # Skip invalid records but keep the rest of the file
            logger.warning("Skipping invalid %s record: %s", kind, e)
    return parsed


def load_workouts(path: Path) -> list[Workout]:
    """Load logged workouts from a JSON file.

    Args:
        path: File containing a list of workouts or ``{"workouts": [...]}``

    Returns:
        Workouts ordered by date
    """
    workouts = _parse_records(_read_records(path, "workouts"), Workout.from_dict, "workout")
    return sorted(workouts, key=lambda w: w.date)


def load_workout(path: Path) -> Workout:
    """Load a single workout from a JSON file."""
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a single workout object")
    try:
        return Workout.from_dict(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"{path} is not a valid workout: {e}") from e


def load_health_data(path: Path) -> dict[date, DailyHealthData]:
    """Load per-day health aggregates keyed by day."""
    days = _parse_records(_read_records(path, "days"), DailyHealthData.from_dict, "health")
    return {d.day: d for d in days}


def load_wellness_scores(path: Path) -> dict[date, WellnessScoreDay]:
    """Load per-day wellness scores keyed by day."""
    days = _parse_records(_read_records(path, "days"), WellnessScoreDay.from_dict, "wellness")
    return {d.day: d for d in days}
