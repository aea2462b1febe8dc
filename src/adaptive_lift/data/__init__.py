"""Data loading utilities."""

from .history_loader import load_health_data, load_wellness_scores, load_workout, load_workouts

__all__ = ["load_health_data", "load_wellness_scores", "load_workout", "load_workouts"]
