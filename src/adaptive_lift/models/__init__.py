"""Data models for adaptive-lift."""

from .exercises import EXERCISE_CATALOG, Exercise, MuscleGroup
from .health import DailyHealthData, WellnessScoreDay
from .program import (
    PlannedExerciseTarget,
    ProgramCompletionRecord,
    ProgramDayPlan,
    ProgramGoal,
    ProgramPlan,
    ProgramSplit,
    ProgramTodayPlan,
    ProgramWeek,
    ProgramWorkoutContext,
    ProgressionRule,
    ReadinessBand,
    ReadinessSnapshot,
    ReadinessSource,
    SessionState,
)
from .workout import Workout, WorkoutExercise, WorkoutSet

__all__ = [
    "DailyHealthData",
    "EXERCISE_CATALOG",
    "Exercise",
    "MuscleGroup",
    "PlannedExerciseTarget",
    "ProgramCompletionRecord",
    "ProgramDayPlan",
    "ProgramGoal",
    "ProgramPlan",
    "ProgramSplit",
    "ProgramTodayPlan",
    "ProgramWeek",
    "ProgramWorkoutContext",
    "ProgressionRule",
    "ReadinessBand",
    "ReadinessSnapshot",
    "ReadinessSource",
    "SessionState",
    "WellnessScoreDay",
    "Workout",
    "WorkoutExercise",
    "WorkoutSet",
]
