"""Periodized program generator.

Builds an 8-week plan from a goal, a weekly frequency and the lifter's
workout history. The plan is a template: every week repeats the same day
layout, and load is shaped by a fixed intensity curve ending in a deload.

Example (4 days/week, strength):
```
Week 1  Mon Upper A   Bench Press (Barbell) 4x4-6 @ 95
        Tue Lower A   Leg Press 4x4-6 @ 190
        Thu Upper B   ...
        Fri Lower B   ...
Week 8  (deload, 90% of week 2 loads)
```
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from ..models.exercises import DEFAULT_EXERCISE_NAMES, MuscleGroup
from ..models.program import (
    PlannedExerciseTarget,
    ProgramDayPlan,
    ProgramGoal,
    ProgramPlan,
    ProgramSplit,
    ProgramWeek,
    ProgressionRule,
)
from ..models.workout import Workout
from ..utils.exercise_utils import (
    MuscleGroupResolver,
    normalize_exercise_name,
    resolve_muscle_groups,
    round_to_increment,
)

PROGRAM_WEEKS = 8
MAX_EXERCISES_PER_DAY = 5
DEFAULT_WEIGHT_INCREMENT = 2.5

# Week-by-week load multipliers; week 8 is the deload.
WEEK_MULTIPLIERS: tuple[float, ...] = (0.95, 1.00, 1.02, 1.04, 1.06, 1.08, 1.10, 0.90)

# Training day offsets from each week's start, by frequency.
DAY_OFFSETS: dict[int, tuple[int, ...]] = {
    3: (0, 2, 4),
    4: (0, 1, 3, 4),
    5: (0, 1, 2, 4, 5),
}


@dataclass
class GeneratorConfig:
    """Configuration for plan generation."""

    goal: ProgramGoal
    days_per_week: int
    start_date: date
    weight_increment: float = DEFAULT_WEIGHT_INCREMENT
    name: str | None = None


@dataclass(frozen=True)
class DayTemplate:
    """Layout of one training day within a split."""

    title: str
    groups: tuple[MuscleGroup, ...]
    fallback: tuple[str, ...]


@dataclass
class ExerciseHistorySummary:
    """How often an exercise was done and what was lifted most recently."""

    name: str
    frequency: int
    last_date: datetime
    last_top_weight: float | None = None


_FULL_BODY = (
    DayTemplate(
        "Full Body A",
        (MuscleGroup.CHEST, MuscleGroup.BACK, MuscleGroup.QUADS, MuscleGroup.SHOULDERS),
        (
            "Bench Press (Barbell)",
            "Lat Pulldown (Machine)",
            "Leg Press",
            "Overhead Press (Dumbbell)",
            "Bicep Curl (Dumbbell)",
        ),
    ),
    DayTemplate(
        "Full Body B",
        (MuscleGroup.BACK, MuscleGroup.HAMSTRINGS, MuscleGroup.CHEST, MuscleGroup.TRICEPS),
        (
            "Seated Row (Cable)",
            "Romanian Deadlift (Dumbbell)",
            "Chest Press (Machine)",
            "Triceps Pushdown (Cable - Straight Bar)",
            "Lateral Raise (Dumbbell)",
        ),
    ),
    DayTemplate(
        "Full Body C",
        (MuscleGroup.QUADS, MuscleGroup.SHOULDERS, MuscleGroup.BACK, MuscleGroup.CORE),
        (
            "Squat (Smith Machine)",
            "Shoulder Press (Machine)",
            "MTS Row",
            "Crunch (Machine)",
            "Hammer Curl (Dumbbell)",
        ),
    ),
)

_UPPER_LOWER = (
    DayTemplate(
        "Upper A",
        (MuscleGroup.CHEST, MuscleGroup.BACK, MuscleGroup.SHOULDERS, MuscleGroup.TRICEPS),
        (
            "Bench Press (Barbell)",
            "Seated Row (Cable)",
            "Lateral Raise (Dumbbell)",
            "Triceps Extension (Machine)",
            "Bicep Curl (Dumbbell)",
        ),
    ),
    DayTemplate(
        "Lower A",
        (MuscleGroup.QUADS, MuscleGroup.HAMSTRINGS, MuscleGroup.GLUTES, MuscleGroup.CALVES),
        (
            "Leg Press",
            "Lying Leg Curl (Machine)",
            "Hip Thrust Machine",
            "Standing Calf Raise (Machine)",
            "Crunch",
        ),
    ),
    DayTemplate(
        "Upper B",
        (MuscleGroup.BACK, MuscleGroup.CHEST, MuscleGroup.BICEPS, MuscleGroup.SHOULDERS),
        (
            "Lat Pulldown (Machine)",
            "Incline Bench Press (Smith Machine)",
            "EZ Bar Curl",
            "Overhead Press (Machine)",
            "Face Pull (Cable)",
        ),
    ),
    DayTemplate(
        "Lower B",
        (MuscleGroup.QUADS, MuscleGroup.GLUTES, MuscleGroup.HAMSTRINGS, MuscleGroup.CORE),
        (
            "Hack Squat",
            "Glute Kickback (Machine)",
            "Romanian Deadlift (Dumbbell)",
            "Calf Extension Machine",
            "Plank",
        ),
    ),
)

_PUSH_PULL_LEGS = (
    DayTemplate(
        "Push",
        (MuscleGroup.CHEST, MuscleGroup.SHOULDERS, MuscleGroup.TRICEPS),
        (
            "Bench Press (Barbell)",
            "Incline Bench Press (Smith Machine)",
            "Overhead Press (Dumbbell)",
            "Lateral Raise (Cable)",
            "Triceps Pushdown (Cable - Straight Bar)",
        ),
    ),
    DayTemplate(
        "Pull",
        (MuscleGroup.BACK, MuscleGroup.BICEPS, MuscleGroup.SHOULDERS),
        (
            "Seated Row (Cable)",
            "Lat Pulldown (Machine)",
            "Bicep Curl (Dumbbell)",
            "Face Pull (Cable)",
            "Hammer Curl (Dumbbell)",
        ),
    ),
    DayTemplate(
        "Legs",
        (MuscleGroup.QUADS, MuscleGroup.HAMSTRINGS, MuscleGroup.GLUTES, MuscleGroup.CALVES),
        (
            "Leg Press",
            "Lying Leg Curl (Machine)",
            "Hip Thrust Machine",
            "Standing Calf Raise (Machine)",
            "Crunch",
        ),
    ),
    DayTemplate(
        "Upper",
        (MuscleGroup.CHEST, MuscleGroup.BACK, MuscleGroup.SHOULDERS, MuscleGroup.BICEPS),
        (
            "Chest Press (Machine)",
            "MTS Row",
            "Shoulder Press (Machine)",
            "Bicep Curl (Cable)",
            "Triceps Extension (Machine)",
        ),
    ),
    DayTemplate(
        "Lower",
        (MuscleGroup.QUADS, MuscleGroup.GLUTES, MuscleGroup.HAMSTRINGS, MuscleGroup.CORE),
        (
            "Hack Squat",
            "Bulgarian Split Squat",
            "Romanian Deadlift (Dumbbell)",
            "Calf Extension Machine",
            "Plank",
        ),
    ),
)

SPLIT_TEMPLATES: dict[ProgramSplit, tuple[DayTemplate, ...]] = {
    ProgramSplit.FULL_BODY: _FULL_BODY,
    ProgramSplit.UPPER_LOWER: _UPPER_LOWER,
    ProgramSplit.PUSH_PULL_LEGS: _PUSH_PULL_LEGS,
}


def clamp_days_per_week(days_per_week: int) -> int:
    """Clamp a requested frequency into the supported 3-5 range."""
    return max(3, min(5, days_per_week))


def build_history_summary(workouts: Iterable[Workout]) -> dict[str, ExerciseHistorySummary]:
    """Index prior workouts by normalized exercise name.

    Records how many workouts included the exercise and the top working
    weight of its most recent occurrence. The display name is the spelling
    used in that most recent occurrence.
    """
    summary: dict[str, ExerciseHistorySummary] = {}

    for workout in workouts:
        for exercise in workout.exercises:
            key = normalize_exercise_name(exercise.name)
            if not key:
                continue
            top_weight = exercise.top_weight
            existing = summary.get(key)
            if existing is None:
                summary[key] = ExerciseHistorySummary(
                    name=exercise.name.strip(),
                    frequency=1,
                    last_date=workout.date,
                    last_top_weight=top_weight,
                )
                continue

            existing.frequency += 1
            if workout.date > existing.last_date:
                existing.name = exercise.name.strip()
                existing.last_date = workout.date
                existing.last_top_weight = top_weight

    return summary


class ProgramGenerator:
    """Generates periodized ProgramPlan templates."""

    def __init__(self, resolver: MuscleGroupResolver | None = None):
        self.resolver = resolver or resolve_muscle_groups

    def generate(self, workouts: list[Workout], config: GeneratorConfig) -> ProgramPlan:
        """Generate a complete plan.

        Args:
            workouts: Prior workouts, used for exercise choice and base loads
            config: Goal, frequency, start date and rounding increment

        Returns:
            A new, active ProgramPlan
        """
        days_per_week = clamp_days_per_week(config.days_per_week)
        increment = (
            config.weight_increment if config.weight_increment > 0 else DEFAULT_WEIGHT_INCREMENT
        )
        split = ProgramSplit.default_for(days_per_week)
        templates = SPLIT_TEMPLATES[split][:days_per_week]

        history = build_history_summary(workouts)
        grouped = self._exercises_by_group(history)

        base_targets = [
            self._base_targets(template, config.goal, grouped, history, increment)
            for template in templates
        ]

        offsets = DAY_OFFSETS[days_per_week]
        weeks: list[ProgramWeek] = []

        for week_index in range(PROGRAM_WEEKS):
            week_start = config.start_date + timedelta(days=7 * week_index)
            multiplier = WEEK_MULTIPLIERS[min(week_index, len(WEEK_MULTIPLIERS) - 1)]

            days = []
            for day_index, template in enumerate(templates):
                offset = offsets[min(day_index, len(offsets) - 1)]
                days.append(
                    ProgramDayPlan(
                        week_number=week_index + 1,
                        day_number=day_index + 1,
                        scheduled_date=week_start + timedelta(days=offset),
                        focus_title=template.title,
                        exercises=[
                            self._scaled_target(target, multiplier, increment)
                            for target in base_targets[day_index]
                        ],
                    )
                )

            weeks.append(
                ProgramWeek(
                    week_number=week_index + 1,
                    start_date=week_start,
                    end_date=week_start + timedelta(days=6),
                    days=days,
                )
            )

        name = (config.name or "").strip() or f"Adaptive {config.goal.title}"
        rule = ProgressionRule.default()
        rule.weight_increment = increment

        return ProgramPlan(
            name=name,
            goal=config.goal,
            split=split,
            days_per_week=days_per_week,
            start_date=config.start_date,
            weeks=weeks,
            progression_rule=rule,
        )

    def _exercises_by_group(
        self,
        history: dict[str, ExerciseHistorySummary],
    ) -> dict[MuscleGroup, list[str]]:
        """Candidate exercise names per muscle group, most frequent first."""
        # Historical spelling wins over the catalog spelling of the same exercise
        names = {key: summary.name for key, summary in history.items()}
        for name in DEFAULT_EXERCISE_NAMES:
            names.setdefault(normalize_exercise_name(name), name)

        grouped: dict[MuscleGroup, list[str]] = {}
        for name in names.values():
            for group in self.resolver(name):
                if group == MuscleGroup.CARDIO:
                    continue
                grouped.setdefault(group, []).append(name)

        for group, candidates in grouped.items():
            candidates.sort(key=lambda n: _frequency_sort_key(n, history))

        return grouped

    def _base_targets(
        self,
        template: DayTemplate,
        goal: ProgramGoal,
        grouped: dict[MuscleGroup, list[str]],
        history: dict[str, ExerciseHistorySummary],
        increment: float,
    ) -> list[PlannedExerciseTarget]:
        """Pick exercises for a day and attach goal-based prescriptions."""
        picked: list[str] = []
        seen: set[str] = set()

        def add(candidate: str) -> bool:
            trimmed = candidate.strip()
            key = normalize_exercise_name(trimmed)
            if not key or key in seen:
                return False
            seen.add(key)
            picked.append(trimmed)
            return True

        # One best candidate per templated group
        for group in template.groups:
            for candidate in grouped.get(group, []):
                if add(candidate):
                    break

        for candidate in template.fallback:
            if len(picked) >= MAX_EXERCISES_PER_DAY:
                break
            add(candidate)

        history_names = [summary.name for summary in history.values()]
        for candidate in sorted(history_names, key=lambda n: _frequency_sort_key(n, history)):
            if len(picked) >= MAX_EXERCISES_PER_DAY:
                break
            add(candidate)

        lower, upper = goal.rep_range
        set_count = 4 if goal == ProgramGoal.STRENGTH else 3

        targets = []
        for name in picked[:MAX_EXERCISES_PER_DAY]:
            summary = history.get(normalize_exercise_name(name))
            base_weight = summary.last_top_weight if summary else None
            targets.append(
                PlannedExerciseTarget(
                    exercise_name=name,
                    set_count=set_count,
                    rep_range_lower=lower,
                    rep_range_upper=upper,
                    target_weight=(
                        round_to_increment(base_weight, increment)
                        if base_weight is not None
                        else None
                    ),
                )
            )
        return targets

    @staticmethod
    def _scaled_target(
        target: PlannedExerciseTarget, multiplier: float, increment: float
    ) -> PlannedExerciseTarget:
        # Every day gets its own target objects so propagation can mutate in place.
        scaled = target.copy(fresh_id=True)
        if target.target_weight is not None:
            scaled.target_weight = round_to_increment(target.target_weight * multiplier, increment)
        return scaled


def _frequency_sort_key(
    name: str, history: dict[str, ExerciseHistorySummary]
) -> tuple[int, str, str]:
    summary = history.get(normalize_exercise_name(name))
    frequency = summary.frequency if summary else 0
    return (-frequency, name.casefold(), name)
