"""Program store: the single owner of plan state.

The store holds the active plan and the archive, applies day-state
transitions and session completions, and pushes progression decisions
forward onto the remaining schedule.

Every mutating method is synchronous and contains no awaits, so calls made
from one thread or event loop are applied one at a time and never
interleave. Each successful mutation dispatches a background write of the
full snapshot tagged with an increasing revision; see
:class:`~adaptive_lift.services.persistence.SnapshotPersistenceStore`.

Invalid transitions and failed lookups are silent no-ops. Mutators return
``True`` when state changed and ``False`` when nothing happened, so callers
that care can tell the two apart without handling exceptions.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, Mapping

from ..generators.program import GeneratorConfig, ProgramGenerator
from ..models.health import DailyHealthData, WellnessScoreDay
from ..models.program import (
    PlannedExerciseTarget,
    ProgramCompletionRecord,
    ProgramDayPlan,
    ProgramGoal,
    ProgramPlan,
    ProgramTodayPlan,
    ProgramWeek,
    ProgramWorkoutContext,
    SessionState,
)
from ..models.workout import Workout, WorkoutSet
from ..utils.exercise_utils import MuscleGroupResolver, normalize_exercise_name
from .autoregulation import adjusted_targets, evaluate_completion, readiness_snapshot
from .persistence import SCHEMA_VERSION, SnapshotPersistenceStore

logger = logging.getLogger(__name__)

HealthData = Mapping[date, DailyHealthData]
WellnessScores = Mapping[date, WellnessScoreDay]


@dataclass
class ProgramCreationRequest:
    """User-facing options for a new plan."""

    goal: ProgramGoal
    days_per_week: int
    start_date: date
    weight_increment: float = 2.5
    name: str | None = None


@dataclass
class CompletionSource:
    """Planning hints carried by a workout that was started from a plan day."""

    planned_day_id: str | None = None
    planned_day_date: date | None = None
    planned_targets_snapshot: list[PlannedExerciseTarget] | None = None


DayMatcher = Callable[[ProgramPlan, Workout, CompletionSource], ProgramDayPlan | None]


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _match_by_day_id(
    plan: ProgramPlan, workout: Workout, source: CompletionSource
) -> ProgramDayPlan | None:
    if source.planned_day_id is None:
        return None
    return next((day for day in plan.all_days if day.id == source.planned_day_id), None)


def _match_by_planned_date(
    plan: ProgramPlan, workout: Workout, source: CompletionSource
) -> ProgramDayPlan | None:
    # Matches the current scheduled date, so moved days resolve to their new date.
    if source.planned_day_date is None:
        return None
    target = _as_date(source.planned_day_date)
    return next(
        (day for day in plan.all_days if day.state.is_open and day.scheduled_date == target),
        None,
    )


def _match_nearest_to_workout(
    plan: ProgramPlan, workout: Workout, source: CompletionSource
) -> ProgramDayPlan | None:
    open_days = [day for day in plan.all_days if day.state.is_open]
    if not open_days:
        return None

    workout_day = workout.date.date()
    same_day = next((day for day in open_days if day.scheduled_date == workout_day), None)
    if same_day is not None:
        return same_day

    return min(
        open_days,
        key=lambda day: abs(datetime.combine(day.scheduled_date, time.min) - workout.date),
    )


# Evaluated in order; the first match wins.
DAY_MATCHERS: tuple[DayMatcher, ...] = (
    _match_by_day_id,
    _match_by_planned_date,
    _match_nearest_to_workout,
)


class ProgramStore:
    """Owns the active plan, the archive and their persistence."""

    def __init__(
        self,
        persistence: SnapshotPersistenceStore | None = None,
        resolver: MuscleGroupResolver | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.active_plan: ProgramPlan | None = None
        self.archived_plans: list[ProgramPlan] = []
        self.is_loaded = False
        self.persistence = persistence
        self.generator = ProgramGenerator(resolver)
        self._now = clock or datetime.now
        self._revision = 0
        self._pending_writes: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Load the persisted snapshot, falling back to an empty store."""
        self.active_plan = None
        self.archived_plans = []

        blob = await self.persistence.read() if self.persistence else None
        if blob is not None:
            try:
                data = json.loads(blob.value)
                active = data.get("active_plan")
                self.active_plan = ProgramPlan.from_dict(active) if active else None
                self.archived_plans = [
                    ProgramPlan.from_dict(plan) for plan in data.get("archived_plans", [])
                ]
            except (ValueError, KeyError, TypeError):
                logger.exception("Failed to decode program store snapshot; starting empty")
                self.active_plan = None
                self.archived_plans = []
            self._revision = max(self._revision, blob.revision)
            self._sort_archive()

        self.is_loaded = True

    def snapshot(self) -> dict:
        """Full serializable state of the store."""
        return {
            "active_plan": self.active_plan.to_dict() if self.active_plan else None,
            "archived_plans": [plan.to_dict() for plan in self.archived_plans],
            "schema_version": SCHEMA_VERSION,
        }

    async def flush(self) -> None:
        """Wait for every dispatched background write to finish."""
        while self._pending_writes:
            pending = list(self._pending_writes)
            await asyncio.gather(*pending)
            self._pending_writes.difference_update(pending)

    def _persist(self) -> None:
        if self.persistence is None:
            return

        self._revision += 1
        revision = self._revision
        payload = json.dumps(self.snapshot())
        write = self.persistence.write_if_current(payload, revision)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop owns this store; write inline.
            asyncio.run(write)
            return

        task = loop.create_task(write)
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    def _sort_archive(self) -> None:
        self.archived_plans.sort(key=lambda plan: plan.archived_at or plan.updated_at, reverse=True)

    # ------------------------------------------------------------------
    # Plan lifecycle
    # ------------------------------------------------------------------

    def create_plan(
        self,
        request: ProgramCreationRequest,
        workouts: list[Workout],
        health_data: HealthData | None = None,
    ) -> ProgramPlan:
        """Generate a new active plan, archiving the current one.

        ``health_data`` is accepted for callers that already hold it;
        generation does not use it.
        """
        config = GeneratorConfig(
            goal=request.goal,
            days_per_week=request.days_per_week,
            start_date=request.start_date,
            weight_increment=request.weight_increment,
            name=request.name,
        )
        plan = self.generator.generate(workouts, config)
        now = self._now()
        plan.created_at = now
        plan.updated_at = now

        if self.active_plan is not None:
            self.active_plan.archived_at = now
            self.archived_plans.insert(0, self.active_plan)
            self._sort_archive()

        self.active_plan = plan
        logger.debug("Created plan %s (%s)", plan.id, plan.name)
        self._persist()
        return plan

    def archive_active_plan(self) -> bool:
        """Move the active plan into the archive."""
        plan = self.active_plan
        if plan is None:
            return False

        plan.archived_at = self._now()
        self.archived_plans.insert(0, plan)
        self._sort_archive()
        self.active_plan = None
        logger.debug("Archived plan %s", plan.id)
        self._persist()
        return True

    def restore_archived_plan(self, plan_id: str) -> bool:
        """Reactivate an archived plan; the current active plan is archived."""
        index = next(
            (i for i, plan in enumerate(self.archived_plans) if plan.id == plan_id), None
        )
        if index is None:
            return False

        now = self._now()
        restored = self.archived_plans.pop(index)
        restored.archived_at = None
        restored.updated_at = now

        if self.active_plan is not None:
            self.active_plan.archived_at = now
            self.archived_plans.insert(0, self.active_plan)

        self._sort_archive()
        self.active_plan = restored
        logger.debug("Restored plan %s", plan_id)
        self._persist()
        return True

    def delete_archived_plan(self, plan_id: str) -> bool:
        """Permanently remove a plan from the archive."""
        remaining = [plan for plan in self.archived_plans if plan.id != plan_id]
        if len(remaining) == len(self.archived_plans):
            return False

        self.archived_plans = remaining
        logger.debug("Deleted archived plan %s", plan_id)
        self._persist()
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def today_plan(
        self,
        reference_date: date | datetime | None = None,
        health_data: HealthData | None = None,
        wellness_scores: WellnessScores | None = None,
    ) -> ProgramTodayPlan | None:
        """Pick the day to train and adjust it for readiness.

        Preference: a day scheduled on the reference date, then the most
        recent overdue day, then the nearest upcoming day. Only planned or
        moved days are considered.
        """
        plan = self.active_plan
        if plan is None:
            return None

        reference = reference_date or self._now()
        day_start = _as_date(reference)
        candidates = [day for day in plan.all_days if day.state.is_open]
        if not candidates:
            return None

        todays = [day for day in candidates if day.scheduled_date == day_start]
        overdue = [day for day in candidates if day.scheduled_date < day_start]
        upcoming = [day for day in candidates if day.scheduled_date > day_start]

        if todays:
            selected = todays[0]
        elif overdue:
            selected = max(overdue, key=lambda day: day.scheduled_date)
        else:
            selected = min(upcoming, key=lambda day: day.scheduled_date)

        rule = plan.progression_rule
        readiness = readiness_snapshot(health_data, wellness_scores, reference, rule)
        return ProgramTodayPlan(
            plan_id=plan.id,
            day=selected,
            adjusted_exercises=adjusted_targets(
                selected.exercises, readiness, rule.weight_increment, rule
            ),
            readiness=readiness,
        )

    def day_plan(self, day_id: str) -> ProgramDayPlan | None:
        if self.active_plan is None:
            return None
        return self._day_index(self.active_plan).get(day_id)

    def week(self, week_number: int) -> ProgramWeek | None:
        if self.active_plan is None:
            return None
        return next(
            (week for week in self.active_plan.weeks if week.week_number == week_number), None
        )

    def completion_record(self, day_id: str) -> ProgramCompletionRecord | None:
        """Latest completion record for a day of the active plan."""
        if self.active_plan is None:
            return None
        records = [r for r in self.active_plan.completion_records if r.day_id == day_id]
        return max(records, key=lambda r: r.completed_at, default=None)

    def workout_context(self, workout_id: str) -> ProgramWorkoutContext | None:
        """Find the plan day a logged workout completed.

        Linear scan over the active plan, then the archive.
        """
        plans = [(self.active_plan, False)] + [(plan, True) for plan in self.archived_plans]
        for plan, is_archived in plans:
            if plan is None:
                continue
            day = next(
                (d for d in plan.all_days if d.completed_workout_id == workout_id), None
            )
            if day is None:
                continue

            records = [r for r in plan.completion_records if r.workout_id == workout_id]
            record = max(records, key=lambda r: r.completed_at, default=None)
            return ProgramWorkoutContext(
                plan_id=plan.id,
                plan_name=plan.name,
                day_id=day.id,
                week_number=day.week_number,
                day_number=day.day_number,
                readiness_score=record.readiness_score if record else None,
                readiness_band=record.readiness_band if record else None,
                is_archived_plan=is_archived,
            )
        return None

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def record_completion(
        self,
        workout: Workout,
        planned_program_id: str | None = None,
        planned_day_id: str | None = None,
        planned_day_date: date | datetime | None = None,
        planned_targets_snapshot: list[PlannedExerciseTarget] | None = None,
        health_data: HealthData | None = None,
        wellness_scores: WellnessScores | None = None,
    ) -> bool:
        """Mark a plan day completed by ``workout`` and progress later days.

        Workouts logged without any planning hint never touch plan state.
        """
        if planned_program_id is None and planned_day_id is None and planned_day_date is None:
            return False

        source = CompletionSource(
            planned_day_id=planned_day_id,
            planned_day_date=_as_date(planned_day_date) if planned_day_date else None,
            planned_targets_snapshot=planned_targets_snapshot,
        )

        if planned_program_id is None:
            plan = self.active_plan
        elif self.active_plan is not None and self.active_plan.id == planned_program_id:
            plan = self.active_plan
        else:
            plan = next((p for p in self.archived_plans if p.id == planned_program_id), None)

        if plan is None:
            return False
        if not self._apply_completion(plan, workout, source, health_data, wellness_scores):
            return False

        if plan is not self.active_plan:
            self._sort_archive()
        self._persist()
        return True

    def _apply_completion(
        self,
        plan: ProgramPlan,
        workout: Workout,
        source: CompletionSource,
        health_data: HealthData | None,
        wellness_scores: WellnessScores | None,
    ) -> bool:
        if any(day.completed_workout_id == workout.id for day in plan.all_days):
            return False

        day = self._resolve_completion_day(plan, workout, source)
        if day is None or day.state == SessionState.COMPLETED:
            return False

        rule = plan.progression_rule
        readiness = readiness_snapshot(health_data, wellness_scores, workout.date, rule)

        # Evaluate against what was prescribed when the session started, not
        # against targets that may have been propagated since.
        snapshot_by_name = {
            normalize_exercise_name(t.exercise_name): t
            for t in source.planned_targets_snapshot or []
        }
        evaluation_targets = [
            snapshot_by_name.get(normalize_exercise_name(t.exercise_name), t)
            for t in day.exercises
        ]

        sets_by_name: dict[str, tuple[WorkoutSet, ...]] = {}
        for exercise in workout.exercises:
            sets_by_name.setdefault(normalize_exercise_name(exercise.name), exercise.sets)

        evaluations = [
            evaluate_completion(
                target,
                sets_by_name.get(normalize_exercise_name(target.exercise_name), ()),
                rule,
            )
            for target in evaluation_targets
        ]
        successful = sum(1 for evaluation in evaluations if evaluation.was_successful)
        total = len(evaluation_targets)

        day.state = SessionState.COMPLETED
        day.completed_workout_id = workout.id
        day.completion_date = workout.date

        self._propagate_targets(
            plan,
            from_date=day.scheduled_date,
            targets_by_name={
                normalize_exercise_name(e.next_target.exercise_name): e.next_target
                for e in evaluations
            },
        )

        plan.completion_records.append(
            ProgramCompletionRecord(
                plan_id=plan.id,
                day_id=day.id,
                workout_id=workout.id,
                completed_at=workout.date,
                readiness_score=readiness.score,
                readiness_band=readiness.band,
                adherence_ratio=successful / max(total, 1),
                successful_exercise_count=successful,
                total_exercise_count=total,
            )
        )
        plan.updated_at = self._now()
        logger.debug(
            "Completed day %s of plan %s with workout %s (%d/%d successful)",
            day.id,
            plan.id,
            workout.id,
            successful,
            total,
        )
        return True

    @staticmethod
    def _resolve_completion_day(
        plan: ProgramPlan, workout: Workout, source: CompletionSource
    ) -> ProgramDayPlan | None:
        for matcher in DAY_MATCHERS:
            day = matcher(plan, workout, source)
            if day is not None:
                return day
        return None

    @staticmethod
    def _propagate_targets(
        plan: ProgramPlan,
        from_date: date,
        targets_by_name: dict[str, PlannedExerciseTarget],
    ) -> None:
        """Overwrite load and streak on later open days that share an exercise."""
        if not targets_by_name:
            return

        for day in plan.all_days:
            if day.scheduled_date <= from_date or not day.state.is_open:
                continue
            for exercise in day.exercises:
                replacement = targets_by_name.get(normalize_exercise_name(exercise.exercise_name))
                if replacement is None:
                    continue
                exercise.target_weight = replacement.target_weight
                exercise.failure_streak = replacement.failure_streak

    # ------------------------------------------------------------------
    # Day state transitions
    # ------------------------------------------------------------------

    @staticmethod
    def _day_index(plan: ProgramPlan) -> dict[str, ProgramDayPlan]:
        return {day.id: day for week in plan.weeks for day in week.days}

    def _open_day(self, day_id: str) -> ProgramDayPlan | None:
        if self.active_plan is None:
            return None
        day = self._day_index(self.active_plan).get(day_id)
        if day is None or not day.state.is_open:
            return None
        return day

    def _touch(self) -> None:
        self.active_plan.updated_at = self._now()
        self._persist()

    def skip_day(self, day_id: str) -> bool:
        """planned/moved -> skipped."""
        day = self._open_day(day_id)
        if day is None:
            return False

        day.state = SessionState.SKIPPED
        day.completion_date = self._now()
        logger.debug("Skipped day %s", day_id)
        self._touch()
        return True

    def move_day(self, day_id: str, new_date: date | datetime) -> bool:
        """planned/moved -> moved, rescheduled to ``new_date``.

        The first move records the original date; later moves keep it.
        """
        day = self._open_day(day_id)
        if day is None:
            return False

        if day.moved_from_date is None:
            day.moved_from_date = day.scheduled_date
        day.scheduled_date = _as_date(new_date)
        day.state = SessionState.MOVED
        logger.debug("Moved day %s to %s", day_id, day.scheduled_date)
        self._touch()
        return True

    def reset_day_to_planned(self, day_id: str) -> bool:
        """skipped/moved -> planned, clearing completion and move fields."""
        if self.active_plan is None:
            return False
        day = self._day_index(self.active_plan).get(day_id)
        if day is None or day.state not in (SessionState.SKIPPED, SessionState.MOVED):
            return False

        day.state = SessionState.PLANNED
        day.completion_date = None
        day.completed_workout_id = None
        day.moved_from_date = None
        logger.debug("Reset day %s to planned", day_id)
        self._touch()
        return True
