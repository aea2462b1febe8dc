"""Tests for the program store."""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from adaptive_lift.models.health import WellnessScoreDay
from adaptive_lift.models.program import ProgramGoal, ReadinessBand, SessionState
from adaptive_lift.models.workout import Workout
from adaptive_lift.services.program_store import ProgramCreationRequest, ProgramStore

BENCH = "Bench Press (Barbell)"
SQUAT = "Squat (Smith Machine)"


@pytest.fixture
def plan(store, strength_request, sample_workouts):
    """Strength plan: Mon/Tue/Thu/Fri from 2024-01-01; upper days carry bench."""
    return store.create_plan(strength_request, sample_workouts)


def _day(plan, week: int, day: int):
    return plan.weeks[week - 1].days[day - 1]


def _target(day, name):
    return next((t for t in day.exercises if t.exercise_name == name), None)


def _target_in(targets, name):
    return next(t for t in targets if t.exercise_name == name)


def _on_target(workout_factory, day, when: datetime, weight_override=None):
    """Workout that hits every target of ``day`` at the top of the rep range."""
    overrides = weight_override or {}
    exercises = []
    for target in day.exercises:
        weight = overrides.get(target.exercise_name, target.target_weight) or 20
        exercises.append((target.exercise_name, [(weight, target.rep_range[1])] * target.set_count))
    return workout_factory(when, *exercises)


def _unarchived(store):
    plans = [store.active_plan, *store.archived_plans]
    return [p for p in plans if p is not None and p.archived_at is None]


class TestPlanLifecycle:
    """Tests for creating, archiving and restoring plans."""

    def test_create_plan(self, store, plan, fixed_clock):
        """Test a created plan becomes active."""
        assert store.active_plan is plan
        assert store.archived_plans == []
        assert plan.created_at == datetime(2024, 1, 1, 8, 0)
        assert plan.total_days == 32

    def test_create_archives_current(self, store, plan, strength_request):
        """Test replacing the active plan archives it first."""
        replacement = store.create_plan(strength_request, [])

        assert store.active_plan is replacement
        assert store.archived_plans == [plan]
        assert plan.archived_at is not None
        assert _unarchived(store) == [replacement]

    def test_archive_active_plan(self, store, plan):
        """Test explicit archival leaves no active plan."""
        assert store.archive_active_plan()
        assert store.active_plan is None
        assert store.archived_plans == [plan]
        assert not store.archive_active_plan()

    def test_restore_swaps_active(self, store, plan, strength_request):
        """Test restoring demotes the current active plan."""
        second = store.create_plan(strength_request, [])

        assert store.restore_archived_plan(plan.id)

        assert store.active_plan is plan
        assert plan.archived_at is None
        assert store.archived_plans == [second]
        assert second.archived_at is not None
        assert _unarchived(store) == [plan]

    def test_restore_then_archive_preserves_membership(self, store, plan, strength_request):
        """Test restore followed by archive keeps every plan."""
        second = store.create_plan(strength_request, [])
        store.restore_archived_plan(plan.id)
        store.archive_active_plan()

        assert store.active_plan is None
        assert {p.id for p in store.archived_plans} == {plan.id, second.id}
        assert _unarchived(store) == []

    def test_single_active_invariant(self, store, strength_request):
        """Test at most one plan is unarchived across any sequence."""
        first = store.create_plan(strength_request, [])
        second = store.create_plan(strength_request, [])
        store.create_plan(strength_request, [])
        store.restore_archived_plan(first.id)
        store.restore_archived_plan(second.id)
        store.archive_active_plan()
        store.restore_archived_plan(first.id)

        assert len(_unarchived(store)) == 1
        assert store.active_plan is first
        assert len(store.archived_plans) == 2

    def test_archive_sorted_newest_first(self, store, strength_request):
        """Test the archive is ordered by archive time, newest first."""
        first = store.create_plan(strength_request, [])
        second = store.create_plan(strength_request, [])
        store.create_plan(strength_request, [])

        assert [p.id for p in store.archived_plans] == [second.id, first.id]

    def test_restore_unknown_plan(self, store, plan):
        """Test restoring an unknown id changes nothing."""
        assert not store.restore_archived_plan("missing")
        assert store.active_plan is plan

    def test_delete_archived_plan(self, store, plan, strength_request):
        """Test only archived plans can be deleted."""
        second = store.create_plan(strength_request, [])

        assert not store.delete_archived_plan(second.id)
        assert store.delete_archived_plan(plan.id)
        assert store.archived_plans == []
        assert store.active_plan is second
        assert not store.delete_archived_plan(plan.id)


class TestTodayPlan:
    """Tests for selecting today's session."""

    def test_no_plan(self, store):
        """Test no active plan means no session."""
        assert store.today_plan(date(2024, 1, 1)) is None

    def test_same_day(self, store, plan):
        """Test a day scheduled on the reference date wins."""
        today = store.today_plan(date(2024, 1, 2))

        assert today.plan_id == plan.id
        assert today.day is _day(plan, 1, 2)
        assert today.readiness.band == ReadinessBand.NEUTRAL

    def test_latest_overdue(self, store, plan):
        """Test the most recent open past day is chosen over upcoming days."""
        today = store.today_plan(datetime(2024, 1, 3, 12, 0))
        assert today.day is _day(plan, 1, 2)

    def test_next_upcoming(self, store, plan):
        """Test the nearest future day is chosen when nothing is due."""
        store.skip_day(_day(plan, 1, 1).id)
        store.skip_day(_day(plan, 1, 2).id)

        today = store.today_plan(date(2024, 1, 3))
        assert today.day is _day(plan, 1, 3)

    def test_before_start(self, store, plan):
        """Test the first day is chosen before the plan starts."""
        today = store.today_plan(date(2023, 12, 25))
        assert today.day is _day(plan, 1, 1)

    def test_nothing_left(self, store, plan):
        """Test a plan with no open days yields no session."""
        for day in plan.all_days:
            store.skip_day(day.id)
        assert store.today_plan(date(2024, 1, 3)) is None

    def test_low_readiness_adjusts_copies(self, store, plan):
        """Test low readiness lightens the session without touching the plan."""
        wellness = {date(2024, 1, 1): WellnessScoreDay(day=date(2024, 1, 1), readiness_score=40)}
        today = store.today_plan(date(2024, 1, 1), None, wellness)

        planned = _target(today.day, BENCH)
        adjusted = _target_in(today.adjusted_exercises, BENCH)
        assert today.readiness.band == ReadinessBand.LOW
        assert planned.target_weight == 95
        assert planned.set_count == 4
        assert adjusted.target_weight == 85
        assert adjusted.set_count == 3


class TestRecordCompletion:
    """Tests for recording completed sessions."""

    def test_requires_planning_hint(self, store, plan, workout_factory):
        """Test workouts without any hint are ignored."""
        workout = _on_target(workout_factory, _day(plan, 1, 1), datetime(2024, 1, 1, 18, 0))

        assert not store.record_completion(workout)
        assert plan.completed_days == 0
        assert plan.completion_records == []

    def test_complete_by_day_id(self, store, plan, workout_factory):
        """Test completion marks the day and records the outcome."""
        day = _day(plan, 1, 1)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0))

        assert store.record_completion(workout, planned_day_id=day.id)

        assert day.state == SessionState.COMPLETED
        assert day.completed_workout_id == workout.id
        assert day.completion_date == workout.date
        record = store.completion_record(day.id)
        assert record.workout_id == workout.id
        assert record.successful_exercise_count == len(day.exercises)
        assert record.total_exercise_count == len(day.exercises)
        assert record.adherence_ratio == 1.0

    def test_success_propagates_forward(self, store, plan, workout_factory):
        """Test the next target lands on every later open day with the exercise."""
        day = _day(plan, 1, 1)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0))
        store.record_completion(workout, planned_day_id=day.id)

        later_bench = [_target(d, BENCH) for d in plan.all_days[1:] if _target(d, BENCH)]
        assert later_bench
        assert all(t.target_weight == 100 for t in later_bench)
        assert all(t.failure_streak == 0 for t in later_bench)
        assert _target(day, BENCH).target_weight == 95

    def test_record_twice_is_idempotent(self, store, plan, workout_factory):
        """Test recording the same completion twice has one effect."""
        day = _day(plan, 1, 1)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0))

        assert store.record_completion(workout, planned_day_id=day.id)
        assert not store.record_completion(workout, planned_day_id=day.id)
        assert not store.record_completion(workout, planned_day_date=date(2024, 1, 1))

        assert len(plan.completion_records) == 1
        assert plan.completed_days == 1
        assert _target(_day(plan, 1, 3), BENCH).target_weight == 100

    def test_completed_day_not_recompleted(self, store, plan, workout_factory):
        """Test a different workout cannot complete a finished day."""
        day = _day(plan, 1, 1)
        store.record_completion(
            _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0)), planned_day_id=day.id
        )
        other = _on_target(workout_factory, day, datetime(2024, 1, 1, 19, 0))

        assert not store.record_completion(other, planned_day_id=day.id)
        assert day.completed_workout_id != other.id

    def test_propagation_scope(self, store, plan, workout_factory):
        """Test only later open days sharing the normalized name change."""
        earlier = _day(plan, 1, 3)
        skipped = _day(plan, 3, 1)
        renamed = _target(_day(plan, 3, 3), BENCH)
        renamed.exercise_name = "  bench PRESS (barbell) "
        store.skip_day(skipped.id)

        before_earlier = _target(earlier, BENCH).target_weight
        before_skipped = _target(skipped, BENCH).target_weight
        squats_before = [(d.id, _target(d, SQUAT).target_weight) for d in plan.all_days if _target(d, SQUAT)]

        day = _day(plan, 2, 1)
        store.record_completion(
            _on_target(workout_factory, day, datetime(2024, 1, 8, 18, 0)), planned_day_id=day.id
        )

        assert _target(earlier, BENCH).target_weight == before_earlier
        assert _target(skipped, BENCH).target_weight == before_skipped
        assert renamed.target_weight == 105
        assert _target(_day(plan, 2, 3), BENCH).target_weight == 105
        assert _target(_day(plan, 8, 1), BENCH).target_weight == 105
        assert _target(day, BENCH).target_weight == 100
        squats_after = [(d.id, _target(d, SQUAT).target_weight) for d in plan.all_days if _target(d, SQUAT)]
        assert squats_after == squats_before

    def test_failure_propagates_streak(self, store, plan, workout_factory):
        """Test a miss holds the weight and carries the streak forward."""
        day = _day(plan, 1, 1)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0), {BENCH: 80})
        store.record_completion(workout, planned_day_id=day.id)

        next_bench = _target(_day(plan, 1, 3), BENCH)
        assert next_bench.target_weight == 95
        assert next_bench.failure_streak == 1
        record = plan.completion_records[0]
        assert record.successful_exercise_count == record.total_exercise_count - 1

    def test_planned_targets_snapshot(self, store, plan, workout_factory):
        """Test evaluation uses the targets prescribed when the session started."""
        day = _day(plan, 1, 1)
        snapshot = [t.copy() for t in day.exercises]
        _target_in(snapshot, BENCH).target_weight = 80
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0), {BENCH: 80})

        store.record_completion(workout, planned_day_id=day.id, planned_targets_snapshot=snapshot)

        assert _target(_day(plan, 1, 3), BENCH).target_weight == 85
        assert plan.completion_records[0].adherence_ratio == 1.0

    def test_moved_day_matched_by_planned_date(self, store, plan, workout_factory):
        """Test a moved day is found by its new scheduled date."""
        day = _day(plan, 1, 1)
        store.move_day(day.id, date(2024, 1, 3))
        workout = _on_target(workout_factory, day, datetime(2024, 1, 5, 18, 0))

        assert store.record_completion(workout, planned_day_date=date(2024, 1, 3))

        assert day.state == SessionState.COMPLETED
        assert day.moved_from_date == date(2024, 1, 1)
        assert _day(plan, 1, 4).state == SessionState.PLANNED

    def test_same_day_as_workout(self, store, plan, workout_factory):
        """Test the open day on the workout's date is used without a day hint."""
        day = _day(plan, 1, 2)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 2, 7, 0))

        assert store.record_completion(workout, planned_program_id=plan.id)
        assert day.completed_workout_id == workout.id

    def test_nearest_day_by_time(self, store, plan, workout_factory):
        """Test the closest open day is used when nothing matches the date."""
        workout = _on_target(workout_factory, _day(plan, 1, 3), datetime(2024, 1, 3, 20, 0))

        assert store.record_completion(workout, planned_program_id=plan.id)
        assert _day(plan, 1, 3).completed_workout_id == workout.id

    def test_offset_aware_workout_date(self, store, plan, workout_factory):
        """Test a UTC-stamped workout resolves by its local time."""
        day = _day(plan, 1, 3)
        logged = _on_target(workout_factory, day, datetime(2024, 1, 3, 15, 0))
        workout = Workout.from_dict({
            "id": logged.id,
            "date": "2024-01-03T15:00:00Z",
            "exercises": [
                {"name": e.name, "sets": [{"weight": s.weight, "reps": s.reps} for s in e.sets]}
                for e in logged.exercises
            ],
        })

        assert store.record_completion(workout, planned_program_id=plan.id)

        assert day.completed_workout_id == workout.id
        assert day.completion_date.tzinfo is None
        assert store.completion_record(day.id).workout_id == workout.id
        assert store.workout_context(workout.id).day_id == day.id

    def test_offset_aware_workout_built_directly(self, store, plan, workout_factory):
        """Test a workout constructed with an aware datetime is stored naive."""
        day = _day(plan, 1, 3)
        logged = _on_target(workout_factory, day, datetime(2024, 1, 3, 15, 0))
        workout = replace(logged, date=datetime(2024, 1, 3, 15, 0, tzinfo=timezone.utc))

        assert workout.date.tzinfo is None
        assert store.record_completion(workout, planned_program_id=plan.id)
        assert day.completed_workout_id == workout.id

    def test_unknown_program(self, store, plan, workout_factory):
        """Test an unknown program id is ignored."""
        workout = _on_target(workout_factory, _day(plan, 1, 1), datetime(2024, 1, 1, 18, 0))
        assert not store.record_completion(workout, planned_program_id="missing")
        assert plan.completion_records == []

    def test_archived_program(self, store, plan, strength_request, workout_factory):
        """Test a completion for an archived plan applies to that plan."""
        replacement = store.create_plan(strength_request, [])
        day = _day(plan, 1, 1)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0))

        assert store.record_completion(workout, planned_program_id=plan.id, planned_day_id=day.id)

        assert day.state == SessionState.COMPLETED
        assert replacement.completed_days == 0
        context = store.workout_context(workout.id)
        assert context.plan_id == plan.id
        assert context.is_archived_plan

    def test_records_readiness(self, store, plan, workout_factory):
        """Test the completion record captures readiness for the workout day."""
        day = _day(plan, 1, 1)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0))
        wellness = {date(2024, 1, 1): WellnessScoreDay(day=date(2024, 1, 1), readiness_score=90)}

        store.record_completion(workout, planned_day_id=day.id, wellness_scores=wellness)

        record = plan.completion_records[0]
        assert record.readiness_band == ReadinessBand.HIGH
        assert record.readiness_score == 90

    def test_first_completion_seeds_weight(self, fixed_clock, workout_factory):
        """Test a plan without history learns loads from the first session."""
        store = ProgramStore(clock=fixed_clock)
        plan = store.create_plan(
            ProgramCreationRequest(ProgramGoal.HYPERTROPHY, 3, date(2024, 1, 1), 2.5), []
        )
        day = _day(plan, 1, 1)
        name = day.exercises[0].exercise_name
        workout = workout_factory(datetime(2024, 1, 1, 18, 0), (name, [(41, 10), (42, 9)]))

        store.record_completion(workout, planned_day_id=day.id)

        later = [_target(d, name) for d in plan.all_days[1:] if _target(d, name)]
        assert later
        assert all(t.target_weight == 42.5 for t in later)

    def test_updates_timestamp(self, store, plan, workout_factory):
        """Test a completion bumps the plan's updated_at."""
        before = plan.updated_at
        day = _day(plan, 1, 1)
        store.record_completion(
            _on_target(workout_factory, day, datetime(2024, 1, 1, 18, 0)), planned_day_id=day.id
        )
        assert plan.updated_at > before


class TestDayTransitions:
    """Tests for skip, move and reset."""

    def test_skip(self, store, plan):
        """Test skipping a planned day."""
        day = _day(plan, 1, 1)

        assert store.skip_day(day.id)
        assert day.state == SessionState.SKIPPED
        assert day.completion_date is not None
        assert day.completed_workout_id is None
        assert not store.skip_day(day.id)

    def test_move_keeps_original_date(self, store, plan):
        """Test repeated moves remember the first scheduled date."""
        day = _day(plan, 1, 1)

        assert store.move_day(day.id, date(2024, 1, 3))
        assert store.move_day(day.id, datetime(2024, 1, 6, 9, 30))

        assert day.state == SessionState.MOVED
        assert day.scheduled_date == date(2024, 1, 6)
        assert day.moved_from_date == date(2024, 1, 1)

    def test_finished_days_cannot_move_or_skip(self, store, plan, workout_factory):
        """Test terminal days reject further transitions."""
        skipped = _day(plan, 1, 1)
        completed = _day(plan, 1, 2)
        store.skip_day(skipped.id)
        store.record_completion(
            _on_target(workout_factory, completed, datetime(2024, 1, 2, 18, 0)),
            planned_day_id=completed.id,
        )

        assert not store.move_day(skipped.id, date(2024, 1, 10))
        assert not store.move_day(completed.id, date(2024, 1, 10))
        assert not store.skip_day(completed.id)
        assert not store.reset_day_to_planned(completed.id)
        assert completed.state == SessionState.COMPLETED

    def test_reset_skipped(self, store, plan):
        """Test resetting a skipped day clears completion fields."""
        day = _day(plan, 1, 1)
        store.skip_day(day.id)

        assert store.reset_day_to_planned(day.id)
        assert day.state == SessionState.PLANNED
        assert day.completion_date is None

    def test_reset_moved(self, store, plan):
        """Test resetting a moved day clears the move marker."""
        day = _day(plan, 1, 1)
        store.move_day(day.id, date(2024, 1, 3))

        assert store.reset_day_to_planned(day.id)
        assert day.state == SessionState.PLANNED
        assert day.moved_from_date is None

    def test_reset_planned_is_noop(self, store, plan):
        """Test resetting an untouched day does nothing."""
        assert not store.reset_day_to_planned(_day(plan, 1, 1).id)

    def test_unknown_day(self, store, plan):
        """Test transitions on unknown ids are no-ops."""
        assert not store.skip_day("missing")
        assert not store.move_day("missing", date(2024, 1, 3))
        assert not store.reset_day_to_planned("missing")

    def test_no_active_plan(self, store):
        """Test transitions without a plan are no-ops."""
        assert not store.skip_day("missing")

    def test_transition_bumps_updated_at(self, store, plan):
        """Test transitions touch the plan timestamp."""
        before = plan.updated_at
        store.skip_day(_day(plan, 1, 1).id)
        assert plan.updated_at > before

    def test_completed_iff_workout_id(self, store, plan, workout_factory):
        """Test completed_workout_id is set exactly on completed days."""
        store.skip_day(_day(plan, 1, 1).id)
        store.move_day(_day(plan, 1, 3).id, date(2024, 1, 6))
        day = _day(plan, 1, 2)
        store.record_completion(
            _on_target(workout_factory, day, datetime(2024, 1, 2, 18, 0)), planned_day_id=day.id
        )
        store.reset_day_to_planned(_day(plan, 1, 1).id)

        for d in plan.all_days:
            assert (d.completed_workout_id is not None) == (d.state == SessionState.COMPLETED)


class TestLookups:
    """Tests for read-only lookups."""

    def test_day_plan_and_week(self, store, plan):
        """Test day and week lookups on the active plan."""
        day = _day(plan, 2, 3)

        assert store.day_plan(day.id) is day
        assert store.day_plan("missing") is None
        assert store.week(2) is plan.weeks[1]
        assert store.week(9) is None

    def test_workout_context(self, store, plan, workout_factory):
        """Test a completed workout maps back to its plan day."""
        day = _day(plan, 1, 2)
        workout = _on_target(workout_factory, day, datetime(2024, 1, 2, 18, 0))
        store.record_completion(workout, planned_day_id=day.id)

        context = store.workout_context(workout.id)

        assert context.plan_id == plan.id
        assert context.plan_name == plan.name
        assert context.day_id == day.id
        assert (context.week_number, context.day_number) == (1, 2)
        assert context.readiness_band == ReadinessBand.NEUTRAL
        assert not context.is_archived_plan
        assert store.workout_context("missing") is None
