"""Tests for readiness scoring and progression."""

from datetime import date, datetime

import pytest

from adaptive_lift.models.health import DailyHealthData, WellnessScoreDay
from adaptive_lift.models.program import (
    PlannedExerciseTarget,
    ProgressionRule,
    ReadinessBand,
    ReadinessSource,
)
from adaptive_lift.models.workout import WorkoutSet
from adaptive_lift.services.autoregulation import (
    adjusted_targets,
    evaluate_completion,
    readiness_snapshot,
)

TEST_DAY = date(2024, 1, 15)


def _target(weight=100.0, sets=3, lower=8, upper=10, streak=0) -> PlannedExerciseTarget:
    return PlannedExerciseTarget(
        exercise_name="Bench Press (Barbell)",
        set_count=sets,
        rep_range_lower=lower,
        rep_range_upper=upper,
        target_weight=weight,
        failure_streak=streak,
    )


def _sets(*pairs) -> list[WorkoutSet]:
    return [WorkoutSet(weight=w, reps=r, set_order=i) for i, (w, r) in enumerate(pairs)]


def _with_today(history, sleep, rhr, hrv):
    data = dict(history)
    data[TEST_DAY] = DailyHealthData(
        day=TEST_DAY, sleep_hours=sleep, resting_heart_rate=rhr, heart_rate_variability=hrv
    )
    return data


class TestReadinessSnapshot:
    """Tests for readiness_snapshot."""

    def test_no_data_is_neutral(self):
        """Test missing data yields a neutral snapshot."""
        snapshot = readiness_snapshot(None, None, TEST_DAY, ProgressionRule.default())

        assert snapshot.score == 50
        assert snapshot.band == ReadinessBand.NEUTRAL
        assert snapshot.multiplier == 1.0
        assert snapshot.source == ReadinessSource.HEALTH

    def test_at_baseline_is_neutral(self, stable_health_data):
        """Test metrics equal to the baseline score 50."""
        data = _with_today(stable_health_data, 8.0, 55.0, 60.0)
        snapshot = readiness_snapshot(data, None, TEST_DAY, ProgressionRule.default())

        assert snapshot.score == pytest.approx(50)
        assert snapshot.band == ReadinessBand.NEUTRAL
        assert snapshot.resting_heart_rate_delta == pytest.approx(0)

    def test_poor_recovery_is_low(self, stable_health_data):
        """Test short sleep, raised resting HR and low HRV score low."""
        data = _with_today(stable_health_data, 5.0, 62.0, 45.0)
        snapshot = readiness_snapshot(data, None, TEST_DAY, ProgressionRule.default())

        # sleep 50 - 45 = 5, resting HR and HRV clamp at 0
        assert snapshot.score == pytest.approx(5 / 3)
        assert snapshot.band == ReadinessBand.LOW
        assert snapshot.multiplier == 0.92
        assert snapshot.resting_heart_rate_delta == pytest.approx(7)
        assert snapshot.hrv_delta == pytest.approx(-15)

    def test_good_recovery_is_high(self, stable_health_data):
        """Test long sleep, low resting HR and high HRV score high."""
        data = _with_today(stable_health_data, 9.5, 50.0, 70.0)
        snapshot = readiness_snapshot(data, None, datetime(2024, 1, 15, 7, 0), ProgressionRule.default())

        assert snapshot.score == pytest.approx((72.5 + 100 + 90) / 3)
        assert snapshot.band == ReadinessBand.HIGH
        assert snapshot.day == TEST_DAY

    def test_partial_signals(self, stable_health_data):
        """Test only the available components are averaged."""
        data = _with_today(stable_health_data, 9.0, None, None)
        snapshot = readiness_snapshot(data, None, TEST_DAY, ProgressionRule.default())

        assert snapshot.score == pytest.approx(65)
        assert snapshot.band == ReadinessBand.NEUTRAL

    @pytest.mark.parametrize(
        "score, band",
        [(69, ReadinessBand.LOW), (70, ReadinessBand.NEUTRAL), (84, ReadinessBand.NEUTRAL), (85, ReadinessBand.HIGH)],
    )
    def test_wellness_score_bands(self, stable_health_data, score, band):
        """Test a same-day wellness score overrides health metrics."""
        data = _with_today(stable_health_data, 5.0, 62.0, 45.0)
        wellness = {TEST_DAY: WellnessScoreDay(day=TEST_DAY, readiness_score=score)}
        snapshot = readiness_snapshot(data, wellness, TEST_DAY, ProgressionRule.default())

        assert snapshot.source == ReadinessSource.WELLNESS
        assert snapshot.score == score
        assert snapshot.band == band

    def test_wellness_other_day_ignored(self):
        """Test wellness scores for other days do not apply."""
        wellness = {date(2024, 1, 14): WellnessScoreDay(day=date(2024, 1, 14), readiness_score=95)}
        snapshot = readiness_snapshot({}, wellness, TEST_DAY, ProgressionRule.default())

        assert snapshot.source == ReadinessSource.HEALTH
        assert snapshot.band == ReadinessBand.NEUTRAL


class TestAdjustedTargets:
    """Tests for adjusted_targets."""

    def _snapshot(self, band: ReadinessBand):
        scores = {ReadinessBand.LOW: 50, ReadinessBand.NEUTRAL: 75, ReadinessBand.HIGH: 90}
        wellness = {TEST_DAY: WellnessScoreDay(day=TEST_DAY, readiness_score=scores[band])}
        return readiness_snapshot(None, wellness, TEST_DAY, ProgressionRule.default())

    def test_low_readiness(self):
        """Test low readiness lightens the load and drops a set."""
        target = _target(weight=100, sets=3)
        adjusted = adjusted_targets([target], self._snapshot(ReadinessBand.LOW), 2.5)

        assert adjusted[0].target_weight == 92.5
        assert adjusted[0].set_count == 2
        assert target.target_weight == 100
        assert target.set_count == 3

    def test_low_readiness_keeps_one_set(self):
        """Test set reduction never goes below one set."""
        adjusted = adjusted_targets([_target(sets=1)], self._snapshot(ReadinessBand.LOW), 2.5)
        assert adjusted[0].set_count == 1

    def test_high_readiness(self):
        """Test high readiness adds load without extra sets."""
        adjusted = adjusted_targets([_target(weight=100)], self._snapshot(ReadinessBand.HIGH), 5)

        assert adjusted[0].target_weight == 105
        assert adjusted[0].set_count == 3

    def test_unset_weight_untouched(self):
        """Test targets without a weight stay unset."""
        adjusted = adjusted_targets([_target(weight=None)], self._snapshot(ReadinessBand.HIGH), 2.5)
        assert adjusted[0].target_weight is None


class TestEvaluateCompletion:
    """Tests for evaluate_completion."""

    @pytest.fixture
    def rule(self):
        return ProgressionRule(weight_increment=5)

    def test_success_progresses(self, rule):
        """Test hitting the bottom of the rep range adds an increment."""
        result = evaluate_completion(_target(weight=100), _sets((100, 10), (100, 9), (100, 8)), rule)

        assert result.was_successful
        assert result.next_target.target_weight == 105
        assert result.next_target.failure_streak == 0

    def test_success_within_tolerance(self, rule):
        """Test sets within 1.5% of the target weight still count."""
        result = evaluate_completion(_target(weight=100), _sets((99, 8), (98.75, 8)), rule)
        assert result.was_successful

    def test_missed_reps_fail(self, rule):
        """Test one set below the rep range fails and holds the weight."""
        result = evaluate_completion(_target(weight=100), _sets((100, 10), (100, 9), (100, 7)), rule)

        assert not result.was_successful
        assert result.next_target.target_weight == 100
        assert result.next_target.failure_streak == 1

    def test_light_sets_fail(self, rule):
        """Test sets under the target weight fail."""
        result = evaluate_completion(_target(weight=100), _sets((95, 10), (95, 10)), rule)
        assert not result.was_successful

    def test_no_working_sets_fail(self, rule):
        """Test a skipped exercise counts as a miss."""
        result = evaluate_completion(_target(weight=100), _sets((0, 10)), rule)

        assert not result.was_successful
        assert result.next_target.failure_streak == 1

    def test_deload_at_miss_threshold(self, rule):
        """Test reaching the miss threshold deloads and clears the streak."""
        first = evaluate_completion(_target(weight=100), _sets((100, 5)), rule)
        second = evaluate_completion(first.next_target, _sets((100, 5)), rule)

        assert first.next_target.failure_streak == 1
        assert first.next_target.target_weight == 100
        assert second.next_target.target_weight == 95
        assert second.next_target.failure_streak == 0

    def test_unset_weight_seeded(self, rule):
        """Test the first session seeds an unset target weight."""
        result = evaluate_completion(_target(weight=None), _sets((62, 8), (64, 6)), rule)

        assert result.was_successful
        assert result.next_target.target_weight == 65
        assert result.next_target.failure_streak == 0

    def test_unset_weight_without_sets(self, rule):
        """Test an unset target with no sets stays unset."""
        result = evaluate_completion(_target(weight=None), [], rule)

        assert result.was_successful
        assert result.next_target.target_weight is None

    def test_input_not_mutated(self, rule):
        """Test the planned target is left untouched."""
        planned = _target(weight=100, streak=1)
        result = evaluate_completion(planned, _sets((100, 5)), rule)

        assert planned.failure_streak == 1
        assert planned.target_weight == 100
        assert result.next_target is not planned
