"""Readiness scoring and progression policy for program sessions.

Readiness
---------
A third-party daily readiness score, when present for the day, is used as-is
(banded < 70 low, >= 85 high). Otherwise up to three signals are compared
with the lifter's own 14-day baseline:

    component = clamp(50 + slope * (current - baseline), 0, 100)

with slopes 15 (sleep hours), 10 (resting HR, inverted) and 4 (HRV). The
score is the mean of available components, or a neutral 50 when none are
available. Bands: < 35 low, > 70 high.

Progression
-----------
A session succeeds for an exercise when every working set reaches the
bottom of the rep range at the target weight. Success adds one increment
and clears the failure streak; failure holds the weight and extends the
streak, and a streak reaching ``miss_threshold`` triggers a deload.

All functions here are pure and never mutate their inputs.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping

from ..models.health import DailyHealthData, WellnessScoreDay
from ..models.program import (
    PlannedExerciseTarget,
    ProgressionRule,
    ReadinessBand,
    ReadinessSnapshot,
    ReadinessSource,
)
from ..models.workout import WorkoutSet
from ..utils.exercise_utils import round_to_increment

NEUTRAL_SCORE = 50.0
BASELINE_DAYS = 14

# Tolerance for plate rounding when checking the lifted weight.
HIT_WEIGHT_TOLERANCE = 0.985


@dataclass
class ExerciseProgressEvaluation:
    """Result of evaluating one exercise of a completed session."""

    next_target: PlannedExerciseTarget
    was_successful: bool


def _clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def _average(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def _delta(current: float | None, baseline: float | None) -> float | None:
    if current is None or baseline is None:
        return None
    return current - baseline


def _component_score(
    current: float | None, baseline: float | None, slope: float, invert: bool = False
) -> float | None:
    delta = _delta(current, baseline)
    if delta is None:
        return None
    if invert:
        delta = -delta
    return _clamp(NEUTRAL_SCORE + delta * slope)


def _band_for_score(score: float) -> ReadinessBand:
    if score < 35:
        return ReadinessBand.LOW
    if score > 70:
        return ReadinessBand.HIGH
    return ReadinessBand.NEUTRAL


def _band_for_wellness_score(score: float) -> ReadinessBand:
    if score < 70:
        return ReadinessBand.LOW
    if score >= 85:
        return ReadinessBand.HIGH
    return ReadinessBand.NEUTRAL


def readiness_snapshot(
    health_data: Mapping[date, DailyHealthData] | None,
    wellness_scores: Mapping[date, WellnessScoreDay] | None,
    on: date | datetime,
    rule: ProgressionRule,
) -> ReadinessSnapshot:
    """Compute readiness for a calendar day.

    Args:
        health_data: Daily health aggregates keyed by calendar day
        wellness_scores: Optional third-party daily scores keyed by day
        on: Day (or moment) to compute readiness for
        rule: Supplies the band multipliers

    Returns:
        ReadinessSnapshot; neutral when no data is available
    """
    day = on.date() if isinstance(on, datetime) else on

    wellness = (wellness_scores or {}).get(day)
    if wellness is not None and wellness.readiness_score is not None:
        band = _band_for_wellness_score(wellness.readiness_score)
        return ReadinessSnapshot(
            day=day,
            score=_clamp(wellness.readiness_score),
            band=band,
            multiplier=rule.multiplier(band),
            source=ReadinessSource.WELLNESS,
        )

    health_data = health_data or {}
    current = health_data.get(day)
    window_start = day - timedelta(days=BASELINE_DAYS)
    lookback = [
        entry for key, entry in health_data.items() if window_start <= key < day
    ]

    baseline_sleep = _average([e.sleep_hours for e in lookback if e.sleep_hours is not None])
    baseline_rhr = _average(
        [e.resting_heart_rate for e in lookback if e.resting_heart_rate is not None]
    )
    baseline_hrv = _average(
        [e.heart_rate_variability for e in lookback if e.heart_rate_variability is not None]
    )

    sleep_hours = current.sleep_hours if current else None
    resting_hr = current.resting_heart_rate if current else None
    hrv = current.heart_rate_variability if current else None

    components = [
        score
        for score in (
            _component_score(sleep_hours, baseline_sleep, slope=15),
            _component_score(resting_hr, baseline_rhr, slope=10, invert=True),
            _component_score(hrv, baseline_hrv, slope=4),
        )
        if score is not None
    ]
    score = _clamp(sum(components) / len(components)) if components else NEUTRAL_SCORE
    band = _band_for_score(score)

    return ReadinessSnapshot(
        day=day,
        score=score,
        band=band,
        multiplier=rule.multiplier(band),
        source=ReadinessSource.HEALTH,
        sleep_hours=sleep_hours,
        resting_heart_rate_delta=_delta(resting_hr, baseline_rhr),
        hrv_delta=_delta(hrv, baseline_hrv),
    )


def adjusted_targets(
    targets: Iterable[PlannedExerciseTarget],
    readiness: ReadinessSnapshot,
    rounding_increment: float,
    rule: ProgressionRule | None = None,
) -> list[PlannedExerciseTarget]:
    """Scale targets for today's readiness.

    Returns copies; the persisted plan is never touched. Low readiness also
    trims ``rule.low_readiness_set_reduction`` sets (never below one).
    """
    rule = rule or ProgressionRule.default()
    adjusted = []
    for target in targets:
        copy = target.copy()
        if copy.target_weight is not None and copy.target_weight > 0:
            copy.target_weight = round_to_increment(
                copy.target_weight * readiness.multiplier, rounding_increment
            )
        if readiness.band == ReadinessBand.LOW:
            copy.set_count = max(1, copy.set_count - rule.low_readiness_set_reduction)
        adjusted.append(copy)
    return adjusted


def _register_failure(
    next_target: PlannedExerciseTarget, planned_weight: float, rule: ProgressionRule
) -> None:
    next_target.failure_streak += 1
    if next_target.failure_streak >= rule.miss_threshold:
        next_target.target_weight = round_to_increment(
            planned_weight * (1 - rule.deload_percent), rule.weight_increment
        )
        next_target.failure_streak = 0


def evaluate_completion(
    planned: PlannedExerciseTarget,
    completed_sets: Iterable[WorkoutSet],
    rule: ProgressionRule,
) -> ExerciseProgressEvaluation:
    """Decide the next target for an exercise from the sets actually done.

    Args:
        planned: Target the session was planned against
        completed_sets: Logged sets for this exercise (may be empty)
        rule: Increment, miss threshold and deload size

    Returns:
        ExerciseProgressEvaluation with the next target and the outcome
    """
    next_target = planned.copy()
    working_sets = [s for s in completed_sets if s.is_working_set]
    planned_weight = planned.target_weight

    if planned_weight is None or planned_weight <= 0:
        # Nothing to progress from yet; the first real session seeds the load.
        if working_sets:
            top_weight = max(s.weight for s in working_sets)
            next_target.target_weight = round_to_increment(top_weight, rule.weight_increment)
            next_target.failure_streak = 0
        return ExerciseProgressEvaluation(next_target=next_target, was_successful=True)

    lower, _ = planned.rep_range
    min_weight = planned_weight * HIT_WEIGHT_TOLERANCE
    success = bool(working_sets) and all(
        s.reps >= lower and s.weight >= min_weight for s in working_sets
    )

    if success:
        next_target.target_weight = round_to_increment(
            planned_weight + rule.weight_increment, rule.weight_increment
        )
        next_target.failure_streak = 0
    else:
        next_target.target_weight = planned_weight
        _register_failure(next_target, planned_weight, rule)

    return ExerciseProgressEvaluation(next_target=next_target, was_successful=success)
