"""Training program data models."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from uuid import uuid4


def _new_id() -> str:
    return str(uuid4())


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class ProgramGoal(str, Enum):
    """Training goals supported by the generator."""

    STRENGTH = "strength"
    HYPERTROPHY = "hypertrophy"
    FAT_LOSS = "fat_loss"
    GENERAL_FITNESS = "general_fitness"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def rep_range(self) -> tuple[int, int]:
        """Target rep range as (lower, upper)."""
        return {
            ProgramGoal.STRENGTH: (4, 6),
            ProgramGoal.HYPERTROPHY: (8, 12),
            ProgramGoal.FAT_LOSS: (10, 15),
            ProgramGoal.GENERAL_FITNESS: (6, 10),
        }[self]


class ProgramSplit(str, Enum):
    """Split archetypes, one per supported weekly frequency."""

    FULL_BODY = "full_body"
    UPPER_LOWER = "upper_lower"
    PUSH_PULL_LEGS = "push_pull_legs"

    @property
    def title(self) -> str:
        return {
            ProgramSplit.FULL_BODY: "Full Body",
            ProgramSplit.UPPER_LOWER: "Upper / Lower",
            ProgramSplit.PUSH_PULL_LEGS: "Push Pull Legs",
        }[self]

    @classmethod
    def default_for(cls, days_per_week: int) -> "ProgramSplit":
        if days_per_week == 3:
            return cls.FULL_BODY
        if days_per_week == 4:
            return cls.UPPER_LOWER
        return cls.PUSH_PULL_LEGS


class SessionState(str, Enum):
    """Lifecycle state of a scheduled training day."""

    PLANNED = "planned"
    MOVED = "moved"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def is_open(self) -> bool:
        """Whether the day can still be trained (planned or moved)."""
        return self in (SessionState.PLANNED, SessionState.MOVED)


class ReadinessBand(str, Enum):
    """Coarse readiness classification."""

    LOW = "low"
    NEUTRAL = "neutral"
    HIGH = "high"


class ReadinessSource(str, Enum):
    """Where a readiness score came from."""

    HEALTH = "health"  # Sleep / resting HR / HRV vs. personal baseline
    WELLNESS = "wellness"  # Third-party daily readiness score


@dataclass
class ProgressionRule:
    """Progression and autoregulation parameters for a plan."""

    weight_increment: float = 2.5
    miss_threshold: int = 2  # Consecutive failures before a deload
    deload_percent: float = 0.05
    low_readiness_multiplier: float = 0.92
    neutral_readiness_multiplier: float = 1.00
    high_readiness_multiplier: float = 1.03
    low_readiness_set_reduction: int = 1

    @classmethod
    def default(cls) -> "ProgressionRule":
        return cls()

    def multiplier(self, band: ReadinessBand) -> float:
        """Load multiplier for a readiness band."""
        if band == ReadinessBand.LOW:
            return self.low_readiness_multiplier
        if band == ReadinessBand.HIGH:
            return self.high_readiness_multiplier
        return self.neutral_readiness_multiplier

    def to_dict(self) -> dict:
        return {
            "weight_increment": self.weight_increment,
            "miss_threshold": self.miss_threshold,
            "deload_percent": self.deload_percent,
            "low_readiness_multiplier": self.low_readiness_multiplier,
            "neutral_readiness_multiplier": self.neutral_readiness_multiplier,
            "high_readiness_multiplier": self.high_readiness_multiplier,
            "low_readiness_set_reduction": self.low_readiness_set_reduction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressionRule":
        defaults = cls()
        return cls(
            weight_increment=data.get("weight_increment", defaults.weight_increment),
            miss_threshold=data.get("miss_threshold", defaults.miss_threshold),
            deload_percent=data.get("deload_percent", defaults.deload_percent),
            low_readiness_multiplier=data.get(
                "low_readiness_multiplier", defaults.low_readiness_multiplier
            ),
            neutral_readiness_multiplier=data.get(
                "neutral_readiness_multiplier", defaults.neutral_readiness_multiplier
            ),
            high_readiness_multiplier=data.get(
                "high_readiness_multiplier", defaults.high_readiness_multiplier
            ),
            low_readiness_set_reduction=data.get(
                "low_readiness_set_reduction", defaults.low_readiness_set_reduction
            ),
        )


@dataclass
class PlannedExerciseTarget:
    """Prescription for one exercise on one training day."""

    exercise_name: str
    set_count: int
    rep_range_lower: int
    rep_range_upper: int
    target_weight: float | None = None  # None until history or a completion seeds it
    failure_streak: int = 0
    id: str = field(default_factory=_new_id)

    @property
    def rep_range(self) -> tuple[int, int]:
        """Rep range with bounds ordered low to high."""
        return (
            min(self.rep_range_lower, self.rep_range_upper),
            max(self.rep_range_lower, self.rep_range_upper),
        )

    def copy(self, fresh_id: bool = False) -> "PlannedExerciseTarget":
        if fresh_id:
            return replace(self, id=_new_id())
        return replace(self)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "exercise_name": self.exercise_name,
            "set_count": self.set_count,
            "rep_range_lower": self.rep_range_lower,
            "rep_range_upper": self.rep_range_upper,
            "target_weight": self.target_weight,
            "failure_streak": self.failure_streak,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlannedExerciseTarget":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or _new_id(),
            exercise_name=data["exercise_name"],
            set_count=data["set_count"],
            rep_range_lower=data["rep_range_lower"],
            rep_range_upper=data["rep_range_upper"],
            target_weight=data.get("target_weight"),
            failure_streak=data.get("failure_streak", 0),
        )


@dataclass
class ProgramDayPlan:
    """A single scheduled training day.

    ``completed_workout_id`` is set exactly when ``state`` is COMPLETED.
    """

    week_number: int
    day_number: int
    scheduled_date: date
    focus_title: str
    exercises: list[PlannedExerciseTarget]
    state: SessionState = SessionState.PLANNED
    moved_from_date: date | None = None
    completed_workout_id: str | None = None
    completion_date: datetime | None = None
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "week_number": self.week_number,
            "day_number": self.day_number,
            "scheduled_date": self.scheduled_date.isoformat(),
            "focus_title": self.focus_title,
            "exercises": [ex.to_dict() for ex in self.exercises],
            "state": self.state.value,
            "moved_from_date": (
                self.moved_from_date.isoformat() if self.moved_from_date else None
            ),
            "completed_workout_id": self.completed_workout_id,
            "completion_date": (
                self.completion_date.isoformat() if self.completion_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgramDayPlan":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            week_number=data["week_number"],
            day_number=data["day_number"],
            scheduled_date=date.fromisoformat(data["scheduled_date"]),
            focus_title=data.get("focus_title", ""),
            exercises=[PlannedExerciseTarget.from_dict(ex) for ex in data["exercises"]],
            state=SessionState(data.get("state", "planned")),
            moved_from_date=_parse_date(data.get("moved_from_date")),
            completed_workout_id=data.get("completed_workout_id"),
            completion_date=_parse_datetime(data.get("completion_date")),
        )


@dataclass
class ProgramWeek:
    """A week in the program."""

    week_number: int
    start_date: date
    end_date: date
    days: list[ProgramDayPlan]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "week_number": self.week_number,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": [day.to_dict() for day in self.days],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgramWeek":
        """Create from dictionary."""
        return cls(
            week_number=data["week_number"],
            start_date=date.fromisoformat(data["start_date"]),
            end_date=date.fromisoformat(data["end_date"]),
            days=[ProgramDayPlan.from_dict(day) for day in data["days"]],
        )


@dataclass(frozen=True)
class ProgramCompletionRecord:
    """Outcome of completing one program day. Never modified once appended."""

    plan_id: str
    day_id: str
    workout_id: str
    completed_at: datetime
    readiness_score: float
    readiness_band: ReadinessBand
    adherence_ratio: float
    successful_exercise_count: int
    total_exercise_count: int
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plan_id": self.plan_id,
            "day_id": self.day_id,
            "workout_id": self.workout_id,
            "completed_at": self.completed_at.isoformat(),
            "readiness_score": self.readiness_score,
            "readiness_band": self.readiness_band.value,
            "adherence_ratio": self.adherence_ratio,
            "successful_exercise_count": self.successful_exercise_count,
            "total_exercise_count": self.total_exercise_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgramCompletionRecord":
        return cls(
            id=data["id"],
            plan_id=data["plan_id"],
            day_id=data["day_id"],
            workout_id=data["workout_id"],
            completed_at=datetime.fromisoformat(data["completed_at"]),
            readiness_score=data["readiness_score"],
            readiness_band=ReadinessBand(data["readiness_band"]),
            adherence_ratio=data["adherence_ratio"],
            successful_exercise_count=data["successful_exercise_count"],
            total_exercise_count=data["total_exercise_count"],
        )


@dataclass
class ProgramPlan:
    """A complete periodized training plan and its completion history."""

    name: str
    goal: ProgramGoal
    split: ProgramSplit
    days_per_week: int
    start_date: date
    weeks: list[ProgramWeek]
    progression_rule: ProgressionRule = field(default_factory=ProgressionRule.default)
    completion_records: list[ProgramCompletionRecord] = field(default_factory=list)
    archived_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    schema_version: int = 1
    id: str = field(default_factory=_new_id)

    @property
    def all_days(self) -> list[ProgramDayPlan]:
        """Every day of the plan, ordered by scheduled date.

        The returned list holds the plan's own day objects, so it doubles as a
        flat index for in-place updates.
        """
        days = [day for week in self.weeks for day in week.days]
        return sorted(days, key=lambda day: day.scheduled_date)

    @property
    def total_weeks(self) -> int:
        return len(self.weeks)

    @property
    def total_days(self) -> int:
        return sum(len(week.days) for week in self.weeks)

    @property
    def completed_days(self) -> int:
        return sum(1 for day in self.all_days if day.state == SessionState.COMPLETED)

    @property
    def adherence(self) -> float:
        """Fraction of all scheduled days that were completed."""
        if self.total_days == 0:
            return 0.0
        return self.completed_days / self.total_days

    def _due_days(self, as_of: datetime | None = None) -> list[ProgramDayPlan]:
        cutoff = (self.archived_at or as_of or datetime.now()).date()
        return [day for day in self.all_days if day.scheduled_date <= cutoff]

    def due_day_count(self, as_of: datetime | None = None) -> int:
        """Days scheduled on or before ``as_of`` (or the archive date)."""
        return len(self._due_days(as_of))

    def adherence_to_date(self, as_of: datetime | None = None) -> float:
        """Fraction of due days that were completed."""
        due = self._due_days(as_of)
        if not due:
            return 0.0
        completed = sum(1 for day in due if day.state == SessionState.COMPLETED)
        return completed / len(due)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "name": self.name,
            "goal": self.goal.value,
            "split": self.split.value,
            "days_per_week": self.days_per_week,
            "start_date": self.start_date.isoformat(),
            "weeks": [week.to_dict() for week in self.weeks],
            "progression_rule": self.progression_rule.to_dict(),
            "completion_records": [record.to_dict() for record in self.completion_records],
            "archived_at": self.archived_at.isoformat() if self.archived_at else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "schema_version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProgramPlan":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            goal=ProgramGoal(data["goal"]),
            split=ProgramSplit(data["split"]),
            days_per_week=data["days_per_week"],
            start_date=date.fromisoformat(data["start_date"]),
            weeks=[ProgramWeek.from_dict(week) for week in data["weeks"]],
            progression_rule=ProgressionRule.from_dict(data.get("progression_rule", {})),
            completion_records=[
                ProgramCompletionRecord.from_dict(record)
                for record in data.get("completion_records", [])
            ],
            archived_at=_parse_datetime(data.get("archived_at")),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            schema_version=data.get("schema_version", 1),
        )

    def get_summary(self) -> str:
        """Generate a human-readable summary of the plan."""
        summary = f"Program: {self.name}\n"
        summary += f"Goal: {self.goal.title} ({self.split.title})\n"
        summary += f"Duration: {self.total_weeks} weeks, {self.days_per_week} days/week\n"
        summary += f"Completed: {self.completed_days}/{self.total_days}\n\n"

        for week in self.weeks:
            summary += f"Week {week.week_number} ({week.start_date} - {week.end_date}):\n"
            for day in week.days:
                summary += f"  {day.scheduled_date} {day.focus_title} [{day.state.value}]\n"
                for ex in day.exercises:
                    summary += f"    - {ex.exercise_name}: {self._format_target(ex)}\n"
            summary += "\n"

        return summary

    @staticmethod
    def _format_target(target: PlannedExerciseTarget) -> str:
        lower, upper = target.rep_range
        text = f"{target.set_count}x{lower}-{upper}"
        if target.target_weight is not None:
            text += f" @ {target.target_weight:g}"
        return text


@dataclass
class ReadinessSnapshot:
    """Same-day readiness derived from health data. Not persisted."""

    day: date
    score: float
    band: ReadinessBand
    multiplier: float
    source: ReadinessSource
    sleep_hours: float | None = None
    resting_heart_rate_delta: float | None = None
    hrv_delta: float | None = None


@dataclass
class ProgramTodayPlan:
    """The day to train now, with readiness-adjusted targets."""

    plan_id: str
    day: ProgramDayPlan
    adjusted_exercises: list[PlannedExerciseTarget]
    readiness: ReadinessSnapshot


@dataclass
class ProgramWorkoutContext:
    """Plan context for a logged workout that completed a program day."""

    plan_id: str
    plan_name: str
    day_id: str
    week_number: int
    day_number: int
    readiness_score: float | None
    readiness_band: ReadinessBand | None
    is_archived_plan: bool
