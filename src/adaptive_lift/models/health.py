"""Per-day health aggregates consumed by the readiness model."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DailyHealthData:
    """Aggregated health metrics for one calendar day."""

    day: date
    sleep_hours: float | None = None
    resting_heart_rate: float | None = None  # bpm
    heart_rate_variability: float | None = None  # ms

    @classmethod
    def from_dict(cls, data: dict) -> "DailyHealthData":
        """Create from dictionary."""
        return cls(
            day=date.fromisoformat(data["day"]),
            sleep_hours=data.get("sleep_hours"),
            resting_heart_rate=data.get("resting_heart_rate"),
            heart_rate_variability=data.get("heart_rate_variability"),
        )


@dataclass(frozen=True)
class WellnessScoreDay:
    """Daily scores from a third-party wearable (0-100 scale)."""

    day: date
    readiness_score: float | None = None
    sleep_score: float | None = None
    activity_score: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "WellnessScoreDay":
        """Create from dictionary."""
        return cls(
            day=date.fromisoformat(data["day"]),
            readiness_score=data.get("readiness_score"),
            sleep_score=data.get("sleep_score"),
            activity_score=data.get("activity_score"),
        )
