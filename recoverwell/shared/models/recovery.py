"""Recovery history domain models.

Check-ins, trigger events, recovery profiles and milestones are owned by
external repositories. The engine only reads them, so they are plain
dataclasses with validation on construction.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional


class RecoveryStage(Enum):
    """Phase of a user's behavioral recovery.

    Exactly one stage is active per profile at any time.
    """
    EARLY = "early"
    MAINTENANCE = "maintenance"
    CHALLENGE = "challenge"
    GROWTH = "growth"


class TriggerType(Enum):
    """Categorized cause of urge or relapse risk."""
    STRESS = "stress"
    LONELINESS = "loneliness"
    BOREDOM = "boredom"
    ANXIETY = "anxiety"
    DEPRESSION = "depression"
    ANGER = "anger"
    FATIGUE = "fatigue"
    CUSTOM = "custom"


class TriggerOutcome(Enum):
    """How a trigger event ended for the user."""
    MANAGED = "managed"
    PARTIAL = "partial"
    OVERWHELMED = "overwhelmed"


class MilestoneType(Enum):
    RECOVERY = "recovery"
    BEHAVIORAL = "behavioral"
    PERSONAL_GROWTH = "personal_growth"
    COMMUNITY = "community"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_rating(name: str, value: int, low: int = 1, high: int = 10) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be {low}-{high}, got {value}")


@dataclass(frozen=True)
class TriggerEvent:
    """A single trigger episode recorded inside a check-in.

    Immutable once recorded.
    """
    type: TriggerType
    intensity: int              # 1-10
    duration_minutes: int = 0
    context: str = ""
    coping_response: str = ""
    outcome: TriggerOutcome = TriggerOutcome.MANAGED
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        _check_rating("Intensity", self.intensity)

    @property
    def is_crisis_level(self) -> bool:
        """Severe enough to count as a crisis event (intensity 8+ or overwhelmed)."""
        return self.intensity >= 8 or self.outcome == TriggerOutcome.OVERWHELMED


@dataclass
class CheckIn:
    """One daily wellbeing check-in. Ratings are on a 1-10 scale."""
    user_id: str
    date: date
    mood_rating: int
    energy_level: int
    stress_level: int
    sleep_quality: int
    trigger_events: List[TriggerEvent] = field(default_factory=list)
    coping_strategies_used: List[str] = field(default_factory=list)
    reflection_completed: bool = False
    ai_coach_interactions: int = 0
    focus_sessions_completed: int = 0
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        _check_rating("Mood rating", self.mood_rating)
        _check_rating("Energy level", self.energy_level)
        _check_rating("Stress level", self.stress_level)
        _check_rating("Sleep quality", self.sleep_quality)

    def has_event(self, min_intensity: int) -> bool:
        return any(e.intensity >= min_intensity for e in self.trigger_events)

    @property
    def has_crisis_event(self) -> bool:
        return any(e.is_crisis_level for e in self.trigger_events)


@dataclass(frozen=True)
class AverageRatings:
    """Averaged check-in ratings over a window.

    A value of 0 means there was no data for the window; threshold
    checks must skip it.
    """
    mood: float = 0.0
    energy: float = 0.0
    stress: float = 0.0
    sleep: float = 0.0

    @staticmethod
    def present(value: float) -> bool:
        return value > 0

    @property
    def has_data(self) -> bool:
        return any(v > 0 for v in (self.mood, self.energy, self.stress, self.sleep))


@dataclass
class RecoveryProfile:
    """Per-user recovery profile singleton."""
    user_id: str
    current_stage: RecoveryStage = RecoveryStage.EARLY
    days_since_last_setback: int = 0
    total_recovery_days: int = 0
    personal_triggers: List[TriggerType] = field(default_factory=list)
    coping_strategies: List[str] = field(default_factory=list)
    support_contacts: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.days_since_last_setback < 0 or self.total_recovery_days < 0:
            raise ValueError("Recovery day counts cannot be negative")


@dataclass(frozen=True)
class Milestone:
    milestone_id: str
    user_id: str
    milestone_type: MilestoneType
    title: str
    achievement_date: Optional[date] = None
