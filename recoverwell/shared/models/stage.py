"""Recovery stage progression models."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .recovery import RecoveryStage


# Forward progression order; challenge sits below early.
STAGE_ORDER = (
    RecoveryStage.CHALLENGE,
    RecoveryStage.EARLY,
    RecoveryStage.MAINTENANCE,
    RecoveryStage.GROWTH,
)


def is_progressive(from_stage: RecoveryStage, to_stage: RecoveryStage) -> bool:
    """True when the move goes forward in STAGE_ORDER."""
    return STAGE_ORDER.index(to_stage) > STAGE_ORDER.index(from_stage)


class TransitionTrigger(Enum):
    PROGRESS = "progress"
    SETBACK = "setback"
    MILESTONE = "milestone"
    MANUAL = "manual"


class ProgressTrend(Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


@dataclass(frozen=True)
class StageTransition:
    """A decided stage change, persisted by the profile collaborator."""
    from_stage: RecoveryStage
    to_stage: RecoveryStage
    transition_date: datetime
    trigger_event: TransitionTrigger
    days_since_last_transition: int
    confidence: float
    supporting_factors: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be 0.0-1.0, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_stage": self.from_stage.value,
            "to_stage": self.to_stage.value,
            "transition_date": self.transition_date.isoformat(),
            "trigger_event": self.trigger_event.value,
            "days_since_last_transition": self.days_since_last_transition,
            "confidence": round(self.confidence, 2),
            "supporting_factors": list(self.supporting_factors),
        }


@dataclass(frozen=True)
class StageMetrics:
    stage: RecoveryStage
    days_in_stage: int
    stage_progress: float       # 0.0 to 1.0
    next_stage_requirements: List[str] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)
    strength_factors: List[str] = field(default_factory=list)
    recommended_actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "days_in_stage": self.days_in_stage,
            "stage_progress": round(self.stage_progress, 3),
            "next_stage_requirements": list(self.next_stage_requirements),
            "risk_factors": list(self.risk_factors),
            "strength_factors": list(self.strength_factors),
            "recommended_actions": list(self.recommended_actions),
        }


@dataclass(frozen=True)
class RecoveryProgression:
    """Coarse forecast of where the user is heading."""
    current_stage: RecoveryStage
    overall_trend: ProgressTrend
    confidence_in_progression: float
    stage_history: List[StageTransition] = field(default_factory=list)
    projected_next_stage: Optional[RecoveryStage] = None
    projected_transition_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_stage": self.current_stage.value,
            "overall_trend": self.overall_trend.value,
            "confidence_in_progression": round(self.confidence_in_progression, 2),
            "stage_history": [t.to_dict() for t in self.stage_history],
            "projected_next_stage": (
                self.projected_next_stage.value if self.projected_next_stage else None
            ),
            "projected_transition_date": (
                self.projected_transition_date.isoformat()
                if self.projected_transition_date else None
            ),
        }
