"""Crisis intervention domain models.

An Intervention bundles supportive content, emergency resources and a
follow-up schedule. Safety plans are only ever attached to critical
severity interventions.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .recovery import TriggerType
from .risk import RiskLevel

T = TypeVar("T")


class InterventionType(Enum):
    IMMEDIATE = "immediate"
    SUPPORTIVE = "supportive"
    PREVENTIVE = "preventive"


class StrategyCategory(Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    GROUNDING = "grounding"
    DISTRACTION = "distraction"


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ResourceType(Enum):
    HOTLINE = "hotline"
    TEXT = "text"
    CHAT = "chat"
    LOCAL_SERVICE = "local_service"
    APP = "app"


class ContentSource(Enum):
    """Where a piece of intervention content came from."""
    GENERATED = "generated"         # text model output, not personalized
    PERSONALIZED = "personalized"   # text model output run through personalization
    COACH = "coach"                 # recovery coaching collaborator
    STATIC = "static"               # content library fallback


class FollowUpResponse(Enum):
    HELPED = "helped"
    PARTIALLY_HELPED = "partially_helped"
    NOT_HELPED = "not_helped"


@dataclass(frozen=True)
class CrisisStrategy:
    name: str
    description: str
    instructions: List[str]
    time_required: str
    difficulty: Difficulty
    effectiveness: float
    category: StrategyCategory

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "instructions": list(self.instructions),
            "time_required": self.time_required,
            "difficulty": self.difficulty.value,
            "effectiveness": self.effectiveness,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class BreathingExercise:
    name: str
    description: str
    pattern: str                # e.g. "4-7-8" for inhale-hold-exhale
    duration: str
    instructions: List[str]
    audio_guidance: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "pattern": self.pattern,
            "duration": self.duration,
            "instructions": list(self.instructions),
            "audio_guidance": self.audio_guidance,
        }


@dataclass(frozen=True)
class GroundingTechnique:
    name: str
    description: str
    steps: List[str]
    sensory_focus: List[str]
    time_required: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "steps": list(self.steps),
            "sensory_focus": list(self.sensory_focus),
            "time_required": self.time_required,
        }


@dataclass(frozen=True)
class SafetyPlan:
    warning_signs_identified: List[str]
    coping_strategies_listed: List[str]
    support_contacts: List[str]
    professional_contacts: List[str]
    environmental_safety: List[str]
    reasons_for_living: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warning_signs_identified": list(self.warning_signs_identified),
            "coping_strategies_listed": list(self.coping_strategies_listed),
            "support_contacts": list(self.support_contacts),
            "professional_contacts": list(self.professional_contacts),
            "environmental_safety": list(self.environmental_safety),
            "reasons_for_living": list(self.reasons_for_living),
        }


@dataclass(frozen=True)
class EmergencyResource:
    """Static catalog entry for crisis support services."""
    type: ResourceType
    name: str
    description: str
    contact: str
    availability: str
    anonymous: bool
    immediate: bool
    specialization: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "contact": self.contact,
            "availability": self.availability,
            "specialization": list(self.specialization),
            "anonymous": self.anonymous,
            "immediate": self.immediate,
        }


@dataclass(frozen=True)
class ContentOutcome(Generic[T]):
    """Result of one content sub-step, with the reason when it degraded.

    `reason` is None when the preferred path succeeded.
    """
    step: str
    value: T
    source: ContentSource
    reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.reason is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "source": self.source.value,
            "degraded": self.degraded,
            "reason": self.reason,
        }


@dataclass
class InterventionContent:
    primary_message: str
    coping_strategies: List[CrisisStrategy]
    affirmations: List[str]
    breathing_exercise: Optional[BreathingExercise] = None
    grounding_technique: Optional[GroundingTechnique] = None
    safety_plan: Optional[SafetyPlan] = None
    personalized_elements: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_message": self.primary_message,
            "coping_strategies": [s.to_dict() for s in self.coping_strategies],
            "breathing_exercise": (
                self.breathing_exercise.to_dict() if self.breathing_exercise else None
            ),
            "grounding_technique": (
                self.grounding_technique.to_dict() if self.grounding_technique else None
            ),
            "affirmations": list(self.affirmations),
            "safety_plan": self.safety_plan.to_dict() if self.safety_plan else None,
            "personalized_elements": list(self.personalized_elements),
        }


@dataclass
class Intervention:
    intervention_id: str
    user_id: str
    trigger_type: TriggerType
    severity: RiskLevel
    intervention_type: InterventionType
    content: InterventionContent
    emergency_resources: List[EmergencyResource]
    follow_up_required: bool
    created_at: datetime
    follow_up_scheduled: Optional[datetime] = None
    content_outcomes: List[ContentOutcome] = field(default_factory=list)

    def __post_init__(self):
        has_plan = self.content.safety_plan is not None
        if has_plan != (self.severity == RiskLevel.CRITICAL):
            raise ValueError("Safety plan must be present exactly when severity is critical")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses. User id is left to the caller."""
        return {
            "intervention_id": self.intervention_id,
            "trigger_type": self.trigger_type.value,
            "severity": self.severity.value,
            "intervention_type": self.intervention_type.value,
            "content": self.content.to_dict(),
            "emergency_resources": [r.to_dict() for r in self.emergency_resources],
            "follow_up_required": self.follow_up_required,
            "follow_up_scheduled": (
                self.follow_up_scheduled.isoformat() if self.follow_up_scheduled else None
            ),
            "created_at": self.created_at.isoformat(),
            "content_outcomes": [o.to_dict() for o in self.content_outcomes],
        }


@dataclass
class CrisisFollowUp:
    """Follow-up check scheduled after an intervention."""
    intervention_id: str
    scheduled_at: datetime
    escalation_needed: bool = False
    user_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    user_response: Optional[FollowUpResponse] = None
    additional_support: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intervention_id": self.intervention_id,
            "scheduled_at": self.scheduled_at.isoformat(),
            "escalation_needed": self.escalation_needed,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "user_response": self.user_response.value if self.user_response else None,
            "additional_support": self.additional_support,
        }
