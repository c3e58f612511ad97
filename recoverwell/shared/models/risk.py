"""Risk level and risk indicator domain models.

This file defines the core enums and data structures for relapse/crisis
risk assessment. Assessments are ephemeral return values and are never
persisted by the engine.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .recovery import TriggerType


class RiskLevel(Enum):
    """Risk classification levels.

    Derived from the 0-100 risk score via fixed thresholds
    (see RiskPolicy in the risk assessor).
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class IndicatorCategory(Enum):
    """Independent detector families feeding the risk score."""
    TEMPORAL = "temporal"
    EMOTIONAL = "emotional"
    BEHAVIORAL = "behavioral"
    ENVIRONMENTAL = "environmental"
    PHYSIOLOGICAL = "physiological"


class PatternType(Enum):
    TEMPORAL = "temporal"
    EMOTIONAL = "emotional"
    USAGE = "usage"
    ENVIRONMENTAL = "environmental"


class TimeToIntervention(Enum):
    IMMEDIATE = "immediate"
    WITHIN_HOUR = "within_hour"
    WITHIN_DAY = "within_day"
    MONITOR = "monitor"


@dataclass(frozen=True)
class RiskIndicator:
    """One detected signal contributing to an overall assessment.

    Immutable; indicators are produced fresh on every assessment.
    """
    category: IndicatorCategory
    severity: RiskLevel
    confidence: float           # 0.0 to 1.0
    description: str
    trigger_factors: List[str] = field(default_factory=list)
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    requires_immediate: bool = False

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be 0.0-1.0, got {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "description": self.description,
            "trigger_factors": list(self.trigger_factors),
            "detected_at": self.detected_at.isoformat(),
            "requires_immediate": self.requires_immediate,
        }


@dataclass(frozen=True)
class RiskAssessment:
    """Aggregate output of one assessment call."""
    overall_risk_level: RiskLevel
    risk_score: float           # 0 to 100
    indicators: List[RiskIndicator] = field(default_factory=list)
    trigger_types: List[TriggerType] = field(default_factory=list)
    intervention_recommended: bool = False
    escalation_required: bool = False
    time_to_intervention: TimeToIntervention = TimeToIntervention.MONITOR
    contextual_factors: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not 0.0 <= self.risk_score <= 100.0:
            raise ValueError(f"Risk score must be 0-100, got {self.risk_score}")
        if self.escalation_required and self.overall_risk_level != RiskLevel.CRITICAL:
            raise ValueError("Escalation requires a critical risk level")

    @property
    def has_immediate_indicators(self) -> bool:
        return any(i.requires_immediate for i in self.indicators)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_risk_level": self.overall_risk_level.value,
            "risk_score": round(self.risk_score, 2),
            "indicators": [i.to_dict() for i in self.indicators],
            "trigger_types": [t.value for t in self.trigger_types],
            "intervention_recommended": self.intervention_recommended,
            "escalation_required": self.escalation_required,
            "time_to_intervention": self.time_to_intervention.value,
            "contextual_factors": list(self.contextual_factors),
        }


@dataclass(frozen=True)
class RiskPattern:
    """A recurring risk pattern mined from at least 30 days of history."""
    pattern_type: PatternType
    pattern: str
    risk_multiplier: float
    historical_occurrences: int
    effectiveness: float        # How well past interventions worked
    last_occurrence: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern_type": self.pattern_type.value,
            "pattern": self.pattern,
            "risk_multiplier": round(self.risk_multiplier, 2),
            "historical_occurrences": self.historical_occurrences,
            "effectiveness": self.effectiveness,
            "last_occurrence": self.last_occurrence.isoformat() if self.last_occurrence else None,
        }
