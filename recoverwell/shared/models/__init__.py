"""Shared domain models for the recoverwell engine."""
from .recovery import (
    RecoveryStage,
    TriggerType,
    TriggerOutcome,
    MilestoneType,
    TriggerEvent,
    CheckIn,
    AverageRatings,
    RecoveryProfile,
    Milestone,
)
from .risk import (
    RiskLevel,
    IndicatorCategory,
    PatternType,
    TimeToIntervention,
    RiskIndicator,
    RiskAssessment,
    RiskPattern,
)
from .stage import (
    STAGE_ORDER,
    is_progressive,
    TransitionTrigger,
    ProgressTrend,
    StageTransition,
    StageMetrics,
    RecoveryProgression,
)
from .intervention import (
    InterventionType,
    StrategyCategory,
    Difficulty,
    ResourceType,
    ContentSource,
    FollowUpResponse,
    CrisisStrategy,
    BreathingExercise,
    GroundingTechnique,
    SafetyPlan,
    EmergencyResource,
    ContentOutcome,
    InterventionContent,
    Intervention,
    CrisisFollowUp,
)

__all__ = [
    "RecoveryStage",
    "TriggerType",
    "TriggerOutcome",
    "MilestoneType",
    "TriggerEvent",
    "CheckIn",
    "AverageRatings",
    "RecoveryProfile",
    "Milestone",
    "RiskLevel",
    "IndicatorCategory",
    "PatternType",
    "TimeToIntervention",
    "RiskIndicator",
    "RiskAssessment",
    "RiskPattern",
    "STAGE_ORDER",
    "is_progressive",
    "TransitionTrigger",
    "ProgressTrend",
    "StageTransition",
    "StageMetrics",
    "RecoveryProgression",
    "InterventionType",
    "StrategyCategory",
    "Difficulty",
    "ResourceType",
    "ContentSource",
    "FollowUpResponse",
    "CrisisStrategy",
    "BreathingExercise",
    "GroundingTechnique",
    "SafetyPlan",
    "EmergencyResource",
    "ContentOutcome",
    "InterventionContent",
    "Intervention",
    "CrisisFollowUp",
]
