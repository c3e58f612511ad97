"""Stage Tracker transition policy.

Day counts and rating thresholds for the recovery stage ladder. The
challenge/early rules are the confirmed behavior; the early ->
maintenance and maintenance -> growth rules are tunable policy.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from recoverwell.shared.models import MilestoneType, RecoveryStage


def _default_entry_days() -> Dict[RecoveryStage, int]:
    return {
        RecoveryStage.CHALLENGE: 0,
        RecoveryStage.EARLY: 7,
        RecoveryStage.MAINTENANCE: 30,
        RecoveryStage.GROWTH: 90,
    }


def _default_stage_spans() -> Dict[RecoveryStage, Optional[int]]:
    return {
        RecoveryStage.CHALLENGE: 7,
        RecoveryStage.EARLY: 23,
        RecoveryStage.MAINTENANCE: 60,
        RecoveryStage.GROWTH: None,     # open-ended
    }


def _default_baselines() -> Dict[RecoveryStage, Tuple[float, float]]:
    # (mood at least, stress at most)
    return {
        RecoveryStage.CHALLENGE: (5.0, 6.0),
        RecoveryStage.EARLY: (6.0, 6.0),
        RecoveryStage.MAINTENANCE: (7.0, 5.0),
        RecoveryStage.GROWTH: (7.0, 5.0),
    }


@dataclass(frozen=True)
class StagePolicy:
    """Thresholds for stage transitions, metrics and forecasts."""

    # Repository windows
    evaluation_window_days: int = 14
    metrics_window_days: int = 7
    milestone_limit: int = 30

    # Setback: any stage except challenge
    setback_max_days: int = 3
    setback_event_intensity: int = 8

    # challenge -> early
    recovery_min_days: int = 7
    recovery_mood_min: float = 5.0
    recovery_stress_max: float = 7.0

    # early -> maintenance
    maintenance_min_days: int = 30
    maintenance_min_total_days: int = 60
    maintenance_mood_min: float = 6.0
    maintenance_stress_max: float = 6.0
    maintenance_min_milestones: int = 2

    # maintenance -> growth
    growth_min_days: int = 90
    growth_min_total_days: int = 180
    growth_mood_min: float = 7.0
    growth_stress_max: float = 5.0
    growth_min_milestones: int = 3
    growth_milestone_types: Tuple[MilestoneType, ...] = (
        MilestoneType.PERSONAL_GROWTH,
        MilestoneType.COMMUNITY,
    )

    # Transition confidence
    base_confidence: float = 0.7
    confidence_step: float = 0.1
    strong_mood: float = 7.0
    strong_stress: float = 5.0
    strong_milestones: int = 2

    # Metrics
    entry_days: Dict[RecoveryStage, int] = field(default_factory=_default_entry_days)
    stage_spans: Dict[RecoveryStage, Optional[int]] = field(default_factory=_default_stage_spans)
    growth_progress_span: int = 90
    min_streak_days: int = 3

    # Progression forecast
    baselines: Dict[RecoveryStage, Tuple[float, float]] = field(
        default_factory=_default_baselines
    )
    decline_margin: float = 2.0
    forecast_base_confidence: float = 0.6
    forecast_margin_weight: float = 0.05
    final_stage_confidence: float = 0.9
