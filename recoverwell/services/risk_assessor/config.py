"""Risk Assessor scoring policy.

Heuristic, tunable values. Score bands and category weights are
calibrated together; change them as a set.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

from recoverwell.shared.models import IndicatorCategory, RiskLevel


def _default_severity_points() -> Dict[RiskLevel, float]:
    return {
        RiskLevel.CRITICAL: 25.0,
        RiskLevel.HIGH: 20.0,
        RiskLevel.MEDIUM: 15.0,
        RiskLevel.LOW: 10.0,
    }


def _default_category_weights() -> Dict[IndicatorCategory, float]:
    return {
        IndicatorCategory.TEMPORAL: 0.20,
        IndicatorCategory.EMOTIONAL: 0.30,
        IndicatorCategory.BEHAVIORAL: 0.25,
        IndicatorCategory.ENVIRONMENTAL: 0.15,
        IndicatorCategory.PHYSIOLOGICAL: 0.10,
    }


@dataclass(frozen=True)
class ScoreBands:
    """Risk score (0-100) lower bounds per level."""
    CRITICAL_MIN: float = 80.0      # Escalation to human support
    HIGH_MIN: float = 65.0
    MEDIUM_MIN: float = 45.0        # Intervention recommended


@dataclass(frozen=True)
class RiskPolicy:
    """Thresholds used by the risk detectors and the score aggregation."""

    bands: ScoreBands = field(default_factory=ScoreBands)
    severity_points: Dict[RiskLevel, float] = field(default_factory=_default_severity_points)
    category_weights: Dict[IndicatorCategory, float] = field(
        default_factory=_default_category_weights
    )
    score_multiplier: float = 2.0

    # Repository windows (days)
    assessment_window_days: int = 7
    personal_history_days: int = 14
    pattern_window_days: int = 30

    # Temporal
    high_risk_hours: Tuple[int, ...] = (22, 23, 0, 1, 2)
    personal_event_intensity: int = 7
    personal_hour_window: int = 1
    personal_min_matches: int = 2

    # Emotional (7-day averages)
    mood_critical_max: float = 2.0
    mood_high_max: float = 3.0
    mood_medium_max: float = 5.0
    stress_high_min: float = 8.0
    stress_medium_min: float = 6.0
    mood_variance_min_check_ins: int = 3
    mood_variance_max: float = 6.0
    personal_trigger_min_hits: int = 2

    # Behavioral
    engagement_rate_min: float = 0.3
    coping_usage_rate_min: float = 0.5
    crisis_event_intensity: int = 8
    crisis_event_min_check_ins: int = 3
    behavioral_sleep_max: float = 3.0

    # Environmental
    late_night_start: int = 22
    early_morning_end: int = 5

    # Physiological
    energy_max: float = 3.0
    sleep_max: float = 4.0

    # Pattern mining (30-day window)
    pattern_event_intensity: int = 7
    temporal_pattern_min_events: int = 2
    temporal_pattern_base: float = 1.5
    temporal_pattern_step: float = 0.2
    low_mood_rating: int = 4
    low_mood_min_days: int = 3
    low_mood_multiplier: float = 1.8
    high_stress_rating: int = 7
    high_stress_min_days: int = 2
    high_stress_multiplier: float = 1.6
    low_engagement_min_days: int = 3
    low_engagement_multiplier: float = 1.4
    weekend_min_days: int = 2
    weekend_multiplier: float = 1.3
    significant_multiplier: float = 1.2

    def level_for_score(self, score: float) -> RiskLevel:
        """Map a 0-100 risk score to its risk level."""
        if score >= self.bands.CRITICAL_MIN:
            return RiskLevel.CRITICAL
        if score >= self.bands.HIGH_MIN:
            return RiskLevel.HIGH
        if score >= self.bands.MEDIUM_MIN:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW
