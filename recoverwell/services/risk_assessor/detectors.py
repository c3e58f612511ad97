"""Risk indicator detectors.

Five independent, stateless detectors. Each takes the same snapshot of
user data and returns zero or more RiskIndicators; order does not
matter and results are merged by simple concatenation.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Sequence

from recoverwell.shared.models import (
    AverageRatings,
    CheckIn,
    IndicatorCategory,
    RecoveryProfile,
    RiskIndicator,
    RiskLevel,
)
from recoverwell.shared.utils import hour_distance
from .config import RiskPolicy


@dataclass(frozen=True)
class RiskSnapshot:
    """Everything the detectors look at for one assessment."""
    profile: RecoveryProfile
    recent_check_ins: List[CheckIn]     # assessment window, newest first
    history_check_ins: List[CheckIn]    # personal history window
    averages: AverageRatings
    now: datetime
    is_weekend: bool


Detector = Callable[[RiskSnapshot, RiskPolicy], List[RiskIndicator]]


def local_hour(timestamp: datetime, now: datetime) -> int:
    """Hour of `timestamp` in the timezone of `now`."""
    if timestamp.tzinfo is not None and now.tzinfo is not None:
        return timestamp.astimezone(now.tzinfo).hour
    return timestamp.hour


def mood_variance(check_ins: Sequence[CheckIn]) -> float:
    """Population variance of mood ratings."""
    if not check_ins:
        return 0.0
    values = [c.mood_rating for c in check_ins]
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def detect_temporal(snapshot: RiskSnapshot, policy: RiskPolicy) -> List[RiskIndicator]:
    indicators = []
    now = snapshot.now

    if now.hour in policy.high_risk_hours:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.TEMPORAL,
            severity=RiskLevel.MEDIUM,
            confidence=0.7,
            description="Current time is a statistically high-risk period for relapse",
            trigger_factors=["late_night_hours", "reduced_supervision"],
            detected_at=now,
        ))

    if snapshot.is_weekend:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.TEMPORAL,
            severity=RiskLevel.LOW,
            confidence=0.6,
            description="Weekend periods show increased vulnerability",
            trigger_factors=["weekend", "schedule_change"],
            detected_at=now,
        ))

    # The user's own hour-of-day history
    matches = [
        c for c in snapshot.history_check_ins
        if c.has_event(policy.personal_event_intensity)
        and hour_distance(local_hour(c.created_at, now), now.hour) <= policy.personal_hour_window
    ]
    if len(matches) >= policy.personal_min_matches:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.TEMPORAL,
            severity=RiskLevel.HIGH,
            confidence=0.8,
            description="Personal temporal pattern detected - this time has been challenging recently",
            trigger_factors=["personal_temporal_pattern", "historical_triggers"],
            detected_at=now,
        ))

    return indicators


def detect_emotional(snapshot: RiskSnapshot, policy: RiskPolicy) -> List[RiskIndicator]:
    """Thresholds on averaged mood/stress, mood volatility and personal triggers.

    Averages of 0 mean no data and are skipped.
    """
    indicators = []
    now = snapshot.now
    averages = snapshot.averages
    check_ins = snapshot.recent_check_ins

    if AverageRatings.present(averages.mood):
        if averages.mood <= policy.mood_critical_max:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.CRITICAL,
                confidence=0.9,
                description="Severely low mood ratings indicate acute emotional distress",
                trigger_factors=["depression", "low_mood", "emotional_distress"],
                detected_at=now,
                requires_immediate=True,
            ))
        elif averages.mood <= policy.mood_high_max:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.HIGH,
                confidence=0.9,
                description="Severely low mood ratings indicate high emotional vulnerability",
                trigger_factors=["depression", "low_mood", "emotional_distress"],
                detected_at=now,
                requires_immediate=True,
            ))
        elif averages.mood <= policy.mood_medium_max:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.MEDIUM,
                confidence=0.8,
                description="Below-average mood ratings suggest emotional vulnerability",
                trigger_factors=["low_mood", "emotional_risk"],
                detected_at=now,
            ))

    if AverageRatings.present(averages.stress):
        if averages.stress >= policy.stress_high_min:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.HIGH,
                confidence=0.85,
                description="Extremely high stress levels create significant relapse risk",
                trigger_factors=["high_stress", "overwhelm", "pressure"],
                detected_at=now,
                requires_immediate=True,
            ))
        elif averages.stress >= policy.stress_medium_min:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.MEDIUM,
                confidence=0.7,
                description="Elevated stress levels increase vulnerability",
                trigger_factors=["stress", "tension"],
                detected_at=now,
            ))

    if len(check_ins) >= policy.mood_variance_min_check_ins:
        if mood_variance(check_ins) > policy.mood_variance_max:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.MEDIUM,
                confidence=0.75,
                description="High emotional volatility indicates instability",
                trigger_factors=["emotional_instability", "mood_swings"],
                detected_at=now,
            ))

    seen = {e.type for c in check_ins for e in c.trigger_events}
    hits = []
    for trigger in snapshot.profile.personal_triggers:
        if trigger in seen and trigger.value not in hits:
            hits.append(trigger.value)
    if len(hits) >= policy.personal_trigger_min_hits:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.EMOTIONAL,
            severity=RiskLevel.HIGH,
            confidence=0.9,
            description="Multiple personal triggers have been activated recently",
            trigger_factors=hits,
            detected_at=now,
            requires_immediate=True,
        ))

    return indicators


def detect_behavioral(snapshot: RiskSnapshot, policy: RiskPolicy) -> List[RiskIndicator]:
    indicators = []
    now = snapshot.now
    check_ins = snapshot.recent_check_ins
    count = max(len(check_ins), 1)

    # No check-ins at all counts as zero engagement
    engagement_rate = sum(1 for c in check_ins if c.reflection_completed) / count
    if engagement_rate < policy.engagement_rate_min:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.BEHAVIORAL,
            severity=RiskLevel.MEDIUM,
            confidence=0.7,
            description="Significant drop in app engagement and self-reflection",
            trigger_factors=["disengagement", "avoidance", "withdrawal"],
            detected_at=now,
        ))

    coping_rate = sum(len(c.coping_strategies_used) for c in check_ins) / count
    if snapshot.profile.coping_strategies and coping_rate < policy.coping_usage_rate_min:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.BEHAVIORAL,
            severity=RiskLevel.MEDIUM,
            confidence=0.8,
            description="Decreased use of established coping strategies",
            trigger_factors=["coping_abandonment", "skill_regression"],
            detected_at=now,
        ))

    crisis_check_ins = [
        c for c in check_ins
        if c.has_event(policy.crisis_event_intensity) or c.has_crisis_event
    ]
    if len(crisis_check_ins) >= policy.crisis_event_min_check_ins:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.BEHAVIORAL,
            severity=RiskLevel.HIGH,
            confidence=0.9,
            description="Multiple high-intensity crisis events in recent period",
            trigger_factors=["crisis_frequency", "overwhelm_pattern"],
            detected_at=now,
            requires_immediate=True,
        ))

    if check_ins:
        average_sleep = sum(c.sleep_quality for c in check_ins) / len(check_ins)
        if average_sleep <= policy.behavioral_sleep_max:
            indicators.append(RiskIndicator(
                category=IndicatorCategory.BEHAVIORAL,
                severity=RiskLevel.MEDIUM,
                confidence=0.8,
                description="Poor sleep quality affects emotional regulation and decision-making",
                trigger_factors=["sleep_disruption", "fatigue", "poor_recovery"],
                detected_at=now,
            ))

    return indicators


def detect_environmental(snapshot: RiskSnapshot, policy: RiskPolicy) -> List[RiskIndicator]:
    """Weekend and late-hour context, independent of personal history."""
    indicators = []
    now = snapshot.now

    if snapshot.is_weekend:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.ENVIRONMENTAL,
            severity=RiskLevel.LOW,
            confidence=0.6,
            description="Weekend periods often present increased social and environmental triggers",
            trigger_factors=["weekend", "social_pressure", "schedule_change"],
            detected_at=now,
        ))

    if now.hour >= policy.late_night_start or now.hour <= policy.early_morning_end:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.ENVIRONMENTAL,
            severity=RiskLevel.MEDIUM,
            confidence=0.7,
            description="Late night/early morning hours show increased vulnerability",
            trigger_factors=["late_hours", "reduced_supervision", "isolation"],
            detected_at=now,
        ))

    return indicators


def detect_physiological(snapshot: RiskSnapshot, policy: RiskPolicy) -> List[RiskIndicator]:
    indicators = []
    now = snapshot.now
    averages = snapshot.averages

    if AverageRatings.present(averages.energy) and averages.energy <= policy.energy_max:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.PHYSIOLOGICAL,
            severity=RiskLevel.MEDIUM,
            confidence=0.7,
            description="Severe energy depletion affects decision-making and resilience",
            trigger_factors=["fatigue", "energy_depletion", "physical_exhaustion"],
            detected_at=now,
        ))

    if AverageRatings.present(averages.sleep) and averages.sleep <= policy.sleep_max:
        indicators.append(RiskIndicator(
            category=IndicatorCategory.PHYSIOLOGICAL,
            severity=RiskLevel.MEDIUM,
            confidence=0.8,
            description="Poor sleep quality compromises emotional regulation and cognitive function",
            trigger_factors=["sleep_disruption", "insomnia", "poor_recovery"],
            detected_at=now,
        ))

    return indicators


DETECTORS: List[Detector] = [
    detect_temporal,
    detect_emotional,
    detect_behavioral,
    detect_environmental,
    detect_physiological,
]
