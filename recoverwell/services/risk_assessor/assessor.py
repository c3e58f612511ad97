"""Risk Assessor - relapse/crisis risk scoring.

Runs five independent detectors over a user's profile and recent
check-ins, folds the indicators into a 0-100 risk score, and mines
30-day history for recurring risk patterns.

This is a safety-critical path: internal failures degrade to a
conservative assessment, never to "no risk".
"""
import asyncio
import logging
from collections import defaultdict
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from recoverwell.shared.database import (
    CheckInRepository,
    ProfileNotFoundError,
    ProfileRepository,
)
from recoverwell.shared.models import (
    CheckIn,
    PatternType,
    RiskAssessment,
    RiskIndicator,
    RiskLevel,
    RiskPattern,
    TimeToIntervention,
)
from recoverwell.shared.utils import Clock, SystemClock, hash_pii
from recoverwell.shared.utils.clock import SATURDAY, SUNDAY
from .config import RiskPolicy
from .detectors import DETECTORS, RiskSnapshot, local_hour

logger = logging.getLogger(__name__)

SAFE_DEFAULT_FACTOR = "assessment error - safe defaults"


class RiskAssessor:
    """Estimates current relapse/crisis risk for a user.

    Stateless between calls: every assessment reads fresh data from the
    repositories and the injected clock.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        check_ins: CheckInRepository,
        clock: Optional[Clock] = None,
        policy: Optional[RiskPolicy] = None,
    ):
        """Initialize assessor with dependencies.

        Args:
            profiles: Recovery profile store
            check_ins: Daily check-in store
            clock: Time source (defaults to the system clock)
            policy: Scoring thresholds (defaults to RiskPolicy())
        """
        self.profiles = profiles
        self.check_ins = check_ins
        self.clock = clock or SystemClock()
        self.policy = policy or RiskPolicy()

        logger.info("RISK_ASSESSOR_INITIALIZED")

    async def assess_crisis_risk(self, user_id: str) -> RiskAssessment:
        """Assess current crisis risk.

        Args:
            user_id: User identifier

        Returns:
            RiskAssessment; the safe default assessment on internal error

        Raises:
            ProfileNotFoundError: If the user has no recovery profile

        Logs:
            - RISK_ASSESSED: On success
            - RISK_ESCALATION_REQUIRED: When score reaches the critical band (critical)
            - RISK_ASSESSMENT_FAILED: On internal error (error)
        """
        user_id_hash = hash_pii(user_id)
        try:
            assessment = await self._assess(user_id)
        except ProfileNotFoundError:
            logger.warning("RISK_PROFILE_NOT_FOUND", extra={"user_id_hash": user_id_hash})
            raise
        except Exception as e:
            logger.error(
                "RISK_ASSESSMENT_FAILED",
                extra={
                    "user_id_hash": user_id_hash,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "SAFE_DEFAULTS",
                }
            )
            return self.safe_default_assessment()

        if assessment.escalation_required:
            logger.critical(
                "RISK_ESCALATION_REQUIRED",
                extra={
                    "user_id_hash": user_id_hash,
                    "risk_score": round(assessment.risk_score, 2),
                    "indicator_count": len(assessment.indicators),
                }
            )

        logger.info(
            "RISK_ASSESSED",
            extra={
                "user_id_hash": user_id_hash,
                "risk_level": assessment.overall_risk_level.value,
                "risk_score": round(assessment.risk_score, 2),
                "indicator_count": len(assessment.indicators),
                "time_to_intervention": assessment.time_to_intervention.value,
            }
        )
        return assessment

    async def detect_immediate_crisis(self, user_id: str) -> bool:
        """Return True when the user needs immediate support.

        True if any indicator requires immediate action or is critical,
        or the score is in the critical band. Any error, including a
        missing profile, also returns True.
        """
        try:
            assessment = await self._assess(user_id)
        except Exception as e:
            logger.error(
                "IMMEDIATE_CRISIS_CHECK_FAILED",
                extra={
                    "user_id_hash": hash_pii(user_id),
                    "error": str(e),
                    "action": "ASSUME_CRISIS",
                }
            )
            return True

        crisis = (
            any(
                i.requires_immediate or i.severity == RiskLevel.CRITICAL
                for i in assessment.indicators
            )
            or assessment.risk_score >= self.policy.bands.CRITICAL_MIN
        )
        if crisis:
            logger.critical(
                "IMMEDIATE_CRISIS_DETECTED",
                extra={
                    "user_id_hash": hash_pii(user_id),
                    "risk_score": round(assessment.risk_score, 2),
                }
            )
        return crisis

    async def get_risk_patterns(self, user_id: str) -> List[RiskPattern]:
        """Mine recurring risk patterns from the 30-day check-in window.

        Patterns are advisory: errors and missing profiles yield [].
        """
        try:
            profile, check_ins = await asyncio.gather(
                self.profiles.find_by_user_id(user_id),
                self.check_ins.get_recent_check_ins(user_id, self.policy.pattern_window_days),
            )
            if profile is None:
                return []

            patterns = self._mine_patterns(check_ins)
        except Exception as e:
            logger.warning(
                "RISK_PATTERNS_FAILED",
                extra={"user_id_hash": hash_pii(user_id), "error": str(e)}
            )
            return []

        significant = [
            p for p in patterns if p.risk_multiplier > self.policy.significant_multiplier
        ]
        logger.info(
            "RISK_PATTERNS_COMPUTED",
            extra={"user_id_hash": hash_pii(user_id), "pattern_count": len(significant)}
        )
        return significant

    def safe_default_assessment(self) -> RiskAssessment:
        return RiskAssessment(
            overall_risk_level=RiskLevel.MEDIUM,
            risk_score=50.0,
            indicators=[],
            trigger_types=[],
            intervention_recommended=True,
            escalation_required=False,
            time_to_intervention=TimeToIntervention.WITHIN_HOUR,
            contextual_factors=[SAFE_DEFAULT_FACTOR],
        )

    def calculate_risk_score(self, indicators: List[RiskIndicator]) -> float:
        """Weighted indicator sum, scaled and clamped to [0, 100]."""
        total = 0.0
        for indicator in indicators:
            points = self.policy.severity_points[indicator.severity]
            weight = self.policy.category_weights[indicator.category]
            total += points * indicator.confidence * weight
        return max(0.0, min(100.0, total * self.policy.score_multiplier))

    async def _assess(self, user_id: str) -> RiskAssessment:
        policy = self.policy
        profile, history, averages = await asyncio.gather(
            self.profiles.find_by_user_id(user_id),
            self.check_ins.get_recent_check_ins(user_id, policy.personal_history_days),
            self.check_ins.get_average_ratings(user_id, policy.assessment_window_days),
        )
        if profile is None:
            raise ProfileNotFoundError(hash_pii(user_id))

        now = self.clock.now()
        window_start = now.date() - timedelta(days=policy.assessment_window_days)
        snapshot = RiskSnapshot(
            profile=profile,
            recent_check_ins=[c for c in history if c.date >= window_start],
            history_check_ins=history,
            averages=averages,
            now=now,
            is_weekend=self.clock.is_weekend(),
        )

        indicators: List[RiskIndicator] = []
        for detector in DETECTORS:
            indicators.extend(detector(snapshot, policy))

        score = self.calculate_risk_score(indicators)
        level = policy.level_for_score(score)

        if level == RiskLevel.CRITICAL or any(i.requires_immediate for i in indicators):
            timing = TimeToIntervention.IMMEDIATE
        elif level == RiskLevel.HIGH:
            timing = TimeToIntervention.WITHIN_HOUR
        elif level == RiskLevel.MEDIUM:
            timing = TimeToIntervention.WITHIN_DAY
        else:
            timing = TimeToIntervention.MONITOR

        return RiskAssessment(
            overall_risk_level=level,
            risk_score=score,
            indicators=indicators,
            trigger_types=list(dict.fromkeys(profile.personal_triggers)),
            intervention_recommended=score >= policy.bands.MEDIUM_MIN,
            escalation_required=score >= policy.bands.CRITICAL_MIN,
            time_to_intervention=timing,
            contextual_factors=list(dict.fromkeys(
                factor for i in indicators for factor in i.trigger_factors
            )),
        )

    def _mine_patterns(self, check_ins: List[CheckIn]) -> List[RiskPattern]:
        policy = self.policy
        now = self.clock.now()
        patterns = []

        def latest(entries: List[CheckIn]):
            return max(c.created_at for c in entries) if entries else None

        # Temporal: high-intensity events grouped by check-in hour
        by_hour: Dict[int, Tuple[int, List[CheckIn]]] = defaultdict(lambda: (0, []))
        for check_in in check_ins:
            events = [
                e for e in check_in.trigger_events
                if e.intensity >= policy.pattern_event_intensity
            ]
            if events:
                hour = local_hour(check_in.created_at, now)
                count, entries = by_hour[hour]
                by_hour[hour] = (count + len(events), entries + [check_in])

        for hour in sorted(by_hour):
            count, entries = by_hour[hour]
            if count >= policy.temporal_pattern_min_events:
                patterns.append(RiskPattern(
                    pattern_type=PatternType.TEMPORAL,
                    pattern=f"High risk during {hour}:00 hour",
                    risk_multiplier=policy.temporal_pattern_base + policy.temporal_pattern_step * count,
                    historical_occurrences=count,
                    effectiveness=0.7,
                    last_occurrence=latest(entries),
                ))

        low_mood = [c for c in check_ins if c.mood_rating <= policy.low_mood_rating]
        if len(low_mood) >= policy.low_mood_min_days:
            patterns.append(RiskPattern(
                pattern_type=PatternType.EMOTIONAL,
                pattern="Low mood episodes increase trigger vulnerability",
                risk_multiplier=policy.low_mood_multiplier,
                historical_occurrences=len(low_mood),
                effectiveness=0.6,
                last_occurrence=latest(low_mood),
            ))

        high_stress = [c for c in check_ins if c.stress_level >= policy.high_stress_rating]
        if len(high_stress) >= policy.high_stress_min_days:
            patterns.append(RiskPattern(
                pattern_type=PatternType.EMOTIONAL,
                pattern="High stress periods correlate with increased triggers",
                risk_multiplier=policy.high_stress_multiplier,
                historical_occurrences=len(high_stress),
                effectiveness=0.7,
                last_occurrence=latest(high_stress),
            ))

        low_engagement = [
            c for c in check_ins
            if not c.reflection_completed and c.ai_coach_interactions == 0
        ]
        if len(low_engagement) >= policy.low_engagement_min_days:
            patterns.append(RiskPattern(
                pattern_type=PatternType.USAGE,
                pattern="Low app engagement correlates with increased risk",
                risk_multiplier=policy.low_engagement_multiplier,
                historical_occurrences=len(low_engagement),
                effectiveness=0.8,
                last_occurrence=latest(low_engagement),
            ))

        weekend = [
            c for c in check_ins
            if c.date.weekday() in (SATURDAY, SUNDAY)
            and c.has_event(policy.pattern_event_intensity)
        ]
        if len(weekend) >= policy.weekend_min_days:
            patterns.append(RiskPattern(
                pattern_type=PatternType.ENVIRONMENTAL,
                pattern="Weekend periods show increased trigger events",
                risk_multiplier=policy.weekend_multiplier,
                historical_occurrences=len(weekend),
                effectiveness=0.6,
                last_occurrence=latest(weekend),
            ))

        return patterns
