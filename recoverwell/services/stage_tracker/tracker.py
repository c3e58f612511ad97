"""Recovery Stage Tracker - stage state machine and progress forecasts.

Transitions are evaluated on demand, never scheduled: each evaluation
is a pure function of the current profile and recent metrics. The only
mutation is persisting a decided stage through the profile repository.

This is a coaching-cadence path: errors propagate to the caller.
"""
import asyncio
import logging
from datetime import timedelta
from typing import List, Optional, Tuple

from recoverwell.shared.database import (
    CheckInRepository,
    MilestoneRepository,
    ProfileNotFoundError,
    ProfileRepository,
)
from recoverwell.shared.models import (
    STAGE_ORDER,
    AverageRatings,
    CheckIn,
    Milestone,
    ProgressTrend,
    RecoveryProfile,
    RecoveryProgression,
    RecoveryStage,
    StageMetrics,
    StageTransition,
    TransitionTrigger,
    is_progressive,
)
from recoverwell.shared.utils import Clock, SystemClock, hash_pii
from .config import StagePolicy

logger = logging.getLogger(__name__)


def _at_least(value: float, threshold: float) -> bool:
    """Rating meets a minimum; missing data does not."""
    return AverageRatings.present(value) and value >= threshold


def _at_most(value: float, threshold: float) -> bool:
    return AverageRatings.present(value) and value <= threshold


def _mood_trend(check_ins: List[CheckIn]) -> float:
    """Newest three check-ins' mean mood minus the three before (0 if too few)."""
    if len(check_ins) < 5:
        return 0.0
    recent = check_ins[:3]
    older = check_ins[3:6]
    recent_avg = sum(c.mood_rating for c in recent) / len(recent)
    older_avg = sum(c.mood_rating for c in older) / len(older)
    return recent_avg - older_avg


class RecoveryStageTracker:
    """Tracks a user's progression through recovery stages."""

    def __init__(
        self,
        profiles: ProfileRepository,
        check_ins: CheckInRepository,
        milestones: MilestoneRepository,
        clock: Optional[Clock] = None,
        policy: Optional[StagePolicy] = None,
    ):
        self.profiles = profiles
        self.check_ins = check_ins
        self.milestones = milestones
        self.clock = clock or SystemClock()
        self.policy = policy or StagePolicy()

        logger.info("STAGE_TRACKER_INITIALIZED")

    async def evaluate_stage_progression(self, user_id: str) -> Optional[StageTransition]:
        """Decide whether the user's stage should change, and persist it.

        Rules are checked in order: setback, challenge recovery,
        early -> maintenance, maintenance -> growth.

        Args:
            user_id: User identifier

        Returns:
            The transition, or None when the stage stays as it is

        Raises:
            ProfileNotFoundError: If the user has no recovery profile

        Logs:
            - STAGE_TRANSITION: When a transition is persisted
            - STAGE_SETBACK_DETECTED: On regression to challenge (warning)
        """
        policy = self.policy
        profile, check_ins, averages, milestones = await asyncio.gather(
            self.profiles.find_by_user_id(user_id),
            self.check_ins.get_recent_check_ins(user_id, policy.evaluation_window_days),
            self.check_ins.get_average_ratings(user_id, policy.evaluation_window_days),
            self.milestones.get_recent_milestones(user_id, policy.milestone_limit),
        )
        profile = self._require(profile, user_id)

        decision = self._decide(profile, check_ins, averages, milestones)
        if decision is None:
            logger.debug(
                "STAGE_UNCHANGED",
                extra={"user_id_hash": hash_pii(user_id), "stage": profile.current_stage.value}
            )
            return None

        to_stage, trigger = decision
        transition = self._build_transition(profile, to_stage, trigger, averages, milestones)

        await self.profiles.update_stage(user_id, to_stage)

        if trigger == TransitionTrigger.SETBACK:
            logger.warning(
                "STAGE_SETBACK_DETECTED",
                extra={
                    "user_id_hash": hash_pii(user_id),
                    "from_stage": profile.current_stage.value,
                }
            )
        logger.info(
            "STAGE_TRANSITION",
            extra={
                "user_id_hash": hash_pii(user_id),
                "from_stage": transition.from_stage.value,
                "to_stage": transition.to_stage.value,
                "trigger": trigger.value,
                "confidence": round(transition.confidence, 2),
            }
        )
        return transition

    async def get_stage_metrics(self, user_id: str) -> StageMetrics:
        """Describe where the user stands inside the current stage.

        Read-only.

        Raises:
            ProfileNotFoundError: If the user has no recovery profile
        """
        policy = self.policy
        profile, check_ins, averages, streak = await asyncio.gather(
            self.profiles.find_by_user_id(user_id),
            self.check_ins.get_recent_check_ins(user_id, policy.metrics_window_days),
            self.check_ins.get_average_ratings(user_id, policy.evaluation_window_days),
            self.check_ins.get_check_in_streak(user_id),
        )
        profile = self._require(profile, user_id)

        stage = profile.current_stage
        progress = self._stage_progress(profile, averages)

        return StageMetrics(
            stage=stage,
            days_in_stage=self._days_in_stage(profile),
            stage_progress=progress,
            next_stage_requirements=self._next_stage_requirements(stage),
            risk_factors=self._risk_factors(stage, averages, check_ins),
            strength_factors=self._strength_factors(averages, check_ins, streak),
            recommended_actions=self._recommendations(stage, progress, averages),
        )

    async def get_recovery_progression(self, user_id: str) -> RecoveryProgression:
        """Coarse forecast of the user's trajectory.

        Raises:
            ProfileNotFoundError: If the user has no recovery profile
        """
        policy = self.policy
        profile, averages = await asyncio.gather(
            self.profiles.find_by_user_id(user_id),
            self.check_ins.get_average_ratings(user_id, policy.evaluation_window_days),
        )
        profile = self._require(profile, user_id)

        stage = profile.current_stage
        mood_gap, stress_gap = self._baseline_gaps(stage, averages)
        trend = self._overall_trend(profile, averages, mood_gap, stress_gap)

        projected_stage = None
        projected_date = None
        if stage == RecoveryStage.GROWTH:
            confidence = policy.final_stage_confidence
        else:
            confidence = policy.forecast_base_confidence + policy.forecast_margin_weight * (
                mood_gap + stress_gap
            )
            confidence = max(0.1, min(0.95, confidence))
            if trend != ProgressTrend.DECLINING:
                projected_stage = STAGE_ORDER[STAGE_ORDER.index(stage) + 1]
                days_to_go = max(
                    policy.entry_days[projected_stage] - profile.days_since_last_setback, 1
                )
                projected_date = self.clock.now() + timedelta(days=days_to_go)

        logger.info(
            "RECOVERY_PROGRESSION_FORECAST",
            extra={
                "user_id_hash": hash_pii(user_id),
                "stage": stage.value,
                "trend": trend.value,
                "projected_stage": projected_stage.value if projected_stage else None,
            }
        )

        return RecoveryProgression(
            current_stage=stage,
            overall_trend=trend,
            confidence_in_progression=confidence,
            stage_history=self._estimate_history(profile),
            projected_next_stage=projected_stage,
            projected_transition_date=projected_date,
        )

    def _require(self, profile: Optional[RecoveryProfile], user_id: str) -> RecoveryProfile:
        if profile is None:
            user_id_hash = hash_pii(user_id)
            logger.warning("STAGE_PROFILE_NOT_FOUND", extra={"user_id_hash": user_id_hash})
            raise ProfileNotFoundError(user_id_hash)
        return profile

    def _decide(
        self,
        profile: RecoveryProfile,
        check_ins: List[CheckIn],
        averages: AverageRatings,
        milestones: List[Milestone],
    ) -> Optional[Tuple[RecoveryStage, TransitionTrigger]]:
        policy = self.policy
        stage = profile.current_stage
        days = profile.days_since_last_setback

        recent_crisis = any(
            c.has_event(policy.setback_event_intensity) or c.has_crisis_event
            for c in check_ins
        )
        if stage != RecoveryStage.CHALLENGE and days <= policy.setback_max_days and recent_crisis:
            return RecoveryStage.CHALLENGE, TransitionTrigger.SETBACK

        if stage == RecoveryStage.CHALLENGE:
            # Missing ratings do not count as poor
            mood_ok = not AverageRatings.present(averages.mood) or averages.mood >= policy.recovery_mood_min
            stress_ok = averages.stress <= policy.recovery_stress_max
            if days >= policy.recovery_min_days and mood_ok and stress_ok:
                return RecoveryStage.EARLY, TransitionTrigger.PROGRESS
            return None

        if stage == RecoveryStage.EARLY:
            if (
                days >= policy.maintenance_min_days
                and profile.total_recovery_days >= policy.maintenance_min_total_days
                and _at_least(averages.mood, policy.maintenance_mood_min)
                and _at_most(averages.stress, policy.maintenance_stress_max)
                and len(milestones) >= policy.maintenance_min_milestones
            ):
                return RecoveryStage.MAINTENANCE, TransitionTrigger.MILESTONE
            return None

        if stage == RecoveryStage.MAINTENANCE:
            has_growth_milestone = any(
                m.milestone_type in policy.growth_milestone_types for m in milestones
            )
            if (
                days >= policy.growth_min_days
                and profile.total_recovery_days >= policy.growth_min_total_days
                and _at_least(averages.mood, policy.growth_mood_min)
                and _at_most(averages.stress, policy.growth_stress_max)
                and len(milestones) >= policy.growth_min_milestones
                and has_growth_milestone
            ):
                return RecoveryStage.GROWTH, TransitionTrigger.MILESTONE
            return None

        return None

    def _build_transition(
        self,
        profile: RecoveryProfile,
        to_stage: RecoveryStage,
        trigger: TransitionTrigger,
        averages: AverageRatings,
        milestones: List[Milestone],
    ) -> StageTransition:
        policy = self.policy
        factors = []
        confidence = policy.base_confidence

        if is_progressive(profile.current_stage, to_stage):
            factors.append(f"{profile.days_since_last_setback} days since setback")
            if _at_least(averages.mood, policy.strong_mood):
                factors.append("Improved mood ratings")
                confidence += policy.confidence_step
            if _at_most(averages.stress, policy.strong_stress):
                factors.append("Reduced stress levels")
                confidence += policy.confidence_step
            if len(milestones) >= policy.strong_milestones:
                factors.append("Recent milestone achievements")
                confidence += policy.confidence_step
        else:
            factors.append("Recent challenges or setbacks")
            if AverageRatings.present(averages.mood) and averages.mood < 5:
                factors.append("Declining mood ratings")
                confidence += policy.confidence_step
            if averages.stress > 7:
                factors.append("Elevated stress levels")
                confidence += policy.confidence_step

        return StageTransition(
            from_stage=profile.current_stage,
            to_stage=to_stage,
            transition_date=self.clock.now(),
            trigger_event=trigger,
            days_since_last_transition=self._days_in_stage(profile),
            confidence=min(confidence, 1.0),
            supporting_factors=factors,
        )

    def _days_in_stage(self, profile: RecoveryProfile) -> int:
        """Total recovery days past the stage's entry threshold, within its span."""
        stage = profile.current_stage
        days = max(profile.total_recovery_days - self.policy.entry_days[stage], 0)
        span = self.policy.stage_spans[stage]
        return days if span is None else min(days, span)

    def _stage_progress(self, profile: RecoveryProfile, averages: AverageRatings) -> float:
        policy = self.policy
        stage = profile.current_stage
        span = policy.stage_spans[stage] or policy.growth_progress_span
        elapsed = max(profile.days_since_last_setback - policy.entry_days[stage], 0)
        base = min(elapsed / span, 1.0)

        quality = 1.0
        if AverageRatings.present(averages.mood):
            if averages.mood >= 7:
                quality += 0.2
            elif averages.mood < 5:
                quality -= 0.2
        if AverageRatings.present(averages.stress):
            if averages.stress <= 4:
                quality += 0.1
            elif averages.stress > 7:
                quality -= 0.2

        return max(0.0, min(1.0, base * quality))

    def _next_stage_requirements(self, stage: RecoveryStage) -> List[str]:
        policy = self.policy
        if stage == RecoveryStage.CHALLENGE:
            return [
                f"Maintain {policy.recovery_min_days}+ consecutive days without setbacks",
                f"Achieve mood rating average of {policy.recovery_mood_min:g}+ for one week",
                "Complete daily check-ins consistently",
            ]
        if stage == RecoveryStage.EARLY:
            return [
                f"Reach {policy.maintenance_min_days} days since last setback",
                f"Maintain mood rating average of {policy.maintenance_mood_min:g}+ for two weeks",
                f"Achieve {policy.maintenance_min_milestones}+ behavioral milestones",
                "Establish consistent coping strategy usage",
            ]
        if stage == RecoveryStage.MAINTENANCE:
            return [
                f"Reach {policy.growth_min_days} days since last setback",
                f"Maintain mood rating average of {policy.growth_mood_min:g}+ for one month",
                f"Achieve {policy.growth_min_milestones}+ personal growth milestones",
                f"Demonstrate consistent stress management ({policy.growth_stress_max:g} or lower average)",
            ]
        return [
            "Continue expanding recovery skills and life goals",
            "Maintain high well-being metrics",
            "Consider mentoring others in recovery",
        ]

    def _risk_factors(
        self,
        stage: RecoveryStage,
        averages: AverageRatings,
        check_ins: List[CheckIn],
    ) -> List[str]:
        factors = []
        if AverageRatings.present(averages.mood) and averages.mood < 5:
            factors.append("Low mood ratings")
        if averages.stress > 7:
            factors.append("High stress levels")
        if AverageRatings.present(averages.sleep) and averages.sleep < 5:
            factors.append("Poor sleep quality")
        if AverageRatings.present(averages.energy) and averages.energy < 4:
            factors.append("Low energy levels")
        if _mood_trend(check_ins) < -1:
            factors.append("Declining mood trend")

        if stage == RecoveryStage.CHALLENGE:
            if any(len(c.trigger_events) > 2 for c in check_ins):
                factors.append("Multiple trigger events")
        elif stage == RecoveryStage.EARLY and check_ins:
            reflected = sum(1 for c in check_ins if c.reflection_completed)
            if reflected < len(check_ins) * 0.5:
                factors.append("Inconsistent reflection practice")

        return factors

    def _strength_factors(
        self,
        averages: AverageRatings,
        check_ins: List[CheckIn],
        streak: int,
    ) -> List[str]:
        factors = []
        if averages.mood >= 7:
            factors.append("Strong mood ratings")
        if _at_most(averages.stress, 4):
            factors.append("Good stress management")
        if averages.sleep >= 7:
            factors.append("Quality sleep patterns")
        if averages.energy >= 7:
            factors.append("High energy levels")
        if _mood_trend(check_ins) > 1:
            factors.append("Improving mood trend")

        if len(check_ins) / self.policy.metrics_window_days >= 0.8:
            factors.append("Consistent check-in practice")
        if check_ins:
            reflected = sum(1 for c in check_ins if c.reflection_completed)
            if reflected / len(check_ins) >= 0.7:
                factors.append("Regular reflection practice")
        if streak >= self.policy.min_streak_days:
            factors.append(f"{streak}-day check-in streak")

        return factors

    def _recommendations(
        self,
        stage: RecoveryStage,
        progress: float,
        averages: AverageRatings,
    ) -> List[str]:
        if stage == RecoveryStage.CHALLENGE:
            actions = [
                "Focus on immediate coping strategies",
                "Maintain daily check-ins for stability",
            ]
            if averages.stress > 7:
                actions.append("Practice stress reduction techniques daily")
            if progress < 0.5:
                actions.append("Consider reaching out to support network")
            return actions

        if stage == RecoveryStage.EARLY:
            actions = [
                "Build consistent daily routines",
                "Practice new coping strategies regularly",
            ]
            if progress > 0.7:
                actions.append("Start setting short-term recovery goals")
            if AverageRatings.present(averages.mood) and averages.mood < 6:
                actions.append("Focus on mood-boosting activities")
            return actions

        if stage == RecoveryStage.MAINTENANCE:
            actions = [
                "Strengthen long-term coping skills",
                "Expand social support network",
            ]
            if progress > 0.6:
                actions.append("Consider new personal growth challenges")
            actions.append("Maintain consistent self-care practices")
            return actions

        return [
            "Explore new life goals and interests",
            "Consider helping others in recovery",
            "Continue expanding your comfort zone",
            "Maintain strong recovery foundation",
        ]

    def _baseline_gaps(
        self,
        stage: RecoveryStage,
        averages: AverageRatings,
    ) -> Tuple[float, float]:
        """Points above the stage baseline for mood and below it for stress.

        Positive is better. Missing ratings contribute 0.
        """
        mood_baseline, stress_baseline = self.policy.baselines[stage]
        mood_gap = averages.mood - mood_baseline if AverageRatings.present(averages.mood) else 0.0
        stress_gap = (
            stress_baseline - averages.stress if AverageRatings.present(averages.stress) else 0.0
        )
        return mood_gap, stress_gap

    def _overall_trend(
        self,
        profile: RecoveryProfile,
        averages: AverageRatings,
        mood_gap: float,
        stress_gap: float,
    ) -> ProgressTrend:
        policy = self.policy
        if not (AverageRatings.present(averages.mood) or AverageRatings.present(averages.stress)):
            # No ratings: judge by time since setback alone
            days = profile.days_since_last_setback
            if days >= policy.maintenance_min_days:
                return ProgressTrend.IMPROVING
            if days >= policy.recovery_min_days:
                return ProgressTrend.STABLE
            return ProgressTrend.DECLINING

        if mood_gap >= 0 and stress_gap >= 0:
            return ProgressTrend.IMPROVING
        if mood_gap < -policy.decline_margin or stress_gap < -policy.decline_margin:
            return ProgressTrend.DECLINING
        return ProgressTrend.STABLE

    def _estimate_history(self, profile: RecoveryProfile) -> List[StageTransition]:
        """Reconstruct likely past transitions from days since setback.

        Most recent first.
        """
        entry = self.policy.entry_days
        stage = profile.current_stage
        days = profile.days_since_last_setback
        now = self.clock.now()
        history = []

        if stage != RecoveryStage.CHALLENGE and days >= entry[RecoveryStage.EARLY]:
            history.append(StageTransition(
                from_stage=RecoveryStage.CHALLENGE,
                to_stage=RecoveryStage.EARLY,
                transition_date=now - timedelta(days=days - entry[RecoveryStage.EARLY]),
                trigger_event=TransitionTrigger.PROGRESS,
                days_since_last_transition=entry[RecoveryStage.EARLY],
                confidence=0.8,
                supporting_factors=["Completed initial stabilization period"],
            ))

        if stage in (RecoveryStage.MAINTENANCE, RecoveryStage.GROWTH) \
                and days >= entry[RecoveryStage.MAINTENANCE]:
            history.append(StageTransition(
                from_stage=RecoveryStage.EARLY,
                to_stage=RecoveryStage.MAINTENANCE,
                transition_date=now - timedelta(days=days - entry[RecoveryStage.MAINTENANCE]),
                trigger_event=TransitionTrigger.PROGRESS,
                days_since_last_transition=entry[RecoveryStage.MAINTENANCE] - entry[RecoveryStage.EARLY],
                confidence=0.8,
                supporting_factors=["Established consistent routines"],
            ))

        if stage == RecoveryStage.GROWTH and days >= entry[RecoveryStage.GROWTH]:
            history.append(StageTransition(
                from_stage=RecoveryStage.MAINTENANCE,
                to_stage=RecoveryStage.GROWTH,
                transition_date=now - timedelta(days=days - entry[RecoveryStage.GROWTH]),
                trigger_event=TransitionTrigger.MILESTONE,
                days_since_last_transition=entry[RecoveryStage.GROWTH] - entry[RecoveryStage.MAINTENANCE],
                confidence=0.9,
                supporting_factors=[
                    "Achieved significant milestones",
                    "Demonstrated life expansion",
                ],
            ))

        history.reverse()
        return history
