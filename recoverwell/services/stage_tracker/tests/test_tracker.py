"""Tests for the Recovery Stage Tracker."""
import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

from recoverwell.shared.database import (
    InMemoryCheckInRepository,
    InMemoryMilestoneRepository,
    InMemoryProfileRepository,
    ProfileNotFoundError,
)
from recoverwell.shared.models import (
    CheckIn,
    Milestone,
    MilestoneType,
    ProgressTrend,
    RecoveryProfile,
    RecoveryStage,
    TransitionTrigger,
    TriggerEvent,
    TriggerType,
)
from recoverwell.shared.utils import FixedClock, configure_pii_salt
from recoverwell.services.stage_tracker import RecoveryStageTracker


USER = "user_001"
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


def make_check_in(days_ago: int, **kwargs) -> CheckIn:
    day = TODAY - timedelta(days=days_ago)
    values = dict(
        user_id=USER,
        date=day,
        mood_rating=7,
        energy_level=7,
        stress_level=4,
        sleep_quality=7,
        created_at=datetime(day.year, day.month, day.day, 9, 0, tzinfo=timezone.utc),
    )
    values.update(kwargs)
    return CheckIn(**values)


def make_milestone(index: int, milestone_type=MilestoneType.BEHAVIORAL) -> Milestone:
    return Milestone(
        milestone_id=f"m{index}",
        user_id=USER,
        milestone_type=milestone_type,
        title=f"Milestone {index}",
        achievement_date=TODAY - timedelta(days=index),
    )


class TrackerFixture:
    def __init__(self, profile=None, check_ins=(), milestones=()):
        clock = FixedClock(NOW)
        self.profiles = InMemoryProfileRepository()
        if profile is not None:
            self.profiles.add(profile)
        self.check_ins = InMemoryCheckInRepository(clock)
        for check_in in check_ins:
            self.check_ins.add(check_in)
        self.milestones = InMemoryMilestoneRepository()
        for milestone in milestones:
            self.milestones.add(milestone)
        self.tracker = RecoveryStageTracker(
            self.profiles, self.check_ins, self.milestones, clock
        )
        self.profile = profile


class TestEvaluateStageProgression:
    @pytest.mark.asyncio
    async def test_challenge_to_early_after_seven_days(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.CHALLENGE,
            days_since_last_setback=8,
            total_recovery_days=20,
        )
        fx = TrackerFixture(profile, [make_check_in(d, mood_rating=6, stress_level=5) for d in range(3)])

        transition = await fx.tracker.evaluate_stage_progression(USER)

        assert transition is not None
        assert transition.from_stage == RecoveryStage.CHALLENGE
        assert transition.to_stage == RecoveryStage.EARLY
        assert transition.trigger_event == TransitionTrigger.PROGRESS
        assert transition.confidence == pytest.approx(0.8)
        assert "8 days since setback" in transition.supporting_factors
        assert "Reduced stress levels" in transition.supporting_factors
        assert profile.current_stage == RecoveryStage.EARLY

    @pytest.mark.asyncio
    async def test_challenge_needs_seven_days(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.CHALLENGE,
            days_since_last_setback=6,
        )
        fx = TrackerFixture(profile, [make_check_in(0)])

        assert await fx.tracker.evaluate_stage_progression(USER) is None
        assert profile.current_stage == RecoveryStage.CHALLENGE

    @pytest.mark.asyncio
    async def test_challenge_stays_when_ratings_poor(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.CHALLENGE,
            days_since_last_setback=10,
        )
        fx = TrackerFixture(profile, [make_check_in(0, mood_rating=3, stress_level=9)])

        assert await fx.tracker.evaluate_stage_progression(USER) is None

    @pytest.mark.asyncio
    async def test_missing_ratings_do_not_block_recovery(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.CHALLENGE,
            days_since_last_setback=10,
        )
        fx = TrackerFixture(profile)

        transition = await fx.tracker.evaluate_stage_progression(USER)

        assert transition.to_stage == RecoveryStage.EARLY

    @pytest.mark.asyncio
    async def test_no_transition_when_conditions_not_met(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=15,
            total_recovery_days=45,
        )
        fx = TrackerFixture(profile, [make_check_in(0, mood_rating=4, stress_level=8)])
        fx.profiles.update_stage = AsyncMock()

        assert await fx.tracker.evaluate_stage_progression(USER) is None
        fx.profiles.update_stage.assert_not_called()

    @pytest.mark.asyncio
    async def test_setback_returns_to_challenge(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.MAINTENANCE,
            days_since_last_setback=3,
            total_recovery_days=60,
        )
        event = TriggerEvent(type=TriggerType.STRESS, intensity=9)
        fx = TrackerFixture(profile, [
            make_check_in(0, mood_rating=3, stress_level=9, trigger_events=[event]),
        ])

        transition = await fx.tracker.evaluate_stage_progression(USER)

        assert transition.from_stage == RecoveryStage.MAINTENANCE
        assert transition.to_stage == RecoveryStage.CHALLENGE
        assert transition.trigger_event == TransitionTrigger.SETBACK
        assert transition.supporting_factors == [
            "Recent challenges or setbacks",
            "Declining mood ratings",
            "Elevated stress levels",
        ]
        assert transition.confidence == pytest.approx(0.9)
        assert profile.current_stage == RecoveryStage.CHALLENGE

    @pytest.mark.asyncio
    async def test_setback_requires_crisis_event(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.MAINTENANCE,
            days_since_last_setback=2,
            total_recovery_days=60,
        )
        mild = TriggerEvent(type=TriggerType.BOREDOM, intensity=5)
        fx = TrackerFixture(profile, [make_check_in(0, trigger_events=[mild])])

        assert await fx.tracker.evaluate_stage_progression(USER) is None

    @pytest.mark.asyncio
    async def test_setback_requires_recent_setback_days(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=10,
            total_recovery_days=10,
        )
        event = TriggerEvent(type=TriggerType.ANGER, intensity=9)
        fx = TrackerFixture(profile, [make_check_in(0, trigger_events=[event])])

        assert await fx.tracker.evaluate_stage_progression(USER) is None

    @pytest.mark.asyncio
    async def test_early_to_maintenance_on_milestones(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=35,
            total_recovery_days=70,
        )
        fx = TrackerFixture(
            profile,
            [make_check_in(d) for d in range(5)],
            [make_milestone(1), make_milestone(2)],
        )

        transition = await fx.tracker.evaluate_stage_progression(USER)

        assert transition.to_stage == RecoveryStage.MAINTENANCE
        assert transition.trigger_event == TransitionTrigger.MILESTONE
        assert transition.confidence == pytest.approx(1.0)
        assert "Recent milestone achievements" in transition.supporting_factors

    @pytest.mark.asyncio
    async def test_early_needs_two_milestones(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=35,
            total_recovery_days=70,
        )
        fx = TrackerFixture(profile, [make_check_in(0)], [make_milestone(1)])

        assert await fx.tracker.evaluate_stage_progression(USER) is None

    @pytest.mark.asyncio
    async def test_growth_needs_growth_type_milestone(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.MAINTENANCE,
            days_since_last_setback=100,
            total_recovery_days=200,
        )
        milestones = [make_milestone(i) for i in range(1, 4)]
        fx = TrackerFixture(profile, [make_check_in(0)], milestones)

        assert await fx.tracker.evaluate_stage_progression(USER) is None

        fx.milestones.add(make_milestone(4, MilestoneType.COMMUNITY))
        transition = await fx.tracker.evaluate_stage_progression(USER)

        assert transition.to_stage == RecoveryStage.GROWTH
        assert transition.trigger_event == TransitionTrigger.MILESTONE

    @pytest.mark.asyncio
    async def test_missing_profile_raises(self):
        fx = TrackerFixture()

        with pytest.raises(ProfileNotFoundError):
            await fx.tracker.evaluate_stage_progression(USER)

    @pytest.mark.asyncio
    async def test_repository_errors_propagate(self):
        profiles = AsyncMock()
        profiles.find_by_user_id.side_effect = RuntimeError("connection reset")
        tracker = RecoveryStageTracker(profiles, AsyncMock(), AsyncMock(), FixedClock(NOW))

        with pytest.raises(RuntimeError):
            await tracker.evaluate_stage_progression(USER)


class TestStageMetrics:
    @pytest.mark.asyncio
    async def test_early_stage_metrics(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=15,
            total_recovery_days=15,
        )
        check_ins = [
            make_check_in(d, mood_rating=6, stress_level=5, reflection_completed=True)
            for d in range(7)
        ]
        fx = TrackerFixture(profile, check_ins)

        metrics = await fx.tracker.get_stage_metrics(USER)

        assert metrics.stage == RecoveryStage.EARLY
        assert metrics.days_in_stage == 8
        assert metrics.stage_progress == pytest.approx(8 / 23)
        assert "Reach 30 days since last setback" in metrics.next_stage_requirements
        assert metrics.risk_factors == []
        assert "7-day check-in streak" in metrics.strength_factors
        assert "Consistent check-in practice" in metrics.strength_factors
        assert "Regular reflection practice" in metrics.strength_factors
        assert "Build consistent daily routines" in metrics.recommended_actions

    @pytest.mark.asyncio
    async def test_challenge_stage_risk_factors(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.CHALLENGE,
            days_since_last_setback=3,
            total_recovery_days=3,
        )
        events = [TriggerEvent(type=TriggerType.STRESS, intensity=6) for _ in range(3)]
        fx = TrackerFixture(profile, [
            make_check_in(0, mood_rating=3, stress_level=9, sleep_quality=3,
                          energy_level=2, trigger_events=events),
        ])

        metrics = await fx.tracker.get_stage_metrics(USER)

        assert metrics.days_in_stage == 3
        assert metrics.stage_progress == pytest.approx(3 / 7 * 0.6)
        assert metrics.risk_factors == [
            "Low mood ratings",
            "High stress levels",
            "Poor sleep quality",
            "Low energy levels",
            "Multiple trigger events",
        ]
        assert "Practice stress reduction techniques daily" in metrics.recommended_actions
        assert "Consider reaching out to support network" in metrics.recommended_actions

    @pytest.mark.asyncio
    async def test_declining_mood_trend(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.MAINTENANCE,
            days_since_last_setback=40,
            total_recovery_days=40,
        )
        moods = [3, 3, 3, 7, 7, 7]  # newest first
        fx = TrackerFixture(profile, [
            make_check_in(d, mood_rating=m) for d, m in enumerate(moods)
        ])

        metrics = await fx.tracker.get_stage_metrics(USER)

        assert "Declining mood trend" in metrics.risk_factors

    @pytest.mark.parametrize("stage,total,expected", [
        (RecoveryStage.CHALLENGE, 30, 7),
        (RecoveryStage.EARLY, 5, 0),
        (RecoveryStage.MAINTENANCE, 200, 60),
        (RecoveryStage.GROWTH, 400, 310),
    ])
    @pytest.mark.asyncio
    async def test_days_in_stage_clamped(self, stage, total, expected):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=stage,
            days_since_last_setback=total,
            total_recovery_days=total,
        )
        fx = TrackerFixture(profile)

        metrics = await fx.tracker.get_stage_metrics(USER)

        assert metrics.days_in_stage == expected
        assert 0.0 <= metrics.stage_progress <= 1.0

    @pytest.mark.asyncio
    async def test_missing_profile_raises(self):
        with pytest.raises(ProfileNotFoundError):
            await TrackerFixture().tracker.get_stage_metrics(USER)


class TestRecoveryProgression:
    @pytest.mark.asyncio
    async def test_maintenance_with_good_ratings_is_improving(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.MAINTENANCE,
            days_since_last_setback=60,
            total_recovery_days=60,
        )
        fx = TrackerFixture(profile, [make_check_in(d, mood_rating=7, stress_level=4) for d in range(5)])

        progression = await fx.tracker.get_recovery_progression(USER)

        assert progression.current_stage == RecoveryStage.MAINTENANCE
        assert progression.overall_trend == ProgressTrend.IMPROVING
        assert progression.projected_next_stage == RecoveryStage.GROWTH
        assert progression.projected_transition_date == NOW + timedelta(days=30)
        assert progression.confidence_in_progression > 0.5

    @pytest.mark.asyncio
    async def test_growth_is_final_stage(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.GROWTH,
            days_since_last_setback=120,
            total_recovery_days=200,
        )
        fx = TrackerFixture(profile, [make_check_in(0, mood_rating=8, stress_level=3)])

        progression = await fx.tracker.get_recovery_progression(USER)

        assert progression.projected_next_stage is None
        assert progression.projected_transition_date is None
        assert progression.confidence_in_progression == pytest.approx(0.9)
        assert [t.to_stage for t in progression.stage_history] == [
            RecoveryStage.GROWTH,
            RecoveryStage.MAINTENANCE,
            RecoveryStage.EARLY,
        ]
        assert progression.stage_history[0].transition_date == NOW - timedelta(days=30)

    @pytest.mark.asyncio
    async def test_poor_ratings_are_declining(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=12,
            total_recovery_days=12,
        )
        fx = TrackerFixture(profile, [make_check_in(0, mood_rating=3, stress_level=9)])

        progression = await fx.tracker.get_recovery_progression(USER)

        assert progression.overall_trend == ProgressTrend.DECLINING
        assert progression.projected_next_stage is None
        assert progression.confidence_in_progression < 0.5

    @pytest.mark.asyncio
    async def test_slightly_below_baseline_is_stable(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=12,
            total_recovery_days=12,
        )
        fx = TrackerFixture(profile, [make_check_in(0, mood_rating=5, stress_level=6)])

        progression = await fx.tracker.get_recovery_progression(USER)

        assert progression.overall_trend == ProgressTrend.STABLE
        assert progression.projected_next_stage == RecoveryStage.MAINTENANCE

    @pytest.mark.asyncio
    async def test_no_ratings_uses_days_since_setback(self):
        profile = RecoveryProfile(
            user_id=USER,
            current_stage=RecoveryStage.EARLY,
            days_since_last_setback=10,
            total_recovery_days=10,
        )
        fx = TrackerFixture(profile)

        progression = await fx.tracker.get_recovery_progression(USER)

        assert progression.overall_trend == ProgressTrend.STABLE
        assert len(progression.stage_history) == 1

    @pytest.mark.asyncio
    async def test_missing_profile_raises(self):
        with pytest.raises(ProfileNotFoundError):
            await TrackerFixture().tracker.get_recovery_progression(USER)
