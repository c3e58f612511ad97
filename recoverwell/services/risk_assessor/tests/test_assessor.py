"""Tests for the Risk Assessor."""
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

from recoverwell.shared.database import (
    InMemoryCheckInRepository,
    InMemoryProfileRepository,
    ProfileNotFoundError,
)
from recoverwell.shared.models import (
    AverageRatings,
    CheckIn,
    IndicatorCategory,
    PatternType,
    RecoveryProfile,
    RiskIndicator,
    RiskLevel,
    TimeToIntervention,
    TriggerEvent,
    TriggerOutcome,
    TriggerType,
)
from recoverwell.shared.utils import FixedClock, configure_pii_salt
from recoverwell.services.risk_assessor import RiskAssessor, RiskPolicy, SAFE_DEFAULT_FACTOR


USER = "user_001"
SATURDAY_NIGHT = datetime(2026, 10, 17, 23, 0, tzinfo=timezone.utc)
WEDNESDAY_NOON = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


def make_check_in(day: date, hour: int = 12, **kwargs) -> CheckIn:
    values = dict(
        user_id=USER,
        date=day,
        mood_rating=7,
        energy_level=7,
        stress_level=4,
        sleep_quality=7,
        created_at=datetime(day.year, day.month, day.day, hour, 30, tzinfo=timezone.utc),
    )
    values.update(kwargs)
    return CheckIn(**values)


def build_assessor(now, profile=None, check_ins=()):
    clock = FixedClock(now)
    profiles = InMemoryProfileRepository()
    if profile is not None:
        profiles.add(profile)
    repo = InMemoryCheckInRepository(clock)
    for check_in in check_ins:
        repo.add(check_in)
    return RiskAssessor(profiles, repo, clock)


@pytest.fixture
def crisis_assessor():
    """Saturday 23:00, four nights of severe check-ins at 22:30."""
    profile = RecoveryProfile(
        user_id=USER,
        days_since_last_setback=2,
        total_recovery_days=40,
        personal_triggers=[TriggerType.DEPRESSION, TriggerType.ANXIETY],
        coping_strategies=["call sponsor"],
    )
    check_ins = [
        make_check_in(
            date(2026, 10, d), hour=22,
            mood_rating=2, stress_level=9, energy_level=2, sleep_quality=2,
            trigger_events=[
                TriggerEvent(type=TriggerType.DEPRESSION, intensity=9),
                TriggerEvent(type=TriggerType.ANXIETY, intensity=8,
                             outcome=TriggerOutcome.OVERWHELMED),
            ],
        )
        for d in (14, 15, 16, 17)
    ]
    return build_assessor(SATURDAY_NIGHT, profile, check_ins)


@pytest.fixture
def calm_assessor():
    profile = RecoveryProfile(
        user_id=USER,
        days_since_last_setback=45,
        total_recovery_days=60,
        personal_triggers=[TriggerType.STRESS],
        coping_strategies=["walk"],
    )
    check_ins = [
        make_check_in(date(2026, 10, d), reflection_completed=True,
                      coping_strategies_used=["walk"])
        for d in (10, 11, 12, 13, 14)
    ]
    return build_assessor(WEDNESDAY_NOON, profile, check_ins)


class TestAssessCrisisRisk:
    @pytest.mark.asyncio
    async def test_severe_ratings_with_personal_triggers_are_critical(self, crisis_assessor):
        assessment = await crisis_assessor.assess_crisis_risk(USER)

        assert assessment.overall_risk_level == RiskLevel.CRITICAL
        assert assessment.risk_score > 80
        assert assessment.escalation_required is True
        assert assessment.intervention_recommended is True
        assert assessment.time_to_intervention == TimeToIntervention.IMMEDIATE
        assert assessment.trigger_types == [TriggerType.DEPRESSION, TriggerType.ANXIETY]

    @pytest.mark.asyncio
    async def test_contextual_factors_are_deduplicated(self, crisis_assessor):
        assessment = await crisis_assessor.assess_crisis_risk(USER)

        factors = assessment.contextual_factors
        assert len(factors) == len(set(factors))
        assert "depression" in factors
        assert "personal_temporal_pattern" in factors

    @pytest.mark.asyncio
    async def test_every_detector_family_contributes(self, crisis_assessor):
        assessment = await crisis_assessor.assess_crisis_risk(USER)

        categories = {i.category for i in assessment.indicators}
        assert categories == set(IndicatorCategory)

    @pytest.mark.asyncio
    async def test_good_ratings_without_events_are_low(self, calm_assessor):
        assessment = await calm_assessor.assess_crisis_risk(USER)

        assert assessment.overall_risk_level == RiskLevel.LOW
        assert assessment.risk_score < 25
        assert assessment.intervention_recommended is False
        assert assessment.escalation_required is False
        assert assessment.time_to_intervention == TimeToIntervention.MONITOR

    @pytest.mark.asyncio
    async def test_missing_profile_raises_not_found(self):
        assessor = build_assessor(WEDNESDAY_NOON)

        with pytest.raises(ProfileNotFoundError):
            await assessor.assess_crisis_risk(USER)

    @pytest.mark.asyncio
    async def test_repository_failure_returns_safe_defaults(self):
        profiles = AsyncMock()
        profiles.find_by_user_id.side_effect = RuntimeError("connection reset")
        check_ins = AsyncMock()
        assessor = RiskAssessor(profiles, check_ins, FixedClock(WEDNESDAY_NOON))

        assessment = await assessor.assess_crisis_risk(USER)

        assert assessment.overall_risk_level == RiskLevel.MEDIUM
        assert assessment.risk_score == 50
        assert assessment.intervention_recommended is True
        assert assessment.escalation_required is False
        assert assessment.time_to_intervention == TimeToIntervention.WITHIN_HOUR
        assert assessment.contextual_factors == [SAFE_DEFAULT_FACTOR]

    @pytest.mark.asyncio
    async def test_no_check_ins_skips_rating_thresholds(self):
        profile = RecoveryProfile(user_id=USER)
        assessor = build_assessor(WEDNESDAY_NOON, profile)

        assessment = await assessor.assess_crisis_risk(USER)

        categories = [i.category for i in assessment.indicators]
        assert IndicatorCategory.EMOTIONAL not in categories
        assert IndicatorCategory.PHYSIOLOGICAL not in categories
        # Zero check-ins reads as zero engagement
        assert categories == [IndicatorCategory.BEHAVIORAL]

    @pytest.mark.asyncio
    async def test_personal_hour_pattern_wraps_midnight(self):
        now = datetime(2026, 10, 14, 0, 15, tzinfo=timezone.utc)
        profile = RecoveryProfile(user_id=USER)
        check_ins = [
            make_check_in(date(2026, 10, d), hour=23, reflection_completed=True,
                          trigger_events=[TriggerEvent(type=TriggerType.BOREDOM, intensity=7)])
            for d in (11, 12)
        ]
        assessor = build_assessor(now, profile, check_ins)

        assessment = await assessor.assess_crisis_risk(USER)

        assert "personal_temporal_pattern" in assessment.contextual_factors


class TestRiskScore:
    def test_score_is_clamped_to_100(self):
        assessor = build_assessor(WEDNESDAY_NOON)
        indicators = [
            RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.CRITICAL,
                confidence=1.0,
                description="test",
            )
            for _ in range(20)
        ]

        assert assessor.calculate_risk_score(indicators) == 100.0

    def test_empty_indicators_score_zero(self):
        assessor = build_assessor(WEDNESDAY_NOON)
        assert assessor.calculate_risk_score([]) == 0.0

    def test_weighting(self):
        assessor = build_assessor(WEDNESDAY_NOON)
        indicator = RiskIndicator(
            category=IndicatorCategory.BEHAVIORAL,
            severity=RiskLevel.HIGH,
            confidence=0.5,
            description="test",
        )
        # 20 points * 0.5 confidence * 0.25 weight * 2
        assert assessor.calculate_risk_score([indicator]) == pytest.approx(5.0)

    @pytest.mark.parametrize("score,level", [
        (100.0, RiskLevel.CRITICAL),
        (80.0, RiskLevel.CRITICAL),
        (79.9, RiskLevel.HIGH),
        (65.0, RiskLevel.HIGH),
        (64.9, RiskLevel.MEDIUM),
        (45.0, RiskLevel.MEDIUM),
        (44.9, RiskLevel.LOW),
        (0.0, RiskLevel.LOW),
    ])
    def test_level_bands(self, score, level):
        assert RiskPolicy().level_for_score(score) == level


class TestDetectImmediateCrisis:
    @pytest.mark.asyncio
    async def test_true_for_critical_assessment(self, crisis_assessor):
        assert await crisis_assessor.detect_immediate_crisis(USER) is True

    @pytest.mark.asyncio
    async def test_false_for_calm_user(self, calm_assessor):
        assert await calm_assessor.detect_immediate_crisis(USER) is False

    @pytest.mark.asyncio
    async def test_immediate_indicator_wins_over_low_score(self):
        profile = RecoveryProfile(user_id=USER)
        check_ins = [
            make_check_in(date(2026, 10, d), stress_level=9, reflection_completed=True)
            for d in (12, 13, 14)
        ]
        assessor = build_assessor(WEDNESDAY_NOON, profile, check_ins)

        assessment = await assessor.assess_crisis_risk(USER)
        assert assessment.overall_risk_level == RiskLevel.LOW
        assert assessment.has_immediate_indicators

        assert await assessor.detect_immediate_crisis(USER) is True

    @pytest.mark.asyncio
    async def test_missing_profile_fails_open(self):
        assessor = build_assessor(WEDNESDAY_NOON)
        assert await assessor.detect_immediate_crisis(USER) is True

    @pytest.mark.asyncio
    async def test_repository_error_fails_open(self):
        profiles = AsyncMock()
        check_ins = AsyncMock()
        check_ins.get_recent_check_ins.side_effect = RuntimeError("timeout")
        assessor = RiskAssessor(profiles, check_ins, FixedClock(WEDNESDAY_NOON))

        assert await assessor.detect_immediate_crisis(USER) is True


class TestRiskPatterns:
    @pytest.fixture
    def pattern_assessor(self):
        profile = RecoveryProfile(user_id=USER)
        # Saturday, Sunday and the following Wednesday, all at 21:30
        check_ins = [
            make_check_in(
                date(2026, 10, d), hour=21,
                mood_rating=3, stress_level=8,
                trigger_events=[TriggerEvent(type=TriggerType.LONELINESS, intensity=8)],
            )
            for d in (3, 4, 7)
        ]
        return build_assessor(WEDNESDAY_NOON, profile, check_ins)

    @pytest.mark.asyncio
    async def test_all_pattern_families_detected(self, pattern_assessor):
        patterns = await pattern_assessor.get_risk_patterns(USER)

        by_text = {p.pattern: p for p in patterns}
        assert len(patterns) == 5

        temporal = by_text["High risk during 21:00 hour"]
        assert temporal.pattern_type == PatternType.TEMPORAL
        assert temporal.risk_multiplier == pytest.approx(2.1)
        assert temporal.historical_occurrences == 3
        assert temporal.last_occurrence == datetime(2026, 10, 7, 21, 30, tzinfo=timezone.utc)

        assert by_text["Low mood episodes increase trigger vulnerability"].risk_multiplier == 1.8
        assert by_text["High stress periods correlate with increased triggers"].risk_multiplier == 1.6
        assert by_text["Low app engagement correlates with increased risk"].pattern_type == PatternType.USAGE
        weekend = by_text["Weekend periods show increased trigger events"]
        assert weekend.pattern_type == PatternType.ENVIRONMENTAL
        assert weekend.historical_occurrences == 2

    @pytest.mark.asyncio
    async def test_only_significant_patterns_returned(self, pattern_assessor):
        patterns = await pattern_assessor.get_risk_patterns(USER)
        assert all(p.risk_multiplier > 1.2 for p in patterns)

    @pytest.mark.asyncio
    async def test_quiet_history_has_no_patterns(self, calm_assessor):
        assert await calm_assessor.get_risk_patterns(USER) == []

    @pytest.mark.asyncio
    async def test_missing_profile_returns_empty(self):
        assessor = build_assessor(WEDNESDAY_NOON)
        assert await assessor.get_risk_patterns(USER) == []

    @pytest.mark.asyncio
    async def test_error_returns_empty(self):
        profiles = AsyncMock()
        profiles.find_by_user_id.side_effect = RuntimeError("boom")
        assessor = RiskAssessor(profiles, AsyncMock(), FixedClock(WEDNESDAY_NOON))

        assert await assessor.get_risk_patterns(USER) == []


class TestSafeDefault:
    def test_safe_default_serializes(self):
        assessor = build_assessor(WEDNESDAY_NOON)
        data = assessor.safe_default_assessment().to_dict()

        assert data["overall_risk_level"] == "medium"
        assert data["risk_score"] == 50
        assert data["indicators"] == []
