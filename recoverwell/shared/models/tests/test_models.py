"""Tests for shared domain model invariants."""
import pytest
from datetime import date, datetime, timezone

from recoverwell.shared.models import (
    CheckIn,
    ContentOutcome,
    ContentSource,
    InterventionContent,
    Intervention,
    InterventionType,
    RecoveryProfile,
    RecoveryStage,
    RiskAssessment,
    RiskIndicator,
    IndicatorCategory,
    RiskLevel,
    TriggerEvent,
    TriggerOutcome,
    TriggerType,
    is_progressive,
)
from recoverwell.services.content_library import ContentLibrary


NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class TestRecoveryModels:

    def test_rating_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            CheckIn(user_id="u", date=date(2026, 10, 17), mood_rating=0,
                    energy_level=5, stress_level=5, sleep_quality=5)

    def test_trigger_intensity_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            TriggerEvent(type=TriggerType.STRESS, intensity=11)

    def test_negative_recovery_days_rejected(self):
        with pytest.raises(ValueError):
            RecoveryProfile(user_id="u", days_since_last_setback=-1)

    @pytest.mark.parametrize("intensity,outcome,expected", [
        (8, TriggerOutcome.MANAGED, True),
        (7, TriggerOutcome.MANAGED, False),
        (3, TriggerOutcome.OVERWHELMED, True),
    ])
    def test_crisis_level_event(self, intensity, outcome, expected):
        event = TriggerEvent(type=TriggerType.ANGER, intensity=intensity, outcome=outcome)
        assert event.is_crisis_level is expected


class TestRiskModels:

    def test_confidence_bounds(self):
        with pytest.raises(ValueError):
            RiskIndicator(
                category=IndicatorCategory.EMOTIONAL,
                severity=RiskLevel.HIGH,
                confidence=1.2,
                description="Low mood",
            )

    def test_score_bounds(self):
        with pytest.raises(ValueError):
            RiskAssessment(overall_risk_level=RiskLevel.LOW, risk_score=101.0)

    def test_escalation_requires_critical(self):
        with pytest.raises(ValueError):
            RiskAssessment(
                overall_risk_level=RiskLevel.HIGH,
                risk_score=70.0,
                escalation_required=True,
            )


class TestStageOrder:

    def test_forward_moves_are_progressive(self):
        assert is_progressive(RecoveryStage.CHALLENGE, RecoveryStage.EARLY)
        assert is_progressive(RecoveryStage.EARLY, RecoveryStage.MAINTENANCE)
        assert not is_progressive(RecoveryStage.GROWTH, RecoveryStage.CHALLENGE)


class TestInterventionModels:

    def _content(self, with_plan: bool):
        return InterventionContent(
            primary_message="You are not alone.",
            coping_strategies=[],
            affirmations=[],
            safety_plan=ContentLibrary().safety_plan() if with_plan else None,
        )

    def test_critical_without_safety_plan_rejected(self):
        with pytest.raises(ValueError):
            Intervention(
                intervention_id="intervention_x",
                user_id="u",
                trigger_type=TriggerType.STRESS,
                severity=RiskLevel.CRITICAL,
                intervention_type=InterventionType.IMMEDIATE,
                content=self._content(with_plan=False),
                emergency_resources=[],
                follow_up_required=True,
                created_at=NOW,
            )

    def test_safety_plan_below_critical_rejected(self):
        with pytest.raises(ValueError):
            Intervention(
                intervention_id="intervention_x",
                user_id="u",
                trigger_type=TriggerType.STRESS,
                severity=RiskLevel.MEDIUM,
                intervention_type=InterventionType.SUPPORTIVE,
                content=self._content(with_plan=True),
                emergency_resources=[],
                follow_up_required=False,
                created_at=NOW,
            )

    def test_to_dict_omits_user_id(self):
        intervention = Intervention(
            intervention_id="intervention_x",
            user_id="u",
            trigger_type=TriggerType.STRESS,
            severity=RiskLevel.LOW,
            intervention_type=InterventionType.PREVENTIVE,
            content=self._content(with_plan=False),
            emergency_resources=[],
            follow_up_required=False,
            created_at=NOW,
        )
        data = intervention.to_dict()
        assert "user_id" not in data
        assert data["follow_up_scheduled"] is None

    def test_outcome_degraded_when_reason_present(self):
        ok = ContentOutcome("primary_message", "hi", ContentSource.GENERATED)
        degraded = ContentOutcome("primary_message", "hi", ContentSource.STATIC, "text generation timed out")
        assert not ok.degraded
        assert degraded.degraded
        assert degraded.to_dict()["reason"] == "text generation timed out"
