"""Tests for loading JSON seed data into the in-memory repositories."""
import json
import pytest
from datetime import date, datetime, timezone

from recoverwell.shared.database import (
    InMemoryCheckInRepository,
    InMemoryMilestoneRepository,
    InMemoryProfileRepository,
    load_seed,
)
from recoverwell.shared.models import (
    MilestoneType,
    RecoveryStage,
    TriggerOutcome,
    TriggerType,
)
from recoverwell.shared.utils import FixedClock


NOW = datetime(2026, 10, 17, 23, 0, tzinfo=timezone.utc)

SEED = {
    "profiles": [{
        "user_id": "user_seed_01",
        "current_stage": "maintenance",
        "days_since_last_setback": 40,
        "total_recovery_days": 120,
        "personal_triggers": ["stress", "loneliness"],
        "coping_strategies": ["walk"],
    }],
    "check_ins": [
        {
            "user_id": "user_seed_01",
            "date": "2026-10-17",
            "mood_rating": 4,
            "energy_level": 5,
            "stress_level": 7,
            "sleep_quality": 6,
            "created_at": "2026-10-17T22:30:00",
            "trigger_events": [{"type": "stress", "intensity": 8, "outcome": "overwhelmed"}],
            "reflection_completed": True,
        },
        {
            "user_id": "user_seed_01",
            "date": "2026-10-16",
            "mood_rating": 6,
            "energy_level": 6,
            "stress_level": 5,
            "sleep_quality": 7,
        },
    ],
    "milestones": [{
        "milestone_id": "m1",
        "user_id": "user_seed_01",
        "milestone_type": "recovery",
        "title": "90 days",
        "achievement_date": "2026-09-10",
    }],
}


@pytest.fixture
def repos():
    return (
        InMemoryProfileRepository(),
        InMemoryCheckInRepository(FixedClock(NOW)),
        InMemoryMilestoneRepository(),
    )


def write_seed(tmp_path, data):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps(data))
    return path


class TestLoadSeed:

    @pytest.mark.asyncio
    async def test_loads_all_sections(self, tmp_path, repos):
        profiles, check_ins, milestones = repos

        counts = load_seed(write_seed(tmp_path, SEED), profiles, check_ins, milestones)

        assert (counts.profiles, counts.check_ins, counts.milestones) == (1, 2, 1)

        profile = await profiles.find_by_user_id("user_seed_01")
        assert profile.current_stage == RecoveryStage.MAINTENANCE
        assert profile.personal_triggers == [TriggerType.STRESS, TriggerType.LONELINESS]

        recent = await check_ins.get_recent_check_ins("user_seed_01", 7)
        assert [c.date for c in recent] == [date(2026, 10, 17), date(2026, 10, 16)]
        latest = recent[0]
        assert latest.created_at == datetime(2026, 10, 17, 22, 30, tzinfo=timezone.utc)
        assert latest.trigger_events[0].outcome == TriggerOutcome.OVERWHELMED
        assert latest.trigger_events[0].timestamp == latest.created_at
        assert recent[1].created_at.hour == 12

        stored = await milestones.get_recent_milestones("user_seed_01", 5)
        assert stored[0].milestone_type == MilestoneType.RECOVERY
        assert stored[0].achievement_date == date(2026, 9, 10)

    def test_missing_sections_load_nothing(self, tmp_path, repos):
        counts = load_seed(write_seed(tmp_path, {}), *repos)

        assert (counts.profiles, counts.check_ins, counts.milestones) == (0, 0, 0)

    def test_invalid_rating_rejected(self, tmp_path, repos):
        bad = {"check_ins": [dict(SEED["check_ins"][1], mood_rating=11)]}

        with pytest.raises(ValueError):
            load_seed(write_seed(tmp_path, bad), *repos)

    def test_unknown_trigger_type_rejected(self, tmp_path, repos):
        bad = {"profiles": [dict(SEED["profiles"][0], personal_triggers=["weather"])]}

        with pytest.raises(ValueError):
            load_seed(write_seed(tmp_path, bad), *repos)
