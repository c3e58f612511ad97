"""JSON seed data for the in-memory repositories.

A local run of the HTTP handler starts with empty stores; pointing
RECOVERWELL_SEED_FILE at a file in this shape preloads them:

    {
        "profiles": [{"user_id": "u1", "current_stage": "early", ...}],
        "check_ins": [{"user_id": "u1", "date": "2026-10-17", "mood_rating": 4, ...}],
        "milestones": [{"milestone_id": "m1", "user_id": "u1", ...}]
    }

Timestamps are ISO 8601; values without an offset are taken as UTC.
"""
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

from recoverwell.shared.models import (
    CheckIn,
    Milestone,
    MilestoneType,
    RecoveryProfile,
    RecoveryStage,
    TriggerEvent,
    TriggerOutcome,
    TriggerType,
)
from .memory import (
    InMemoryCheckInRepository,
    InMemoryMilestoneRepository,
    InMemoryProfileRepository,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedCounts:
    profiles: int = 0
    check_ins: int = 0
    milestones: int = 0


def _timestamp(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def profile_from_dict(item: Dict[str, Any]) -> RecoveryProfile:
    return RecoveryProfile(
        user_id=item["user_id"],
        current_stage=RecoveryStage(item.get("current_stage", "early")),
        days_since_last_setback=item.get("days_since_last_setback", 0),
        total_recovery_days=item.get("total_recovery_days", 0),
        personal_triggers=[TriggerType(t) for t in item.get("personal_triggers", [])],
        coping_strategies=list(item.get("coping_strategies", [])),
        support_contacts=list(item.get("support_contacts", [])),
    )


def trigger_event_from_dict(item: Dict[str, Any], default_time: datetime) -> TriggerEvent:
    return TriggerEvent(
        type=TriggerType(item["type"]),
        intensity=item["intensity"],
        duration_minutes=item.get("duration_minutes", 0),
        context=item.get("context", ""),
        coping_response=item.get("coping_response", ""),
        outcome=TriggerOutcome(item.get("outcome", "managed")),
        timestamp=_timestamp(item["timestamp"]) if "timestamp" in item else default_time,
    )


def check_in_from_dict(item: Dict[str, Any]) -> CheckIn:
    """Build a CheckIn; created_at defaults to noon UTC on its date."""
    day = date.fromisoformat(item["date"])
    if "created_at" in item:
        created_at = _timestamp(item["created_at"])
    else:
        created_at = datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)

    return CheckIn(
        user_id=item["user_id"],
        date=day,
        mood_rating=item["mood_rating"],
        energy_level=item["energy_level"],
        stress_level=item["stress_level"],
        sleep_quality=item["sleep_quality"],
        trigger_events=[
            trigger_event_from_dict(e, created_at) for e in item.get("trigger_events", [])
        ],
        coping_strategies_used=list(item.get("coping_strategies_used", [])),
        reflection_completed=item.get("reflection_completed", False),
        ai_coach_interactions=item.get("ai_coach_interactions", 0),
        focus_sessions_completed=item.get("focus_sessions_completed", 0),
        created_at=created_at,
    )


def milestone_from_dict(item: Dict[str, Any]) -> Milestone:
    achieved = item.get("achievement_date")
    return Milestone(
        milestone_id=item["milestone_id"],
        user_id=item["user_id"],
        milestone_type=MilestoneType(item["milestone_type"]),
        title=item["title"],
        achievement_date=date.fromisoformat(achieved) if achieved else None,
    )


def load_seed(
    path: Union[str, Path],
    profiles: InMemoryProfileRepository,
    check_ins: InMemoryCheckInRepository,
    milestones: InMemoryMilestoneRepository,
) -> SeedCounts:
    """Load a seed file into the given repositories.

    Raises:
        OSError: If the file cannot be read
        ValueError: On malformed JSON or invalid field values
        KeyError: If a required field is missing
    """
    with open(path, "r") as f:
        data = json.load(f)

    counts = SeedCounts(
        profiles=len(data.get("profiles", [])),
        check_ins=len(data.get("check_ins", [])),
        milestones=len(data.get("milestones", [])),
    )
    for item in data.get("profiles", []):
        profiles.add(profile_from_dict(item))
    for item in data.get("check_ins", []):
        check_ins.add(check_in_from_dict(item))
    for item in data.get("milestones", []):
        milestones.add(milestone_from_dict(item))

    logger.info(
        "SEED_DATA_LOADED",
        extra={
            "profiles": counts.profiles,
            "check_ins": counts.check_ins,
            "milestones": counts.milestones,
        }
    )
    return counts
