"""Follow-Up Scheduler.

Pure functions of severity and the current time. Critical interventions
are followed up after an hour, high after four, medium after a day;
low severity gets no follow-up.
"""
from datetime import datetime, timedelta
from typing import Dict, Optional

from recoverwell.shared.models import CrisisFollowUp, RiskLevel

FOLLOW_UP_OFFSETS: Dict[RiskLevel, timedelta] = {
    RiskLevel.CRITICAL: timedelta(hours=1),
    RiskLevel.HIGH: timedelta(hours=4),
    RiskLevel.MEDIUM: timedelta(hours=24),
}

EMERGENCY_FOLLOW_UP = timedelta(hours=1)


def follow_up_offset(severity: RiskLevel) -> Optional[timedelta]:
    return FOLLOW_UP_OFFSETS.get(severity)


def follow_up_required(severity: RiskLevel) -> bool:
    return severity in (RiskLevel.CRITICAL, RiskLevel.HIGH)


def schedule_follow_up(severity: RiskLevel, now: datetime) -> Optional[datetime]:
    """Follow-up time for an intervention created at `now`, or None."""
    offset = follow_up_offset(severity)
    if offset is None:
        return None
    return now + offset


def create_follow_up(
    intervention_id: str,
    now: datetime,
    user_id: Optional[str] = None,
) -> CrisisFollowUp:
    """Minimal follow-up record, scheduled now.

    Escalation is not decided here; that needs the original
    intervention, which the engine does not store.
    """
    return CrisisFollowUp(
        intervention_id=intervention_id,
        scheduled_at=now,
        escalation_needed=False,
        user_id=user_id,
    )
