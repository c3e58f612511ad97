"""In-memory repository implementations.

Used for local runs of the HTTP handler and in tests. Not durable.
"""
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional

from recoverwell.shared.models import (
    AverageRatings,
    CheckIn,
    Milestone,
    RecoveryProfile,
    RecoveryStage,
)
from recoverwell.shared.utils import Clock, SystemClock
from .repository import (
    CheckInRepository,
    MilestoneRepository,
    ProfileRepository,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class InMemoryProfileRepository(ProfileRepository):

    def __init__(self):
        self._profiles: Dict[str, RecoveryProfile] = {}

    def add(self, profile: RecoveryProfile) -> None:
        self._profiles[profile.user_id] = profile

    async def find_by_user_id(self, user_id: str) -> Optional[RecoveryProfile]:
        return self._profiles.get(user_id)

    async def update_stage(self, user_id: str, stage: RecoveryStage) -> None:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise NotFoundError("User recovery profile not found")
        profile.current_stage = stage


class InMemoryCheckInRepository(CheckInRepository):
    """Check-ins keyed by user, one per day."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._check_ins: Dict[str, Dict[date, CheckIn]] = {}

    def add(self, check_in: CheckIn) -> None:
        self._check_ins.setdefault(check_in.user_id, {})[check_in.date] = check_in

    def _window(self, user_id: str, days: int) -> List[CheckIn]:
        start = self.clock.now().date() - timedelta(days=days)
        entries = [
            c for c in self._check_ins.get(user_id, {}).values()
            if c.date >= start
        ]
        return sorted(entries, key=lambda c: c.date, reverse=True)

    async def get_recent_check_ins(self, user_id: str, days: int) -> List[CheckIn]:
        return self._window(user_id, days)

    async def get_average_ratings(self, user_id: str, days: int) -> AverageRatings:
        entries = self._window(user_id, days)
        if not entries:
            return AverageRatings()
        count = len(entries)
        return AverageRatings(
            mood=round(sum(c.mood_rating for c in entries) / count, 1),
            energy=round(sum(c.energy_level for c in entries) / count, 1),
            stress=round(sum(c.stress_level for c in entries) / count, 1),
            sleep=round(sum(c.sleep_quality for c in entries) / count, 1),
        )

    async def get_check_in_streak(self, user_id: str) -> int:
        dates = set(self._check_ins.get(user_id, {}))
        expected = self.clock.now().date()
        streak = 0
        while expected in dates:
            streak += 1
            expected -= timedelta(days=1)
        return streak

    async def increment_ai_interactions(self, user_id: str, on_date: date) -> None:
        check_in = self._check_ins.get(user_id, {}).get(on_date)
        if check_in is None:
            logger.debug("AI_INTERACTION_NO_CHECKIN", extra={"date": on_date.isoformat()})
            return
        check_in.ai_coach_interactions += 1


class InMemoryMilestoneRepository(MilestoneRepository):

    def __init__(self):
        self._milestones: Dict[str, List[Milestone]] = {}

    def add(self, milestone: Milestone) -> None:
        self._milestones.setdefault(milestone.user_id, []).append(milestone)

    async def get_recent_milestones(self, user_id: str, limit: int) -> List[Milestone]:
        entries = sorted(
            self._milestones.get(user_id, []),
            key=lambda m: m.achievement_date or date.min,
            reverse=True,
        )
        return entries[:limit]
