"""Repository interfaces for recovery data.

Persistence of profiles, check-ins and milestones is owned by external
collaborators. The engine talks to them only through these abstract
async interfaces, so implementations can be swapped (remote store,
in-memory for tests) without touching decision logic.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from recoverwell.shared.models import (
    AverageRatings,
    CheckIn,
    Milestone,
    RecoveryProfile,
    RecoveryStage,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found in storage."""
    pass


class ProfileNotFoundError(NotFoundError):
    """No recovery profile exists for the user.

    Raised as a hard error: risk and stage cannot be judged without
    history, so onboarding must be fixed first.
    """

    def __init__(self, user_id_hash: str):
        super().__init__("User recovery profile not found")
        self.user_id_hash = user_id_hash


class ProfileRepository(ABC):
    """Per-user recovery profile store."""

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> Optional[RecoveryProfile]:
        """Return the profile, or None when the user has none."""
        pass

    @abstractmethod
    async def update_stage(self, user_id: str, stage: RecoveryStage) -> None:
        """Idempotent upsert of the user's current stage."""
        pass


class CheckInRepository(ABC):
    """Daily check-in store."""

    @abstractmethod
    async def get_recent_check_ins(self, user_id: str, days: int) -> List[CheckIn]:
        """Check-ins from the last `days` days, newest first."""
        pass

    @abstractmethod
    async def get_average_ratings(self, user_id: str, days: int) -> AverageRatings:
        """Averaged ratings over the window; zeros when there is no data."""
        pass

    @abstractmethod
    async def get_check_in_streak(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def increment_ai_interactions(self, user_id: str, on_date: date) -> None:
        pass


class MilestoneRepository(ABC):

    @abstractmethod
    async def get_recent_milestones(self, user_id: str, limit: int) -> List[Milestone]:
        pass
