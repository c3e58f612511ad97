"""Repository interfaces for the external recovery data stores.

Provides the async collaborator contracts the engine reads from, the
shared exception hierarchy, and in-memory implementations.
"""

from .repository import (
    ProfileRepository,
    CheckInRepository,
    MilestoneRepository,
    RepositoryError,
    NotFoundError,
    ProfileNotFoundError,
)
from .memory import (
    InMemoryProfileRepository,
    InMemoryCheckInRepository,
    InMemoryMilestoneRepository,
)
from .seed import load_seed, SeedCounts

__all__ = [
    "ProfileRepository",
    "CheckInRepository",
    "MilestoneRepository",
    "RepositoryError",
    "NotFoundError",
    "ProfileNotFoundError",
    "InMemoryProfileRepository",
    "InMemoryCheckInRepository",
    "InMemoryMilestoneRepository",
    "load_seed",
    "SeedCounts",
]
