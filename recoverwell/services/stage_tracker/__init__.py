"""Stage Tracker - recovery stage state machine.

early -> maintenance -> growth, any stage may regress to challenge on a
setback, and challenge returns to early after sustained recovery.
"""

from .config import StagePolicy
from .tracker import RecoveryStageTracker

__all__ = [
    "StagePolicy",
    "RecoveryStageTracker",
]
