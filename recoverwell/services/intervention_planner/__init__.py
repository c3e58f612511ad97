"""Crisis Intervention Planner - interventions, content and follow-up.

Safety-critical: provide_crisis_intervention always returns an
intervention, degrading to static content and finally to the fixed
emergency fallback.
"""

from .config import InterventionConfig
from .content import ContentComposer, build_crisis_prompt
from .followup import (
    FOLLOW_UP_OFFSETS,
    follow_up_offset,
    follow_up_required,
    schedule_follow_up,
    create_follow_up,
)
from .planner import CrisisInterventionPlanner, classify_intervention

__all__ = [
    "InterventionConfig",
    "ContentComposer",
    "build_crisis_prompt",
    "FOLLOW_UP_OFFSETS",
    "follow_up_offset",
    "follow_up_required",
    "schedule_follow_up",
    "create_follow_up",
    "CrisisInterventionPlanner",
    "classify_intervention",
]
