"""Content Library - static crisis support content.

Source of every fallback used when generation, personalization or
coaching collaborators are unavailable.
"""

from .library import (
    ContentLibrary,
    CRISIS_STRATEGIES,
    AFFIRMATIONS,
    FALLBACK_AFFIRMATIONS,
    EMERGENCY_AFFIRMATIONS,
    BREATHING_EXERCISES,
    DEFAULT_BREATHING,
    SENSORY_GROUNDING,
    PHYSICAL_GROUNDING,
    FALLBACK_MESSAGES,
    COMPOSITION_FAILURE_MESSAGE,
    EMERGENCY_MESSAGE,
    PROFESSIONAL_CONTACTS,
    EMERGENCY_RESOURCES,
)

__all__ = [
    "ContentLibrary",
    "CRISIS_STRATEGIES",
    "AFFIRMATIONS",
    "FALLBACK_AFFIRMATIONS",
    "EMERGENCY_AFFIRMATIONS",
    "BREATHING_EXERCISES",
    "DEFAULT_BREATHING",
    "SENSORY_GROUNDING",
    "PHYSICAL_GROUNDING",
    "FALLBACK_MESSAGES",
    "COMPOSITION_FAILURE_MESSAGE",
    "EMERGENCY_MESSAGE",
    "PROFESSIONAL_CONTACTS",
    "EMERGENCY_RESOURCES",
]
