"""Text generation collaborator interfaces.

The engine never generates prose itself. It asks external collaborators
for generated text, anonymized prompts, personalization and coaching
strategies; every one of them may fail or time out, and callers must
degrade to static content when they do.
"""
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from recoverwell.shared.models import CrisisStrategy, TriggerType

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 10000

# Generated text containing any of these is discarded
HARMFUL_PATTERNS = (
    "kill yourself",
    "end your life",
    "you should die",
    "harm yourself",
    "commit suicide",
    "relapse is fine",
    "just use once",
    "one time won't hurt",
    "one drink won't hurt",
    "you deserve a drink",
)

MEDICAL_ADVICE_PATTERNS = (
    "i diagnose",
    "you have depression",
    "you have anxiety disorder",
    "take this medication",
    "stop taking your medication",
)


@dataclass(frozen=True)
class GenerationConfig:
    """Per-call timeouts (seconds) for external content collaborators."""
    anonymize_timeout: float = 2.0
    generate_timeout: float = 8.0
    personalize_timeout: float = 3.0
    coaching_timeout: float = 3.0

    @classmethod
    def from_env(cls) -> "GenerationConfig":
        """Create config from environment variables.

        Environment variables:
            RECOVERWELL_ANONYMIZE_TIMEOUT: default 2.0
            RECOVERWELL_GENERATE_TIMEOUT: default 8.0
            RECOVERWELL_PERSONALIZE_TIMEOUT: default 3.0
            RECOVERWELL_COACHING_TIMEOUT: default 3.0
        """
        return cls(
            anonymize_timeout=float(os.getenv("RECOVERWELL_ANONYMIZE_TIMEOUT", "2.0")),
            generate_timeout=float(os.getenv("RECOVERWELL_GENERATE_TIMEOUT", "8.0")),
            personalize_timeout=float(os.getenv("RECOVERWELL_PERSONALIZE_TIMEOUT", "3.0")),
            coaching_timeout=float(os.getenv("RECOVERWELL_COACHING_TIMEOUT", "3.0")),
        )


@dataclass(frozen=True)
class GeneratedText:
    content: str
    confidence: float = 0.0


@dataclass(frozen=True)
class SafePrompt:
    prompt: str
    context_markers: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PersonalizedContent:
    content: str
    tone: str = "supportive"
    factors: List[str] = field(default_factory=list)


class TextGenerator(ABC):
    """Third-party text model."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        category: str,
        user_id: Optional[str] = None,
    ) -> GeneratedText:
        """Generate text for an anonymized prompt.

        Raises:
            TimeoutError: If inference exceeds its deadline
        """
        pass


class PromptAnonymizer(ABC):
    """Redacts free text before it leaves the device."""

    @abstractmethod
    async def create_safe_prompt(self, text: str, context: Dict[str, Any]) -> SafePrompt:
        pass


class ContentPersonalizer(ABC):

    @abstractmethod
    async def personalize(
        self,
        user_id: str,
        text: str,
        category: str,
        context: Dict[str, Any],
    ) -> PersonalizedContent:
        pass


class CoachingAdapter(ABC):
    """Recovery coaching collaborator that knows the user's strategy history."""

    @abstractmethod
    async def provide_coping_strategies(
        self,
        user_id: str,
        trigger_type: TriggerType,
        urgency: str,
    ) -> List[CrisisStrategy]:
        pass


def validate_prompt(prompt: str) -> bool:
    """Validate a prompt before sending it to the text model."""
    if not prompt or not prompt.strip():
        logger.warning("EMPTY_PROMPT")
        return False

    if len(prompt) > MAX_PROMPT_LENGTH:
        logger.warning("PROMPT_TOO_LONG", extra={"length": len(prompt)})
        return False

    return True


def validate_generated_text(text: str) -> bool:
    """Post-generation safety check on model output.

    Returns:
        True if the text may be shown to the user, False otherwise
    """
    if not text or not text.strip():
        return False

    lowered = text.lower()

    for pattern in HARMFUL_PATTERNS:
        if pattern in lowered:
            logger.critical("HARMFUL_CONTENT_IN_GENERATED_TEXT", extra={"pattern": pattern})
            return False

    for pattern in MEDICAL_ADVICE_PATTERNS:
        if pattern in lowered:
            logger.warning("MEDICAL_ADVICE_IN_GENERATED_TEXT", extra={"pattern": pattern})
            return False

    return True
