"""Intervention content composition.

Each content sub-step (message, strategies, exercises, safety plan)
runs on its own. External calls get their own timeout and failure
handling, and every step yields a ContentOutcome recording where the
content came from and, when it degraded to static content, why.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from recoverwell.shared.database import ProfileRepository
from recoverwell.shared.models import (
    ContentOutcome,
    ContentSource,
    CrisisStrategy,
    InterventionContent,
    InterventionType,
    RecoveryProfile,
    RiskLevel,
    SafetyPlan,
    TriggerType,
)
from recoverwell.shared.utils import hash_pii
from recoverwell.services.content_library import (
    COMPOSITION_FAILURE_MESSAGE,
    FALLBACK_AFFIRMATIONS,
    ContentLibrary,
)
from recoverwell.services.llm_service import (
    CoachingAdapter,
    ContentPersonalizer,
    PromptAnonymizer,
    TextGenerator,
    validate_generated_text,
    validate_prompt,
)
from .config import InterventionConfig

logger = logging.getLogger(__name__)

CONTENT_CATEGORY = "crisis_intervention"

# personalized_elements tags
CRISIS_SPECIFIC = "crisis_specific"
USER_HISTORY = "user_history"
SEVERITY_APPROPRIATE = "severity_appropriate"
FALLBACK_CONTENT = "fallback_content"
EMERGENCY_FALLBACK = "emergency_fallback"

URGENCY_BY_SEVERITY = {
    RiskLevel.CRITICAL: "high",
    RiskLevel.HIGH: "medium",
}

_PROMPT_GUIDANCE = {
    InterventionType.IMMEDIATE: (
        "This is an immediate crisis requiring urgent support. "
        "Focus on safety, grounding, and immediate coping. "
    ),
    InterventionType.SUPPORTIVE: (
        "Provide supportive intervention with empathy and practical guidance. "
    ),
    InterventionType.PREVENTIVE: (
        "Offer preventive support to help avoid escalation. "
    ),
}


class StepFailed(Exception):
    """A content sub-step could not produce its preferred content."""


def build_crisis_prompt(
    trigger_type: TriggerType,
    severity: RiskLevel,
    intervention_type: InterventionType,
) -> str:
    """Trigger- and severity-aware prompt for the text model. Contains no user data."""
    return (
        "Generate a compassionate crisis intervention message for someone "
        f"experiencing {trigger_type.value} triggers at {severity.value} severity level. "
        + _PROMPT_GUIDANCE[intervention_type]
        + "Keep the message warm, non-judgmental, and hopeful. Emphasize that this "
        "feeling will pass and help is available. 2-3 sentences maximum."
    )


def urgency_for(severity: RiskLevel) -> str:
    return URGENCY_BY_SEVERITY.get(severity, "low")


async def _call(step: str, awaitable, timeout: float):
    """Await a collaborator call, converting timeouts and errors to StepFailed."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        raise StepFailed(f"{step} timed out")
    except Exception as e:
        raise StepFailed(f"{step} failed: {type(e).__name__}") from e


class ContentComposer:
    """Builds InterventionContent from collaborators and the content library.

    Text generation, anonymization, personalization and coaching are all
    optional; a missing collaborator degrades the same way as a failing one.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        library: Optional[ContentLibrary] = None,
        generator: Optional[TextGenerator] = None,
        anonymizer: Optional[PromptAnonymizer] = None,
        personalizer: Optional[ContentPersonalizer] = None,
        coach: Optional[CoachingAdapter] = None,
        config: Optional[InterventionConfig] = None,
    ):
        self.profiles = profiles
        self.library = library or ContentLibrary()
        self.generator = generator
        self.anonymizer = anonymizer
        self.personalizer = personalizer
        self.coach = coach
        self.config = config or InterventionConfig()

    async def compose(
        self,
        user_id: str,
        trigger_type: TriggerType,
        severity: RiskLevel,
        intervention_type: InterventionType,
    ) -> Tuple[InterventionContent, List[ContentOutcome]]:
        """Compose content for one intervention.

        Args:
            user_id: User identifier
            trigger_type: Trigger the intervention addresses
            severity: Severity the intervention is sized for
            intervention_type: immediate, supportive or preventive

        Returns:
            Tuple of (content, one ContentOutcome per sub-step)

        Logs:
            - CONTENT_STEP_DEGRADED: Per sub-step that fell back (warning)
            - CONTENT_COMPOSITION_FAILED: When everything fell back (error)
        """
        try:
            return await self._compose(user_id, trigger_type, severity, intervention_type)
        except Exception as e:
            reason = f"composition failed: {type(e).__name__}"
            logger.error(
                "CONTENT_COMPOSITION_FAILED",
                extra={
                    "user_id_hash": hash_pii(user_id),
                    "error": str(e),
                    "action": "FALLBACK_CONTENT",
                }
            )
            return self.fallback_content(trigger_type, severity, reason)

    def fallback_content(
        self,
        trigger_type: TriggerType,
        severity: RiskLevel,
        reason: str,
    ) -> Tuple[InterventionContent, List[ContentOutcome]]:
        """Static content used when composition fails entirely.

        Critical severity still carries a default safety plan.
        """
        safety_plan = self.library.safety_plan() if severity == RiskLevel.CRITICAL else None
        content = InterventionContent(
            primary_message=COMPOSITION_FAILURE_MESSAGE,
            coping_strategies=self.library.crisis_strategies(trigger_type),
            affirmations=list(FALLBACK_AFFIRMATIONS),
            safety_plan=safety_plan,
            personalized_elements=[FALLBACK_CONTENT],
        )
        return content, [ContentOutcome("content", content, ContentSource.STATIC, reason)]

    async def _compose(
        self,
        user_id: str,
        trigger_type: TriggerType,
        severity: RiskLevel,
        intervention_type: InterventionType,
    ) -> Tuple[InterventionContent, List[ContentOutcome]]:
        profile = await asyncio.wait_for(
            self.profiles.find_by_user_id(user_id),
            timeout=self.config.profile_timeout,
        )

        message, strategies = await asyncio.gather(
            self.primary_message(user_id, trigger_type, severity, intervention_type),
            self.coping_strategies(user_id, trigger_type, severity),
        )

        breathing = ContentOutcome(
            "breathing_exercise",
            self.library.breathing_exercise(trigger_type, severity),
            ContentSource.STATIC,
        )
        grounding = ContentOutcome(
            "grounding_technique",
            self.library.grounding_technique(trigger_type, severity),
            ContentSource.STATIC,
        )
        affirmations = ContentOutcome(
            "affirmations", self.library.affirmations(trigger_type), ContentSource.STATIC
        )
        outcomes: List[ContentOutcome] = [message, strategies, breathing, grounding, affirmations]

        safety_plan = None
        if severity == RiskLevel.CRITICAL:
            plan_outcome = self.safety_plan(profile)
            outcomes.append(plan_outcome)
            safety_plan = plan_outcome.value

        for outcome in outcomes:
            if outcome.degraded:
                logger.warning(
                    "CONTENT_STEP_DEGRADED",
                    extra={
                        "user_id_hash": hash_pii(user_id),
                        "step": outcome.step,
                        "reason": outcome.reason,
                    }
                )

        elements = []
        if message.source in (ContentSource.GENERATED, ContentSource.PERSONALIZED):
            elements.append(CRISIS_SPECIFIC)
        if strategies.source == ContentSource.COACH:
            elements.append(USER_HISTORY)
        elements.append(SEVERITY_APPROPRIATE)

        content = InterventionContent(
            primary_message=message.value,
            coping_strategies=strategies.value,
            affirmations=affirmations.value,
            breathing_exercise=breathing.value,
            grounding_technique=grounding.value,
            safety_plan=safety_plan,
            personalized_elements=elements,
        )
        return content, outcomes

    async def primary_message(
        self,
        user_id: str,
        trigger_type: TriggerType,
        severity: RiskLevel,
        intervention_type: InterventionType,
    ) -> ContentOutcome[str]:
        """Anonymize -> generate -> personalize, or the fixed fallback message."""
        fallback = self.library.fallback_message(intervention_type)
        try:
            text, source = await self._generate_message(
                user_id, trigger_type, severity, intervention_type
            )
        except StepFailed as e:
            return ContentOutcome("primary_message", fallback, ContentSource.STATIC, str(e))
        return ContentOutcome("primary_message", text, source)

    async def _generate_message(
        self,
        user_id: str,
        trigger_type: TriggerType,
        severity: RiskLevel,
        intervention_type: InterventionType,
    ) -> Tuple[str, ContentSource]:
        if self.generator is None:
            raise StepFailed("text generation unavailable")
        if self.anonymizer is None:
            raise StepFailed("prompt anonymizer unavailable")

        timeouts = self.config.generation
        context: Dict[str, Any] = {
            "trigger_type": trigger_type.value,
            "severity": severity.value,
            "intervention_type": intervention_type.value,
        }

        prompt = build_crisis_prompt(trigger_type, severity, intervention_type)
        safe_prompt = await _call(
            "anonymization",
            self.anonymizer.create_safe_prompt(prompt, context),
            timeouts.anonymize_timeout,
        )
        if not validate_prompt(safe_prompt.prompt):
            raise StepFailed("anonymized prompt rejected")

        generated = await _call(
            "text generation",
            self.generator.generate(safe_prompt.prompt, CONTENT_CATEGORY, user_id),
            timeouts.generate_timeout,
        )
        if not validate_generated_text(generated.content):
            raise StepFailed("generated text failed safety validation")

        if self.personalizer is None:
            return generated.content, ContentSource.GENERATED

        personalized = await _call(
            "personalization",
            self.personalizer.personalize(user_id, generated.content, CONTENT_CATEGORY, context),
            timeouts.personalize_timeout,
        )
        if not validate_generated_text(personalized.content):
            raise StepFailed("personalized text failed safety validation")

        return personalized.content, ContentSource.PERSONALIZED

    async def coping_strategies(
        self,
        user_id: str,
        trigger_type: TriggerType,
        severity: RiskLevel,
    ) -> ContentOutcome[List[CrisisStrategy]]:
        """Coaching collaborator strategies, or the static per-trigger table."""
        static = self.library.crisis_strategies(trigger_type)
        if self.coach is None:
            return ContentOutcome(
                "coping_strategies", static, ContentSource.STATIC, "coaching unavailable"
            )

        try:
            strategies = await _call(
                "coaching",
                self.coach.provide_coping_strategies(user_id, trigger_type, urgency_for(severity)),
                self.config.generation.coaching_timeout,
            )
        except StepFailed as e:
            return ContentOutcome("coping_strategies", static, ContentSource.STATIC, str(e))

        if not strategies:
            return ContentOutcome(
                "coping_strategies", static, ContentSource.STATIC, "coaching returned no strategies"
            )
        return ContentOutcome("coping_strategies", list(strategies), ContentSource.COACH)

    def safety_plan(self, profile: Optional[RecoveryProfile]) -> ContentOutcome[SafetyPlan]:
        if profile is None:
            return ContentOutcome(
                "safety_plan",
                self.library.safety_plan(),
                ContentSource.STATIC,
                "profile unavailable",
            )
        return ContentOutcome(
            "safety_plan",
            self.library.safety_plan(profile.coping_strategies, profile.support_contacts),
            ContentSource.STATIC,
        )
