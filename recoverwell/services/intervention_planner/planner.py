"""Crisis Intervention Planner.

Turns a risk level into an intervention: picks the intervention type,
composes content, selects emergency resources and schedules follow-up.

This is a safety-critical path. Whatever fails, the user receives
support: sub-steps degrade to static content, and an unrecovered error
anywhere produces the emergency fallback intervention.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

from recoverwell.shared.database import CheckInRepository, ProfileRepository
from recoverwell.shared.models import (
    ContentOutcome,
    ContentSource,
    CrisisFollowUp,
    Intervention,
    InterventionContent,
    InterventionType,
    RiskLevel,
    TriggerType,
)
from recoverwell.shared.utils import Clock, SystemClock, hash_pii
from recoverwell.services.content_library import (
    EMERGENCY_AFFIRMATIONS,
    EMERGENCY_MESSAGE,
    ContentLibrary,
)
from recoverwell.services.llm_service import (
    CoachingAdapter,
    ContentPersonalizer,
    PromptAnonymizer,
    TextGenerator,
)
from recoverwell.services.risk_assessor import RiskAssessor
from .config import InterventionConfig
from .content import EMERGENCY_FALLBACK, ContentComposer
from .followup import (
    EMERGENCY_FOLLOW_UP,
    create_follow_up,
    follow_up_required,
    schedule_follow_up,
)

logger = logging.getLogger(__name__)


def new_intervention_id() -> str:
    return f"intervention_{uuid.uuid4().hex[:12]}"


def classify_intervention(severity: RiskLevel, escalation_required: bool = False) -> InterventionType:
    """Critical or escalated -> immediate; high/medium -> supportive; low -> preventive."""
    if severity == RiskLevel.CRITICAL or escalation_required:
        return InterventionType.IMMEDIATE
    if severity in (RiskLevel.HIGH, RiskLevel.MEDIUM):
        return InterventionType.SUPPORTIVE
    return InterventionType.PREVENTIVE


class CrisisInterventionPlanner:
    """Provides crisis interventions and follow-ups.

    Stateless between calls; interventions are returned, not stored.
    """

    def __init__(
        self,
        assessor: RiskAssessor,
        profiles: ProfileRepository,
        check_ins: CheckInRepository,
        generator: Optional[TextGenerator] = None,
        anonymizer: Optional[PromptAnonymizer] = None,
        personalizer: Optional[ContentPersonalizer] = None,
        coach: Optional[CoachingAdapter] = None,
        library: Optional[ContentLibrary] = None,
        clock: Optional[Clock] = None,
        config: Optional[InterventionConfig] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """Initialize planner with dependencies.

        Args:
            assessor: Risk Assessor used when severity is not supplied
            profiles: Recovery profile store (safety plan personalization)
            check_ins: Check-in store (interaction telemetry)
            generator: External text model
            anonymizer: Prompt anonymizer, required for text generation
            personalizer: Content personalizer
            coach: Recovery coaching collaborator
            library: Static content (defaults to ContentLibrary())
            clock: Time source (defaults to the system clock)
            config: Timeouts and defaults
            id_factory: Intervention id generator
        """
        self.assessor = assessor
        self.check_ins = check_ins
        self.library = library or ContentLibrary()
        self.clock = clock or SystemClock()
        self.config = config or InterventionConfig()
        self.id_factory = id_factory or new_intervention_id
        self.composer = ContentComposer(
            profiles=profiles,
            library=self.library,
            generator=generator,
            anonymizer=anonymizer,
            personalizer=personalizer,
            coach=coach,
            config=self.config,
        )

        logger.info(
            "INTERVENTION_PLANNER_INITIALIZED",
            extra={
                "text_generation": generator is not None,
                "personalization": personalizer is not None,
                "coaching": coach is not None,
            }
        )

    async def provide_crisis_intervention(
        self,
        user_id: str,
        trigger_type: Optional[TriggerType] = None,
        severity: Optional[RiskLevel] = None,
    ) -> Intervention:
        """Provide a crisis intervention. Never raises.

        When severity is not supplied the Risk Assessor decides it, and
        the user's first declared trigger is used if none is given.

        Args:
            user_id: User identifier
            trigger_type: Trigger to address (default: assessed, then stress)
            severity: Severity to size the intervention for

        Returns:
            Intervention; the emergency fallback intervention on any
            unrecovered error

        Logs:
            - CRISIS_INTERVENTION_PROVIDED: On success
            - CRISIS_INTERVENTION_FAILED: On emergency fallback (critical)
        """
        now = self.clock.now()
        user_id_hash = hash_pii(user_id)
        default_trigger = self.config.default_trigger

        try:
            escalation_required = False
            if severity is None:
                assessment = await asyncio.wait_for(
                    self.assessor.assess_crisis_risk(user_id),
                    timeout=self.config.assessment_timeout,
                )
                severity = assessment.overall_risk_level
                escalation_required = assessment.escalation_required
                if trigger_type is None and assessment.trigger_types:
                    trigger_type = assessment.trigger_types[0]
            trigger_type = trigger_type or default_trigger

            intervention_type = classify_intervention(severity, escalation_required)
            content, outcomes = await self.composer.compose(
                user_id, trigger_type, severity, intervention_type
            )

            intervention = Intervention(
                intervention_id=self.id_factory(),
                user_id=user_id,
                trigger_type=trigger_type,
                severity=severity,
                intervention_type=intervention_type,
                content=content,
                emergency_resources=self.library.emergency_resources(severity, trigger_type),
                follow_up_required=follow_up_required(severity),
                follow_up_scheduled=schedule_follow_up(severity, now),
                created_at=now,
                content_outcomes=outcomes,
            )
        except Exception as e:
            logger.critical(
                "CRISIS_INTERVENTION_FAILED",
                extra={
                    "user_id_hash": user_id_hash,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "EMERGENCY_FALLBACK",
                }
            )
            return self.emergency_fallback(
                user_id,
                trigger_type or default_trigger,
                f"intervention failed: {type(e).__name__}",
            )

        await self._record_interaction(user_id, now)

        log = logger.critical if intervention_type == InterventionType.IMMEDIATE else logger.info
        log(
            "CRISIS_INTERVENTION_PROVIDED",
            extra={
                "user_id_hash": user_id_hash,
                "intervention_id": intervention.intervention_id,
                "intervention_type": intervention_type.value,
                "severity": severity.value,
                "trigger_type": trigger_type.value,
                "degraded_steps": [o.step for o in intervention.content_outcomes if o.degraded],
            }
        )
        return intervention

    async def check_for_crisis_intervention(self, user_id: str) -> Optional[Intervention]:
        """Provide an intervention if the user is in immediate crisis.

        A failed crisis check still provides an intervention.
        """
        try:
            needs_intervention = await self.assessor.detect_immediate_crisis(user_id)
        except Exception as e:
            logger.error(
                "CRISIS_CHECK_FAILED",
                extra={
                    "user_id_hash": hash_pii(user_id),
                    "error": str(e),
                    "action": "PROVIDE_INTERVENTION",
                }
            )
            needs_intervention = True

        if not needs_intervention:
            return None
        return await self.provide_crisis_intervention(user_id)

    async def provide_crisis_follow_up(self, intervention_id: str) -> CrisisFollowUp:
        follow_up = create_follow_up(intervention_id, self.clock.now())
        logger.info("CRISIS_FOLLOW_UP_CREATED", extra={"intervention_id": intervention_id})
        return follow_up

    def emergency_fallback(
        self,
        user_id: str,
        trigger_type: TriggerType,
        reason: str,
    ) -> Intervention:
        """Fixed high-severity, immediate intervention built only from static content."""
        now = self.clock.now()
        content = InterventionContent(
            primary_message=EMERGENCY_MESSAGE,
            coping_strategies=self.library.crisis_strategies(trigger_type),
            affirmations=list(EMERGENCY_AFFIRMATIONS),
            personalized_elements=[EMERGENCY_FALLBACK],
        )
        return Intervention(
            intervention_id=self.id_factory(),
            user_id=user_id,
            trigger_type=trigger_type,
            severity=RiskLevel.HIGH,
            intervention_type=InterventionType.IMMEDIATE,
            content=content,
            emergency_resources=self.library.immediate_resources(),
            follow_up_required=True,
            follow_up_scheduled=now + EMERGENCY_FOLLOW_UP,
            created_at=now,
            content_outcomes=[
                ContentOutcome("intervention", content, ContentSource.STATIC, reason),
            ],
        )

    async def _record_interaction(self, user_id: str, now: datetime) -> None:
        """Count the intervention as an AI interaction. Failures are swallowed."""
        try:
            await asyncio.wait_for(
                self.check_ins.increment_ai_interactions(user_id, now.date()),
                timeout=self.config.telemetry_timeout,
            )
        except Exception as e:
            logger.warning(
                "INTERVENTION_TELEMETRY_FAILED",
                extra={"user_id_hash": hash_pii(user_id), "error": str(e)}
            )
