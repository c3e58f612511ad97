"""Static crisis content tables.

Coping strategies, affirmations, breathing and grounding exercises,
emergency resources, fallback messages and safety-plan defaults. These
are the last line of content when every external collaborator fails,
so nothing here may depend on I/O.
"""
from typing import Dict, List, Optional, Tuple

from recoverwell.shared.models import (
    BreathingExercise,
    CrisisStrategy,
    Difficulty,
    EmergencyResource,
    GroundingTechnique,
    InterventionType,
    ResourceType,
    RiskLevel,
    SafetyPlan,
    StrategyCategory,
    TriggerType,
)

MAX_EMERGENCY_RESOURCES = 3


# =============================================================================
# COPING STRATEGIES (per trigger type)
# =============================================================================

CRISIS_STRATEGIES: Dict[TriggerType, List[CrisisStrategy]] = {
    TriggerType.STRESS: [
        CrisisStrategy(
            name="Box Breathing",
            description="Slow, controlled breathing to activate your calm response",
            instructions=[
                "Breathe in for 4 counts",
                "Hold for 4 counts",
                "Breathe out for 4 counts",
                "Hold for 4 counts",
                "Repeat 4-6 times",
            ],
            time_required="2-3 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.9,
            category=StrategyCategory.IMMEDIATE,
        ),
        CrisisStrategy(
            name="Progressive Muscle Relaxation",
            description="Release physical tension to calm your mind",
            instructions=[
                "Tense your shoulders for 5 seconds",
                "Release and notice the relaxation",
                "Tense your arms for 5 seconds",
                "Release and breathe",
                "Continue with each muscle group",
            ],
            time_required="5-10 minutes",
            difficulty=Difficulty.MEDIUM,
            effectiveness=0.8,
            category=StrategyCategory.SHORT_TERM,
        ),
    ],
    TriggerType.ANXIETY: [
        CrisisStrategy(
            name="5-4-3-2-1 Grounding",
            description="Use your senses to anchor yourself in the present",
            instructions=[
                "Name 5 things you can see",
                "Name 4 things you can touch",
                "Name 3 things you can hear",
                "Name 2 things you can smell",
                "Name 1 thing you can taste",
            ],
            time_required="3-5 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.85,
            category=StrategyCategory.GROUNDING,
        ),
    ],
    TriggerType.DEPRESSION: [
        CrisisStrategy(
            name="Gentle Movement",
            description="Light physical activity to shift your energy",
            instructions=[
                "Stand up slowly",
                "Stretch your arms above your head",
                "Take 5 steps forward",
                "Take 5 deep breaths",
                "Notice any small change in how you feel",
            ],
            time_required="2-5 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.7,
            category=StrategyCategory.IMMEDIATE,
        ),
    ],
    TriggerType.LONELINESS: [
        CrisisStrategy(
            name="Connection Visualization",
            description="Remember your support network and connection",
            instructions=[
                "Think of someone who cares about you",
                "Imagine their voice saying something kind",
                "Remember a time they helped you",
                "Feel that connection in your heart",
                "Know that connection is still there",
            ],
            time_required="3-5 minutes",
            difficulty=Difficulty.MEDIUM,
            effectiveness=0.75,
            category=StrategyCategory.GROUNDING,
        ),
    ],
    TriggerType.ANGER: [
        CrisisStrategy(
            name="Cooling Breath",
            description="Use breathing to cool down intense anger",
            instructions=[
                "Breathe in slowly through your nose",
                "Imagine cool, calming air",
                "Breathe out slowly through your mouth",
                "Imagine releasing the heat of anger",
                "Repeat until you feel cooler",
            ],
            time_required="2-4 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.8,
            category=StrategyCategory.IMMEDIATE,
        ),
    ],
    TriggerType.BOREDOM: [
        CrisisStrategy(
            name="Mindful Observation",
            description="Engage your mind with present-moment awareness",
            instructions=[
                "Choose an object near you",
                "Look at it closely for 1 minute",
                "Notice colors, textures, shapes",
                "Think about its purpose and history",
                "Appreciate its existence",
            ],
            time_required="3-5 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.6,
            category=StrategyCategory.DISTRACTION,
        ),
    ],
    TriggerType.FATIGUE: [
        CrisisStrategy(
            name="Energy Check-In",
            description="Gentle assessment and energy conservation",
            instructions=[
                "Sit or lie down comfortably",
                "Notice where you feel tired",
                "Take 3 deep, nourishing breaths",
                "Ask yourself what you need right now",
                "Choose the gentlest option available",
            ],
            time_required="2-3 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.7,
            category=StrategyCategory.IMMEDIATE,
        ),
    ],
    TriggerType.CUSTOM: [
        CrisisStrategy(
            name="Mindful Pause",
            description="Create space between you and the difficult feeling",
            instructions=[
                "Stop what you're doing",
                "Take one deep breath",
                "Notice what you're feeling without judgment",
                "Remind yourself this feeling will pass",
                "Choose your next action mindfully",
            ],
            time_required="1-2 minutes",
            difficulty=Difficulty.EASY,
            effectiveness=0.75,
            category=StrategyCategory.IMMEDIATE,
        ),
    ],
}


# =============================================================================
# AFFIRMATIONS (per trigger type, CUSTOM is the fallback)
# =============================================================================

AFFIRMATIONS: Dict[TriggerType, List[str]] = {
    TriggerType.STRESS: [
        "I can handle this one moment at a time",
        "This stress will pass, and I will be okay",
        "I have tools to manage difficult feelings",
        "I am stronger than this temporary challenge",
    ],
    TriggerType.ANXIETY: [
        "I am safe in this moment",
        "This anxiety is temporary and will pass",
        "I can breathe through this feeling",
        "I have survived anxiety before and I will again",
    ],
    TriggerType.DEPRESSION: [
        "This feeling is not permanent",
        "I matter and my life has value",
        "Small steps forward are still progress",
        "I deserve compassion, especially from myself",
    ],
    TriggerType.LONELINESS: [
        "I am not truly alone in this world",
        "Connection is possible, even in small ways",
        "I can be good company for myself",
        "There are people who care about me",
    ],
    TriggerType.ANGER: [
        "I can feel this anger without acting on it",
        "This intense feeling will cool down",
        "I have the power to choose my response",
        "I can express my needs in healthy ways",
    ],
    TriggerType.BOREDOM: [
        "This moment has potential I haven't discovered yet",
        "I can find meaning in simple things",
        "Stillness can be peaceful, not empty",
        "I have the power to create interest and engagement",
    ],
    TriggerType.FATIGUE: [
        "It's okay to rest when I need to",
        "My energy will return with proper care",
        "I can be gentle with myself today",
        "Small actions are enough right now",
    ],
    TriggerType.CUSTOM: [
        "This difficult moment will pass",
        "I have the strength to get through this",
        "I am worthy of help and support",
        "I can take this one breath at a time",
    ],
}

FALLBACK_AFFIRMATIONS: List[str] = [
    "This feeling is temporary",
    "I have survived difficult moments before",
    "I am stronger than this challenge",
    "Help is available when I need it",
]

EMERGENCY_AFFIRMATIONS: List[str] = [
    "I am safe right now",
    "This feeling is temporary",
    "Help is available when I need it",
    "I have survived difficult moments before",
]


# =============================================================================
# BREATHING EXERCISES ((trigger, severity) -> exercise, with one default)
# =============================================================================

DEFAULT_BREATHING = BreathingExercise(
    name="Simple Deep Breathing",
    description="Basic calming breath for any situation",
    pattern="4-6",
    duration="5-10 breaths",
    instructions=[
        "Breathe in slowly for 4 counts",
        "Breathe out slowly for 6 counts",
        "Focus on making exhale longer than inhale",
        "Continue for 5-10 breaths",
    ],
)

BREATHING_EXERCISES: Dict[Tuple[TriggerType, RiskLevel], BreathingExercise] = {
    (TriggerType.ANXIETY, RiskLevel.HIGH): BreathingExercise(
        name="4-7-8 Calming Breath",
        description="Powerful breathing technique to reduce anxiety quickly",
        pattern="4-7-8",
        duration="3-4 cycles",
        instructions=[
            "Exhale completely through your mouth",
            "Close your mouth and inhale through nose for 4 counts",
            "Hold your breath for 7 counts",
            "Exhale through mouth for 8 counts",
            "Repeat 3-4 times maximum",
        ],
    ),
    (TriggerType.STRESS, RiskLevel.MEDIUM): BreathingExercise(
        name="Box Breathing",
        description="Balanced breathing to restore calm and focus",
        pattern="4-4-4-4",
        duration="5-10 cycles",
        instructions=[
            "Inhale for 4 counts",
            "Hold for 4 counts",
            "Exhale for 4 counts",
            "Hold empty for 4 counts",
            "Repeat 5-10 times",
        ],
    ),
}


# =============================================================================
# GROUNDING TECHNIQUES
# =============================================================================

SENSORY_GROUNDING = GroundingTechnique(
    name="5-4-3-2-1 Sensory Grounding",
    description="Use all your senses to anchor yourself in the present moment",
    steps=[
        "Look around and name 5 things you can see",
        "Notice and name 4 things you can physically feel",
        "Listen and identify 3 things you can hear",
        "Find 2 things you can smell",
        "Notice 1 thing you can taste",
    ],
    sensory_focus=["sight", "touch", "hearing", "smell", "taste"],
    time_required="3-5 minutes",
)

PHYSICAL_GROUNDING = GroundingTechnique(
    name="Physical Grounding",
    description="Use physical sensations to feel more present and stable",
    steps=[
        "Feel your feet on the ground",
        "Notice the weight of your body",
        "Touch a nearby object and focus on its texture",
        "Take three deep breaths",
        "Say your name and today's date out loud",
    ],
    sensory_focus=["touch", "proprioception"],
    time_required="2-3 minutes",
)


# =============================================================================
# MESSAGES
# =============================================================================

FALLBACK_MESSAGES: Dict[InterventionType, str] = {
    InterventionType.IMMEDIATE: (
        "You are safe right now. This intense feeling will pass. "
        "Take a deep breath with me and let's work through this moment together."
    ),
    InterventionType.SUPPORTIVE: (
        "I understand you're going through a difficult time. You have the strength "
        "to get through this, and you don't have to face it alone."
    ),
    InterventionType.PREVENTIVE: (
        "I notice you might be struggling right now. Let's take a moment to use "
        "some tools that can help you feel more grounded and in control."
    ),
}

COMPOSITION_FAILURE_MESSAGE = (
    "You are not alone in this moment. This feeling will pass. "
    "Let's work through this together."
)

EMERGENCY_MESSAGE = (
    "You are not alone. This difficult moment will pass. "
    "Please reach out for support if you need it."
)


# =============================================================================
# SAFETY PLAN DEFAULTS
# =============================================================================

WARNING_SIGNS: List[str] = [
    "Feeling overwhelmed or hopeless",
    "Isolating from others",
    "Neglecting self-care",
    "Increased substance cravings",
]

DEFAULT_COPING_STRATEGIES: List[str] = [
    "Deep breathing exercises",
    "Call a trusted friend",
    "Use grounding techniques",
    "Practice mindfulness",
]

DEFAULT_SUPPORT_CONTACTS: List[str] = [
    "Trusted friend or family member",
    "Sponsor or mentor",
    "Therapist or counselor",
]

PROFESSIONAL_CONTACTS: List[str] = [
    "Crisis Hotline: 988",
    "Crisis Text Line: Text HOME to 741741",
    "Emergency Services: 911",
]

ENVIRONMENTAL_SAFETY: List[str] = [
    "Remove or secure potential triggers",
    "Stay in safe, supportive environments",
    "Avoid high-risk situations when vulnerable",
]

REASONS_FOR_LIVING: List[str] = [
    "People who care about me",
    "Goals I want to achieve",
    "Experiences I want to have",
    "The possibility that things can get better",
]


# =============================================================================
# EMERGENCY RESOURCES
# =============================================================================

EMERGENCY_RESOURCES: List[EmergencyResource] = [
    EmergencyResource(
        type=ResourceType.HOTLINE,
        name="National Suicide Prevention Lifeline",
        description="24/7 crisis support and suicide prevention",
        contact="988",
        availability="24/7",
        anonymous=True,
        immediate=True,
        specialization=["suicide_prevention", "mental_health_crisis"],
    ),
    EmergencyResource(
        type=ResourceType.TEXT,
        name="Crisis Text Line",
        description="Text-based crisis support",
        contact="Text HOME to 741741",
        availability="24/7",
        anonymous=True,
        immediate=True,
        specialization=["crisis_support", "mental_health"],
    ),
    EmergencyResource(
        type=ResourceType.HOTLINE,
        name="SAMHSA National Helpline",
        description="Treatment referral and information service",
        contact="1-800-662-4357",
        availability="24/7",
        anonymous=True,
        immediate=True,
        specialization=["substance_abuse", "mental_health", "treatment_referral"],
    ),
    EmergencyResource(
        type=ResourceType.CHAT,
        name="NAMI HelpLine",
        description="Mental health information and support",
        contact="nami.org/help",
        availability="Mon-Fri 10am-10pm ET",
        anonymous=False,
        immediate=False,
        specialization=["mental_health", "family_support"],
    ),
]

# Triggers that narrow resources to mental-health specializations
MENTAL_HEALTH_TRIGGERS = frozenset({TriggerType.DEPRESSION, TriggerType.ANXIETY})
MENTAL_HEALTH_SPECIALIZATIONS = frozenset({"mental_health", "suicide_prevention"})


class ContentLibrary:
    """Read-only lookups over the static content tables.

    Holds no mutable state; one instance can be shared by every planner.
    """

    def __init__(
        self,
        resources: Optional[List[EmergencyResource]] = None,
        max_resources: int = MAX_EMERGENCY_RESOURCES,
    ):
        self.resources = list(resources) if resources is not None else list(EMERGENCY_RESOURCES)
        self.max_resources = max_resources

    def crisis_strategies(self, trigger_type: TriggerType) -> List[CrisisStrategy]:
        return list(CRISIS_STRATEGIES.get(trigger_type, CRISIS_STRATEGIES[TriggerType.CUSTOM]))

    def affirmations(self, trigger_type: TriggerType) -> List[str]:
        return list(AFFIRMATIONS.get(trigger_type, AFFIRMATIONS[TriggerType.CUSTOM]))

    def breathing_exercise(
        self,
        trigger_type: TriggerType,
        severity: RiskLevel,
    ) -> BreathingExercise:
        """Exercise for (trigger, severity), or the 4-6 default."""
        return BREATHING_EXERCISES.get((trigger_type, severity), DEFAULT_BREATHING)

    def grounding_technique(
        self,
        trigger_type: TriggerType,
        severity: RiskLevel,
    ) -> GroundingTechnique:
        """Sensory 5-4-3-2-1 for anxiety or high severity, physical otherwise."""
        if trigger_type == TriggerType.ANXIETY or severity == RiskLevel.HIGH:
            return SENSORY_GROUNDING
        return PHYSICAL_GROUNDING

    def fallback_message(self, intervention_type: InterventionType) -> str:
        return FALLBACK_MESSAGES[intervention_type]

    def safety_plan(
        self,
        coping_strategies: Optional[List[str]] = None,
        support_contacts: Optional[List[str]] = None,
    ) -> SafetyPlan:
        """Build a safety plan from the user's own lists, or generic defaults.

        Args:
            coping_strategies: Profile's declared coping strategies
            support_contacts: Profile's declared support contacts

        Returns:
            SafetyPlan with the fixed professional contact list
        """
        return SafetyPlan(
            warning_signs_identified=list(WARNING_SIGNS),
            coping_strategies_listed=list(coping_strategies or DEFAULT_COPING_STRATEGIES),
            support_contacts=list(support_contacts or DEFAULT_SUPPORT_CONTACTS),
            professional_contacts=list(PROFESSIONAL_CONTACTS),
            environmental_safety=list(ENVIRONMENTAL_SAFETY),
            reasons_for_living=list(REASONS_FOR_LIVING),
        )

    def emergency_resources(
        self,
        severity: RiskLevel,
        trigger_type: TriggerType,
    ) -> List[EmergencyResource]:
        """Select at most three resources for a severity and trigger.

        High and critical severity keep only immediately reachable
        resources. Depression and anxiety keep only mental-health or
        suicide-prevention specializations.
        """
        resources = list(self.resources)

        if severity in (RiskLevel.HIGH, RiskLevel.CRITICAL):
            resources = [r for r in resources if r.immediate]

        if trigger_type in MENTAL_HEALTH_TRIGGERS:
            resources = [
                r for r in resources
                if MENTAL_HEALTH_SPECIALIZATIONS.intersection(r.specialization)
            ]

        return resources[:self.max_resources]

    def immediate_resources(self) -> List[EmergencyResource]:
        """Immediately reachable resources for the emergency fallback path."""
        return [r for r in self.resources if r.immediate][:self.max_resources]
