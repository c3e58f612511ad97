"""Intervention Planner configuration."""
import os
from dataclasses import dataclass, field

from recoverwell.shared.models import TriggerType
from recoverwell.services.llm_service import GenerationConfig


@dataclass(frozen=True)
class InterventionConfig:
    """Per-call timeouts (seconds) and defaults for the planner."""

    assessment_timeout: float = 5.0
    profile_timeout: float = 2.0
    telemetry_timeout: float = 2.0
    default_trigger: TriggerType = TriggerType.STRESS
    generation: GenerationConfig = field(default_factory=GenerationConfig)

    @classmethod
    def from_env(cls) -> "InterventionConfig":
        """Create config from environment variables.

        Environment variables:
            RECOVERWELL_ASSESSMENT_TIMEOUT: default 5.0
            RECOVERWELL_PROFILE_TIMEOUT: default 2.0
            RECOVERWELL_TELEMETRY_TIMEOUT: default 2.0
            plus the RECOVERWELL_*_TIMEOUT variables of GenerationConfig
        """
        return cls(
            assessment_timeout=float(os.getenv("RECOVERWELL_ASSESSMENT_TIMEOUT", "5.0")),
            profile_timeout=float(os.getenv("RECOVERWELL_PROFILE_TIMEOUT", "2.0")),
            telemetry_timeout=float(os.getenv("RECOVERWELL_TELEMETRY_TIMEOUT", "2.0")),
            generation=GenerationConfig.from_env(),
        )
