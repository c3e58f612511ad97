"""Text generation collaborators for crisis content.

Defines the contracts for the external text model, prompt anonymizer,
content personalizer and recovery coaching adapter, plus the
post-generation safety validation applied to anything they return.
"""

from .base import (
    GenerationConfig,
    GeneratedText,
    SafePrompt,
    PersonalizedContent,
    TextGenerator,
    PromptAnonymizer,
    ContentPersonalizer,
    CoachingAdapter,
    validate_prompt,
    validate_generated_text,
)
from .endpoint import EndpointConfig, EndpointTextGenerator, TemplatePromptAnonymizer

__all__ = [
    "GenerationConfig",
    "GeneratedText",
    "SafePrompt",
    "PersonalizedContent",
    "TextGenerator",
    "PromptAnonymizer",
    "ContentPersonalizer",
    "CoachingAdapter",
    "validate_prompt",
    "validate_generated_text",
    "EndpointConfig",
    "EndpointTextGenerator",
    "TemplatePromptAnonymizer",
]
