"""HTTP inference endpoint text generator.

Talks to a text-generation inference endpoint (HuggingFace Inference API
compatible payloads). Timeouts and failures are raised to the caller,
which degrades to static content.
"""
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from recoverwell.shared.utils import hash_pii
from .base import (
    GeneratedText,
    PromptAnonymizer,
    SafePrompt,
    TextGenerator,
    validate_prompt,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointConfig:
    """Connection settings for the inference endpoint."""
    endpoint: str
    model_name: str = "crisis-support"
    api_key: Optional[str] = None
    max_tokens: int = 160
    temperature: float = 0.7
    top_p: float = 0.9
    timeout_seconds: float = 8.0

    @classmethod
    def from_env(cls) -> Optional["EndpointConfig"]:
        """Create config from environment variables, or None when no endpoint is set.

        Environment variables:
            RECOVERWELL_TEXT_ENDPOINT: inference URL (required)
            RECOVERWELL_TEXT_MODEL: default "crisis-support"
            RECOVERWELL_TEXT_API_KEY: bearer token (optional)
        """
        endpoint = os.getenv("RECOVERWELL_TEXT_ENDPOINT")
        if not endpoint:
            return None
        return cls(
            endpoint=endpoint,
            model_name=os.getenv("RECOVERWELL_TEXT_MODEL", "crisis-support"),
            api_key=os.getenv("RECOVERWELL_TEXT_API_KEY"),
        )


class EndpointTextGenerator(TextGenerator):
    """TextGenerator backed by an HTTP inference endpoint."""

    def __init__(self, config: EndpointConfig):
        self.config = config
        self.headers: Dict[str, str] = {}
        if config.api_key:
            self.headers["Authorization"] = f"Bearer {config.api_key}"

        logger.info(
            "TEXT_GENERATOR_INITIALIZED",
            extra={"model": config.model_name}
        )

    async def generate(
        self,
        prompt: str,
        category: str,
        user_id: Optional[str] = None,
    ) -> GeneratedText:
        """Generate text for an anonymized prompt.

        Args:
            prompt: Anonymized prompt
            category: Content category, forwarded as a parameter
            user_id: Only used for hashed logging

        Returns:
            GeneratedText with the endpoint's confidence, 0.0 when it sends none

        Raises:
            ValueError: If the prompt is invalid
            aiohttp.ClientError: On HTTP failure
            asyncio.TimeoutError: If the endpoint exceeds its deadline
        """
        if not validate_prompt(prompt):
            raise ValueError("Invalid prompt")

        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
                "top_p": self.config.top_p,
                "return_full_text": False,
                "category": category,
            },
        }

        start_time = time.time()
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.config.endpoint,
                    headers=self.headers,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
                ) as response:
                    response.raise_for_status()
                    result = await response.json()
        except Exception as e:
            logger.error(
                "TEXT_GENERATION_FAILED",
                extra={
                    "model": self.config.model_name,
                    "user_id_hash": hash_pii(user_id) if user_id else None,
                    "error": str(e),
                }
            )
            raise

        first: Dict[str, Any] = result[0] if isinstance(result, list) and result else result
        if not isinstance(first, dict):
            first = {}

        logger.info(
            "TEXT_GENERATED",
            extra={
                "model": self.config.model_name,
                "category": category,
                "latency_ms": round((time.time() - start_time) * 1000, 1),
            }
        )
        return GeneratedText(
            content=first.get("generated_text", ""),
            confidence=float(first.get("confidence", 0.0)),
        )


class TemplatePromptAnonymizer(PromptAnonymizer):
    """Anonymizer for prompts built purely from templates.

    Crisis prompts carry only trigger, severity and intervention type, so
    the text passes through unchanged; context keys become markers.
    """

    async def create_safe_prompt(self, text: str, context: Dict[str, Any]) -> SafePrompt:
        return SafePrompt(prompt=text, context_markers=sorted(context))
