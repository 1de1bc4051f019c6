"""Anthropic messages provider."""

import logging
from typing import Any

from workability.profile.llm.base import SYSTEM_PROMPT, LLMProvider, require_sdk

logger = logging.getLogger(__name__)

MAX_TOKENS = 2048


class AnthropicProvider(LLMProvider):
    provider_id = "anthropic"
    default_model = "claude-sonnet-4-20250514"
    env_var = "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        timeout: float | None = None,
    ) -> str:
        options: dict[str, Any] = {"api_key": self.api_key()}
        anthropic = require_sdk("anthropic", "anthropic")
        if timeout is not None:
            options["timeout"] = timeout
        client = anthropic.Anthropic(**options)
        use_model = model or self.default_model

        logger.info("Requesting profile from %s (%s)", self.provider_id, use_model)
        message = client.messages.create(
            model=use_model,
            max_tokens=MAX_TOKENS,
            system=SYSTEM_PROMPT if system is None else system,
            messages=[{"role": "user", "content": prompt}],
        )
        return message.content[0].text  # type: ignore[no-any-return]
