"""OpenAI chat-completions provider."""

import logging
from typing import Any

from workability.profile.llm.base import SYSTEM_PROMPT, LLMProvider, require_sdk

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Chat-completions in JSON-object mode. Also the base for compatible servers."""

    provider_id = "openai"
    default_model = "gpt-4.1-mini"
    env_var = "OPENAI_API_KEY"

    def _client(self, timeout: float | None) -> Any:
        key = self.api_key()
        openai = require_sdk("openai", "openai")
        return openai.OpenAI(api_key=key, timeout=timeout)

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        timeout: float | None = None,
    ) -> str:
        client = self._client(timeout)
        use_model = model or self.default_model

        logger.info("Requesting profile from %s (%s)", self.provider_id, use_model)
        response = client.chat.completions.create(
            model=use_model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT if system is None else system},
                {"role": "user", "content": prompt},
            ],
        )
        return response.choices[0].message.content  # type: ignore[no-any-return]
