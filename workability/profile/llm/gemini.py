"""Google Gemini provider (google-genai SDK)."""

import logging

from workability.profile.llm.base import SYSTEM_PROMPT, LLMProvider, require_sdk

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Gemini with a JSON response MIME type."""

    provider_id = "gemini"
    default_model = "gemini-2.5-flash"
    env_var = "GOOGLE_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        timeout: float | None = None,
    ) -> str:
        key = self.api_key()
        genai = require_sdk("google.genai", "gemini", package="google-genai")
        types = genai.types
        use_model = model or self.default_model

        # HttpOptions.timeout is in milliseconds
        http_options = types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None
        client = genai.Client(api_key=key, http_options=http_options)

        logger.info("Requesting profile from %s (%s)", self.provider_id, use_model)
        response = client.models.generate_content(
            model=use_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_PROMPT if system is None else system,
                response_mime_type="application/json",
            ),
        )
        return response.text  # type: ignore[no-any-return]
