"""Local Ollama server through its OpenAI-compatible endpoint."""

from typing import Any

from workability.profile.llm.base import require_sdk
from workability.profile.llm.openai import OpenAIProvider

OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    provider_id = "ollama"
    default_model = "llama3"
    env_var = None

    def _client(self, timeout: float | None) -> Any:
        openai = require_sdk("openai", "openai")
        # the endpoint ignores the key but the SDK insists on one
        return openai.OpenAI(base_url=OLLAMA_BASE_URL, api_key="ollama", timeout=timeout)
