"""Reasoning-service providers, loaded on first use.

    from workability.profile.llm import build_signals_prompt, get_provider, parse_profile_response

    raw = get_provider("openai").complete(build_signals_prompt(signals))
    profile = parse_profile_response(raw)

Provider modules import their SDK only inside ``complete``, so every name in
the registry resolves even when no SDK is installed.
"""

from __future__ import annotations

import importlib

from workability.profile.llm.base import (
    LLMProvider,
    build_signals_prompt,
    parse_profile_response,
)

__all__ = [
    "LLMProvider",
    "available_providers",
    "build_signals_prompt",
    "get_provider",
    "parse_profile_response",
]

_PROVIDERS: dict[str, str] = {
    "anthropic": "workability.profile.llm.anthropic:AnthropicProvider",
    "gemini": "workability.profile.llm.gemini:GeminiProvider",
    "ollama": "workability.profile.llm.ollama:OllamaProvider",
    "openai": "workability.profile.llm.openai:OpenAIProvider",
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate the provider registered under ``name``.

    Raises:
        ValueError: If no provider has that name.
    """
    target = _PROVIDERS.get(name)
    if target is None:
        msg = f"Unknown LLM provider '{name}'. Available: {', '.join(available_providers())}"
        raise ValueError(msg)
    module_path, class_name = target.split(":")
    provider_cls: type[LLMProvider] = getattr(importlib.import_module(module_path), class_name)
    return provider_cls()


def available_providers() -> list[str]:
    return sorted(_PROVIDERS)
