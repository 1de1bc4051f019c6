"""Provider contract, signals prompt and profile response parsing."""

import importlib
import json
import os
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from workability.core.errors import ReasoningServiceError
from workability.core.schemas import CandidateSignals, WorkabilityProfile

SYSTEM_PROMPT = (
    "You are an expert engineering and hiring manager.\n\n"
    "You will receive aggregated GitHub signals about a developer "
    "(languages, stars, recent commit activity, project types, collaboration).\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) in exactly this structure:\n"
    "{\n"
    '  "skills": [{"skill": "string", "confidence": "High|Med|Low"}],\n'
    '  "realWorkEvidence": ["string"],\n'
    '  "experienceLevel": {"level": "Junior|Mid|Senior", "rationale": "string"},\n'
    '  "workStyle": [{"trait": "string", "description": "string"}],\n'
    '  "roleFits": ["string"],\n'
    '  "workabilityScore": {"score": <number 0-100>, "rationale": "string"}\n'
    "}\n\n"
    "At most 6 realWorkEvidence entries and at most 5 roleFits. "
    "Base every statement on the signals provided."
)


def build_signals_prompt(signals: CandidateSignals) -> str:
    """Serialize signals into the user message sent to the provider."""
    return json.dumps({"type": "CandidateSignals", "data": signals.to_wire()})


def parse_profile_response(raw_text: str) -> WorkabilityProfile:
    """Parse an LLM response text into a WorkabilityProfile.

    Handles markdown-wrapped JSON (```json ... ```) and plain JSON.

    Raises:
        ReasoningServiceError: If the text is not JSON or violates the schema.
    """
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", (raw_text or "").strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ReasoningServiceError(msg) from e

    if not isinstance(data, dict):
        msg = "LLM response is not a JSON object"
        raise ReasoningServiceError(msg)

    data.pop("isMock", None)
    data.pop("is_mock", None)
    try:
        return WorkabilityProfile.model_validate({**data, "is_mock": False})
    except ValidationError as e:
        msg = f"LLM response does not match the profile schema: {e}"
        raise ReasoningServiceError(msg) from e


def require_sdk(module: str, extra: str, package: str | None = None) -> Any:
    """Import an optional SDK, naming the extra that installs it when missing."""
    try:
        return importlib.import_module(module)
    except ImportError:
        msg = (
            f"{package or module} is required for profile synthesis. "
            f"Install with: pip install 'workability-engine[{extra}]'"
        )
        raise ImportError(msg) from None


class LLMProvider(ABC):
    """A reasoning service that turns serialized signals into profile JSON.

    Subclasses declare ``provider_id``, ``default_model`` and ``env_var``;
    ``complete`` is the only call that touches the network.
    """

    provider_id: str
    default_model: str
    env_var: str | None = None

    def api_key(self) -> str | None:
        """Credential from ``env_var``. None when the provider needs no key.

        Raises:
            ValueError: If the provider needs a key and it is unset.
        """
        if self.env_var is None:
            return None
        key = os.environ.get(self.env_var)
        if not key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return key

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        timeout: float | None = None,
    ) -> str:
        """Send serialized signals and return the raw response text.

        Args:
            prompt: User message from ``build_signals_prompt``.
            model: Model override; None uses ``default_model``.
            system: System prompt override; None uses SYSTEM_PROMPT.
            timeout: Per-request SDK timeout in seconds.
        """
