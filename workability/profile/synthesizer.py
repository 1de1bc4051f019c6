"""Workability profile synthesis: remote reasoning service with heuristic fallback.

Selection:
  1. Remote strategy only when the provider's credential is configured.
  2. Any remote failure (timeout, quota, bad JSON, schema) falls back to
     the deterministic heuristic, flagged ``is_mock=True``.
"""

import asyncio
import logging
import os

from workability.core.config import ReasoningConfig
from workability.core.errors import ReasoningServiceError
from workability.core.schemas import CandidateSignals, SynthesisResult, WorkabilityProfile
from workability.profile.heuristic import build_heuristic_profile
from workability.profile.llm import build_signals_prompt, get_provider, parse_profile_response
from workability.profile.llm.base import SYSTEM_PROMPT, LLMProvider

logger = logging.getLogger(__name__)


class ProfileSynthesizer:
    """Turns CandidateSignals into a WorkabilityProfile. Never raises from ``synthesize``."""

    def __init__(
        self,
        config: ReasoningConfig | None = None,
        provider: LLMProvider | None = None,
    ) -> None:
        self._config = config or ReasoningConfig()
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider(self._config.provider)
        return self._provider

    def remote_available(self) -> bool:
        """True when remote synthesis is enabled and its credential is set."""
        if not self._config.enabled:
            return False
        env_var = self.provider.env_var
        if env_var is None:
            return True
        return bool(os.environ.get(env_var))

    async def synthesize_remote(self, signals: CandidateSignals) -> WorkabilityProfile:
        """Ask the reasoning service for a profile.

        Raises:
            ReasoningServiceError: On any failure of the remote call or its output.
        """
        prompt = build_signals_prompt(signals)
        timeout = self._config.timeout_seconds
        # wait_for cannot stop the worker thread; the SDK timeout ends it.
        # Both bounds use timeout_seconds and must stay equal.
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(
                    self.provider.complete,
                    prompt,
                    self._config.model,
                    system=SYSTEM_PROMPT,
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, TimeoutError) as e:
            msg = f"Reasoning service timed out after {timeout:.0f}s"
            raise ReasoningServiceError(msg) from e
        except ReasoningServiceError:
            raise
        except Exception as e:
            msg = f"Reasoning service call failed: {e}"
            raise ReasoningServiceError(msg) from e
        return parse_profile_response(raw)

    async def synthesize(self, signals: CandidateSignals) -> SynthesisResult:
        """Return a profile, preferring the remote strategy when available."""
        if self.remote_available():
            try:
                profile = await self.synthesize_remote(signals)
                return SynthesisResult(profile=profile, is_mock=False)
            except Exception:
                logger.warning(
                    "Remote profile synthesis failed (%s), using heuristic profile",
                    self._config.provider,
                    exc_info=True,
                )
        else:
            logger.debug("Reasoning service not configured, using heuristic profile")

        return SynthesisResult(profile=build_heuristic_profile(signals), is_mock=True)
