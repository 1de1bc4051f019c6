"""Tests for LLM provider adapters, registry and response parsing."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from workability.core.errors import ReasoningServiceError
from workability.core.schemas import CandidateSignals, LanguageShare
from workability.profile.llm import (
    available_providers,
    build_signals_prompt,
    get_provider,
    parse_profile_response,
)
from workability.profile.llm.base import SYSTEM_PROMPT, LLMProvider

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _load_sample_response() -> str:
    return (FIXTURES_DIR / "sample_profile_response.json").read_text()


def _openai_module(content: str = "ok") -> MagicMock:
    mock_openai = MagicMock()
    mock_resp = MagicMock()
    mock_resp.choices[0].message.content = content
    mock_openai.OpenAI.return_value.chat.completions.create.return_value = mock_resp
    return mock_openai


# ---------------------------------------------------------------------------
# Registry tests
# ---------------------------------------------------------------------------
class TestProviderRegistry:
    @pytest.mark.parametrize("name", ["anthropic", "openai", "gemini", "ollama"])
    def test_get_provider(self, name: str) -> None:
        provider = get_provider(name)
        assert isinstance(provider, LLMProvider)
        assert provider.provider_id == name

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown LLM provider 'nope'"):
            get_provider("nope")

    def test_available_providers_sorted(self) -> None:
        assert available_providers() == ["anthropic", "gemini", "ollama", "openai"]


# ---------------------------------------------------------------------------
# Prompt / parsing tests
# ---------------------------------------------------------------------------
class TestSignalsPrompt:
    def test_prompt_carries_camel_case_signals(self) -> None:
        signals = CandidateSignals(
            primary_languages=[LanguageShare(name="Go", percentage=100.0)],
            stars_total=7,
        )
        payload = json.loads(build_signals_prompt(signals))
        assert payload["type"] == "CandidateSignals"
        assert payload["data"]["starsTotal"] == 7
        assert payload["data"]["primaryLanguages"][0]["name"] == "Go"


class TestParseProfileResponse:
    def test_plain_json(self) -> None:
        profile = parse_profile_response(_load_sample_response())
        assert profile.experience_level.level == "Senior"
        assert profile.workability_score.score == 88
        assert profile.skills[0].skill == "Python"
        assert profile.role_fits == ["Platform Engineer", "Backend Developer (Python)"]
        assert profile.is_mock is False

    def test_markdown_fenced_json(self) -> None:
        raw = "```json\n" + _load_sample_response() + "\n```"
        assert parse_profile_response(raw).workability_score.score == 88

    def test_is_mock_from_service_ignored(self) -> None:
        data = json.loads(_load_sample_response())
        data["isMock"] = True
        assert parse_profile_response(json.dumps(data)).is_mock is False

    def test_invalid_json(self) -> None:
        with pytest.raises(ReasoningServiceError, match="Failed to parse"):
            parse_profile_response("not json at all")

    def test_non_object(self) -> None:
        with pytest.raises(ReasoningServiceError, match="not a JSON object"):
            parse_profile_response("[1, 2]")

    def test_schema_violation(self) -> None:
        data = json.loads(_load_sample_response())
        data["roleFits"] = [f"role {i}" for i in range(6)]
        with pytest.raises(ReasoningServiceError, match="profile schema"):
            parse_profile_response(json.dumps(data))

    def test_missing_required_field(self) -> None:
        data = json.loads(_load_sample_response())
        del data["experienceLevel"]
        with pytest.raises(ReasoningServiceError):
            parse_profile_response(json.dumps(data))

    def test_empty_text(self) -> None:
        with pytest.raises(ReasoningServiceError):
            parse_profile_response("")


# ---------------------------------------------------------------------------
# Anthropic provider tests
# ---------------------------------------------------------------------------
class TestAnthropicProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("anthropic")
        assert provider.default_model == "claude-sonnet-4-20250514"
        assert provider.env_var == "ANTHROPIC_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="ANTHROPIC_API_KEY"),
        ):
            provider.complete("{}")

    def test_missing_sdk(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"anthropic": None}),
            pytest.raises(ImportError, match="anthropic is required"),
        ):
            provider.complete("{}")

    def test_complete_passes_timeout_and_system(self) -> None:
        provider = get_provider("anthropic")
        mock_client = MagicMock()
        mock_message = MagicMock()
        mock_message.content = [MagicMock(text="ok")]
        mock_client.messages.create.return_value = mock_message
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            result = provider.complete("signals", system="custom", timeout=12)

        assert result == "ok"
        assert mock_anthropic.Anthropic.call_args.kwargs["timeout"] == 12
        call_kwargs = mock_client.messages.create.call_args.kwargs
        assert call_kwargs["system"] == "custom"
        assert call_kwargs["model"] == "claude-sonnet-4-20250514"
        assert call_kwargs["messages"] == [{"role": "user", "content": "signals"}]

    def test_falls_back_to_system_prompt(self) -> None:
        provider = get_provider("anthropic")
        mock_client = MagicMock()
        mock_client.messages.create.return_value.content = [MagicMock(text="ok")]
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            provider.complete("signals")

        assert mock_client.messages.create.call_args.kwargs["system"] == SYSTEM_PROMPT
        assert "timeout" not in mock_anthropic.Anthropic.call_args.kwargs


# ---------------------------------------------------------------------------
# OpenAI provider tests
# ---------------------------------------------------------------------------
class TestOpenAIProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("openai")
        assert provider.default_model == "gpt-4.1-mini"
        assert provider.env_var == "OPENAI_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="OPENAI_API_KEY"),
        ):
            provider.complete("{}")

    def test_missing_sdk(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("{}")

    def test_complete_requests_json_object(self) -> None:
        provider = get_provider("openai")
        mock_openai = _openai_module("{\"a\": 1}")

        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "key"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            result = provider.complete("signals", model="gpt-x", timeout=5)

        assert result == "{\"a\": 1}"
        assert mock_openai.OpenAI.call_args.kwargs == {"api_key": "key", "timeout": 5}
        call_kwargs = mock_openai.OpenAI.return_value.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "gpt-x"
        assert call_kwargs["response_format"] == {"type": "json_object"}
        system_msg = next(m for m in call_kwargs["messages"] if m["role"] == "system")
        assert system_msg["content"] == SYSTEM_PROMPT


# ---------------------------------------------------------------------------
# Gemini provider tests
# ---------------------------------------------------------------------------
class TestGeminiProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("gemini")
        assert provider.default_model == "gemini-2.5-flash"
        assert provider.env_var == "GOOGLE_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("gemini")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="GOOGLE_API_KEY"),
        ):
            provider.complete("{}")

    def test_missing_sdk(self) -> None:
        provider = get_provider("gemini")
        with (
            patch.dict("os.environ", {"GOOGLE_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"google": None, "google.genai": None}),
            pytest.raises(ImportError, match="google-genai is required"),
        ):
            provider.complete("{}")

    def test_complete_uses_system_instruction(self) -> None:
        provider = get_provider("gemini")
        mock_google = MagicMock()
        mock_genai = mock_google.genai
        mock_genai.Client.return_value.models.generate_content.return_value.text = "ok"

        with (
            patch.dict("os.environ", {"GOOGLE_API_KEY": "key"}),
            patch.dict("sys.modules", {"google": mock_google, "google.genai": mock_genai}),
        ):
            result = provider.complete("signals", system="custom", timeout=2)

        assert result == "ok"
        mock_genai.types.HttpOptions.assert_called_once_with(timeout=2000)
        config_kwargs = mock_genai.types.GenerateContentConfig.call_args.kwargs
        assert config_kwargs["system_instruction"] == "custom"
        assert config_kwargs["response_mime_type"] == "application/json"


# ---------------------------------------------------------------------------
# Ollama provider tests
# ---------------------------------------------------------------------------
class TestOllamaProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("ollama")
        assert provider.default_model == "llama3"
        assert provider.env_var is None

    def test_missing_sdk(self) -> None:
        provider = get_provider("ollama")
        with (
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("{}")

    def test_complete_targets_local_server(self) -> None:
        provider = get_provider("ollama")
        mock_openai = _openai_module()

        with patch.dict("sys.modules", {"openai": mock_openai}):
            provider.complete("signals", system="custom")

        assert mock_openai.OpenAI.call_args.kwargs["base_url"] == "http://localhost:11434/v1"
        call_kwargs = mock_openai.OpenAI.return_value.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "llama3"
        system_msg = next(m for m in call_kwargs["messages"] if m["role"] == "system")
        assert system_msg["content"] == "custom"
