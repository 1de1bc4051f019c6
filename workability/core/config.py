"""Configuration models and YAML loader for the workability engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

# Category → keywords matched (substring) against "<name> <description>".
DEFAULT_PROJECT_TYPE_KEYWORDS: dict[str, list[str]] = {
    "web": ["web", "site", "app", "frontend", "backend", "server", "api", "http"],
    "cli": ["cli", "command", "terminal", "tool"],
    "library": ["lib", "library", "package", "sdk", "framework"],
    "data": ["data", "ml", "machine-learning", "ai", "analytics", "database"],
    "mobile": ["mobile", "ios", "android", "react-native", "flutter"],
    "devops": ["docker", "kubernetes", "ci", "cd", "deploy", "infrastructure"],
}

ALLOWED_PROVIDERS = {"anthropic", "openai", "gemini", "ollama"}


class GitHubConfig(BaseModel):
    """Hosting API client configuration."""

    api_base: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"
    timeout_seconds: float = Field(default=10.0, gt=0)
    repo_limit: int = Field(default=100, ge=1, le=100)
    commit_limit: int = Field(default=20, ge=1, le=100)
    user_agent: str = "workability-app"


class SignalsConfig(BaseModel):
    """Static rules for signal extraction."""

    top_n_repos: int = Field(default=10, ge=1)
    top_repos_reported: int = Field(default=5, ge=0)
    window_days: int = Field(default=30, ge=1)
    max_languages: int = Field(default=3, ge=1)
    project_type_keywords: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PROJECT_TYPE_KEYWORDS.items()},
    )

    @field_validator("project_type_keywords")
    @classmethod
    def keywords_lowercase(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        return {
            category: [kw.lower().strip() for kw in keywords if kw.strip()]
            for category, keywords in v.items()
        }


class ReasoningConfig(BaseModel):
    """Remote reasoning service used to synthesize workability profiles."""

    enabled: bool = True
    provider: str = "openai"
    model: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("provider")
    @classmethod
    def provider_known(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ALLOWED_PROVIDERS:
            msg = f"provider must be one of {sorted(ALLOWED_PROVIDERS)}, got '{v}'"
            raise ValueError(msg)
        return v


class CacheConfig(BaseModel):
    """Result store configuration."""

    database_path: str = "data/workability.db"
    profile_max_age_hours: float = Field(default=6.0, ge=0)


class BatchConfig(BaseModel):
    """Multi-candidate evaluation limits."""

    max_concurrency: int = Field(default=4, ge=1, le=32)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    signals: SignalsConfig = Field(default_factory=SignalsConfig)
    reasoning: ReasoningConfig = Field(default_factory=ReasoningConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    @classmethod
    def load(cls, path: str | Path | None) -> "Settings":
        """Load from YAML when a path is given and exists, defaults otherwise."""
        if path is None or not Path(path).exists():
            return cls()
        return cls.from_yaml(path)
