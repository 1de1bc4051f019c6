"""Core data models for the workability engine.

All records are frozen: a new request produces new values. Attributes are
snake_case; ``model_dump(by_alias=True)`` yields the camelCase wire names
consumers expect (``primaryLanguages``, ``isMock``, ...).
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Confidence = Literal["High", "Med", "Low"]
Level = Literal["Junior", "Mid", "Senior"]


class WireModel(BaseModel):
    """Frozen model that accepts snake_case or camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        item = item.strip()
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            result.append(item)
    return result


# ---------------------------------------------------------------------------
# Hosting API records
# ---------------------------------------------------------------------------


class GitHubUser(WireModel):
    login: str
    created_at: datetime
    followers: int = 0
    public_repos: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "GitHubUser":
        return cls(
            login=data["login"],
            created_at=_parse_timestamp(data["created_at"]),
            followers=data.get("followers") or 0,
            public_repos=data.get("public_repos") or 0,
        )


class RepoSummary(WireModel):
    name: str
    description: str = ""
    stars: int = 0
    forks: int = 0
    pushed_at: datetime | None = None
    language: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepoSummary":
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            stars=data.get("stargazers_count") or 0,
            forks=data.get("forks_count") or 0,
            pushed_at=_parse_timestamp(data.get("pushed_at")),
            language=data.get("language"),
        )


class CommitRecord(WireModel):
    authored_at: datetime
    author_login: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CommitRecord":
        author = data.get("author") or {}
        return cls(
            authored_at=_parse_timestamp(data["commit"]["author"]["date"]),
            author_login=author.get("login"),
        )


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


class LanguageShare(WireModel):
    name: str
    percentage: float = Field(ge=0.0, le=100.0)


class TopRepo(WireModel):
    name: str
    stars: int = 0
    language: str | None = None
    recent_activity: bool = False


class CandidateSignals(WireModel):
    """Compact, comparable signal vector derived from a user's repositories."""

    primary_languages: list[LanguageShare] = Field(default_factory=list)
    repo_count: int = 0
    stars_total: int = 0
    forks_total: int = 0
    recent_commit_velocity: int = 0
    active_days: int = 0
    project_types: list[str] = Field(default_factory=list)
    collaboration_hint: bool = False
    account_age_days: int = 0
    top_repos: list[TopRepo] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Workability profile
# ---------------------------------------------------------------------------


class SkillEntry(WireModel):
    skill: str
    confidence: Confidence


class ExperienceLevel(WireModel):
    level: Level
    rationale: str = ""


class WorkStyleTrait(WireModel):
    trait: str
    description: str


class WorkabilityScore(WireModel):
    score: float = Field(ge=0.0, le=100.0)
    rationale: str = ""


class WorkabilityProfile(WireModel):
    """Qualitative assessment synthesized from CandidateSignals."""

    skills: list[SkillEntry] = Field(default_factory=list)
    real_work_evidence: list[str] = Field(default_factory=list, max_length=6)
    experience_level: ExperienceLevel
    work_style: list[WorkStyleTrait] = Field(default_factory=list)
    role_fits: list[str] = Field(default_factory=list, max_length=5)
    workability_score: WorkabilityScore
    is_mock: bool = False


class SynthesisResult(WireModel):
    profile: WorkabilityProfile
    is_mock: bool


# ---------------------------------------------------------------------------
# Jobs, stored candidates, matches
# ---------------------------------------------------------------------------


class JobRequirements(WireModel):
    """Read-only job description used for scoring."""

    job_id: str = ""
    title: str = ""
    stack_must: list[str] = Field(default_factory=list)
    stack_nice: list[str] = Field(default_factory=list)
    seniority: str = ""
    experience_required: float = Field(default=0.0, ge=0.0)

    @field_validator("stack_must", "stack_nice")
    @classmethod
    def unique_stack(cls, v: list[str]) -> list[str]:
        return _dedupe(v)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "JobRequirements":
        """Load a job description from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Job file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)


class CandidateProfile(WireModel):
    """A directly stored candidate record (not derived from GitHub)."""

    name: str
    skills: list[str] = Field(default_factory=list)
    seniority: str = ""
    experience_years: float = Field(default=0.0, ge=0.0)
    email: str | None = None
    github: str | None = None

    @classmethod
    def list_from_yaml(cls, path: str | Path) -> list["CandidateProfile"]:
        """Load a list of candidate records from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Candidates file not found: {path}"
            raise FileNotFoundError(msg)
        raw = yaml.safe_load(path.read_text()) or []
        if isinstance(raw, dict):
            raw = raw.get("candidates", [])
        return [cls.model_validate(item) for item in raw]


class MatchResult(WireModel):
    score: float = Field(ge=0.0, le=100.0)
    fit: str
    highlights: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    explanation: str = ""


class AnalysisResult(WireModel):
    """One candidate evaluation as returned to callers and cached by the store."""

    username: str
    cached: bool = False
    signals: CandidateSignals
    profile: WorkabilityProfile
    is_mock: bool
    created_at: datetime = Field(default_factory=utc_now)


class CandidateMatch(WireModel):
    """A scored candidate for one job."""

    username: str
    match: MatchResult
    analysis: AnalysisResult | None = None


class DiscoveredCandidate(WireModel):
    """Result of the discovery heuristic for a searched GitHub user."""

    username: str
    score: int
    fit: str
    skills: list[str] = Field(default_factory=list)

