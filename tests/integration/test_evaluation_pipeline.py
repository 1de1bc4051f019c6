"""End-to-end tests for the evaluation pipeline with an in-memory hosting source."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import aiohttp
import pytest

from workability.core.config import BatchConfig, Settings
from workability.core.db import ResultStore, init_db
from workability.core.errors import UpstreamNotFoundError, UpstreamRateLimitedError
from workability.core.schemas import (
    CandidateProfile,
    CommitRecord,
    GitHubUser,
    JobRequirements,
    RepoSummary,
)
from workability.github.base import HostingDataSource
from workability.pipeline.orchestrator import (
    analyze_candidate,
    discover_candidates,
    export_ranking_json,
    normalize_username,
    rank_candidates_for_job,
    score_stored_candidates,
)
from workability.profile.synthesizer import ProfileSynthesizer

NOW = datetime.now(timezone.utc)
FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


class FakeGitHub(HostingDataSource):
    """Serves canned users; ``rate_limited`` logins raise on profile fetch."""

    def __init__(self, rate_limited: set[str] | None = None) -> None:
        self.rate_limited = rate_limited or set()
        self.user_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.users = {
            "pyhacker": self._build(
                "pyhacker", years=6,
                repos=[
                    ("etl-data-pipeline", 90, "Python", {"Python": 9000, "Shell": 1000}),
                    ("dotfiles", 5, "Shell", {"Shell": 500}),
                ],
                commits=25,
                collaborator="friend",
            ),
            "newbie": self._build(
                "newbie", years=0.5,
                repos=[("hello", 0, "Go", {"Go": 100})],
                commits=1,
            ),
            "empty": self._build("empty", years=3, repos=[], commits=0),
        }

    @staticmethod
    def _build(login, years, repos, commits, collaborator=None) -> dict[str, Any]:
        commit_list = [
            CommitRecord(authored_at=NOW - timedelta(hours=6 * i), author_login=login)
            for i in range(commits)
        ]
        if collaborator:
            commit_list.append(
                CommitRecord(authored_at=NOW - timedelta(days=1), author_login=collaborator),
            )
        return {
            "user": GitHubUser(
                login=login,
                created_at=NOW - timedelta(days=int(365 * years)),
                followers=40,
                public_repos=len(repos),
            ),
            "repos": [
                RepoSummary(name=name, stars=stars, language=lang, pushed_at=NOW)
                for name, stars, lang, _ in repos
            ],
            "languages": {name: langs for name, _, _, langs in repos},
            "commits": commit_list,
        }

    async def get_user(self, login: str) -> GitHubUser:
        self.user_calls.append(login)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
        finally:
            self.in_flight -= 1
        if login in self.rate_limited:
            raise UpstreamRateLimitedError("user profile")
        if login not in self.users:
            raise UpstreamNotFoundError(login)
        return self.users[login]["user"]

    async def list_repos(self, login: str, limit: int = 50) -> list[RepoSummary]:
        return self.users[login]["repos"][:limit]

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        return self.users[owner]["languages"].get(repo, {})

    async def get_commits(self, owner: str, repo: str, limit: int = 20) -> list[CommitRecord]:
        # all commits attributed to the owner's first repository
        if repo != self.users[owner]["repos"][0].name:
            return []
        return self.users[owner]["commits"][:limit]

    async def search_users(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        self.last_query = query
        return [{"login": "newbie"}, {"login": "pyhacker"}, {"login": "vanished"}][:limit]


def _heuristic_synth() -> ProfileSynthesizer:
    provider = MagicMock()
    provider.env_var = "OPENAI_API_KEY"
    return ProfileSynthesizer(provider=provider)


@pytest.fixture
def no_credentials():
    with patch.dict("os.environ", {}, clear=True):
        yield


@pytest.fixture
def store(tmp_path: Path):
    result_store = ResultStore(init_db(tmp_path / "pipeline.db"))
    yield result_store
    result_store.close()


def _job() -> JobRequirements:
    return JobRequirements(
        job_id="data-eng",
        title="Data Engineer",
        stack_must=["python"],
        stack_nice=["shell"],
        seniority="Senior",
        experience_required=4,
    )


class TestAnalyzeCandidate:
    async def test_full_analysis(self, no_credentials) -> None:
        analysis = await analyze_candidate(
            "  PyHacker ", FakeGitHub(), _heuristic_synth(), Settings(),
        )
        signals = analysis.signals
        assert analysis.username == "pyhacker"
        assert analysis.cached is False
        assert analysis.is_mock is True
        assert analysis.profile.is_mock is True
        assert [s.name for s in signals.primary_languages] == ["Python", "Shell"]
        assert signals.recent_commit_velocity == 20
        assert signals.collaboration_hint is False
        assert signals.stars_total == 95
        assert signals.project_types == ["data"]
        assert analysis.profile.experience_level.level == "Mid"

    async def test_collaboration_visible_with_larger_commit_page(self, no_credentials) -> None:
        settings = Settings.model_validate({"github": {"commit_limit": 50}})
        analysis = await analyze_candidate("pyhacker", FakeGitHub(), _heuristic_synth(), settings)
        assert analysis.signals.recent_commit_velocity == 26
        assert analysis.signals.collaboration_hint is True

    async def test_empty_user(self, no_credentials) -> None:
        analysis = await analyze_candidate("empty", FakeGitHub(), _heuristic_synth(), Settings())
        assert analysis.signals.repo_count == 0
        assert analysis.signals.primary_languages == []
        assert analysis.profile.experience_level.level == "Junior"

    async def test_unknown_user_raises(self, no_credentials) -> None:
        with pytest.raises(UpstreamNotFoundError):
            await analyze_candidate("ghost", FakeGitHub(), _heuristic_synth(), Settings())

    async def test_blank_username(self) -> None:
        with pytest.raises(ValueError, match="Username is required"):
            await analyze_candidate("   ", FakeGitHub(), _heuristic_synth(), Settings())

    async def test_cache_hit_skips_upstream(self, no_credentials, store) -> None:
        source = FakeGitHub()
        first = await analyze_candidate("pyhacker", source, _heuristic_synth(), Settings(), store)
        second = await analyze_candidate("pyhacker", source, _heuristic_synth(), Settings(), store)

        assert first.cached is False
        assert second.cached is True
        assert second.signals == first.signals
        assert source.user_calls == ["pyhacker"]

    async def test_zero_max_age_disables_cache(self, no_credentials, store) -> None:
        settings = Settings.model_validate({"cache": {"profile_max_age_hours": 0}})
        source = FakeGitHub()
        await analyze_candidate("newbie", source, _heuristic_synth(), settings, store)
        await analyze_candidate("newbie", source, _heuristic_synth(), settings, store)
        assert source.user_calls == ["newbie", "newbie"]

    async def test_broken_store_is_not_fatal(self, no_credentials) -> None:
        broken = MagicMock()
        broken.find_recent.side_effect = RuntimeError("disk full")
        broken.save.side_effect = RuntimeError("disk full")
        analysis = await analyze_candidate(
            "newbie", FakeGitHub(), _heuristic_synth(), Settings(), broken,
        )
        assert analysis.username == "newbie"

    async def test_remote_profile_used_when_configured(self) -> None:
        provider = MagicMock()
        provider.env_var = "OPENAI_API_KEY"
        provider.complete.return_value = (FIXTURES_DIR / "sample_profile_response.json").read_text()
        with patch.dict("os.environ", {"OPENAI_API_KEY": "key"}, clear=True):
            analysis = await analyze_candidate(
                "newbie", FakeGitHub(), ProfileSynthesizer(provider=provider), Settings(),
            )
        assert analysis.is_mock is False
        assert analysis.profile.workability_score.score == 88


class TestRankCandidatesForJob:
    async def test_ranking_with_failures(self, no_credentials, store) -> None:
        source = FakeGitHub(rate_limited={"throttled"})
        ranking = await rank_candidates_for_job(
            _job(),
            ["newbie", "PyHacker", "ghost", "pyhacker", "throttled"],
            source,
            _heuristic_synth(),
            Settings(),
            store,
        )

        assert [m.username for m in ranking.matches] == ["pyhacker", "newbie"]
        top = ranking.matches[0].match
        assert top.score == 52
        assert "Strong match for required skill: python" in top.highlights
        assert "Strong recent GitHub activity" in top.highlights
        assert set(ranking.errors) == {"ghost", "throttled"}
        assert "not found" in ranking.errors["ghost"]
        assert [m.username for m in store.job_matches("data-eng")] == ["pyhacker", "newbie"]

    async def test_concurrency_bounded(self, no_credentials) -> None:
        source = FakeGitHub()
        source.users.update({
            f"user{i}": source._build(f"user{i}", years=1, repos=[], commits=0)
            for i in range(8)
        })
        settings = Settings(batch=BatchConfig(max_concurrency=2))
        ranking = await rank_candidates_for_job(
            _job(), [f"user{i}" for i in range(8)], source, _heuristic_synth(), settings,
        )
        assert len(ranking.matches) == 8
        assert source.max_in_flight <= 2

    async def test_no_usernames(self) -> None:
        with pytest.raises(ValueError, match="No usernames"):
            await rank_candidates_for_job(
                _job(), ["  ", ""], FakeGitHub(), _heuristic_synth(), Settings(),
            )

    async def test_export_json(self, no_credentials) -> None:
        ranking = await rank_candidates_for_job(
            _job(), ["newbie", "ghost"], FakeGitHub(), _heuristic_synth(), Settings(),
        )
        data = json.loads(export_ranking_json(ranking))
        assert data["job"]["stackMust"] == ["python"]
        assert data["results"][0]["username"] == "newbie"
        assert data["results"][0]["isMock"] is True
        assert "ghost" in data["errors"]


class TestStoredAndDiscovery:
    def test_score_stored_candidates(self) -> None:
        candidates = [
            CandidateProfile(name="B", skills=["python"], seniority="Mid", experience_years=2),
            CandidateProfile(
                name="A", skills=["python", "shell"], seniority="senior", experience_years=9,
            ),
            CandidateProfile(name="C"),
        ]
        ranked = score_stored_candidates(_job(), candidates, limit=2)
        assert [(c.name, m.score) for c, m in ranked] == [("A", 100), ("B", 60)]

    async def test_discover_candidates(self) -> None:
        source = FakeGitHub()
        job = JobRequirements(stack_must=["Django"], stack_nice=["bash"])
        discovered = await discover_candidates(job, source, Settings(), limit=3)

        assert source.last_query == "language:python type:user"
        assert [d.username for d in discovered] == ["newbie", "pyhacker", "vanished"]
        assert all(55 <= d.score <= 95 for d in discovered)
        # unresolvable user still scored from search rank alone
        assert discovered[-1].score == 73

    @pytest.mark.parametrize(
        "error",
        [aiohttp.ClientConnectionError("reset"), RuntimeError("GitHub API error 502")],
    )
    async def test_discover_survives_transport_errors(self, error: Exception) -> None:
        class FlakyGitHub(FakeGitHub):
            async def get_user(self, login: str) -> GitHubUser:
                if login == "vanished":
                    raise error
                return await super().get_user(login)

        discovered = await discover_candidates(
            JobRequirements(stack_must=["python"]), FlakyGitHub(), Settings(), limit=3,
        )
        assert [d.username for d in discovered] == ["newbie", "pyhacker", "vanished"]
        assert discovered[-1].score == 73

    async def test_discover_keeps_profile_when_repos_fail(self) -> None:
        class NoRepos(FakeGitHub):
            async def list_repos(self, login: str, limit: int = 50) -> list[RepoSummary]:
                raise asyncio.TimeoutError

        discovered = await discover_candidates(
            JobRequirements(stack_must=["python"]), NoRepos(), Settings(), limit=1,
        )
        # 65 + 40 followers / 5 + 1 repo / 10 + rank 0 bonus 12
        assert discovered[0].username == "newbie"
        assert discovered[0].score == 85


def test_normalize_username() -> None:
    assert normalize_username(" OctoCat ") == "octocat"
    with pytest.raises(ValueError):
        normalize_username("")
