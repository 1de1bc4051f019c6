"""Orchestrator: wires hosting source, extractor, synthesizer, scorer and store.

Data flow for one candidate:
  1. Cache lookup (best effort, bounded freshness window)
  2. Fetch user + repositories (not-found / rate-limit surface to the caller)
  3. Extract signals (per-repo fan-out)
  4. Synthesize workability profile (remote or heuristic)
  5. Save analysis (best effort)

Many candidates for one job run concurrently under a semaphore.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Protocol

from workability.core.config import Settings
from workability.core.errors import UpstreamNotFoundError, UpstreamRateLimitedError
from workability.core.schemas import (
    AnalysisResult,
    CandidateMatch,
    CandidateProfile,
    DiscoveredCandidate,
    JobRequirements,
    MatchResult,
)
from workability.github.base import HostingDataSource
from workability.matching.discovery import DiscoveryHeuristic
from workability.matching.scoring import (
    ScoringStrategy,
    SignalsRubric,
    StoredCandidateRubric,
    rank_matches,
)
from workability.matching.tech import build_search_query
from workability.profile.synthesizer import ProfileSynthesizer
from workability.signals.extractor import extract_signals

logger = logging.getLogger(__name__)


class AnalysisStore(Protocol):
    def find_recent(self, username: str, max_age: timedelta) -> AnalysisResult | None: ...

    def save(self, analysis: AnalysisResult) -> None: ...

    def save_match(self, job_id: str, candidate: CandidateMatch) -> None: ...


class JobRanking:
    """Outcome of evaluating many candidates for one job."""

    def __init__(
        self,
        job: JobRequirements,
        matches: list[CandidateMatch],
        errors: dict[str, str],
    ) -> None:
        self.job = job
        self.matches = matches
        self.errors = errors


def normalize_username(username: str) -> str:
    username = (username or "").strip().lower()
    if not username:
        msg = "Username is required."
        raise ValueError(msg)
    return username


async def analyze_candidate(
    username: str,
    source: HostingDataSource,
    synthesizer: ProfileSynthesizer,
    settings: Settings,
    store: AnalysisStore | None = None,
    now: datetime | None = None,
) -> AnalysisResult:
    """Evaluate one GitHub user, reusing a fresh cached analysis when present.

    Raises:
        ValueError: If the username is empty.
        UpstreamNotFoundError: If the user does not exist.
        UpstreamRateLimitedError: If the hosting API refused the request.
    """
    username = normalize_username(username)
    max_age = timedelta(hours=settings.cache.profile_max_age_hours)

    # Step 1: Cache lookup
    if store is not None and max_age > timedelta(0):
        try:
            cached = store.find_recent(username, max_age)
        except Exception:
            logger.warning("Cache lookup failed for '%s' (continuing)", username, exc_info=True)
            cached = None
        if cached is not None:
            logger.info("Using cached analysis for '%s'", username)
            return cached.model_copy(update={"cached": True})

    # Step 2: Fetch user + repos
    user = await source.get_user(username)
    repos = await source.list_repos(username, settings.github.repo_limit)
    logger.info("Fetched %d repositories for '%s'", len(repos), username)

    # Step 3: Signals
    signals = await extract_signals(
        user,
        repos,
        source.get_languages,
        source.get_commits,
        settings.signals,
        commit_limit=settings.github.commit_limit,
        now=now,
    )

    # Step 4: Profile
    synthesis = await synthesizer.synthesize(signals)

    analysis = AnalysisResult(
        username=username,
        cached=False,
        signals=signals,
        profile=synthesis.profile,
        is_mock=synthesis.is_mock,
    )

    # Step 5: Save
    if store is not None:
        try:
            store.save(analysis)
        except Exception:
            logger.warning("Failed to save analysis for '%s'", username, exc_info=True)

    return analysis


async def rank_candidates_for_job(
    job: JobRequirements,
    usernames: list[str],
    source: HostingDataSource,
    synthesizer: ProfileSynthesizer,
    settings: Settings,
    store: AnalysisStore | None = None,
    strategy: ScoringStrategy | None = None,
) -> JobRanking:
    """Evaluate and score many candidates for one job with bounded concurrency.

    Failures are captured per candidate and never cancel siblings.
    """
    usernames = list(dict.fromkeys(u.strip().lower() for u in usernames if u and u.strip()))
    if not usernames:
        msg = "No usernames provided"
        raise ValueError(msg)

    strategy = strategy or SignalsRubric()
    semaphore = asyncio.Semaphore(settings.batch.max_concurrency)
    errors: dict[str, str] = {}

    async def evaluate(username: str) -> CandidateMatch | None:
        async with semaphore:
            try:
                analysis = await analyze_candidate(
                    username, source, synthesizer, settings, store,
                )
            except (UpstreamNotFoundError, UpstreamRateLimitedError, ValueError) as e:
                logger.info("Skipping '%s': %s", username, e)
                errors[username] = str(e)
                return None
            except Exception as e:
                logger.error("Evaluation failed for '%s'", username, exc_info=True)
                errors[username] = str(e) or type(e).__name__
                return None

        match = strategy.score(analysis.signals, job)
        candidate = CandidateMatch(username=analysis.username, match=match, analysis=analysis)
        if store is not None and job.job_id:
            try:
                store.save_match(job.job_id, candidate)
            except Exception:
                logger.warning("Failed to save match for '%s'", username, exc_info=True)
        return candidate

    results = await asyncio.gather(*(evaluate(u) for u in usernames))
    matches = [r for r in results if r is not None]
    ranked = rank_matches([(m.username, m.match) for m in matches])
    by_name = {m.username: m for m in matches}
    ordered = [by_name[name] for name, _ in ranked]

    logger.info(
        "Job '%s': %d scored, %d failed",
        job.title or job.job_id, len(ordered), len(errors),
    )
    return JobRanking(job=job, matches=ordered, errors=errors)


def score_stored_candidates(
    job: JobRequirements,
    candidates: list[CandidateProfile],
    limit: int | None = 10,
) -> list[tuple[CandidateProfile, MatchResult]]:
    """Score stored candidate records against a job, best first."""
    rubric = StoredCandidateRubric()
    scored = [(c, rubric.score(c, job)) for c in candidates]
    scored.sort(key=lambda pair: pair[1].score, reverse=True)
    return scored[:limit] if limit is not None else scored


async def discover_candidates(
    job: JobRequirements,
    source: HostingDataSource,
    settings: Settings,
    limit: int = 10,
) -> list[DiscoveredCandidate]:
    """Search GitHub for users matching a job's stack and score them heuristically."""
    query = build_search_query(job.stack_must, job.stack_nice)
    logger.info("Discovering candidates with query '%s'", query)
    hits = (await source.search_users(query, limit))[:limit]
    heuristic = DiscoveryHeuristic()
    semaphore = asyncio.Semaphore(settings.batch.max_concurrency)

    async def enrich(rank: int, login: str) -> DiscoveredCandidate:
        async with semaphore:
            # a search hit is scored even when enrichment fails
            user = None
            repos = None
            try:
                user = await source.get_user(login)
            except Exception as e:
                logger.debug("Discovery profile fetch failed for '%s': %s", login, e)
            try:
                repos = await source.list_repos(login, 50)
            except Exception as e:
                logger.debug("Discovery repo fetch failed for '%s': %s", login, e)
        return heuristic.score(login, job, rank, user, repos)

    discovered = await asyncio.gather(*(
        enrich(rank, hit["login"]) for rank, hit in enumerate(hits) if hit.get("login")
    ))
    return sorted(discovered, key=lambda d: d.score, reverse=True)[:limit]


def export_ranking_json(ranking: JobRanking) -> str:
    """Export a job ranking as a JSON string."""
    data = {
        "job": ranking.job.to_wire(),
        "results": [
            {
                "username": m.username,
                **m.match.to_wire(),
                "isMock": m.analysis.is_mock if m.analysis else None,
            }
            for m in ranking.matches
        ],
        "errors": ranking.errors,
    }
    return json.dumps(data, indent=2)
