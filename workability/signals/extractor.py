"""Repository signal extraction.

Reduces a user profile and repository list into a fixed-shape
CandidateSignals record. Stars, forks, commits and languages are aggregated
over the top-N repositories by stars only; ``repo_count`` reflects the full
list.

Per-repository language and commit fetches run concurrently. A failed fetch
contributes no data for that repository and never affects its siblings.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta, timezone

from workability.core.config import SignalsConfig
from workability.core.schemas import (
    CandidateSignals,
    CommitRecord,
    GitHubUser,
    LanguageShare,
    RepoSummary,
    TopRepo,
)

logger = logging.getLogger(__name__)

LanguageFetcher = Callable[[str, str], Awaitable[dict[str, int]]]
CommitFetcher = Callable[[str, str, int], Awaitable[list[CommitRecord]]]


def infer_project_types(text: str, keyword_table: dict[str, list[str]]) -> list[str]:
    """Return every category with at least one keyword contained in ``text``.

    Categories come back in table order.
    """
    text = text.lower()
    return [
        category
        for category, keywords in keyword_table.items()
        if any(kw in text for kw in keywords)
    ]


def select_top_repos(repos: list[RepoSummary], n: int) -> list[RepoSummary]:
    """Top ``n`` repositories by stars; ties keep their original order."""
    return sorted(repos, key=lambda r: r.stars, reverse=True)[:n]


def language_shares(totals: dict[str, int], limit: int) -> list[LanguageShare]:
    """Convert byte totals into the top ``limit`` percentage shares.

    Percentages are floored to two decimals so they never sum above 100.
    """
    total_bytes = sum(totals.values())
    if total_bytes <= 0:
        return []
    shares = [
        LanguageShare(name=name, percentage=math.floor(size / total_bytes * 10000) / 100)
        for name, size in totals.items()
    ]
    shares.sort(key=lambda s: s.percentage, reverse=True)
    return shares[:limit]


def trailing_window_start(now: datetime, days: int) -> datetime:
    """Midnight UTC opening a window of ``days`` calendar days that ends today.

    This is up to one day shorter than a rolling ``now - days``, so commits
    from the day before the first calendar day are left out of velocity.
    """
    first_day = (now - timedelta(days=days - 1)).date()
    return datetime(first_day.year, first_day.month, first_day.day, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def _fetch_repo_data(
    owner: str,
    repo: RepoSummary,
    language_fetcher: LanguageFetcher,
    commit_fetcher: CommitFetcher,
    commit_limit: int,
) -> tuple[dict[str, int], list[CommitRecord]]:
    languages, commits = await asyncio.gather(
        language_fetcher(owner, repo.name),
        commit_fetcher(owner, repo.name, commit_limit),
        return_exceptions=True,
    )
    if isinstance(languages, BaseException):
        logger.debug("Languages for %s/%s degraded to empty: %s", owner, repo.name, languages)
        languages = {}
    if isinstance(commits, BaseException):
        logger.debug("Commits for %s/%s degraded to empty: %s", owner, repo.name, commits)
        commits = []
    return languages, commits


async def extract_signals(
    user: GitHubUser,
    repos: list[RepoSummary],
    language_fetcher: LanguageFetcher,
    commit_fetcher: CommitFetcher,
    config: SignalsConfig | None = None,
    *,
    commit_limit: int = 20,
    now: datetime | None = None,
) -> CandidateSignals:
    """Aggregate raw hosting data into CandidateSignals.

    Args:
        user: Profile owner (login and creation timestamp are used).
        repos: Full repository list for the user.
        language_fetcher: ``(owner, repo) -> {language: bytes}``.
        commit_fetcher: ``(owner, repo, limit) -> [CommitRecord]``.
        config: Static extraction rules; defaults when None.
        commit_limit: Commits requested per repository.
        now: Evaluation time (UTC). Defaults to the current time.

    Returns:
        CandidateSignals for the user.
    """
    config = config or SignalsConfig()
    now = _as_utc(now or datetime.now(timezone.utc))
    window_start = trailing_window_start(now, config.window_days)
    owner_login = user.login.lower()

    selected = select_top_repos(repos, config.top_n_repos)

    stars_total = 0
    forks_total = 0
    project_types: set[str] = set()
    for repo in selected:
        stars_total += repo.stars
        forks_total += repo.forks
        text = f"{repo.name} {repo.description}"
        project_types.update(infer_project_types(text, config.project_type_keywords))

    repo_data = await asyncio.gather(*(
        _fetch_repo_data(user.login, repo, language_fetcher, commit_fetcher, commit_limit)
        for repo in selected
    ))

    language_totals: dict[str, int] = {}
    recent_commit_velocity = 0
    active_dates: set[date] = set()
    collaboration_hint = False

    for languages, commits in repo_data:
        for name, size in languages.items():
            language_totals[name] = language_totals.get(name, 0) + size

        for commit in commits:
            authored_at = _as_utc(commit.authored_at)
            if window_start <= authored_at <= now:
                recent_commit_velocity += 1
                active_dates.add(authored_at.date())
            if commit.author_login and commit.author_login.lower() != owner_login:
                collaboration_hint = True

    account_age_days = max(0, (now - _as_utc(user.created_at)).days)

    top_repos = [
        TopRepo(
            name=repo.name,
            stars=repo.stars,
            language=repo.language,
            recent_activity=(
                repo.pushed_at is not None and _as_utc(repo.pushed_at) >= window_start
            ),
        )
        for repo in selected[:config.top_repos_reported]
    ]

    signals = CandidateSignals(
        primary_languages=language_shares(language_totals, config.max_languages),
        repo_count=len(repos),
        stars_total=stars_total,
        forks_total=forks_total,
        recent_commit_velocity=recent_commit_velocity,
        active_days=len(active_dates),
        project_types=[t for t in config.project_type_keywords if t in project_types],
        collaboration_hint=collaboration_hint,
        account_age_days=account_age_days,
        top_repos=top_repos,
    )
    logger.debug(
        "Signals for '%s': %d repos, %d stars, %d recent commits",
        user.login, signals.repo_count, signals.stars_total, signals.recent_commit_velocity,
    )
    return signals
