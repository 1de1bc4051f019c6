"""Candidate discovery heuristic for GitHub user-search results.

Kept apart from both job-fit rubrics: it scores from follower and public
repo counts plus search rank, not from aggregated signals. Score is clamped
to 55-95. Labels: Strong Fit ≥88, Average ≤65, Potential Fit otherwise.
"""

import logging
from collections import Counter

from workability.core.schemas import DiscoveredCandidate, GitHubUser, JobRequirements, RepoSummary
from workability.matching.tech import simplify_skills

logger = logging.getLogger(__name__)

BASE_SCORE = 65.0
MIN_SCORE = 55.0
MAX_SCORE = 95.0


def dominant_languages(repos: list[RepoSummary], limit: int = 3) -> list[str]:
    """Most frequent repository languages (lowercased), first-seen order on ties."""
    counts = Counter(r.language.lower() for r in repos if r.language)
    return [lang for lang, _ in counts.most_common(limit)]


class DiscoveryHeuristic:
    """Scores a searched user for a job without fetching commits or languages."""

    def score(
        self,
        username: str,
        job: JobRequirements,
        rank: int = 0,
        user: GitHubUser | None = None,
        repos: list[RepoSummary] | None = None,
    ) -> DiscoveredCandidate:
        """Score one search hit.

        Args:
            username: Login of the searched user.
            job: Job the search was run for.
            rank: Zero-based position in the search results.
            user: Profile, when it could be fetched.
            repos: Repositories, when they could be fetched.
        """
        followers = user.followers if user else 0
        public_repos = user.public_repos if user else 0
        langs = dominant_languages(repos or [])
        first_must = job.stack_must[0] if job.stack_must else None
        main_lang = langs[0] if langs else (first_must or "javascript")

        score = BASE_SCORE
        score += min(20.0, followers / 5)
        score += min(10.0, public_repos / 10)
        if first_must and first_must.lower() in langs:
            score += 10
        score += max(0, 12 - rank * 2)
        score = max(MIN_SCORE, min(MAX_SCORE, score))

        if score >= 88:
            fit = "Strong Fit"
        elif score <= 65:
            fit = "Average"
        else:
            fit = "Potential Fit"

        return DiscoveredCandidate(
            username=username,
            score=int(score + 0.5),
            fit=fit,
            skills=simplify_skills([main_lang], [first_must, *langs[1:]]),
        )
