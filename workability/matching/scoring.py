"""Job fit scoring.

Two rubrics behind one interface, selected explicitly by the caller:

  SignalsRubric          : GitHub-derived CandidateSignals.
                           +15 per required skill, +7 per preferred skill,
                           +15 project exposure, +15 recent activity.
                           Labels: Excellent ≥85, Strong ≥70, Moderate ≥55,
                           Weak ≥40, Poor below.
  StoredCandidateRubric  : directly stored CandidateProfile records.
                           60% must-have coverage, 20% nice-to-have coverage,
                           10% seniority match, 10% experience years.
                           Labels: Excellent ≥80, Strong ≥60, Moderate ≥40,
                           Weak below.

Score range: 0-100 (clamped) for both.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from workability.core.schemas import (
    CandidateProfile,
    CandidateSignals,
    JobRequirements,
    MatchResult,
)

logger = logging.getLogger(__name__)

REQUIRED_SKILL_POINTS = 15
PREFERRED_SKILL_POINTS = 7
EXPOSURE_POINTS = 15
ACTIVITY_POINTS = 15

EXPOSURE_MIN_STARS = 50
EXPOSURE_MIN_REPOS = 15
ACTIVITY_MIN_COMMITS = 15

_SIGNALS_FIT_LABELS: list[tuple[float, str]] = [
    (85, "Excellent"),
    (70, "Strong"),
    (55, "Moderate"),
    (40, "Weak"),
]

_STORED_FIT_LABELS: list[tuple[float, str]] = [
    (80, "Excellent"),
    (60, "Strong"),
    (40, "Moderate"),
]


def _label(score: float, thresholds: list[tuple[float, str]], default: str) -> str:
    for threshold, label in thresholds:
        if score >= threshold:
            return label
    return default


def signals_fit_label(score: float) -> str:
    return _label(score, _SIGNALS_FIT_LABELS, "Poor")


def stored_fit_label(score: float) -> str:
    return _label(score, _STORED_FIT_LABELS, "Weak")


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, score))


def _lowered(items: Iterable[str]) -> set[str]:
    return {item.lower().strip() for item in items}


class ScoringStrategy(ABC):
    """Base class for a job-fit rubric."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier of the rubric (e.g. 'signals')."""

    @abstractmethod
    def score(self, candidate: Any, job: JobRequirements) -> MatchResult:
        """Score one candidate against one job."""


class SignalsRubric(ScoringStrategy):
    """Stack-list rubric for candidates derived from hosting-platform signals."""

    @property
    def name(self) -> str:
        return "signals"

    def score(self, candidate: CandidateSignals, job: JobRequirements) -> MatchResult:
        langs = _lowered(lang.name for lang in candidate.primary_languages)
        score = 0.0
        highlights: list[str] = []
        risks: list[str] = []

        matched_must = 0
        for tech in job.stack_must:
            if tech.lower() in langs:
                matched_must += 1
                score += REQUIRED_SKILL_POINTS
                highlights.append(f"Strong match for required skill: {tech}")
            else:
                risks.append(f"Missing required skill: {tech}")

        for tech in job.stack_nice:
            if tech.lower() in langs:
                score += PREFERRED_SKILL_POINTS
                highlights.append(f"Good match for preferred skill: {tech}")

        if (
            candidate.stars_total >= EXPOSURE_MIN_STARS
            or candidate.repo_count >= EXPOSURE_MIN_REPOS
        ):
            score += EXPOSURE_POINTS
            highlights.append("Senior-level project exposure")

        if candidate.recent_commit_velocity >= ACTIVITY_MIN_COMMITS:
            score += ACTIVITY_POINTS
            highlights.append("Strong recent GitHub activity")
        else:
            risks.append("Low recent GitHub activity")

        score = _clamp(score)
        fit = signals_fit_label(score)

        return MatchResult(
            score=score,
            fit=fit,
            highlights=highlights,
            risks=risks,
            explanation=(
                f"This candidate matches {matched_must} required skills "
                f"and shows {fit} alignment with the role."
            ),
        )


class StoredCandidateRubric(ScoringStrategy):
    """Weighted-coverage rubric for directly stored candidate records.

    An empty must-have or nice-to-have list counts as fully covered.
    """

    MUST_WEIGHT = 60.0
    NICE_WEIGHT = 20.0
    SENIORITY_POINTS = 10.0
    EXPERIENCE_POINTS = 10.0

    @property
    def name(self) -> str:
        return "stored"

    def score(self, candidate: CandidateProfile, job: JobRequirements) -> MatchResult:
        skills = _lowered(candidate.skills)
        must = [t.lower() for t in job.stack_must]
        nice = [t.lower() for t in job.stack_nice]
        score = 0.0
        highlights: list[str] = []
        risks: list[str] = []

        must_matches = sum(1 for t in must if t in skills)
        must_coverage = must_matches / len(must) if must else 1.0
        score += must_coverage * self.MUST_WEIGHT
        if must_matches == len(must):
            highlights.append("Has all must-have skills")
        else:
            risks.append("Missing some required technologies")

        nice_matches = sum(1 for t in nice if t in skills)
        nice_coverage = nice_matches / len(nice) if nice else 1.0
        score += nice_coverage * self.NICE_WEIGHT
        if nice_matches > 0:
            highlights.append("Knows several preferred technologies")

        if candidate.seniority.lower().strip() == job.seniority.lower().strip():
            score += self.SENIORITY_POINTS
            highlights.append("Perfect seniority match")
        else:
            risks.append("Seniority does not fully match")

        if candidate.experience_years >= job.experience_required:
            score += self.EXPERIENCE_POINTS
            highlights.append("Strong real-world experience")
        else:
            risks.append("May need more experience for this role")

        # label from the unrounded score, report the rounded one
        fit = stored_fit_label(score)

        return MatchResult(
            score=_clamp(math.floor(score + 0.5)),
            fit=fit,
            highlights=highlights,
            risks=risks,
            explanation=(
                f"{must_matches} of {len(must)} must-have skills matched; "
                f"{fit} fit for the role."
            ),
        )


def rank_matches(
    scored: list[tuple[str, MatchResult]],
    limit: int | None = None,
) -> list[tuple[str, MatchResult]]:
    """Sort (candidate key, MatchResult) pairs by score desc, keeping ties in order."""
    ranked = sorted(scored, key=lambda pair: pair[1].score, reverse=True)
    return ranked[:limit] if limit is not None else ranked
