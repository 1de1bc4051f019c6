"""Deterministic workability profile built from CandidateSignals.

Used when no reasoning service is configured and as the fallback when the
remote call fails. Pure function of the signals: same input, same profile.
"""

import math

from workability.core.schemas import (
    CandidateSignals,
    ExperienceLevel,
    SkillEntry,
    WorkabilityProfile,
    WorkabilityScore,
    WorkStyleTrait,
)

_RANK_CONFIDENCE = ("High", "Med")
_LEVEL_BONUS = {"Senior": 20, "Mid": 10, "Junior": 5}

MAX_SKILLS = 10
MAX_EVIDENCE = 6
MAX_ROLE_FITS = 5


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _skills(signals: CandidateSignals) -> list[SkillEntry]:
    skills = [
        SkillEntry(
            skill=lang.name,
            confidence=_RANK_CONFIDENCE[i] if i < len(_RANK_CONFIDENCE) else "Low",
        )
        for i, lang in enumerate(signals.primary_languages)
    ]
    if "web" in signals.project_types:
        skills.append(SkillEntry(skill="Web Development", confidence="Med"))
    if "data" in signals.project_types:
        skills.append(SkillEntry(skill="Data Analysis", confidence="Med"))
    if signals.collaboration_hint:
        skills.append(SkillEntry(skill="Team Collaboration", confidence="Med"))
    skills.append(SkillEntry(skill="Version Control (Git)", confidence="High"))
    return skills[:MAX_SKILLS]


def _evidence(signals: CandidateSignals) -> list[str]:
    evidence = [
        f"Maintains {signals.repo_count} public repositories "
        f"with {signals.stars_total} total stars",
    ]

    if signals.top_repos:
        top = signals.top_repos[0]
        language = f", {top.language}" if top.language else ""
        evidence.append(f"Primary project: {top.name} ({top.stars} stars{language})")
    else:
        evidence.append("Active repository management")

    evidence.append(
        f"{signals.recent_commit_velocity} commits in last 30 days "
        f"across {signals.active_days} active days"
    )
    evidence.append(
        "Demonstrated collaboration through team repos"
        if signals.collaboration_hint
        else "Strong project ownership and solo development"
    )

    active_maintained = sum(1 for r in signals.top_repos if r.recent_activity)
    if active_maintained >= 2:
        evidence.append(f"{active_maintained} actively maintained projects")

    return evidence[:MAX_EVIDENCE]


def experience_level(signals: CandidateSignals) -> ExperienceLevel:
    """Classify Junior/Mid/Senior from account age, stars and recent activity."""
    years = signals.account_age_days / 365
    activity_score = (signals.recent_commit_velocity / 30) * signals.active_days

    if years >= 5 and signals.stars_total >= 50 and activity_score >= 20:
        return ExperienceLevel(
            level="Senior",
            rationale=f"{years:.1f} years, strong community engagement, high activity.",
        )
    if years >= 2 and (signals.stars_total >= 10 or activity_score >= 10):
        return ExperienceLevel(
            level="Mid",
            rationale=f"{years:.1f} years, solid contribution patterns.",
        )
    return ExperienceLevel(
        level="Junior",
        rationale=f"{years:.1f} years on GitHub, building foundation.",
    )


def _work_style(signals: CandidateSignals) -> list[WorkStyleTrait]:
    return [
        WorkStyleTrait(
            trait="Consistency",
            description=(
                "Highly consistent daily activity"
                if signals.active_days >= 15
                else "Periodic bursts of contribution"
            ),
        ),
        WorkStyleTrait(
            trait="Ownership",
            description=(
                "Strong ownership of multiple projects"
                if signals.repo_count >= 10
                else "Building project responsibility"
            ),
        ),
        WorkStyleTrait(
            trait="Collaboration",
            description=(
                "Comfortable collaborating in teams"
                if signals.collaboration_hint
                else "Independent and self-driven"
            ),
        ),
        WorkStyleTrait(
            trait="Shipping Velocity",
            description=(
                "High-velocity shipping"
                if signals.recent_commit_velocity >= 30
                else "Moderate, quality-focused workflow"
            ),
        ),
    ]


def _role_fits(signals: CandidateSignals, level: str) -> list[str]:
    roles: list[str] = []

    def add(role: str) -> None:
        if role not in roles:
            roles.append(role)

    langs = [lang.name for lang in signals.primary_languages]
    types = signals.project_types

    if any(lang in ("JavaScript", "TypeScript") for lang in langs):
        add("Full-stack JavaScript Developer")
        if "web" in types:
            add("Frontend Engineer")

    if "Python" in langs:
        add("Backend Developer (Python)")
        if "data" in types:
            add("Data Engineer")

    if "devops" in types:
        add("DevOps Engineer")

    if not roles:
        add(f"{langs[0] if langs else 'Software'} Developer")

    if len(roles) < 3 and "library" in types:
        add("SDK/Library Developer")

    if len(roles) < MAX_ROLE_FITS and level == "Senior":
        add("Technical Lead")

    return roles[:MAX_ROLE_FITS]


def workability_score(signals: CandidateSignals, level: str) -> WorkabilityScore:
    raw = (
        (signals.stars_total / 10) * 0.2
        + (signals.recent_commit_velocity / 2) * 0.3
        + signals.active_days * 1.5
        + (10 if signals.collaboration_hint else 0)
        + _LEVEL_BONUS[level]
    )
    score = min(100, _round_half_up(raw))

    if score >= 75:
        rationale = "Strong track record with consistent contributions."
    elif score >= 50:
        rationale = "Solid foundation with growth potential."
    else:
        rationale = "Early-stage developer building a portfolio."

    return WorkabilityScore(score=score, rationale=rationale)


def build_heuristic_profile(signals: CandidateSignals) -> WorkabilityProfile:
    """Derive every WorkabilityProfile field from ``signals`` by fixed rules."""
    level = experience_level(signals)
    return WorkabilityProfile(
        skills=_skills(signals),
        real_work_evidence=_evidence(signals),
        experience_level=level,
        work_style=_work_style(signals),
        role_fits=_role_fits(signals, level.level),
        workability_score=workability_score(signals, level.level),
        is_mock=True,
    )
