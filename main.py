"""CLI entry point for the developer workability engine."""

import argparse
import asyncio
import json
import logging
import sys

import aiohttp

from workability.core.config import Settings
from workability.core.db import ResultStore, init_db
from workability.core.errors import (
    UpstreamNotFoundError,
    UpstreamRateLimitedError,
    WorkabilityError,
)
from workability.core.schemas import CandidateProfile, JobRequirements
from workability.github.client import GitHubClient
from workability.pipeline.orchestrator import (
    analyze_candidate,
    discover_candidates,
    export_ranking_json,
    rank_candidates_for_job,
    score_stored_candidates,
)
from workability.profile.synthesizer import ProfileSynthesizer


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (defaults apply when missing)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Developer workability engine - evaluate GitHub candidates against jobs",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- analyze subcommand ---
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Build signals and a workability profile for one GitHub user",
    )
    analyze_parser.add_argument("username", help="GitHub login to analyze")
    analyze_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore cached analyses and do not store the result",
    )
    _add_common(analyze_parser)

    # --- match subcommand ---
    match_parser = subparsers.add_parser(
        "match",
        help="Analyze several GitHub users and rank them for a job",
    )
    match_parser.add_argument("--job", required=True, help="Path to job YAML file")
    match_parser.add_argument("usernames", nargs="+", help="GitHub logins to evaluate")
    match_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore cached analyses and do not store results",
    )
    _add_common(match_parser)

    # --- rank-stored subcommand ---
    stored_parser = subparsers.add_parser(
        "rank-stored",
        help="Score stored candidate records (YAML) against a job",
    )
    stored_parser.add_argument("--job", required=True, help="Path to job YAML file")
    stored_parser.add_argument(
        "--candidates",
        required=True,
        help="Path to candidates YAML file",
    )
    stored_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of candidates to return (default: 10)",
    )
    _add_common(stored_parser)

    # --- discover subcommand ---
    discover_parser = subparsers.add_parser(
        "discover",
        help="Search GitHub for users matching a job's stack",
    )
    discover_parser.add_argument("--job", required=True, help="Path to job YAML file")
    discover_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of users to return (default: 10)",
    )
    _add_common(discover_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _open_store(settings: Settings, no_cache: bool) -> ResultStore | None:
    if no_cache:
        return None
    return ResultStore(init_db(settings.cache.database_path))


async def cmd_analyze(args: argparse.Namespace, settings: Settings) -> None:
    """Handle analyze subcommand."""
    store = _open_store(settings, args.no_cache)
    synthesizer = ProfileSynthesizer(settings.reasoning)
    try:
        async with GitHubClient(settings.github) as gh:
            analysis = await analyze_candidate(args.username, gh, synthesizer, settings, store)
    finally:
        if store is not None:
            store.close()
    print(json.dumps(analysis.to_wire(), indent=2))


async def cmd_match(args: argparse.Namespace, settings: Settings) -> None:
    """Handle match subcommand."""
    job = JobRequirements.from_yaml(args.job)
    store = _open_store(settings, args.no_cache)
    synthesizer = ProfileSynthesizer(settings.reasoning)
    try:
        async with GitHubClient(settings.github) as gh:
            ranking = await rank_candidates_for_job(
                job, args.usernames, gh, synthesizer, settings, store,
            )
    finally:
        if store is not None:
            store.close()
    print(export_ranking_json(ranking))


def cmd_rank_stored(args: argparse.Namespace) -> None:
    """Handle rank-stored subcommand."""
    job = JobRequirements.from_yaml(args.job)
    candidates = CandidateProfile.list_from_yaml(args.candidates)
    ranked = score_stored_candidates(job, candidates, limit=args.limit)
    data = [
        {
            "name": c.name,
            "email": c.email,
            "skills": c.skills,
            "experienceYears": c.experience_years,
            **m.to_wire(),
        }
        for c, m in ranked
    ]
    print(json.dumps(data, indent=2))


async def cmd_discover(args: argparse.Namespace, settings: Settings) -> None:
    """Handle discover subcommand."""
    job = JobRequirements.from_yaml(args.job)
    async with GitHubClient(settings.github) as gh:
        discovered = await discover_candidates(job, gh, settings, limit=args.limit)
    print(json.dumps([d.to_wire() for d in discovered], indent=2))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = Settings.load(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "analyze":
            asyncio.run(cmd_analyze(args, settings))
        elif args.command == "match":
            asyncio.run(cmd_match(args, settings))
        elif args.command == "rank-stored":
            cmd_rank_stored(args)
        elif args.command == "discover":
            asyncio.run(cmd_discover(args, settings))
    except (UpstreamNotFoundError, UpstreamRateLimitedError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (WorkabilityError, aiohttp.ClientError, asyncio.TimeoutError, RuntimeError) as e:
        print(f"Error: {str(e) or type(e).__name__}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
