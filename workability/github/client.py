"""GitHub REST API client (aiohttp).

One ClientSession per ``async with`` block. Every request is bounded by the
configured timeout so a stalled upstream cannot block a batch indefinitely.
"""

import asyncio
import logging
import os
from types import TracebackType
from typing import Any

import aiohttp

from workability.core.config import GitHubConfig
from workability.core.errors import UpstreamNotFoundError, UpstreamRateLimitedError
from workability.core.schemas import CommitRecord, GitHubUser, RepoSummary
from workability.github.base import HostingDataSource

logger = logging.getLogger(__name__)

_RATE_LIMIT_STATUSES = {403, 429}


class GitHubClient(HostingDataSource):
    """Async context manager that owns one aiohttp session.

    Usage::

        async with GitHubClient(config) as gh:
            user = await gh.get_user("octocat")
    """

    def __init__(self, config: GitHubConfig, token: str | None = None) -> None:
        self._config = config
        self._token = token or os.environ.get(config.token_env)
        self._session: aiohttp.ClientSession | None = None

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": self._config.user_agent,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            msg = "GitHubClient not entered; use 'async with'"
            raise RuntimeError(msg)
        return self._session

    async def __aenter__(self) -> "GitHubClient":
        self._session = aiohttp.ClientSession(
            headers=self.headers,
            timeout=aiohttp.ClientTimeout(total=self._config.timeout_seconds),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> tuple[int, Any]:
        """GET a relative API path, returning (status, decoded JSON or None)."""
        url = f"{self._config.api_base.rstrip('/')}/{path.lstrip('/')}"
        async with self.session.get(url, params=params) as resp:
            if resp.status != 200:
                return resp.status, None
            return resp.status, await resp.json()

    async def get_user(self, login: str) -> GitHubUser:
        status, data = await self._request(f"users/{login}")
        if status == 404:
            raise UpstreamNotFoundError(login)
        if status in _RATE_LIMIT_STATUSES:
            raise UpstreamRateLimitedError("user profile")
        if status != 200:
            msg = f"GitHub API error {status} fetching user '{login}'"
            raise RuntimeError(msg)
        return GitHubUser.from_api(data)

    async def list_repos(self, login: str, limit: int = 50) -> list[RepoSummary]:
        params = {"sort": "updated", "per_page": limit, "type": "owner"}
        status, data = await self._request(f"users/{login}/repos", params)
        if status == 404:
            raise UpstreamNotFoundError(login)
        if status in _RATE_LIMIT_STATUSES:
            raise UpstreamRateLimitedError("repositories")
        if status != 200:
            msg = f"GitHub API error {status} listing repos for '{login}'"
            raise RuntimeError(msg)
        return [RepoSummary.from_api(item) for item in data or []]

    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        try:
            status, data = await self._request(f"repos/{owner}/{repo}/languages")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Languages fetch failed for %s/%s: %s", owner, repo, e)
            return {}
        if status != 200 or not isinstance(data, dict):
            logger.debug("Languages unavailable for %s/%s (HTTP %d)", owner, repo, status)
            return {}
        return {str(name): int(size) for name, size in data.items()}

    async def get_commits(self, owner: str, repo: str, limit: int = 20) -> list[CommitRecord]:
        try:
            status, data = await self._request(
                f"repos/{owner}/{repo}/commits", {"per_page": limit},
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Commits fetch failed for %s/%s: %s", owner, repo, e)
            return []
        # 409 means the repository has no commits yet
        if status != 200 or not isinstance(data, list):
            logger.debug("Commits unavailable for %s/%s (HTTP %d)", owner, repo, status)
            return []
        commits: list[CommitRecord] = []
        for item in data:
            try:
                commits.append(CommitRecord.from_api(item))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping malformed commit in %s/%s", owner, repo)
        return commits

    async def search_users(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        try:
            status, data = await self._request(
                "search/users", {"q": query, "per_page": limit},
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("GitHub user search failed: %s", e)
            return []
        if status != 200 or not isinstance(data, dict):
            logger.warning("GitHub user search failed (HTTP %d)", status)
            return []
        return list(data.get("items") or [])
