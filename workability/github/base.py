"""Abstract base class for hosting-platform data sources."""

from abc import ABC, abstractmethod
from typing import Any

from workability.core.schemas import CommitRecord, GitHubUser, RepoSummary


class HostingDataSource(ABC):
    """Base class that every hosting-platform source must implement.

    ``get_user`` and ``list_repos`` surface not-found and rate-limit errors.
    ``get_languages``, ``get_commits`` and ``search_users`` degrade to empty
    results on any error.
    """

    @abstractmethod
    async def get_user(self, login: str) -> GitHubUser:
        """Return the user's profile."""

    @abstractmethod
    async def list_repos(self, login: str, limit: int = 50) -> list[RepoSummary]:
        """Return up to ``limit`` repositories owned by the user."""

    @abstractmethod
    async def get_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Return language name → byte count for one repository."""

    @abstractmethod
    async def get_commits(self, owner: str, repo: str, limit: int = 20) -> list[CommitRecord]:
        """Return the most recent commits of one repository."""

    @abstractmethod
    async def search_users(self, query: str, limit: int = 10) -> list[dict[str, Any]]:
        """Run a user search and return the raw result items."""
