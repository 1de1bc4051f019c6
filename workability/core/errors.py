"""Exception taxonomy for the workability engine.

Upstream errors are surfaced to the caller. Per-repository fetch failures
never reach this module; they degrade to empty data in the client.
"""


class WorkabilityError(Exception):
    """Base class for all engine errors."""


class UpstreamNotFoundError(WorkabilityError):
    """The requested user does not exist on the hosting platform. Not retryable."""

    def __init__(self, login: str) -> None:
        self.login = login
        super().__init__(f"GitHub user not found: {login}")


class UpstreamRateLimitedError(WorkabilityError):
    """The hosting API refused the request because of rate limiting or an expired token."""

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(
            f"GitHub rate limit exceeded while fetching {resource}. "
            "Retry later or configure a GitHub token."
        )


class ReasoningServiceError(WorkabilityError):
    """The remote reasoning service failed: timeout, quota, bad JSON or schema violation."""
