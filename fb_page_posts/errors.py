from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class TimeBoundError(ValueError):
    """Raised when a since/until value cannot be interpreted as a point in time."""


class ExportError(RuntimeError):
    """Raised when writing the posts table to disk fails."""


class GraphApiError(RuntimeError):
    """Base class for failures reported by the Graph API."""

    def __init__(self, message: str | None, *, code: str | None = None) -> None:
        self.message = (message or "").strip() or "Graph API request failed"
        self.code = code
        super().__init__(self.message)


class TransientApiError(GraphApiError):
    """A single failed Graph call; retried by the caller."""


class ExhaustedRetriesError(GraphApiError):
    """Raised when a Graph call keeps failing after every allowed retry."""

    def __init__(
        self,
        message: str | None,
        *,
        code: str | None = None,
        attempts: int = 0,
        url: str | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.attempts = int(attempts)
        self.url = url
