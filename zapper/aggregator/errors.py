"""Router API errors."""

from __future__ import annotations

# Statuses worth retrying: rate limiting plus the gateway/server family
_RETRYABLE_STATUSES = {408, 425, 429}


class RouterError(Exception):
    """The routing aggregator rejected a request or could not be reached.

    Attributes:
        status: HTTP status, None when no response was received
        retryable: Whether the caller may retry the same request later
    """

    def __init__(self, message: str, *, status: int | None = None, retryable: bool = False) -> None:
        super().__init__(message)
        self.status = status
        self.retryable = retryable

    @classmethod
    def from_status(cls, status: int, detail: str | None = None) -> RouterError:
        """Classify a non-2xx response: 429 and 5xx are retryable, other 4xx are not."""
        retryable = status in _RETRYABLE_STATUSES or status >= 500
        message = f"Router returned HTTP {status}"
        if detail:
            message = f"{message}: {detail}"
        return cls(message, status=status, retryable=retryable)

    @classmethod
    def transport(cls, detail: str) -> RouterError:
        """No response at all (timeout, connection failure)."""
        return cls(f"Router request failed: {detail}", status=None, retryable=True)
