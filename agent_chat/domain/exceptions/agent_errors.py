"""
Agent invocation failures.

RateLimitExceededError carries a user-facing message; the raw upstream error
stays available as `__cause__` for logs.
"""

from agent_chat.domain.exceptions.base import DomainError

RATE_LIMIT_USER_MESSAGE = (
    "The agent is handling too many requests right now. "
    "Please wait a few seconds before sending another message."
)


class RateLimitExceededError(DomainError):
    """Throttling survived every retry attempt."""

    def __init__(self, message: str = RATE_LIMIT_USER_MESSAGE, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class UpstreamError(DomainError):
    """Non-retryable failure reported by the inference service."""


class TransportError(DomainError):
    """Streamed bytes could not be decoded."""
