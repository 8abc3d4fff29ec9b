"""
Conversation aggregate invariant violations.
"""

from agent_chat.domain.exceptions.base import DomainError


class ConversationInactiveError(DomainError):
    """Raised when a message is added to a conversation that has ended."""

    def __init__(self, message: str = "Cannot add message to inactive conversation"):
        super().__init__(message)


class SessionMismatchError(DomainError):
    """Raised when a message belongs to a different session than its conversation."""

    def __init__(
        self,
        message: str = "Message session ID does not match conversation session ID",
    ):
        super().__init__(message)


class CapacityExceededError(DomainError):
    """Raised when a conversation already holds its maximum number of messages."""

    def __init__(self, limit: int):
        super().__init__(f"Conversation has reached maximum of {limit} messages")
        self.limit = limit


class ConcurrencyConflictError(DomainError):
    """Raised by a store when a save would break single-writer semantics."""
