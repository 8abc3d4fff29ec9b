"""
EntityNotFoundError - Raised when an operation targets a session with no conversation.
"""

from agent_chat.domain.exceptions.base import DomainError


class EntityNotFoundError(DomainError):
    """Exception raised when a requested entity is not found."""

    def __init__(self, message: str = "The requested entity was not found."):
        super().__init__(message)
