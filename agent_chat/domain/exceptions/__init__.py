"""
DOMAIN EXCEPTIONS - Business rule violations and upstream failures

These exceptions are raised by domain and infrastructure code and caught by
the presentation layer, which turns them into `error` events.
"""

from agent_chat.domain.exceptions.base import DomainError
from agent_chat.domain.exceptions.validation_error import DomainValidationError
from agent_chat.domain.exceptions.entity_not_found import EntityNotFoundError
from agent_chat.domain.exceptions.conversation_errors import (
    CapacityExceededError,
    ConcurrencyConflictError,
    ConversationInactiveError,
    SessionMismatchError,
)
from agent_chat.domain.exceptions.agent_errors import (
    RateLimitExceededError,
    TransportError,
    UpstreamError,
)

__all__ = [
    "DomainError",
    "DomainValidationError",
    "EntityNotFoundError",
    "CapacityExceededError",
    "ConcurrencyConflictError",
    "ConversationInactiveError",
    "SessionMismatchError",
    "RateLimitExceededError",
    "TransportError",
    "UpstreamError",
]
