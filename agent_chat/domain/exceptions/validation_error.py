"""
DomainValidationError - Raised when an input value breaks a value-object rule.
Maps to: `error` event, rejected before any side effect.
"""

from agent_chat.domain.exceptions.base import DomainError


class DomainValidationError(DomainError, ValueError):
    """Exception raised for malformed session ids or message content."""
