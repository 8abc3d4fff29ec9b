"""
MessageId Value Object - UUID wrapper for message identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

from agent_chat.domain.exceptions.validation_error import DomainValidationError


@dataclass(frozen=True)
class MessageId:
    value: str  # message_id, presented as UUID string

    def __post_init__(self):
        if not self.value:
            raise DomainValidationError("Message ID cannot be empty")
        try:
            UUID(self.value)
        except (AttributeError, TypeError, ValueError):
            raise DomainValidationError(f"Invalid message ID (UUID): {self.value}")

    @classmethod
    def generate(cls) -> MessageId:
        return cls(str(uuid4()))

    @classmethod
    def from_string(cls, value: str) -> MessageId:
        return cls(value)

    def __str__(self) -> str:
        return self.value
