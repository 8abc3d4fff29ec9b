"""
Message Entity - A single turn in a conversation. Immutable once created.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from agent_chat.domain.exceptions.validation_error import DomainValidationError
from agent_chat.domain.value_objects.message_content import MessageContent
from agent_chat.domain.value_objects.message_id import MessageId
from agent_chat.domain.value_objects.session_id import SessionId
from agent_chat.domain.value_objects.timestamp import Timestamp


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True, eq=False)
class Message:
    id: MessageId
    session_id: SessionId
    role: MessageRole
    content: MessageContent
    created_at: Timestamp
    metadata: Optional[dict[str, Any]] = None

    def __post_init__(self):
        if not isinstance(self.role, MessageRole):
            try:
                object.__setattr__(self, "role", MessageRole(self.role))
            except ValueError:
                raise DomainValidationError(f"Invalid role: {self.role}")

    @classmethod
    def create(
        cls,
        session_id: SessionId,
        role: MessageRole,
        content: MessageContent,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Message:
        """Factory method to create a new Message with a generated ID and timestamp."""
        return cls(
            id=MessageId.generate(),
            session_id=session_id,
            role=role,
            content=content,
            created_at=Timestamp.now(),
            metadata=dict(metadata) if metadata is not None else None,
        )

    @classmethod
    def reconstitute(
        cls,
        id: MessageId,
        session_id: SessionId,
        role: MessageRole,
        content: MessageContent,
        created_at: Timestamp,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Message:
        """Rebuild a stored message without generating a new identity."""
        return cls(
            id=id,
            session_id=session_id,
            role=role,
            content=content,
            created_at=created_at,
            metadata=metadata,
        )

    def is_from_user(self) -> bool:
        return self.role is MessageRole.USER

    def is_from_assistant(self) -> bool:
        return self.role is MessageRole.ASSISTANT

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
