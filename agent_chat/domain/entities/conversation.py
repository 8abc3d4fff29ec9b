"""
Conversation Entity - Append-only, capped message history for one session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, Optional

from agent_chat.domain.entities.message import Message
from agent_chat.domain.exceptions.conversation_errors import (
    CapacityExceededError,
    ConversationInactiveError,
    SessionMismatchError,
)
from agent_chat.domain.value_objects.conversation_id import ConversationId
from agent_chat.domain.value_objects.session_id import SessionId
from agent_chat.domain.value_objects.timestamp import Timestamp


@dataclass(eq=False)
class Conversation:
    MAX_MESSAGES: ClassVar[int] = 100

    id: ConversationId
    session_id: SessionId
    created_at: Timestamp
    updated_at: Timestamp
    is_active: bool = True
    _messages: list[Message] = field(default_factory=list, repr=False)

    @classmethod
    def create(cls, session_id: SessionId) -> Conversation:
        now = Timestamp.now()
        return cls(
            id=ConversationId.generate(),
            session_id=session_id,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstitute(
        cls,
        id: ConversationId,
        session_id: SessionId,
        messages: Iterable[Message],
        created_at: Timestamp,
        updated_at: Timestamp,
        is_active: bool,
    ) -> Conversation:
        return cls(
            id=id,
            session_id=session_id,
            created_at=created_at,
            updated_at=updated_at,
            is_active=is_active,
            _messages=list(messages),
        )

    def add_message(self, message: Message) -> None:
        if not self.is_active:
            raise ConversationInactiveError()
        if message.session_id != self.session_id:
            raise SessionMismatchError()
        if len(self._messages) >= self.MAX_MESSAGES:
            raise CapacityExceededError(self.MAX_MESSAGES)

        self._messages.append(message)
        self.updated_at = Timestamp.now()

    def end(self) -> None:
        self.is_active = False
        self.updated_at = Timestamp.now()

    def get_messages(self) -> tuple[Message, ...]:
        """Snapshot of the history; callers cannot mutate the aggregate through it."""
        return tuple(self._messages)

    def get_last_message(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def get_message_count(self) -> int:
        return len(self._messages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Conversation):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
