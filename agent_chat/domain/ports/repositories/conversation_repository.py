"""
Conversation Repository Port - Interface for conversation persistence.
Implementation: agent_chat/infrastructure/persistence/in_memory_conversation_repository.py

Implementations must give single-writer semantics per session: callers hold
`session_lock(session_id)` around every load-modify-save of a conversation,
and `save` refuses a second conversation for a session that already has one.
All methods except `delete` are idempotent on retry.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Optional

from agent_chat.domain.entities.conversation import Conversation
from agent_chat.domain.value_objects.conversation_id import ConversationId
from agent_chat.domain.value_objects.session_id import SessionId


class ConversationRepository(ABC):
    @abstractmethod
    async def save(self, conversation: Conversation) -> None: ...

    @abstractmethod
    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]: ...

    @abstractmethod
    async def get_by_session_id(
        self, session_id: SessionId
    ) -> Optional[Conversation]: ...

    @abstractmethod
    async def delete(self, conversation_id: ConversationId) -> bool: ...

    @abstractmethod
    def session_lock(self, session_id: SessionId) -> AbstractAsyncContextManager: ...
