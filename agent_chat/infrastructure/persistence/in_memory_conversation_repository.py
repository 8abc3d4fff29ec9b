"""
In-memory Conversation Repository Implementation.

- Implements ConversationRepository port from domain layer
- Stores deep copies, so aggregates handed out never alias stored state
- One conversation per session id; a per-session asyncio.Lock gives callers
  single-writer semantics for load-modify-save sequences
- Not durable: contents are lost when the process exits
"""

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from agent_chat.domain.entities.conversation import Conversation
from agent_chat.domain.exceptions.conversation_errors import ConcurrencyConflictError
from agent_chat.domain.ports.repositories import ConversationRepository
from agent_chat.domain.value_objects.conversation_id import ConversationId
from agent_chat.domain.value_objects.session_id import SessionId

logger = logging.getLogger(__name__)


@dataclass
class _SessionLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class InMemoryConversationRepository(ConversationRepository):
    def __init__(self):
        self._conversations: dict[str, Conversation] = {}
        self._session_index: dict[str, str] = {}
        self._session_locks: dict[str, _SessionLock] = {}
        self._lock = asyncio.Lock()

    async def save(self, conversation: Conversation) -> None:
        conversation_id = conversation.id.value
        session_id = conversation.session_id.value

        async with self._lock:
            owner = self._session_index.get(session_id)
            if owner is not None and owner != conversation_id:
                raise ConcurrencyConflictError(
                    f"Session {session_id} already belongs to conversation {owner}"
                )
            self._conversations[conversation_id] = copy.deepcopy(conversation)
            self._session_index[session_id] = conversation_id

        logger.debug(
            "Saved conversation %s (%d messages)",
            conversation_id,
            conversation.get_message_count(),
        )

    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]:
        async with self._lock:
            stored = self._conversations.get(conversation_id.value)
            return copy.deepcopy(stored) if stored else None

    async def get_by_session_id(
        self, session_id: SessionId
    ) -> Optional[Conversation]:
        async with self._lock:
            conversation_id = self._session_index.get(session_id.value)
            if conversation_id is None:
                return None
            return copy.deepcopy(self._conversations[conversation_id])

    async def delete(self, conversation_id: ConversationId) -> bool:
        async with self._lock:
            stored = self._conversations.pop(conversation_id.value, None)
            if stored is None:
                return False
            session_id = stored.session_id.value
            if self._session_index.get(session_id) == conversation_id.value:
                del self._session_index[session_id]

        logger.debug("Deleted conversation %s", conversation_id.value)
        return True

    @asynccontextmanager
    async def session_lock(self, session_id: SessionId) -> AsyncIterator[None]:
        """Hold the session's lock. The entry lives only while someone holds or awaits it."""
        key = session_id.value
        entry = self._session_locks.get(key)
        if entry is None:
            entry = self._session_locks[key] = _SessionLock()

        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._session_locks[key]

    def __len__(self) -> int:
        return len(self._conversations)
