"""
GetConversation Query - Full message history of a session.

An unknown session is not an error: it simply has no history yet.
"""

from dataclasses import dataclass

from agent_chat.application.common.interfaces import Query, QueryHandler
from agent_chat.application.dto.chat import MessageDTO
from agent_chat.domain.ports.repositories import ConversationRepository
from agent_chat.domain.value_objects.session_id import SessionId


@dataclass(frozen=True)
class GetConversationQuery(Query[list[MessageDTO]]):
    session_id: str


class GetConversationHandler(QueryHandler[list[MessageDTO]]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, query: GetConversationQuery) -> list[MessageDTO]:
        session_id = SessionId(query.session_id)

        conversation = await self._conversation_repository.get_by_session_id(session_id)
        if conversation is None:
            return []

        return [MessageDTO.from_entity(m) for m in conversation.get_messages()]
