"""
SendMessage Command - Store the user's message and stream the agent's reply.

Handler:
1. Validate session id and content (nothing is touched on failure)
2. Under the session lock: load or create the conversation, append the
   user message, save
3. Invoke the agent and forward every chunk as it arrives
4. On the terminal chunk: under the session lock, reload the conversation,
   append the assistant message, save, then forward the terminal chunk

Failures after step 2 surface as MessageDeliveryError. The user message
is not rolled back.
"""

import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Optional

from agent_chat.application.common.errors import MessageDeliveryError
from agent_chat.application.common.interfaces import Command, StreamingCommandHandler
from agent_chat.domain.entities.conversation import Conversation
from agent_chat.domain.entities.message import Message, MessageRole
from agent_chat.domain.exceptions.entity_not_found import EntityNotFoundError
from agent_chat.domain.ports.agent_gateway import AgentGateway, StreamChunk
from agent_chat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from agent_chat.domain.value_objects.conversation_id import ConversationId
from agent_chat.domain.value_objects.message_content import MessageContent
from agent_chat.domain.value_objects.session_id import SessionId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendMessageCommand(Command[StreamChunk]):
    session_id: str
    content: str
    metadata: Optional[dict[str, Any]] = None


class SendMessageHandler(StreamingCommandHandler[StreamChunk]):
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        agent_gateway: AgentGateway,
    ):
        self._conversation_repository = conversation_repository
        self._agent_gateway = agent_gateway

    async def execute(self, command: SendMessageCommand) -> AsyncIterator[StreamChunk]:
        session_id = SessionId(command.session_id)
        content = MessageContent(command.content)

        conversation_id = await self._store_user_message(
            session_id, content, command.metadata
        )

        parts: list[str] = []
        try:
            async with self._agent_gateway.invoke(session_id, content) as stream:
                async for chunk in stream:
                    if chunk.is_complete:
                        await self._store_assistant_message(
                            conversation_id, session_id, "".join(parts), chunk.metadata
                        )
                        yield chunk
                        return
                    parts.append(chunk.content)
                    yield chunk
        except Exception as e:
            logger.error("Error sending message for session %s: %s", session_id, e)
            raise MessageDeliveryError(f"Failed to send message: {e}") from e

        # The stream ran dry without a terminal chunk
        raise MessageDeliveryError("Failed to send message: agent stream ended unexpectedly")

    async def _store_user_message(
        self,
        session_id: SessionId,
        content: MessageContent,
        metadata: Optional[dict[str, Any]],
    ) -> ConversationId:
        async with self._conversation_repository.session_lock(session_id):
            conversation = await self._conversation_repository.get_by_session_id(session_id)
            if conversation is None:
                conversation = Conversation.create(session_id)
                await self._agent_gateway.initialize_session(session_id)
                logger.info(
                    "Created conversation %s for session %s", conversation.id, session_id
                )

            conversation.add_message(
                Message.create(session_id, MessageRole.USER, content, metadata)
            )
            await self._conversation_repository.save(conversation)
            return conversation.id

    async def _store_assistant_message(
        self,
        conversation_id: ConversationId,
        session_id: SessionId,
        text: str,
        metadata: Optional[dict[str, Any]],
    ) -> None:
        if not text.strip():
            logger.warning("Agent returned an empty reply for session %s", session_id)
            return

        content = MessageContent(text)
        async with self._conversation_repository.session_lock(session_id):
            conversation = await self._conversation_repository.get_by_id(conversation_id)
            if conversation is None:
                raise EntityNotFoundError(f"Conversation {conversation_id} not found.")

            conversation.add_message(
                Message.create(session_id, MessageRole.ASSISTANT, content, metadata)
            )
            await self._conversation_repository.save(conversation)
