"""End Conversation Command."""

import logging
from dataclasses import dataclass

from agent_chat.application.common.interfaces import Command, CommandHandler
from agent_chat.domain.exceptions.entity_not_found import EntityNotFoundError
from agent_chat.domain.ports.agent_gateway import AgentGateway
from agent_chat.domain.ports.repositories import ConversationRepository
from agent_chat.domain.value_objects.session_id import SessionId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndConversationCommand(Command[None]):
    session_id: str


class EndConversationHandler(CommandHandler[None]):
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        agent_gateway: AgentGateway,
    ):
        self._conversation_repository = conversation_repository
        self._agent_gateway = agent_gateway

    async def execute(self, command: EndConversationCommand) -> None:
        session_id = SessionId(command.session_id)

        async with self._conversation_repository.session_lock(session_id):
            conversation = await self._conversation_repository.get_by_session_id(session_id)
            if not conversation:
                raise EntityNotFoundError(
                    f"Conversation for session {session_id.value} not found."
                )

            conversation.end()
            await self._conversation_repository.save(conversation)

        await self._agent_gateway.end_session(session_id)
        logger.info("Conversation ended for session %s", session_id)
