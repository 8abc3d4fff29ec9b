"""
Dishka DI Container Setup.

Maps ports to implementations and wires the use-case handlers:

  Container → provides → InMemoryConversationRepository → as → ConversationRepository
            → provides → BedrockAgentGateway            → as → AgentGateway
                                    ↓
              SendMessageHandler / EndConversationHandler / GetConversationHandler

Everything is Scope.APP: the conversation store, the rate limiter and
the Bedrock client are process-wide and shared by every connection.
"""

from typing import Any, Optional

from dishka import AsyncContainer, Provider, Scope, make_async_container, provide

from agent_chat.application.commands.chat.send_message import SendMessageHandler
from agent_chat.application.commands.conversations.end_conversation import (
    EndConversationHandler,
)
from agent_chat.application.queries.conversations.get_conversation import (
    GetConversationHandler,
)
from agent_chat.config.settings import Settings, get_settings
from agent_chat.domain.ports.agent_gateway import AgentGateway
from agent_chat.domain.ports.repositories import ConversationRepository
from agent_chat.infrastructure.bedrock import (
    BedrockAgentGateway,
    RateLimiter,
    create_bedrock_runtime_client,
)
from agent_chat.infrastructure.persistence import InMemoryConversationRepository


class AppProvider(Provider):
    """
    Application dependency provider.

    `settings` and `agent_runtime_client` override the environment and the
    real boto3 client (tests pass fakes here).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        agent_runtime_client: Optional[Any] = None,
    ):
        super().__init__()
        self._settings = settings
        self._agent_runtime_client = agent_runtime_client

    # ==================== CONFIG ====================

    @provide(scope=Scope.APP)
    def get_app_settings(self) -> Settings:
        return self._settings or get_settings()

    # ==================== REPOSITORIES ====================

    @provide(scope=Scope.APP)
    def get_conversation_repository(self) -> ConversationRepository:
        """
        - Return type is ABSTRACT (ConversationRepository)
        - Implementation is CONCRETE (InMemoryConversationRepository)
        - APP scope: history must outlive a single connection
        """
        return InMemoryConversationRepository()

    # ==================== AGENT ====================

    @provide(scope=Scope.APP)
    def get_rate_limiter(self, settings: Settings) -> RateLimiter:
        return RateLimiter(settings.min_request_interval_seconds)

    @provide(scope=Scope.APP)
    def get_agent_gateway(
        self, settings: Settings, rate_limiter: RateLimiter
    ) -> AgentGateway:
        client = self._agent_runtime_client
        if client is None:
            client = create_bedrock_runtime_client(settings)
        return BedrockAgentGateway(client, settings, rate_limiter)

    # ==================== COMMAND HANDLERS ====================

    @provide(scope=Scope.APP)
    def get_send_message_handler(
        self,
        conversation_repository: ConversationRepository,
        agent_gateway: AgentGateway,
    ) -> SendMessageHandler:
        return SendMessageHandler(conversation_repository, agent_gateway)

    @provide(scope=Scope.APP)
    def get_end_conversation_handler(
        self,
        conversation_repository: ConversationRepository,
        agent_gateway: AgentGateway,
    ) -> EndConversationHandler:
        return EndConversationHandler(conversation_repository, agent_gateway)

    # ==================== QUERY HANDLERS ====================

    @provide(scope=Scope.APP)
    def get_get_conversation_handler(
        self, conversation_repository: ConversationRepository
    ) -> GetConversationHandler:
        return GetConversationHandler(conversation_repository)


def create_container(
    settings: Optional[Settings] = None,
    agent_runtime_client: Optional[Any] = None,
) -> AsyncContainer:
    """Create the DI container."""
    return make_async_container(
        AppProvider(settings=settings, agent_runtime_client=agent_runtime_client)
    )
