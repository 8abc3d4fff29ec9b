"""Conversation-related queries."""

from agent_chat.application.queries.conversations.get_conversation import (
    GetConversationHandler,
    GetConversationQuery,
)

__all__ = [
    "GetConversationQuery",
    "GetConversationHandler",
]
