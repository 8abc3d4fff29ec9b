"""Conversation lifecycle commands."""

from agent_chat.application.commands.conversations.end_conversation import (
    EndConversationCommand,
    EndConversationHandler,
)

__all__ = [
    "EndConversationCommand",
    "EndConversationHandler",
]
