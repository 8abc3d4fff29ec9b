"""Chat commands."""

from agent_chat.application.commands.chat.send_message import (
    SendMessageCommand,
    SendMessageHandler,
)

__all__ = [
    "SendMessageCommand",
    "SendMessageHandler",
]
