"""Realtime WebSocket transport."""

from agent_chat.presentation.ws.chat_socket import ChatConnection, create_chat_router

__all__ = [
    "ChatConnection",
    "create_chat_router",
]
