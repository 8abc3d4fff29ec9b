"""
Persistence Layer - Conversation Store implementations.
"""

from agent_chat.infrastructure.persistence.in_memory_conversation_repository import (
    InMemoryConversationRepository,
)

__all__ = [
    "InMemoryConversationRepository",
]
