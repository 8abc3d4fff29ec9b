"""
REPOSITORY PORTS - Data persistence interfaces

Infrastructure layer provides implementations.
"""

from agent_chat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)

__all__ = [
    "ConversationRepository",
]
