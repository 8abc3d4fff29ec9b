"""
ENTITIES - Business objects with identity

Each entity:
- Has a unique identifier
- Has behavior (methods)
- Pure Python dataclasses (no ORM, no Pydantic)
"""

from agent_chat.domain.entities.message import Message, MessageRole
from agent_chat.domain.entities.conversation import Conversation

__all__ = [
    "Conversation",
    "Message",
    "MessageRole",
]
