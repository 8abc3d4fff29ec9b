"""
VALUE OBJECTS - Immutable domain types

Each value object:
- Has no identity (compared by value, not by ID)
- Is immutable (frozen dataclass)
- Validates itself on creation
- Pure Python (no framework dependencies)
"""

from agent_chat.domain.value_objects.session_id import SessionId
from agent_chat.domain.value_objects.message_content import MessageContent
from agent_chat.domain.value_objects.timestamp import Timestamp
from agent_chat.domain.value_objects.conversation_id import ConversationId
from agent_chat.domain.value_objects.message_id import MessageId

__all__ = [
    "SessionId",
    "MessageContent",
    "Timestamp",
    "ConversationId",
    "MessageId",
]
