"""
DTOs - Data Transfer Objects

Transport-facing shapes (camelCase on the wire):
- chat.py → MessageDTO, StreamChunkDTO

Note: These are different from domain entities.
DTOs are for transport input/output, entities are for business logic.
"""

from agent_chat.application.dto.chat import MessageDTO, StreamChunkDTO

__all__ = [
    "MessageDTO",
    "StreamChunkDTO",
]
