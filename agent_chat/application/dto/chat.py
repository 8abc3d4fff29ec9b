"""Chat DTOs for the realtime transport."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from agent_chat.domain.entities.message import Message
from agent_chat.domain.ports.agent_gateway import StreamChunk


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MessageDTO(_CamelModel):
    """DTO for message data returned to the client."""

    id: str
    session_id: str
    role: str
    content: str
    created_at: str  # ISO-8601
    metadata: Optional[dict[str, Any]] = None

    @classmethod
    def from_entity(cls, message: Message) -> MessageDTO:
        return cls(
            id=message.id.value,
            session_id=message.session_id.value,
            role=message.role.value,
            content=message.content.value,
            created_at=message.created_at.to_iso_string(),
            metadata=message.metadata,
        )


class StreamChunkDTO(_CamelModel):
    """One streamed piece of an assistant reply."""

    content: str
    is_complete: bool
    metadata: Optional[dict[str, Any]] = None

    @classmethod
    def from_chunk(cls, chunk: StreamChunk) -> StreamChunkDTO:
        return cls(
            content=chunk.content,
            is_complete=chunk.is_complete,
            metadata=chunk.metadata,
        )
