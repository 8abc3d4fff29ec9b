"""
Agent Gateway Port - Streaming client for the external inference service.
Implementation: agent_chat/infrastructure/bedrock/bedrock_agent_gateway.py

`invoke` returns an AgentStream: a lazy, finite, non-restartable async
iterator of StreamChunk. The last chunk always has is_complete=True.
Closing the stream (explicitly or by cancelling the consuming task)
releases the upstream connection.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from agent_chat.domain.value_objects.message_content import MessageContent
from agent_chat.domain.value_objects.session_id import SessionId


@dataclass(frozen=True)
class StreamChunk:
    content: str
    is_complete: bool
    metadata: Optional[dict[str, Any]] = None


class InvocationState(str, Enum):
    """Lifecycle of a single agent invocation."""

    INIT = "init"
    RATE_LIMIT_WAIT = "rate_limit_wait"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            InvocationState.COMPLETE,
            InvocationState.FAILED,
            InvocationState.CANCELLED,
        )


class AgentStream(ABC):
    state: InvocationState = InvocationState.INIT

    def __aiter__(self) -> AgentStream:
        return self

    @abstractmethod
    async def __anext__(self) -> StreamChunk: ...

    @abstractmethod
    async def aclose(self) -> None:
        """Stop the invocation and release the upstream connection. Idempotent."""
        ...

    async def __aenter__(self) -> AgentStream:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class AgentGateway(ABC):
    @abstractmethod
    def invoke(self, session_id: SessionId, content: MessageContent) -> AgentStream: ...

    @abstractmethod
    async def initialize_session(self, session_id: SessionId) -> None: ...

    @abstractmethod
    async def end_session(self, session_id: SessionId) -> None: ...
