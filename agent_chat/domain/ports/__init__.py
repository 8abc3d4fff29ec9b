"""
PORTS - Interfaces that infrastructure implements

A "port" is an abstract interface that defines WHAT the domain needs,
without specifying HOW it's done.

- repositories/     → Conversation Store
- agent_gateway.py  → Streaming client for the inference service
"""

from agent_chat.domain.ports.agent_gateway import (
    AgentGateway,
    AgentStream,
    InvocationState,
    StreamChunk,
)
from agent_chat.domain.ports.repositories import ConversationRepository

__all__ = [
    "AgentGateway",
    "AgentStream",
    "InvocationState",
    "StreamChunk",
    "ConversationRepository",
]
