"""
Bedrock Agent Gateway - streaming client for Amazon Bedrock Agents.
"""

from agent_chat.infrastructure.bedrock.rate_limiter import RateLimiter
from agent_chat.infrastructure.bedrock.bedrock_agent_gateway import (
    BedrockAgentGateway,
    BedrockAgentStream,
    create_bedrock_runtime_client,
    is_throttling_error,
)

__all__ = [
    "RateLimiter",
    "BedrockAgentGateway",
    "BedrockAgentStream",
    "create_bedrock_runtime_client",
    "is_throttling_error",
]
