"""
DOMAIN LAYER - The Heart of the Chat Service

This layer contains:
- Entities: Business objects with identity (Conversation, Message)
- Value Objects: Immutable types (SessionId, MessageContent, Timestamp, ids)
- Ports: Interfaces that infrastructure implements (store, agent gateway)
- Exceptions: Domain-specific errors

RULES:
1. NO framework imports (no FastAPI, boto3, Pydantic, etc.)
2. NO I/O operations
3. Only depends on Python stdlib
"""
