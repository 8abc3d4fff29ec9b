"""
APPLICATION LAYER - Use Cases & Orchestration

This layer contains:
- commands/  → Write operations (send message, end conversation)
- queries/   → Read operations (get conversation)
- dto/       → Data Transfer Objects for the transport
- common/    → Shared interfaces (Command, Query base classes)

Rules:
- Depends on Domain layer only
- No WebSocket/framework code here
- Coordinates entities, the Conversation Store and the Agent Gateway
"""
