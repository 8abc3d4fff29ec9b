from agent_chat.application.common.errors import MessageDeliveryError
from agent_chat.application.common.interfaces import (
    Command,
    CommandHandler,
    Query,
    QueryHandler,
    StreamingCommandHandler,
)

__all__ = [
    "Command",
    "CommandHandler",
    "MessageDeliveryError",
    "Query",
    "QueryHandler",
    "StreamingCommandHandler",
]
