"""
Base interfaces for CQRS pattern.

Usage:
    @dataclass(frozen=True)
    class EndConversationCommand(Command[None]):
        session_id: str

    class EndConversationHandler(CommandHandler[None]):
        def __init__(self, repo: ConversationRepository, gateway: AgentGateway):
            ...

        async def execute(self, command: EndConversationCommand) -> None:
            ...

Streaming commands return an async iterator instead of a single result:

    class SendMessageHandler(StreamingCommandHandler[StreamChunk]):
        async def execute(self, command):
            ...
            yield chunk
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator, Generic, TypeVar

T = TypeVar("T")


class Command(ABC, Generic[T]):
    """Base class for write operations"""
    pass


class CommandHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, command: Command[T]) -> T:
        """Execute the command and return a result of type T"""
        ...


class StreamingCommandHandler(ABC, Generic[T]):
    @abstractmethod
    def execute(self, command: Command[T]) -> AsyncIterator[T]:
        """Execute the command, producing results of type T as they arrive"""
        ...


class Query(ABC, Generic[T]):
    """Base class for read operations"""
    pass


class QueryHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, query: Query[T]) -> T:
        """Execute the query and return a result of type T"""
        ...
