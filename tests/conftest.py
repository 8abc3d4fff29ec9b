"""Shared fixtures and fakes. No test talks to AWS."""

from typing import Any, Iterable, Optional, Union

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from agent_chat.config.settings import Settings
from agent_chat.domain.ports.agent_gateway import (
    AgentGateway,
    AgentStream,
    InvocationState,
    StreamChunk,
)
from agent_chat.fastapi_app import create_fastapi_app
from agent_chat.infrastructure.bedrock import BedrockAgentGateway, RateLimiter
from agent_chat.infrastructure.persistence import InMemoryConversationRepository
from agent_chat.setup.ioc import create_container


def chunk_event(data: Union[str, bytes]) -> dict:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return {"chunk": {"bytes": data}}


def trace_event(payload: Optional[dict] = None) -> dict:
    return {"trace": payload or {"orchestrationTrace": {"rationale": {"text": "thinking"}}}}


def client_error(code: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, "InvokeAgent")


def throttling_error() -> ClientError:
    return client_error("ThrottlingException", "Rate exceeded")


class FakeEventStream:
    """Stands in for botocore's EventStream: iterable once, closable."""

    def __init__(self, events: Iterable[Any], error: Optional[BaseException] = None):
        self._events = list(events)
        self._error = error
        self.closed = False

    def __iter__(self):
        for event in self._events:
            yield event
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class FakeBedrockClient:
    """
    Fake `bedrock-agent-runtime` client.

    Each invoke_agent call consumes the next scripted outcome; the last one
    repeats. An exception outcome is raised, anything else is returned as
    the completion stream.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    def invoke_agent(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return {"completion": outcome, "sessionId": kwargs["sessionId"]}


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeAgentStream(AgentStream):
    """Yields scripted chunks; an exception in the script is raised in place."""

    def __init__(self, script: Iterable[Union[StreamChunk, BaseException]]):
        self.state = InvocationState.STREAMING
        self._script = list(script)
        self.closed = False

    async def __anext__(self) -> StreamChunk:
        if self.state.is_terminal or not self._script:
            raise StopAsyncIteration
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            self.state = InvocationState.FAILED
            raise item
        if item.is_complete:
            self.state = InvocationState.COMPLETE
        return item

    async def aclose(self) -> None:
        self.closed = True
        if not self.state.is_terminal:
            self.state = InvocationState.CANCELLED


class FakeAgentGateway(AgentGateway):
    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.streams: list[FakeAgentStream] = []
        self.invocations: list[tuple[str, str]] = []
        self.initialized: list[str] = []
        self.ended: list[str] = []

    def invoke(self, session_id, content) -> FakeAgentStream:
        self.invocations.append((session_id.value, content.value))
        script = self.scripts.pop(0) if len(self.scripts) > 1 else self.scripts[0]
        stream = FakeAgentStream(script)
        self.streams.append(stream)
        return stream

    async def initialize_session(self, session_id) -> None:
        self.initialized.append(session_id.value)

    async def end_session(self, session_id) -> None:
        self.ended.append(session_id.value)


def hi_there_script() -> list[StreamChunk]:
    return [
        StreamChunk(content="Hi", is_complete=False),
        StreamChunk(content=" there", is_complete=False),
        StreamChunk(content="", is_complete=True, metadata={"totalLength": 8}),
    ]


@pytest.fixture()
def settings():
    return Settings(
        app_env="test",
        bedrock_agent_id="AGENT123",
        bedrock_agent_alias_id="ALIAS123",
        agent_min_request_interval_ms=0,
        agent_backoff_base_ms=1,
        agent_backoff_max_ms=10,
        log_level="DEBUG",
    )


@pytest.fixture()
def repository():
    return InMemoryConversationRepository()


@pytest.fixture()
def sleeps():
    return SleepRecorder()


@pytest.fixture()
def make_gateway(sleeps):
    """Build a BedrockAgentGateway around a FakeBedrockClient with recorded backoff."""

    def _make(client: FakeBedrockClient, settings: Optional[Settings] = None):
        settings = settings or Settings(
            bedrock_agent_id="AGENT123",
            bedrock_agent_alias_id="ALIAS123",
            agent_min_request_interval_ms=0,
        )
        return BedrockAgentGateway(
            client, settings, RateLimiter(settings.min_request_interval_seconds), sleep=sleeps
        )

    return _make


@pytest.fixture()
def bedrock_client():
    return FakeBedrockClient(
        FakeEventStream([trace_event(), chunk_event("Hi"), chunk_event(" there")])
    )


@pytest.fixture()
def app(settings, bedrock_client):
    """FastAPI app wired to a fake Bedrock runtime client."""
    container = create_container(settings=settings, agent_runtime_client=bedrock_client)
    return create_fastapi_app(container=container, settings=settings)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
