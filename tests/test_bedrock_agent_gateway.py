import asyncio
import threading

import pytest
from botocore.exceptions import EndpointConnectionError
from prometheus_client import REGISTRY

from agent_chat.config.settings import Settings
from agent_chat.domain.exceptions import RateLimitExceededError, TransportError, UpstreamError
from agent_chat.domain.exceptions.agent_errors import RATE_LIMIT_USER_MESSAGE
from agent_chat.domain.ports.agent_gateway import InvocationState
from agent_chat.domain.value_objects import MessageContent, SessionId
from agent_chat.infrastructure.bedrock import is_throttling_error
from tests.conftest import (
    FakeBedrockClient,
    FakeEventStream,
    chunk_event,
    client_error,
    throttling_error,
    trace_event,
)


async def _collect(stream):
    return [chunk async for chunk in stream]


def _invoke(gateway, text="hello", session="s1"):
    return gateway.invoke(SessionId(session), MessageContent(text))


class TestIsThrottlingError:
    @pytest.mark.parametrize(
        "code", ["ThrottlingException", "TooManyRequestsException", "Throttling"]
    )
    def test_throttling_codes(self, code):
        assert is_throttling_error(client_error(code))

    @pytest.mark.parametrize(
        "message",
        ["Rate exceeded", "request was throttled", "rate limit reached", "RATE_LIMIT"],
    )
    def test_throttling_messages(self, message):
        assert is_throttling_error(RuntimeError(message))

    @pytest.mark.parametrize(
        "error",
        [
            client_error("AccessDeniedException", "not authorized"),
            client_error("ValidationException", "bad accurate input"),
            RuntimeError("separated values"),
        ],
    )
    def test_other_errors(self, error):
        assert not is_throttling_error(error)


class TestInvoke:
    @pytest.mark.asyncio
    async def test_streams_chunks_then_terminal_chunk(self, make_gateway):
        client = FakeBedrockClient(FakeEventStream([chunk_event("Hi"), chunk_event(" there")]))
        stream = _invoke(make_gateway(client))

        chunks = await _collect(stream)

        assert [c.content for c in chunks] == ["Hi", " there", ""]
        assert [c.is_complete for c in chunks] == [False, False, True]
        assert chunks[-1].metadata == {"totalLength": 8}
        assert stream.state is InvocationState.COMPLETE

    @pytest.mark.asyncio
    async def test_request_shape(self, make_gateway):
        client = FakeBedrockClient(FakeEventStream([chunk_event("ok")]))
        await _collect(_invoke(make_gateway(client), text="hello", session="s1"))

        assert client.calls == [
            {
                "agentId": "AGENT123",
                "agentAliasId": "ALIAS123",
                "sessionId": "s1",
                "inputText": "hello",
                "enableTrace": True,
            }
        ]

    @pytest.mark.asyncio
    async def test_is_lazy(self, make_gateway):
        client = FakeBedrockClient(FakeEventStream([chunk_event("ok")]))
        stream = _invoke(make_gateway(client))

        assert client.calls == []
        assert stream.state is InvocationState.INIT

    @pytest.mark.asyncio
    async def test_trace_frames_produce_no_chunks(self, make_gateway):
        client = FakeBedrockClient(
            FakeEventStream([trace_event(), chunk_event("A"), trace_event(), chunk_event("B")])
        )
        chunks = await _collect(_invoke(make_gateway(client)))

        assert [c.content for c in chunks] == ["A", "B", ""]

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_frames(self, make_gateway):
        encoded = "héllo 👋".encode("utf-8")
        wave = encoded.index("👋".encode("utf-8"))
        frames = [encoded[:2], encoded[2:wave + 2], encoded[wave + 2:]]
        client = FakeBedrockClient(FakeEventStream([chunk_event(f) for f in frames]))

        chunks = await _collect(_invoke(make_gateway(client)))

        assert "".join(c.content for c in chunks) == "héllo 👋"
        assert all(c.content for c in chunks[:-1])
        assert chunks[-1].metadata == {"totalLength": len("héllo 👋")}

    @pytest.mark.asyncio
    async def test_malformed_utf8_is_a_transport_error(self, make_gateway):
        client = FakeBedrockClient(FakeEventStream([chunk_event(b"ok"), chunk_event(b"\xff\xfe")]))
        stream = _invoke(make_gateway(client))

        assert (await stream.__anext__()).content == "ok"
        with pytest.raises(TransportError):
            await stream.__anext__()
        assert stream.state is InvocationState.FAILED

    @pytest.mark.asyncio
    async def test_truncated_sequence_at_end_is_a_transport_error(self, make_gateway):
        client = FakeBedrockClient(FakeEventStream([chunk_event("é".encode("utf-8")[:1])]))

        with pytest.raises(TransportError):
            await _collect(_invoke(make_gateway(client)))

    @pytest.mark.asyncio
    async def test_missing_completion_is_upstream_error(self, make_gateway):
        client = FakeBedrockClient(None)

        with pytest.raises(UpstreamError, match="No completion stream"):
            await _collect(_invoke(make_gateway(client)))


class TestRetries:
    @pytest.mark.asyncio
    async def test_throttled_twice_then_succeeds_with_exponential_backoff(
        self, make_gateway, sleeps
    ):
        client = FakeBedrockClient(
            throttling_error(),
            throttling_error(),
            FakeEventStream([chunk_event("done")]),
        )
        stream = _invoke(make_gateway(client))

        chunks = await _collect(stream)

        assert len(client.calls) == 3
        assert sleeps.calls == [1.0, 2.0]
        assert stream.attempts == 3
        assert [c.content for c in chunks] == ["done", ""]

    @pytest.mark.asyncio
    async def test_persistent_throttling_gives_up_after_three_attempts(
        self, make_gateway, sleeps
    ):
        client = FakeBedrockClient(throttling_error())
        stream = _invoke(make_gateway(client))

        with pytest.raises(RateLimitExceededError) as excinfo:
            await _collect(stream)

        assert len(client.calls) == 3
        assert sleeps.calls == [1.0, 2.0]
        assert excinfo.value.attempts == 3
        assert str(excinfo.value) == RATE_LIMIT_USER_MESSAGE
        assert stream.state is InvocationState.FAILED

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self, make_gateway, sleeps):
        capped = Settings(
            agent_min_request_interval_ms=0,
            agent_max_attempts=6,
            agent_backoff_base_ms=1000,
            agent_backoff_max_ms=10000,
        )
        client = FakeBedrockClient(throttling_error())

        with pytest.raises(RateLimitExceededError):
            await _collect(_invoke(make_gateway(client, capped)))

        assert sleeps.calls == [1.0, 2.0, 4.0, 8.0, 10.0]

    @pytest.mark.asyncio
    async def test_non_throttling_error_is_not_retried(self, make_gateway, sleeps):
        client = FakeBedrockClient(client_error("AccessDeniedException", "not authorized"))
        stream = _invoke(make_gateway(client))

        with pytest.raises(UpstreamError, match="not authorized"):
            await _collect(stream)

        assert len(client.calls) == 1
        assert sleeps.calls == []
        assert stream.state is InvocationState.FAILED

    @pytest.mark.asyncio
    async def test_connection_error_is_upstream_error(self, make_gateway):
        client = FakeBedrockClient(EndpointConnectionError(endpoint_url="https://bedrock"))

        with pytest.raises(UpstreamError):
            await _collect(_invoke(make_gateway(client)))

        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_no_retry_once_streaming(self, make_gateway, sleeps):
        client = FakeBedrockClient(
            FakeEventStream([chunk_event("partial")], error=throttling_error())
        )
        stream = _invoke(make_gateway(client))

        assert (await stream.__anext__()).content == "partial"
        with pytest.raises(RateLimitExceededError):
            await stream.__anext__()

        assert len(client.calls) == 1
        assert sleeps.calls == []
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_exception_event_mid_stream(self, make_gateway):
        client = FakeBedrockClient(
            FakeEventStream(
                [chunk_event("partial"), {"internalServerException": {"message": "boom"}}]
            )
        )

        with pytest.raises(UpstreamError, match="internalServerException: boom"):
            await _collect(_invoke(make_gateway(client)))

        assert len(client.calls) == 1


class TestRelease:
    @pytest.mark.asyncio
    async def test_aclose_closes_upstream_stream(self, make_gateway):
        completion = FakeEventStream([chunk_event("a"), chunk_event("b")])
        client = FakeBedrockClient(completion)
        stream = _invoke(make_gateway(client))

        await stream.__anext__()
        await stream.aclose()

        assert completion.closed
        assert stream.state is InvocationState.CANCELLED
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_completion_closes_upstream_stream(self, make_gateway):
        completion = FakeEventStream([chunk_event("a")])
        await _collect(_invoke(make_gateway(FakeBedrockClient(completion))))

        assert completion.closed

    @pytest.mark.asyncio
    async def test_aclose_after_completion_keeps_state(self, make_gateway):
        stream = _invoke(make_gateway(FakeBedrockClient(FakeEventStream([chunk_event("a")]))))
        await _collect(stream)
        await stream.aclose()

        assert stream.state is InvocationState.COMPLETE

    @pytest.mark.asyncio
    async def test_cancellation_marks_stream_cancelled(self, make_gateway):
        started = asyncio.Event()
        release = asyncio.Event()

        client = FakeBedrockClient(FakeEventStream([chunk_event("a")]))
        gateway = make_gateway(client)
        original_acquire = gateway.rate_limiter.acquire

        async def blocking_acquire():
            started.set()
            await release.wait()
            return await original_acquire()

        gateway.rate_limiter.acquire = blocking_acquire
        stream = _invoke(gateway)
        task = asyncio.create_task(stream.__anext__())
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert stream.state is InvocationState.CANCELLED
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_response_arriving_after_cancellation_is_closed(self, make_gateway):
        completion = FakeEventStream([chunk_event("late")])
        entered = threading.Event()
        release = threading.Event()

        class BlockingClient(FakeBedrockClient):
            def invoke_agent(self, **kwargs):
                entered.set()
                release.wait(5)
                return super().invoke_agent(**kwargs)

        stream = _invoke(make_gateway(BlockingClient(completion)))
        task = asyncio.create_task(stream.__anext__())
        assert await asyncio.to_thread(entered.wait, 5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert stream.state is InvocationState.CANCELLED
        assert not completion.closed

        release.set()
        for _ in range(200):
            if completion.closed:
                break
            await asyncio.sleep(0.01)
        assert completion.closed


class TestMetrics:
    @pytest.mark.asyncio
    async def test_rate_limit_wait_is_recorded_per_attempt(self, make_gateway):
        def observed():
            return REGISTRY.get_sample_value("chat_agent_rate_limit_wait_seconds_count") or 0

        before = observed()
        client = FakeBedrockClient(throttling_error(), FakeEventStream([chunk_event("ok")]))
        await _collect(_invoke(make_gateway(client)))

        assert observed() - before == 2
