"""
Bedrock Agent Gateway - rate-limited, retrying streaming client for Bedrock Agents.

Per invocation:

    INIT → RATE_LIMIT_WAIT → SENDING ─┬─ throttled, attempts left → backoff → RATE_LIMIT_WAIT
                                      ├─ throttled, budget spent  → FAILED (RateLimitExceededError)
                                      ├─ any other error          → FAILED (UpstreamError)
                                      └─ accepted → STREAMING → COMPLETE

STREAMING never retries: once a chunk has been handed out, a failure is terminal.

boto3 is blocking, so the InvokeAgent call and every read from its event
stream run in a worker thread (asyncio.to_thread). Closing the stream
closes the underlying HTTP response.
"""

import asyncio
import codecs
import json
import logging
import re
import time
from typing import Any, Awaitable, Callable, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from agent_chat.config.settings import Settings
from agent_chat.domain.exceptions.agent_errors import (
    RateLimitExceededError,
    TransportError,
    UpstreamError,
)
from agent_chat.domain.exceptions.base import DomainError
from agent_chat.domain.ports.agent_gateway import (
    AgentGateway,
    AgentStream,
    InvocationState,
    StreamChunk,
)
from agent_chat.domain.value_objects.message_content import MessageContent
from agent_chat.domain.value_objects.session_id import SessionId
from agent_chat.infrastructure.bedrock.rate_limiter import RateLimiter
from agent_chat.observability import metrics

logger = logging.getLogger(__name__)

_THROTTLING_CODES = frozenset(
    {"ThrottlingException", "TooManyRequestsException", "Throttling"}
)
_THROTTLING_MESSAGE = re.compile(r"throttl|\brate\b|rate[\s_-]?limit", re.IGNORECASE)

_END = object()


def _close_completion(completion: Any) -> None:
    close = getattr(completion, "close", None)
    if close is not None:
        close()


def _close_abandoned_response(call: "asyncio.Future[dict]") -> None:
    if call.cancelled() or call.exception() is not None:
        return
    completion = call.result().get("completion")
    if completion is not None:
        logger.debug("Closing agent response that arrived after cancellation")
        _close_completion(completion)


def is_throttling_error(error: BaseException) -> bool:
    """True for an explicit throttling signal or a rate/throttle error message."""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        if code in _THROTTLING_CODES:
            return True
    if type(error).__name__ in _THROTTLING_CODES:
        return True
    return bool(_THROTTLING_MESSAGE.search(str(error)))


def create_bedrock_runtime_client(settings: Settings):
    """boto3 client for the agent runtime. Retries are ours, not botocore's."""
    return boto3.client(
        "bedrock-agent-runtime",
        region_name=settings.aws_region,
        config=BotoConfig(
            retries={"max_attempts": 1, "mode": "standard"},
            read_timeout=int(settings.agent_max_stream_seconds),
        ),
    )


class BedrockAgentStream(AgentStream):
    """One InvokeAgent call, consumed chunk by chunk."""

    def __init__(
        self,
        gateway: "BedrockAgentGateway",
        session_id: SessionId,
        content: MessageContent,
    ):
        self.state = InvocationState.INIT
        self.attempts = 0
        self._gateway = gateway
        self._session_id = session_id
        self._content = content
        self._completion: Any = None
        self._events = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
        self._total_length = 0
        self._started_at: Optional[float] = None
        self._deadline: Optional[float] = None

    async def __anext__(self) -> StreamChunk:
        if self.state.is_terminal:
            raise StopAsyncIteration

        try:
            if self._events is None:
                await self._open()
            chunk = await self._next_chunk()
        except asyncio.CancelledError:
            self._finish(InvocationState.CANCELLED)
            raise
        except DomainError as e:
            logger.error("Error sending message for session %s: %s", self._session_id, e)
            self._finish(InvocationState.FAILED)
            raise
        except Exception as e:
            logger.exception("Unexpected error streaming session %s", self._session_id)
            self._finish(InvocationState.FAILED)
            raise UpstreamError(f"Bedrock Agent error: {e}") from e

        if chunk.is_complete:
            self._finish(InvocationState.COMPLETE)
            logger.debug("Message completed for session: %s", self._session_id)
        return chunk

    async def aclose(self) -> None:
        if not self.state.is_terminal:
            self._finish(InvocationState.CANCELLED)

    # ==================== SENDING ====================

    async def _open(self) -> None:
        settings = self._gateway.settings
        self._started_at = time.monotonic()
        self._deadline = self._started_at + settings.agent_max_stream_seconds

        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.agent_max_attempts),
            wait=wait_exponential(
                multiplier=settings.agent_backoff_base_ms / 1000,
                max=settings.agent_backoff_max_ms / 1000,
            ),
            retry=retry_if_exception(is_throttling_error),
            before_sleep=self._log_backoff,
            sleep=self._gateway.sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send()
        except Exception as e:
            if is_throttling_error(e):
                raise RateLimitExceededError(attempts=self.attempts) from e
            raise UpstreamError(f"Bedrock Agent error: {e}") from e

        completion = response.get("completion")
        if completion is None:
            raise UpstreamError("No completion stream returned from Bedrock Agent")

        self._completion = completion
        self._events = iter(completion)
        self.state = InvocationState.STREAMING
        metrics.stream_started()

    async def _send(self) -> dict:
        self.attempts += 1
        self.state = InvocationState.RATE_LIMIT_WAIT
        waited = await self._gateway.rate_limiter.acquire()
        metrics.record_rate_limit_wait(waited)

        self.state = InvocationState.SENDING
        logger.debug(
            "Invoking agent for session %s (attempt %d/%d)",
            self._session_id,
            self.attempts,
            self._gateway.settings.agent_max_attempts,
        )
        request = self._gateway.build_request(self._session_id, self._content)
        call = asyncio.ensure_future(
            asyncio.to_thread(self._gateway.client.invoke_agent, **request)
        )
        try:
            return await asyncio.shield(call)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; release whatever it returns
            call.add_done_callback(_close_abandoned_response)
            raise

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        metrics.increment_throttle_retry()
        self.state = InvocationState.RATE_LIMIT_WAIT
        logger.warning(
            "Rate limit hit (attempt %d/%d), retrying in %.0fms...",
            retry_state.attempt_number,
            self._gateway.settings.agent_max_attempts,
            retry_state.next_action.sleep * 1000,
        )

    # ==================== STREAMING ====================

    async def _next_event(self) -> Any:
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise self._deadline_error()
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(next, self._events, _END), timeout=remaining
            )
        except asyncio.TimeoutError:
            raise self._deadline_error()

    async def _next_chunk(self) -> StreamChunk:
        while True:
            try:
                event = await self._next_event()
            except (BotoCoreError, ClientError) as e:
                if is_throttling_error(e):
                    raise RateLimitExceededError(attempts=self.attempts) from e
                raise UpstreamError(f"Bedrock Agent error: {e}") from e

            if event is _END:
                self._decode(b"", final=True)
                return StreamChunk(
                    content="",
                    is_complete=True,
                    metadata={"totalLength": self._total_length},
                )

            if "chunk" in event:
                text = self._decode(event["chunk"].get("bytes", b""))
                if not text:
                    # Frame ended inside a multi-byte sequence
                    continue
                self._total_length += len(text)
                return StreamChunk(content=text, is_complete=False)

            if "trace" in event:
                logger.debug(
                    "Trace event for session %s: %s",
                    self._session_id,
                    json.dumps(event["trace"], default=str),
                )
                continue

            error_key = next((key for key in event if key.endswith("Exception")), None)
            if error_key is not None:
                detail = event[error_key]
                if isinstance(detail, dict):
                    detail = detail.get("message", "")
                if error_key == "throttlingException":
                    raise RateLimitExceededError(attempts=self.attempts)
                raise UpstreamError(f"Bedrock Agent error: {error_key}: {detail}")

            logger.debug("Ignoring agent stream event: %s", ", ".join(event))

    def _decode(self, data: bytes, final: bool = False) -> str:
        try:
            return self._decoder.decode(data, final=final)
        except UnicodeDecodeError as e:
            raise TransportError(f"Malformed UTF-8 in agent stream: {e.reason}") from e

    def _deadline_error(self) -> UpstreamError:
        return UpstreamError(
            f"Agent stream exceeded {self._gateway.settings.agent_max_stream_seconds:g} seconds"
        )

    # ==================== RELEASE ====================

    def _finish(self, state: InvocationState) -> None:
        was_streaming = self.state is InvocationState.STREAMING
        self.state = state

        if self._completion is not None:
            _close_completion(self._completion)
            self._completion = None

        if was_streaming:
            metrics.stream_finished()
        if self._started_at is not None:
            metrics.record_invocation(state.value, time.monotonic() - self._started_at)


class BedrockAgentGateway(AgentGateway):
    def __init__(
        self,
        client: Any,
        settings: Settings,
        rate_limiter: RateLimiter,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.settings = settings
        self.rate_limiter = rate_limiter
        self.sleep = sleep
        logger.info(
            "BedrockAgentGateway initialized with region: %s, agentId: %s",
            settings.aws_region,
            settings.bedrock_agent_id,
        )

    def build_request(self, session_id: SessionId, content: MessageContent) -> dict:
        return {
            "agentId": self.settings.bedrock_agent_id,
            "agentAliasId": self.settings.bedrock_agent_alias_id,
            "sessionId": session_id.value,
            "inputText": content.value,
            "enableTrace": self.settings.bedrock_enable_trace,
        }

    def invoke(self, session_id: SessionId, content: MessageContent) -> BedrockAgentStream:
        logger.debug("Sending message for session: %s", session_id)
        return BedrockAgentStream(self, session_id, content)

    async def initialize_session(self, session_id: SessionId) -> None:
        # Bedrock creates agent sessions implicitly on the first InvokeAgent call
        logger.info("Initializing session: %s", session_id)

    async def end_session(self, session_id: SessionId) -> None:
        logger.info("Ending session: %s", session_id)
