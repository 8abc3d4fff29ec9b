"""
Chat WebSocket endpoint.

Frames are JSON objects: {"event": <name>, "data": <payload>}

Client → server:
    sendMessage      {sessionId, content, metadata?}
    getConversation  {sessionId}
    endConversation  {sessionId}
    ping

Server → client:
    connected            {clientId}
    messageReceived      {sessionId}
    messageChunk         {sessionId, chunk: {content, isComplete, metadata?}}
    messageComplete      {sessionId}
    conversationHistory  {sessionId, messages}
    conversationEnded    {sessionId}
    pong
    error                {sessionId?, message}

sendMessage runs as a background task so one connection can keep
reading (ping, getConversation) while a reply streams. Disconnecting
cancels every in-flight send.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from agent_chat.application.commands.chat.send_message import (
    SendMessageCommand,
    SendMessageHandler,
)
from agent_chat.application.commands.conversations.end_conversation import (
    EndConversationCommand,
    EndConversationHandler,
)
from agent_chat.application.common.errors import MessageDeliveryError
from agent_chat.application.dto.chat import StreamChunkDTO
from agent_chat.application.queries.conversations.get_conversation import (
    GetConversationHandler,
    GetConversationQuery,
)
from agent_chat.config.logging_config import correlation_id_var
from agent_chat.domain.exceptions.base import DomainError
from agent_chat.observability import metrics
from agent_chat.presentation.ws.schemas import SendMessagePayload, SessionPayload

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def _error_message(error: Exception) -> str:
    """Client-facing text for an error. Unexpected errors are not leaked."""
    if isinstance(error, (DomainError, MessageDeliveryError)):
        return str(error)
    return GENERIC_ERROR_MESSAGE


def _validation_message(event: str, error: ValidationError) -> str:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'data'}: {e['msg']}"
        for e in error.errors()
    )
    return f"Invalid {event} payload: {problems}"


class ChatConnection:
    """One connected client."""

    def __init__(
        self,
        websocket: WebSocket,
        send_message_handler: SendMessageHandler,
        get_conversation_handler: GetConversationHandler,
        end_conversation_handler: EndConversationHandler,
    ):
        self.websocket = websocket
        self.client_id = uuid.uuid4().hex
        self._send_message_handler = send_message_handler
        self._get_conversation_handler = get_conversation_handler
        self._end_conversation_handler = end_conversation_handler
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

        self._events = {
            "sendMessage": self._on_send_message,
            "getConversation": self._on_get_conversation,
            "endConversation": self._on_end_conversation,
            "ping": self._on_ping,
        }

    async def serve(self) -> None:
        await self.websocket.accept()
        correlation_id_var.set(self.client_id)
        metrics.connection_opened()
        logger.info("Client connected: %s", self.client_id)

        try:
            await self.emit("connected", {"clientId": self.client_id})
            await self._reader()
        except WebSocketDisconnect:
            logger.info("Client disconnected: %s", self.client_id)
        finally:
            self._closed = True
            pending = [t for t in self._tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            metrics.connection_closed()

    async def emit(self, event: str, data: Optional[dict[str, Any]] = None) -> None:
        if self._closed or self.websocket.client_state != WebSocketState.CONNECTED:
            return
        frame: dict[str, Any] = {"event": event}
        if data is not None:
            frame["data"] = data
        async with self._send_lock:
            await self.websocket.send_json(frame)

    async def emit_error(self, session_id: Optional[str], message: str) -> None:
        data: dict[str, Any] = {"message": message}
        if session_id is not None:
            data["sessionId"] = session_id
        await self.emit("error", data)

    # ==================== INBOUND ====================

    async def _reader(self) -> None:
        while True:
            message = await self.websocket.receive()

            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = message.get("text")
            if raw is None:
                await self.emit_error(None, "Only JSON text frames are supported")
                continue

            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await self.emit_error(None, "Malformed frame: expected a JSON object")
                continue

            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await self.emit_error(None, "Malformed frame: missing event name")
                continue

            await self.dispatch(frame["event"], frame.get("data"))

    async def dispatch(self, event: str, data: Any) -> None:
        handler = self._events.get(event)
        if handler is None:
            await self.emit_error(_session_id_of(data), f"Unknown event: {event}")
            return
        await handler(event, data)

    async def _on_send_message(self, event: str, data: Any) -> None:
        try:
            payload = SendMessagePayload.model_validate(data)
        except ValidationError as e:
            await self.emit_error(_session_id_of(data), _validation_message(event, e))
            return

        logger.info(
            "Received message from client %s for session %s",
            self.client_id,
            payload.session_id,
        )
        task = asyncio.create_task(
            self._stream_reply(payload), name=f"send-{payload.session_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Task %s failed: %s", task.get_name(), task.exception())

    async def _stream_reply(self, payload: SendMessagePayload) -> None:
        session_id = payload.session_id
        command = SendMessageCommand(
            session_id=session_id,
            content=payload.content,
            metadata=payload.metadata,
        )
        try:
            await self.emit("messageReceived", {"sessionId": session_id})

            async for chunk in self._send_message_handler.execute(command):
                await self.emit(
                    "messageChunk",
                    {
                        "sessionId": session_id,
                        "chunk": StreamChunkDTO.from_chunk(chunk).to_wire(),
                    },
                )

            await self.emit("messageComplete", {"sessionId": session_id})
        except WebSocketDisconnect:
            logger.info("Client %s went away while streaming %s", self.client_id, session_id)
        except Exception as e:
            await self._report(session_id, "processing message", e)

    async def _on_get_conversation(self, event: str, data: Any) -> None:
        try:
            payload = SessionPayload.model_validate(data)
        except ValidationError as e:
            await self.emit_error(_session_id_of(data), _validation_message(event, e))
            return

        logger.info(
            "Getting conversation for session %s from client %s",
            payload.session_id,
            self.client_id,
        )
        try:
            messages = await self._get_conversation_handler.execute(
                GetConversationQuery(session_id=payload.session_id)
            )
        except Exception as e:
            await self._report(payload.session_id, "getting conversation", e)
            return

        await self.emit(
            "conversationHistory",
            {
                "sessionId": payload.session_id,
                "messages": [m.to_wire() for m in messages],
            },
        )

    async def _on_end_conversation(self, event: str, data: Any) -> None:
        try:
            payload = SessionPayload.model_validate(data)
        except ValidationError as e:
            await self.emit_error(_session_id_of(data), _validation_message(event, e))
            return

        logger.info(
            "Ending conversation for session %s from client %s",
            payload.session_id,
            self.client_id,
        )
        try:
            await self._end_conversation_handler.execute(
                EndConversationCommand(session_id=payload.session_id)
            )
        except Exception as e:
            await self._report(payload.session_id, "ending conversation", e)
            return

        await self.emit("conversationEnded", {"sessionId": payload.session_id})

    async def _on_ping(self, event: str, data: Any) -> None:
        await self.emit("pong")

    async def _report(self, session_id: str, action: str, error: Exception) -> None:
        metrics.increment_error(type(error).__name__)
        if isinstance(error, (DomainError, MessageDeliveryError)):
            logger.error("Error %s for session %s: %s", action, session_id, error)
        else:
            logger.exception("Unexpected error %s for session %s", action, session_id)
        await self.emit_error(session_id, _error_message(error))


def _session_id_of(data: Any) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("sessionId"), str):
        return data["sessionId"]
    return None


def create_chat_router(path: str = "/chat") -> APIRouter:
    router = APIRouter(tags=["chat"])

    @router.websocket(path)
    async def chat_socket(websocket: WebSocket):
        container = websocket.app.state.dishka_container
        connection = ChatConnection(
            websocket,
            send_message_handler=await container.get(SendMessageHandler),
            get_conversation_handler=await container.get(GetConversationHandler),
            end_conversation_handler=await container.get(EndConversationHandler),
        )
        await connection.serve()

    return router
