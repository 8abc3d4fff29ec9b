"""Inbound WebSocket payloads (camelCase on the wire)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionPayload(_Payload):
    session_id: str = Field(..., min_length=1)


class SendMessagePayload(SessionPayload):
    content: str
    metadata: Optional[dict[str, Any]] = None
