"""
SessionId Value Object - Caller-chosen token scoping one conversation.
"""

import re
from dataclasses import dataclass

from agent_chat.domain.exceptions.validation_error import DomainValidationError

_SESSION_ID_PATTERN = re.compile(r"[a-zA-Z0-9\-_]+")


@dataclass(frozen=True)
class SessionId:
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise DomainValidationError("Session ID cannot be empty")
        if not _SESSION_ID_PATTERN.fullmatch(self.value):
            raise DomainValidationError(
                "Session ID must contain only alphanumeric characters, hyphens, and underscores"
            )

    def __str__(self) -> str:
        return self.value
