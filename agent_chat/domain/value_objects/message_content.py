"""
MessageContent Value Object - Text of a single chat message.
"""

from dataclasses import dataclass
from typing import ClassVar

from agent_chat.domain.exceptions.validation_error import DomainValidationError


@dataclass(frozen=True)
class MessageContent:
    MAX_LENGTH: ClassVar[int] = 10000

    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise DomainValidationError("Message content cannot be empty")
        if len(self.value) > self.MAX_LENGTH:
            raise DomainValidationError(
                f"Message content exceeds maximum length of {self.MAX_LENGTH} characters"
            )

    def __str__(self) -> str:
        return self.value

    def __len__(self) -> int:
        return len(self.value)
