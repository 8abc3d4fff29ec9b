"""
Timestamp Value Object - Timezone-aware UTC instant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from agent_chat.domain.exceptions.validation_error import DomainValidationError


@dataclass(frozen=True, order=True)
class Timestamp:
    value: datetime

    def __post_init__(self):
        if not isinstance(self.value, datetime):
            raise DomainValidationError(f"Invalid timestamp: {self.value!r}")
        # Naive datetimes are treated as UTC
        if self.value.tzinfo is None:
            object.__setattr__(self, "value", self.value.replace(tzinfo=timezone.utc))

    @classmethod
    def now(cls) -> Timestamp:
        return cls(datetime.now(timezone.utc))

    @classmethod
    def from_datetime(cls, value: datetime) -> Timestamp:
        return cls(value)

    @classmethod
    def from_iso_string(cls, iso_string: str) -> Timestamp:
        """Parse ISO-8601 text, accepting a trailing 'Z' for UTC."""
        try:
            parsed = datetime.fromisoformat(iso_string.strip().replace("Z", "+00:00"))
        except (AttributeError, ValueError):
            raise DomainValidationError(f"Invalid ISO string: {iso_string}")
        return cls(parsed)

    def to_datetime(self) -> datetime:
        return self.value

    def to_iso_string(self) -> str:
        """ISO-8601 in UTC with millisecond precision, e.g. 2024-05-01T10:00:00.000Z"""
        utc = self.value.astimezone(timezone.utc)
        return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def is_before(self, other: Timestamp) -> bool:
        return self.value < other.value

    def is_after(self, other: Timestamp) -> bool:
        return self.value > other.value

    def __str__(self) -> str:
        return self.to_iso_string()
