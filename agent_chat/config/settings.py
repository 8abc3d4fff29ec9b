"""Application configuration settings"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_LOG_FORMAT = (
    "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"
)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUTHY


def _env_list(name: str, default: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in os.getenv(name, default).split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Built once at startup and handed to every component by the DI container."""

    # Server
    app_env: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: tuple[str, ...] = ("http://localhost:3001",)
    ws_path: str = "/chat"

    # AWS / Bedrock Agent
    aws_region: str = "us-east-1"
    bedrock_agent_id: str = ""
    bedrock_agent_alias_id: str = ""
    bedrock_enable_trace: bool = True

    # Agent invocation policy
    agent_min_request_interval_ms: int = 2000
    agent_max_attempts: int = 3
    agent_backoff_base_ms: int = 1000
    agent_backoff_max_ms: int = 10000
    agent_max_stream_seconds: float = 300.0

    # Logging
    log_level: str = "INFO"
    log_path: Optional[str] = None
    log_format: str = DEFAULT_LOG_FORMAT

    def __post_init__(self):
        if self.agent_max_attempts < 1:
            raise ValueError("AGENT_MAX_ATTEMPTS must be at least 1")
        if self.agent_min_request_interval_ms < 0:
            raise ValueError("AGENT_MIN_REQUEST_INTERVAL_MS cannot be negative")
        if self.agent_max_stream_seconds <= 0:
            raise ValueError("AGENT_MAX_STREAM_SECONDS must be positive")
        if not self.ws_path.startswith("/"):
            raise ValueError("WS_PATH must start with '/'")

    @property
    def debug(self) -> bool:
        return self.app_env == "development"

    @property
    def min_request_interval_seconds(self) -> float:
        return self.agent_min_request_interval_ms / 1000

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            app_env=os.getenv("APP_ENV", "development"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            cors_origins=_env_list("CORS_ORIGIN", "http://localhost:3001"),
            ws_path=os.getenv("WS_PATH", "/chat"),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            bedrock_agent_id=os.getenv("BEDROCK_AGENT_ID", ""),
            bedrock_agent_alias_id=os.getenv("BEDROCK_AGENT_ALIAS_ID", ""),
            bedrock_enable_trace=_env_bool("BEDROCK_ENABLE_TRACE", "true"),
            agent_min_request_interval_ms=int(
                os.getenv("AGENT_MIN_REQUEST_INTERVAL_MS", "2000")
            ),
            agent_max_attempts=int(os.getenv("AGENT_MAX_ATTEMPTS", "3")),
            agent_backoff_base_ms=int(os.getenv("AGENT_BACKOFF_BASE_MS", "1000")),
            agent_backoff_max_ms=int(os.getenv("AGENT_BACKOFF_MAX_MS", "10000")),
            agent_max_stream_seconds=float(
                os.getenv("AGENT_MAX_STREAM_SECONDS", "300")
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_path=os.getenv("LOG_PATH") or None,
            log_format=os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first use."""
    return Settings.from_env()
