"""Configuration: environment-driven settings and logging setup."""

from agent_chat.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
