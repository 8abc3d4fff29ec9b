"""
API Routers - FastAPI endpoint definitions.
"""

from agent_chat.presentation.api.metrics import router as metrics_router

__all__ = [
    "metrics_router",
]
