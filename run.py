"""
Main entry point for the chat server.

Usage:
    python run.py

Or with uvicorn directly:
    uvicorn agent_chat.fastapi_app:create_fastapi_app --factory --host 0.0.0.0 --port 3000
"""

import uvicorn

from agent_chat.config.settings import get_settings

if __name__ == "__main__":
    settings = get_settings()

    print(f"Starting agent chat server in {settings.app_env} mode...")
    print(f"Server running on http://{settings.host}:{settings.port}")
    print(f"WebSocket endpoint: ws://{settings.host}:{settings.port}{settings.ws_path}")

    uvicorn.run(
        "agent_chat.fastapi_app:create_fastapi_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )
