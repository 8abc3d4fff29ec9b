"""
PRESENTATION LAYER - Transport adapters

- ws/  → realtime chat WebSocket
- api/ → HTTP endpoints (metrics)
"""
