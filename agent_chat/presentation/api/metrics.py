"""
Prometheus Metrics Endpoint.

    observability/metrics.py  ──►  GET /metrics  ──►  Prometheus scraper

Test with: curl http://localhost:3000/metrics
"""

from fastapi import APIRouter, Response

from agent_chat.observability.metrics import get_metrics_content

router = APIRouter(prefix="/metrics", tags=["observability"])


@router.get("")
async def metrics():
    """Return every registered metric in Prometheus text format."""
    content, content_type = get_metrics_content()
    return Response(content=content, media_type=content_type)
