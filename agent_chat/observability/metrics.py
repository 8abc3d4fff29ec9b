"""
Prometheus Metrics for the chat service.

DATA FLOW:
    This file                  presentation/api/metrics.py
    ─────────                  ───────────────────────────
    Define metrics ──────────► /metrics endpoint ──────────► Prometheus scraper

METRIC TYPES:
    - Gauge: Value goes up/down (open connections, streams in flight)
    - Counter: Value only goes up (invocations, retries, errors)
    - Histogram: Distribution (stream duration)
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


# =============================================================================
# METRICS DEFINITIONS
# =============================================================================
ACTIVE_CONNECTIONS = Gauge(
    "chat_ws_active_connections", "Number of open WebSocket chat connections"
)

ACTIVE_STREAMS = Gauge(
    "chat_agent_active_streams", "Number of agent response streams in flight"
)

AGENT_INVOCATIONS_TOTAL = Counter(
    "chat_agent_invocations_total",
    "Agent invocations by final state",
    ["outcome"],
)

AGENT_THROTTLE_RETRIES_TOTAL = Counter(
    "chat_agent_throttle_retries_total",
    "Retries scheduled after the agent service throttled a request",
)

AGENT_STREAM_DURATION = Histogram(
    "chat_agent_stream_duration_seconds",
    "Time from first send attempt to end of the agent stream",
    ["outcome"],
    buckets=[0.5, 1, 2, 5, 10, 30, 60, 120, 300],
)

AGENT_RATE_LIMIT_WAIT = Histogram(
    "chat_agent_rate_limit_wait_seconds",
    "Time spent waiting for the outbound rate limit before each agent call",
    buckets=[0, 0.1, 0.5, 1, 2, 5],
)

ERRORS_TOTAL = Counter(
    "chat_errors_total",
    "Total number of errors reported to clients, by type",
    ["error_type"],
)


# =============================================================================
# RECORDING FUNCTIONS
# =============================================================================
def connection_opened():
    ACTIVE_CONNECTIONS.inc()


def connection_closed():
    ACTIVE_CONNECTIONS.dec()


def stream_started():
    ACTIVE_STREAMS.inc()


def stream_finished():
    ACTIVE_STREAMS.dec()


def record_invocation(outcome: str, duration: float):
    """Call once per invocation when it reaches a terminal state."""
    AGENT_INVOCATIONS_TOTAL.labels(outcome=outcome).inc()
    AGENT_STREAM_DURATION.labels(outcome=outcome).observe(duration)


def increment_throttle_retry():
    AGENT_THROTTLE_RETRIES_TOTAL.inc()


def record_rate_limit_wait(seconds: float):
    AGENT_RATE_LIMIT_WAIT.observe(seconds)


def increment_error(error_type: str):
    ERRORS_TOTAL.labels(error_type=error_type).inc()


# =============================================================================
# HELPER FOR /metrics ENDPOINT
# =============================================================================
def get_metrics_content():
    """
    Generate Prometheus metrics output.

    Returns:
        Tuple of (content_bytes, content_type_string)
    """
    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = [
    "connection_opened",
    "connection_closed",
    "stream_started",
    "stream_finished",
    "record_invocation",
    "increment_throttle_retry",
    "increment_error",
    "get_metrics_content",
]
