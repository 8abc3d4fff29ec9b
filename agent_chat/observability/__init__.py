"""Observability - Prometheus metrics for the chat service."""
