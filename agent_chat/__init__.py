"""Streaming chat service for Amazon Bedrock Agents over WebSockets."""

__version__ = "1.0.0"
