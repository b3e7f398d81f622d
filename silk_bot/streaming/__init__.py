"""Streaming utilities for chat-completion SSE streams."""

from .sse_decoder import SSEFrameDecoder, extract_delta

__all__ = ["SSEFrameDecoder", "extract_delta"]
