"""
Upstream streaming proxy for the AI gateway.

Classifies the latest turn, composes the stage prompt and opens exactly one
streamed chat-completion request. Once the status check passes the body is
handed back untouched; frames are never parsed here.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests

from .config import BaseConfig, get_config
from .enums import Intent
from .errors import ConfigurationError, UpstreamFailure, UpstreamQuotaExceeded, UpstreamRateLimited
from .intent_classifier import classify, last_message_text
from .prompts import build_upstream_messages
from .utils.helpers import body_preview
from .utils.smart_logger import get_smart_logger

log = logging.getLogger(__name__)
smart_log = get_smart_logger("upstream")

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
QUOTA_MESSAGE = "Payment required. Please add credits to continue."
GATEWAY_ERROR_MESSAGE = "AI gateway error"


class UpstreamStream:
    """Forward-only view over a successful upstream response."""

    def __init__(self, response: requests.Response, intent: Intent, chunk_size: int = 1024):
        self._response = response
        self.intent = intent
        self.chunk_size = chunk_size
        self.bytes_relayed = 0
        self.chunks_relayed = 0

    @property
    def content_type(self) -> str:
        return self._response.headers.get("Content-Type", "text/event-stream")

    def iter_bytes(self) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_content(chunk_size=self.chunk_size):
                if not chunk:
                    continue
                self.chunks_relayed += 1
                self.bytes_relayed += len(chunk)
                yield chunk
        finally:
            self.close()

    def close(self) -> None:
        self._response.close()


class UpstreamChatProxy:
    def __init__(self, cfg: Optional[BaseConfig] = None, session: Optional[requests.Session] = None):
        self.cfg = cfg or get_config()
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.cfg.AI_GATEWAY_API_KEY}",
            "Content-Type": "application/json",
        }

    def open_stream(
        self,
        history: List[Dict[str, Any]],
        conversation_id: Optional[str] = None,
        user_id: str = "anonymous",
    ) -> UpstreamStream:
        if not self.cfg.AI_GATEWAY_API_KEY:
            log.error(f"CONFIG_MISSING | key=AI_GATEWAY_API_KEY | user={user_id} | conversation={conversation_id}")
            raise ConfigurationError("AI gateway is not configured", setting="AI_GATEWAY_API_KEY")

        smart_log.request_start(user_id, conversation_id, len(history))

        latest = last_message_text(history)
        intent = classify(latest)
        smart_log.intent_classified(user_id, intent.value, latest)

        payload = {
            "model": self.cfg.AI_MODEL,
            "messages": build_upstream_messages(history, intent),
            "stream": True,
        }

        smart_log.upstream_call(user_id, self.cfg.AI_MODEL)
        try:
            response = self.session.post(
                self.cfg.AI_GATEWAY_URL,
                headers=self._headers(),
                json=payload,
                stream=True,
                timeout=self.cfg.upstream_timeout,
            )
        except requests.RequestException as e:
            smart_log.error_occurred(user_id, type(e).__name__, "upstream.post", str(e))
            raise UpstreamFailure(GATEWAY_ERROR_MESSAGE, cause=str(e)) from e

        status = response.status_code
        if status == 429:
            response.close()
            smart_log.upstream_call(user_id, self.cfg.AI_MODEL, status="rate_limited", http_status=status)
            raise UpstreamRateLimited(RATE_LIMIT_MESSAGE, upstream_status=status)
        if status == 402:
            response.close()
            smart_log.upstream_call(user_id, self.cfg.AI_MODEL, status="quota_exceeded", http_status=status)
            raise UpstreamQuotaExceeded(QUOTA_MESSAGE, upstream_status=status)
        if not 200 <= status < 300:
            try:
                error_text = response.text
            except requests.RequestException as e:
                error_text = f"<unreadable body: {e}>"
            finally:
                response.close()
            log.error(f"AI_GATEWAY_ERROR | status={status} | user={user_id} | body={body_preview(error_text)}")
            smart_log.error_occurred(user_id, "UpstreamFailure", "upstream.status", f"http={status}")
            raise UpstreamFailure(GATEWAY_ERROR_MESSAGE, upstream_status=status, upstream_body=body_preview(error_text))

        smart_log.upstream_call(user_id, self.cfg.AI_MODEL, status="success", http_status=status)
        return UpstreamStream(response, intent, chunk_size=self.cfg.STREAM_CHUNK_SIZE)
