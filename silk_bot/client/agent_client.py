"""
HTTP client for the master-agent endpoint.

Opens the streamed POST and hands back the raw body chunks; frame decoding is
left to the caller's SSEFrameDecoder.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import requests

from ..config import BaseConfig, get_config
from ..errors import AgentResponseError, TransportError

log = logging.getLogger(__name__)

FAILED_RESPONSE_MESSAGE = "Failed to get response"


@dataclass
class AuthContext:
    """Explicit auth state handed to the client instead of an ambient session."""
    access_token: str
    user_id: str

    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }


def _live_socket(response: requests.Response) -> Optional[socket.socket]:
    """The socket a streamed response is reading from, when urllib3 exposes it."""
    raw = getattr(response, "raw", None)
    sock = getattr(getattr(raw, "_connection", None), "sock", None)
    if sock is None:
        # http.client keeps it behind the buffered reader
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock if isinstance(sock, socket.socket) else None


class AgentStream:
    """Body of a successful master-agent response.

    ``close()`` may be called from another thread while ``iter_chunks`` is
    blocked in a read. The socket is shut down first so the read returns at
    once, and whatever urllib3 raises from the torn-down response afterwards
    ends the iteration quietly instead of surfacing as an error.
    """

    def __init__(self, response: requests.Response, chunk_size: int = 1024):
        self._response = response
        self.chunk_size = chunk_size
        self.closed = False

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_content(chunk_size=self.chunk_size):
                if self.closed:
                    return
                if chunk:
                    yield chunk
        except (requests.RequestException, OSError) as e:
            if self.closed:
                log.debug(f"AGENT_STREAM_CLOSED | error={type(e).__name__}")
                return
            raise TransportError("Connection lost while streaming", cause=str(e)) from e
        except Exception as e:
            if not self.closed:
                raise
            log.debug(f"AGENT_STREAM_CLOSED | error={type(e).__name__}")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        sock = _live_socket(self._response)
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # already gone
        self._response.close()


def _error_text(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return FAILED_RESPONSE_MESSAGE
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return FAILED_RESPONSE_MESSAGE


class MasterAgentClient:
    def __init__(
        self,
        url: Optional[str] = None,
        cfg: Optional[BaseConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.cfg = cfg or get_config()
        self.url = url or self.cfg.MASTER_AGENT_URL
        self.session = session or requests.Session()

    def open(self, history: List[Dict[str, Any]], conversation_id: Optional[str], auth: AuthContext) -> AgentStream:
        try:
            response = self.session.post(
                self.url,
                headers={**auth.headers(), "Accept": "text/event-stream"},
                json={"messages": history, "conversationId": conversation_id},
                stream=True,
                timeout=self.cfg.upstream_timeout,
            )
        except requests.RequestException as e:
            log.error(f"AGENT_CONNECT_FAILED | url={self.url} | error={e}")
            raise TransportError("Could not reach the assistant", cause=str(e)) from e

        if not response.ok:
            message = _error_text(response)
            response.close()
            log.warning(f"AGENT_ERROR_RESPONSE | status={response.status_code} | error={message}")
            raise AgentResponseError(message, http_status=response.status_code)

        return AgentStream(response, chunk_size=self.cfg.STREAM_CHUNK_SIZE)
