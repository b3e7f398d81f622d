"""
Error taxonomy for the master-agent pipeline.

Everything raised across module boundaries derives from ``SilkBotError`` so
routes and the chat session can catch one type and still map to the right
HTTP status / user notice.
"""
from __future__ import annotations


class SilkBotError(Exception):
    """Base error.

    Attributes:
        code: machine readable code, e.g. ``UPSTREAM_RATE_LIMITED``.
        message: text safe to show to the caller.
        http_status: status used when surfaced through the HTTP layer.
        extra: diagnostic fields (upstream status, body preview, ...).
    """

    code = "SILK_ERROR"
    http_status = 500

    def __init__(self, message: str, *, code: str | None = None, http_status: int | None = None, **extra):
        self.message = message
        if code:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.extra = extra
        super().__init__(message)

    def to_response(self) -> tuple[dict, int]:
        return {"error": self.message}, self.http_status


class ConfigurationError(SilkBotError):
    """Required upstream credential (or other setting) missing."""

    code = "CONFIGURATION_ERROR"


class AuthenticationError(SilkBotError):
    code = "UNAUTHORIZED"
    http_status = 401


class UpstreamRateLimited(SilkBotError):
    code = "UPSTREAM_RATE_LIMITED"
    http_status = 429


class UpstreamQuotaExceeded(SilkBotError):
    code = "UPSTREAM_QUOTA_EXCEEDED"
    http_status = 402


class UpstreamFailure(SilkBotError):
    """Any other non-success upstream status, or no response at all."""

    code = "UPSTREAM_FAILURE"


class FrameParseError(SilkBotError):
    """A single SSE payload was not valid JSON. Never leaves the decoder."""

    code = "FRAME_PARSE_ERROR"


class TransportError(SilkBotError):
    """Reading the relayed stream failed (connection drop, decode failure)."""

    code = "TRANSPORT_ERROR"


class AgentResponseError(SilkBotError):
    """The master-agent endpoint answered with a JSON error instead of a stream."""

    code = "AGENT_ERROR"


class StoreUnavailable(SilkBotError):
    """A read the caller cannot do without failed in Redis."""

    code = "STORE_UNAVAILABLE"
