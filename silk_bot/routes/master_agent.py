# silk_bot/routes/master_agent.py
"""
Master agent endpoint
=====================

POST /functions/v1/master-agent
    body:    {"messages": [{"role", "content"}...], "conversationId": str | null}
    success: text/event-stream, the upstream body relayed as-is
    errors:  {"error": str} with 400 / 401 / 402 / 429 / 500
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from flask import Blueprint, Response, jsonify, request, stream_with_context

from ..errors import SilkBotError
from ..models import Message
from ..utils.smart_logger import get_smart_logger
from . import require_user, service

log = logging.getLogger(__name__)
smart_log = get_smart_logger("master_agent")
bp = Blueprint("master_agent", __name__, url_prefix="/functions/v1")


def _parse_history(data: Any) -> List[Dict[str, Any]]:
    raw = data.get("messages") if isinstance(data, dict) else None
    if not isinstance(raw, list) or not raw:
        raise ValueError("messages must be a non-empty list")
    return [Message.from_dict(m).to_dict() for m in raw]


@bp.post("/master-agent")
def master_agent() -> Response:
    user_id = require_user()

    data = request.get_json(silent=True)
    try:
        history = _parse_history(data)
    except ValueError as e:
        log.info(f"MASTER_AGENT_BAD_REQUEST | user={user_id} | error={e}")
        return jsonify({"error": str(e)}), 400

    conversation_id = data.get("conversationId")
    proxy = service("upstream_proxy")

    try:
        upstream = proxy.open_stream(history, conversation_id=conversation_id, user_id=user_id)
    except SilkBotError as e:
        log.warning(f"MASTER_AGENT_ERROR | user={user_id} | code={e.code} | status={e.http_status} | extra={e.extra}")
        body, status = e.to_response()
        return jsonify(body), status

    start_ts = time.time()

    def relay():
        try:
            yield from upstream.iter_bytes()
        except Exception as e:
            # headers are already sent; aborting the response is the only signal left
            smart_log.error_occurred(user_id, type(e).__name__, "master_agent.relay", str(e))
            raise
        smart_log.stream_relayed(user_id, upstream.chunks_relayed, upstream.bytes_relayed, time.time() - start_ts)

    return Response(
        stream_with_context(relay()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
