# silk_bot/routes/health.py
"""
Readiness and liveness check.

Returns HTTP 200 if Flask is running and Redis is reachable, otherwise 500.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify

from . import service

log = logging.getLogger(__name__)
bp = Blueprint("health", __name__, url_prefix="/rs")


@bp.get("/health")
def health_check() -> tuple[Dict[str, Any], int]:
    try:
        health = service("conversation_store").health_check()
    except Exception as exc:  # noqa: BLE001
        log.warning("Redis init failed: %s", exc)
        health = {"ping_success": False, "error": str(exc)}

    gateway = "configured" if current_app.config.get("AI_GATEWAY_CONFIGURED") else "missing_key"
    if health.get("ping_success"):
        return jsonify({"status": "healthy", "redis": "connected", "ai_gateway": gateway, "service": "silk-bot"}), 200
    log.warning("Redis ping failed: %s", health.get("error"))
    return jsonify({"status": "unhealthy", "redis": "disconnected", "ai_gateway": gateway, "service": "silk-bot"}), 500
