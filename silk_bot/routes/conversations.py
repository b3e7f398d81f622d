# silk_bot/routes/conversations.py
"""
Conversation log endpoints used by chat clients as the persistence collaborator.
Every write is best-effort from the client's point of view.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from ..enums import Role
from ..models import MessageRecord
from . import require_user, service

log = logging.getLogger(__name__)
bp = Blueprint("conversations", __name__, url_prefix="/functions/v1/conversations")


@bp.post("")
def create_conversation():
    user_id = require_user()
    conversation_id = service("conversation_store").create_conversation(user_id)
    if not conversation_id:
        return jsonify({"error": "Could not create conversation"}), 503
    return jsonify({"id": conversation_id}), 201


def _owned(conversation_id: str, user_id: str) -> bool:
    return service("conversation_store").owner_of(conversation_id) == user_id


@bp.post("/<conversation_id>/messages")
def insert_message(conversation_id: str):
    user_id = require_user()
    if not _owned(conversation_id, user_id):
        return jsonify({"error": "Conversation not found"}), 404

    data = request.get_json(silent=True) or {}
    role = str(data.get("role") or "")
    content = data.get("content")
    if role not in (Role.USER.value, Role.ASSISTANT.value) or not isinstance(content, str):
        return jsonify({"error": "role and content are required"}), 400

    ok = service("conversation_store").insert(MessageRecord(conversation_id, role, content))
    if not ok:
        return jsonify({"ok": False}), 503
    return jsonify({"ok": True}), 201


@bp.get("/<conversation_id>/messages")
def list_messages(conversation_id: str):
    user_id = require_user()
    if not _owned(conversation_id, user_id):
        return jsonify({"error": "Conversation not found"}), 404
    return jsonify({"messages": service("conversation_store").get_messages(conversation_id)}), 200
