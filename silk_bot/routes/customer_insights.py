# silk_bot/routes/customer_insights.py
"""
GET /functions/v1/customer-insights
    200 {"profile": {...}}  the caller's profile, a starter one on first visit
    401 / 500               {"error": str}

Gives the chat front end the name, products and loyalty it greets with.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify

from . import require_user, service

log = logging.getLogger(__name__)
bp = Blueprint("customer_insights", __name__, url_prefix="/functions/v1")


@bp.get("/customer-insights")
def customer_insights():
    user_id = require_user()
    profile = service("customer_profiles").get_or_create(user_id)
    log.info(f"CUSTOMER_INSIGHTS | user={user_id} | products={len(profile.existing_products)} | loyalty={profile.loyalty_years}y")
    return jsonify({"profile": profile.to_dict()}), 200
