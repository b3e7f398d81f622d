# silk_bot/routes/loan_calculator.py
"""
POST /functions/v1/loan-calculator
    {"loanAmount": 100000, "interestRate": 10.5, "tenureMonths": 36}
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from ..loan_calculator import DEFAULT_INTEREST_RATE, DEFAULT_TENURE_MONTHS, quote_loan

log = logging.getLogger(__name__)
bp = Blueprint("loan_calculator", __name__, url_prefix="/functions/v1")


@bp.post("/loan-calculator")
def loan_calculator():
    data = request.get_json(silent=True) or {}
    try:
        amount = float(data.get("loanAmount") or 0)
        rate = float(data.get("interestRate", DEFAULT_INTEREST_RATE))
        tenure = int(data.get("tenureMonths", DEFAULT_TENURE_MONTHS))
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid loan amount"}), 400

    if amount <= 0:
        return jsonify({"error": "Invalid loan amount"}), 400
    if tenure <= 0:
        return jsonify({"error": "Invalid tenure"}), 400

    quote = quote_loan(amount, rate, tenure)
    log.info(f"LOAN_QUOTE | amount={amount} | rate={rate} | tenure={tenure} | emi={quote.requested_emi}")
    return jsonify(quote.to_dict()), 200
