# silk_bot/intent_classifier.py
"""
Keyword intent classification
─────────────────────────────
Maps the latest user utterance to a conversation stage. Stateless per turn:
only the last message is looked at, earlier history is ignored.
"""

from __future__ import annotations

import logging
from typing import Tuple

from .enums import Intent

log = logging.getLogger(__name__)

# Evaluated top to bottom, first hit wins.
INTENT_RULES: Tuple[Tuple[Intent, Tuple[str, ...]], ...] = (
    (Intent.LOAN_INQUIRY, ("loan", "borrow", "money")),
    (Intent.EMI_NEGOTIATION, ("emi", "payment", "interest")),
    (Intent.APPROVAL, ("approve", "accept", "yes")),
    (Intent.NEEDS_EMPATHY, ("worried", "scared", "anxious")),
)


def classify(text: str) -> Intent:
    if not isinstance(text, str) or not text:
        return Intent.GENERAL

    lowered = text.lower()
    for intent, keywords in INTENT_RULES:
        if any(k in lowered for k in keywords):
            return intent
    return Intent.GENERAL


def last_message_text(history) -> str:
    """Content of the final history entry, or '' when there is nothing usable."""
    if not history:
        return ""
    last = history[-1]
    content = last.get("content") if isinstance(last, dict) else getattr(last, "content", "")
    return content if isinstance(content, str) else ""
