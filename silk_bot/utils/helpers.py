"""
Utility helpers
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional


def iso_now() -> str:
    return datetime.now().isoformat()


def bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header_value:
        return None
    scheme, _, token = header_value.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def body_preview(text: Any, limit: int = 500) -> str:
    s = text if isinstance(text, str) else str(text)
    return s if len(s) <= limit else s[:limit] + "..."

