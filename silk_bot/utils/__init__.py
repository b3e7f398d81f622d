# silk_bot/utils/__init__.py
"""
Expose helpers at package-level for convenience:

    from silk_bot.utils import bearer_token
"""

from .helpers import (  # noqa: F401
    bearer_token,
    body_preview,
    iso_now,
)

__all__ = [
    "bearer_token",
    "body_preview",
    "iso_now",
]
