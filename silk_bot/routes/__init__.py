# silk_bot/routes/__init__.py
"""
Blueprint auto-registration.

Put any flask.Blueprint in `silk_bot/routes/<name>.py` with the variable
name **bp** (and its own url_prefix) and it will be discovered & registered
when `register_routes(app)` is called.

The app factory (silk_bot/__init__.py) stores shared collaborators
(`upstream_proxy`, `conversation_store`, `token_resolver`, `customer_profiles`) in
`app.extensions`; routes reach them through `service(name)`, which builds
them lazily on first use when the factory deferred them (Lambda).
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from types import ModuleType
from typing import Any

from flask import Blueprint, Flask, current_app, request

from ..errors import AuthenticationError
from ..utils.helpers import bearer_token

log = logging.getLogger(__name__)


def register_routes(app: Flask) -> None:
    for _finder, name, _ in pkgutil.iter_modules(__path__):
        module: ModuleType = importlib.import_module(f"{__name__}.{name}")
        bp: Blueprint | None = getattr(module, "bp", None)
        if isinstance(bp, Blueprint):
            app.register_blueprint(bp)
            log.info(f"REGISTER_ROUTES_SUCCESS | blueprint={name} | prefix={bp.url_prefix or '/'}")


def service(name: str) -> Any:
    ext = current_app.extensions
    if ext.get(name) is None:
        factory = ext.get("_factories", {}).get(name)
        if factory is None:
            raise RuntimeError(f"{name} is not initialized")
        log.info(f"INIT_{name.upper()} | lazy initialization")
        ext[name] = factory()
    return ext[name]


def require_user() -> str:
    """Resolve the bearer token on the current request to a user id, or raise 401."""
    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        raise AuthenticationError("Unauthorized")
    user_id = service("token_resolver").resolve(token)
    if not user_id:
        raise AuthenticationError("Unauthorized")
    return user_id
