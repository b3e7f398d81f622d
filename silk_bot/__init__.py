"""
SILK Loan Assistant Application Factory
=======================================

Wires the master-agent pipeline:
- upstream.py (intent classification + streamed AI gateway proxy)
- conversation_store.py (Redis conversation log, bearer token sessions, customer profiles)
- routes/ (blueprints auto-registered)
"""

from __future__ import annotations

import logging
import tempfile
from flask import Flask, jsonify
from flask_cors import CORS

from .config import get_config
from .conversation_store import ConversationStore, CustomerProfileStore, TokenResolver, build_redis_client
from .errors import SilkBotError
from .upstream import UpstreamChatProxy
from .utils.helpers import iso_now

log = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    App factory.

    INITIALIZATION ORDER:
    1. Config + CORS
    2. Collaborators (Redis store, token resolver, upstream proxy); lazy in Lambda
    3. Register routes
    4. Error handlers

    Args:
        config_name: 'lambda', 'production', 'development', 'testing'
    """
    cfg = get_config(config_name)
    lazy = config_name == "lambda"

    # Lambda uses /tmp for writable filesystem
    if lazy:
        app = Flask(__name__, instance_path=tempfile.gettempdir())
    else:
        app = Flask(__name__)

    app.config["SECRET_KEY"] = cfg.SECRET_KEY
    app.config["AI_GATEWAY_CONFIGURED"] = bool(cfg.AI_GATEWAY_API_KEY)
    app.config["SILK_CONFIG"] = cfg

    CORS(
        app,
        resources={r"/functions/*": {"origins": cfg.cors_origins}, r"/rs/*": {"origins": cfg.cors_origins}},
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-client-info", "apikey"],
        supports_credentials=False,
    )

    # ────────────────────────────────────────────────────────
    # STEP 1: Collaborators
    # ────────────────────────────────────────────────────────
    def _redis():
        if "_redis_client" not in app.extensions:
            app.extensions["_redis_client"] = build_redis_client(cfg)
        return app.extensions["_redis_client"]

    factories = {
        "conversation_store": lambda: ConversationStore(_redis(), cfg),
        "token_resolver": lambda: TokenResolver(_redis(), cfg),
        "customer_profiles": lambda: CustomerProfileStore(_redis(), cfg),
        "upstream_proxy": lambda: UpstreamChatProxy(cfg),
    }
    app.extensions["_factories"] = factories

    if lazy:
        # Built on first access so a cold start never blocks on Redis
        log.info("INIT_COLLABORATORS | Lambda mode - deferred to first request")
        for name in factories:
            app.extensions[name] = None
    else:
        for name, factory in factories.items():
            app.extensions[name] = factory()
        log.info(f"INIT_COLLABORATORS_SUCCESS | {', '.join(factories)}")

    if not cfg.AI_GATEWAY_API_KEY:
        log.warning("CONFIG_WARNING | AI_GATEWAY_API_KEY missing - master-agent requests will fail with 500")

    # ────────────────────────────────────────────────────────
    # STEP 2: Register Routes
    # ────────────────────────────────────────────────────────
    from .routes import register_routes
    register_routes(app)

    # ────────────────────────────────────────────────────────
    # STEP 3: Error Handlers
    # ────────────────────────────────────────────────────────
    @app.errorhandler(SilkBotError)
    def handle_silk_error(error: SilkBotError):
        if error.http_status >= 500:
            log.error(f"SILK_ERROR | code={error.code} | msg={error.message} | extra={error.extra}")
        body, status = error.to_response()
        return jsonify(body), status

    @app.errorhandler(500)
    def handle_internal_error(error):
        log.error(f"INTERNAL_ERROR | error={error}", exc_info=True)
        return {
            "error": "Internal server error",
            "timestamp": iso_now(),
        }, 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return {
            "error": "Endpoint not found",
            "timestamp": iso_now()
        }, 404

    log.info(f"APP_INIT_COMPLETE | config={config_name or 'env'}")
    app.version = "silk-master-agent-v1.0.0"
    return app
