#!/usr/bin/env python3
"""
SILK Loan Assistant entry point.

    python run.py                      # local dev server
    python run.py serve                # same
    python run.py issue-token <user>   # mint a bearer token for local testing
    gunicorn run:app                   # WSGI

Logging is set up once per process; the Flask app logger is folded into the
root logger so every line goes through the same formatter.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Callable, Dict, List, Tuple

from dotenv import load_dotenv
from flask import request

# The config classes read os.environ at import time
load_dotenv()

from silk_bot import create_app  # noqa: E402
from silk_bot.config import env_flag, get_config  # noqa: E402
from silk_bot.conversation_store import TokenResolver  # noqa: E402
from silk_bot.utils.smart_logger import LogLevel, configure_logging  # noqa: E402

log = logging.getLogger("silk_bot.run")

# (purpose, accepted variable names); any one name satisfies the entry
REQUIRED_SETTINGS: List[Tuple[str, Tuple[str, ...]]] = [
    ("AI gateway access", ("AI_GATEWAY_API_KEY", "LOVABLE_API_KEY")),
    ("conversation + token storage", ("REDIS_HOST",)),
]

_logging_ready = False


def init_logging() -> LogLevel:
    """Idempotent; safe under gunicorn's pre-fork import."""
    global _logging_ready

    raw = os.getenv("BOT_LOG_LEVEL", "STANDARD").strip().upper()
    level = LogLevel.from_env()
    if raw and raw not in LogLevel.__members__:
        print(f"Warning: unknown BOT_LOG_LEVEL '{raw}', using {level.name}. "
              f"Choose from {', '.join(LogLevel.__members__)}")

    if not _logging_ready and not logging.getLogger().handlers:
        configure_logging(
            level=level,
            format_string="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
    _logging_ready = True
    return level


def missing_settings() -> List[str]:
    return [
        f"{names[0]} ({purpose})"
        for purpose, names in REQUIRED_SETTINGS
        if not any(os.getenv(n) for n in names)
    ]


def build_app(strict: bool = False):
    """Create the Flask app. With ``strict`` a missing setting aborts the process."""
    missing = missing_settings()
    if missing:
        if strict:
            print("Error: missing required environment variables: " + ", ".join(missing))
            sys.exit(1)
        # let the process start so /rs/health can report the problem
        log.warning("ENV_INCOMPLETE | missing=" + ",".join(missing))

    level = init_logging()
    app = create_app()
    app.logger.handlers.clear()
    app.logger.propagate = True
    app.logger.setLevel(level.python_level)

    @app.before_request
    def _trace_request():
        app.logger.info("→ %s %s", request.method, request.path)

    return app


def _dev_server_settings() -> Tuple[str, int, bool]:
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8080"))
    if os.getenv("FLASK_DEBUG"):
        debug = env_flag("FLASK_DEBUG")
    else:
        debug = os.getenv("APP_ENV", "development").lower() == "development"
    return host, port, debug


def serve(args: List[str]) -> None:
    level = init_logging()
    app = build_app(strict=True)
    host, port, debug = _dev_server_settings()

    base = f"http://{host}:{port}"
    print("SILK Loan Assistant")
    print("-" * 60)
    print(f"Master agent: {base}/functions/v1/master-agent")
    print(f"Chat UI:      {base}/chat/ui")
    print(f"Health:       {base}/rs/health")
    print(f"Env / debug:  {os.getenv('APP_ENV', 'development')} / {debug}")
    print(f"Log level:    {level.name}  (pid {os.getpid()})")
    print("-" * 60)

    try:
        # reloader would run create_app twice and double the log handlers
        app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
    except KeyboardInterrupt:
        print("\nShutting down.")


def issue_token(args: List[str]) -> None:
    if len(args) != 1:
        print("Usage: python run.py issue-token <user_id>")
        sys.exit(2)
    init_logging()
    user_id = args[0]
    token = TokenResolver(cfg=get_config()).issue(user_id)
    print(f"SILK_USER_ID={user_id}")
    print(f"SILK_ACCESS_TOKEN={token}")


COMMANDS: Dict[str, Callable[[List[str]], None]] = {
    "serve": serve,
    "issue-token": issue_token,
}


def main(argv: List[str]) -> None:
    name, rest = (argv[0], argv[1:]) if argv else ("serve", [])
    command = COMMANDS.get(name)
    if command is None:
        print(f"Unknown command '{name}'. Available: {', '.join(COMMANDS)}")
        sys.exit(2)
    command(rest)


if __name__ == "__main__":
    main(sys.argv[1:])
else:
    app = build_app(strict=False)
