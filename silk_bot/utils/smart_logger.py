# silk_bot/utils/smart_logger.py
"""
One-line flow logs for the master-agent pipeline.

Every line reads ``<emoji> EVENT | summary | key=value ...`` so a single
exchange can be followed with ``grep turn=<id>``. Verbosity is chosen with
BOT_LOG_LEVEL (MINIMAL, STANDARD, DETAILED, DEBUG).
"""

import logging
import os
import sys
import uuid
from enum import Enum
from typing import Dict, Optional

NOISY_LIBRARIES = ("urllib3", "werkzeug", "botocore", "redis")


class LogLevel(Enum):
    MINIMAL = 1      # turn start/end and failures
    STANDARD = 2     # + intent and gateway status
    DETAILED = 3     # + byte counts and timings
    DEBUG = 4

    @classmethod
    def from_env(cls, var: str = "BOT_LOG_LEVEL", default: "LogLevel" = None) -> "LogLevel":
        name = os.getenv(var, "").strip().upper()
        return cls.__members__.get(name, default or cls.STANDARD)

    @property
    def python_level(self) -> int:
        return logging.DEBUG if self in (LogLevel.DETAILED, LogLevel.DEBUG) else logging.INFO


class SmartLogger:
    def __init__(self, name: str, level: LogLevel = LogLevel.STANDARD):
        self.logger = logging.getLogger(name)
        self.level = level
        # user id -> short turn id, so related lines share a tag
        self._turns: Dict[str, str] = {}

    def set_level(self, level: LogLevel):
        self.level = level

    def _enabled(self, required: LogLevel) -> bool:
        return self.level.value >= required.value

    def _turn(self, user_id: str, end: bool = False) -> str:
        if end:
            return self._turns.pop(user_id, "-")
        return self._turns.get(user_id, "-")

    def _emit(self, method: str, emoji: str, event: str, summary: str, **fields):
        parts = [f"{emoji} {event}", summary]
        parts.extend(f"{k}={v}" for k, v in fields.items() if v is not None)
        getattr(self.logger, method)(" | ".join(parts))

    # ── exchange lifecycle ─────────────────────────────────────

    def request_start(self, user_id: str, conversation_id: Optional[str], history_len: int):
        turn = uuid.uuid4().hex[:8]
        self._turns[user_id] = turn
        if self._enabled(LogLevel.MINIMAL):
            self._emit("info", "🚀", "TURN_START", f"{history_len} messages",
                       turn=turn, user=user_id, conversation=conversation_id)

    def intent_classified(self, user_id: str, intent: str, preview: str = ""):
        if not self._enabled(LogLevel.STANDARD):
            return
        shown = preview if len(preview) <= 50 else preview[:50] + "..."
        self._emit("info", "🧭", "INTENT", intent, turn=self._turn(user_id), text=repr(shown))

    def upstream_call(self, user_id: str, model: str, status: str = "started", http_status: int = None):
        if not self._enabled(LogLevel.STANDARD):
            return
        emoji = {"started": "📡", "success": "✅"}.get(status, "🛑")
        self._emit("info", emoji, "GATEWAY", model, turn=self._turn(user_id), status=status, http=http_status)

    def stream_relayed(self, user_id: str, chunks: int, size: int, elapsed_time: float = None):
        turn = self._turn(user_id, end=True)
        if not self._enabled(LogLevel.MINIMAL):
            return
        fields = {"turn": turn, "chunks": chunks}
        if self._enabled(LogLevel.DETAILED):
            fields["bytes"] = size
            if elapsed_time is not None:
                fields["elapsed"] = f"{elapsed_time:.3f}s"
        self._emit("info", "🏁", "TURN_DONE", "stream relayed", **fields)

    def error_occurred(self, user_id: str, error_type: str, operation: str, error_msg: str = None):
        """Always logged, whatever the level; closes the turn."""
        self._emit("error", "❌", "TURN_FAILED", f"{error_type} in {operation}",
                   turn=self._turn(user_id, end=True), msg=error_msg)


_loggers: Dict[str, SmartLogger] = {}


def get_smart_logger(module_name: str, level: LogLevel = None) -> SmartLogger:
    if module_name not in _loggers:
        _loggers[module_name] = SmartLogger(module_name, level or LogLevel.from_env())
    elif level:
        _loggers[module_name].set_level(level)
    return _loggers[module_name]


def configure_logging(level: LogLevel = LogLevel.STANDARD,
                      format_string: str = None,
                      silence_external: bool = True):
    """Root handler on stdout plus a level push to every SmartLogger created so far."""
    logging.basicConfig(
        level=level.python_level,
        format=format_string or "%(asctime)s | %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if silence_external:
        for name in NOISY_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)

    for smart_logger in _loggers.values():
        smart_logger.set_level(level)
