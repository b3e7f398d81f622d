#!/usr/bin/env python3
"""
Terminal chat against a running master-agent endpoint.

    SILK_ACCESS_TOKEN=... SILK_USER_ID=... python chat_cli.py

Replies are printed as deltas arrive. Ctrl-C while a reply is streaming stops
it (the partial text is kept); Ctrl-C at the prompt exits.
"""
from __future__ import annotations

import os
import sys
import threading
from typing import List

from dotenv import load_dotenv

load_dotenv()

from silk_bot.client import AuthContext, ChatSession, HttpConversationStore, MasterAgentClient  # noqa: E402
from silk_bot.config import get_config  # noqa: E402
from silk_bot.enums import Role  # noqa: E402
from silk_bot.models import Message  # noqa: E402
from silk_bot.utils.smart_logger import LogLevel, configure_logging  # noqa: E402


class TerminalRenderer:
    """Observer that prints only the new tail of the streaming assistant message."""

    def __init__(self) -> None:
        self._shown = 0
        self._count = 0

    def __call__(self, messages: List[Message]) -> None:
        if len(messages) != self._count:
            self._count = len(messages)
            self._shown = 0
        last = messages[-1]
        if last.role is not Role.ASSISTANT:
            return
        if self._shown == 0 and last.content:
            print("SILK: ", end="", flush=True)
        print(last.content[self._shown:], end="", flush=True)
        self._shown = len(last.content)


def main() -> None:
    configure_logging(level=LogLevel.MINIMAL, format_string="%(levelname)s | %(message)s")
    cfg = get_config()

    token = os.getenv("SILK_ACCESS_TOKEN", "")
    user_id = os.getenv("SILK_USER_ID", "")
    if not token or not user_id:
        print("Error: set SILK_ACCESS_TOKEN and SILK_USER_ID (see `python run.py issue-token <user>`)")
        sys.exit(1)

    auth = AuthContext(access_token=token, user_id=user_id)
    session = ChatSession(
        MasterAgentClient(cfg=cfg),
        auth,
        store=HttpConversationStore.for_agent_url(cfg.MASTER_AGENT_URL, auth),
        notifier=lambda notice: print(f"\n[!] {notice}"),
    )
    print(f"SILK: {session.messages[0].content}")
    session.start()
    session.subscribe(TerminalRenderer())

    while True:
        try:
            text = input("\nYou: ")
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        worker = threading.Thread(target=session.send, args=(text,), daemon=True)
        worker.start()
        try:
            while worker.is_alive():
                worker.join(timeout=0.1)
        except KeyboardInterrupt:
            session.cancel()
            worker.join()
            print("\n[stopped]")
        print()


if __name__ == "__main__":
    main()
