"""
Client-side chat session state
==============================

Owns the ordered message log and the single ``pending`` flag. ``send`` runs
the whole exchange: persist the user turn, open the master-agent stream, merge
every delta into the trailing assistant placeholder (notifying observers after
each one), then persist the finished reply.

Failure handling:
- transport / agent errors retract the placeholder and raise a transient notice
- ``cancel()`` stops the read loop quietly and keeps whatever text arrived
- ``pending`` is cleared on every path
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Protocol

from ..enums import Role
from ..errors import SilkBotError, TransportError
from ..models import ConversationSession, Message, MessageRecord
from ..streaming import SSEFrameDecoder
from .agent_client import AgentStream, AuthContext, MasterAgentClient

log = logging.getLogger(__name__)

WELCOME_MESSAGE = (
    "👋 Welcome to SILK Finance! I'm your AI Relationship Manager. "
    "I'm here to help you get the personal loan you need. What brings you here today?"
)
RETRY_NOTICE = "Failed to send message. Please try again."

Observer = Callable[[List[Message]], None]


class MessageStore(Protocol):
    def create_conversation(self, user_id: str) -> Optional[str]: ...

    def insert(self, record: MessageRecord) -> bool: ...


class ChatSession:
    def __init__(
        self,
        client: MasterAgentClient,
        auth: AuthContext,
        store: Optional[MessageStore] = None,
        notifier: Optional[Callable[[str], None]] = None,
        welcome: Optional[str] = WELCOME_MESSAGE,
    ):
        self.client = client
        self.auth = auth
        self.store = store
        self.notifier = notifier
        self.state = ConversationSession()
        if welcome:
            self.state.messages.append(Message(Role.ASSISTANT, welcome))
        self.last_error: Optional[SilkBotError] = None
        self._observers: List[Observer] = []
        self._abort = threading.Event()
        self._stream: Optional[AgentStream] = None

    # ────────────────────────────────────────────────────────
    # State accessors / observers
    # ────────────────────────────────────────────────────────

    @property
    def messages(self) -> List[Message]:
        return self.state.messages

    @property
    def pending(self) -> bool:
        return self.state.pending

    @property
    def conversation_id(self) -> Optional[str]:
        return self.state.id

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self) -> None:
        snapshot = list(self.state.messages)
        for observer in list(self._observers):
            observer(snapshot)

    def _append(self, message: Message) -> None:
        self.state.messages.append(message)
        self._notify()

    def _replace_last_content(self, content: str) -> None:
        self.state.messages[-1].content = content
        self._notify()

    def _retract_last(self) -> None:
        self.state.messages.pop()
        self._notify()

    # ────────────────────────────────────────────────────────
    # Persistence collaborator (fire-and-forget)
    # ────────────────────────────────────────────────────────

    def start(self) -> Optional[str]:
        """Ask the store for a conversation id; the chat works without one."""
        if self.store is None or self.state.id:
            return self.state.id
        self.state.id = self.store.create_conversation(self.auth.user_id)
        log.info(f"CHAT_SESSION_START | user={self.auth.user_id} | conversation={self.state.id}")
        return self.state.id

    def _persist(self, role: Role, content: str) -> None:
        if self.store is None or not self.state.id:
            return
        try:
            self.store.insert(MessageRecord(self.state.id, role.value, content))
        except Exception as e:  # noqa: BLE001
            log.warning(f"PERSIST_FAILED | conversation={self.state.id} | role={role.value} | error={e}")

    # ────────────────────────────────────────────────────────
    # Exchange
    # ────────────────────────────────────────────────────────

    def send(self, user_text: str) -> bool:
        """Run one exchange. Returns False when rejected or when it failed."""
        if not isinstance(user_text, str) or not user_text.strip() or self.state.pending:
            return False

        self._append(Message(Role.USER, user_text))
        self.state.pending = True
        self._abort.clear()
        self.last_error = None

        history = self.state.history()
        self._append(Message(Role.ASSISTANT, ""))
        content = ""
        try:
            self._persist(Role.USER, user_text)
            content = self._stream_reply(history)
        except SilkBotError as e:
            if self._abort.is_set():
                log.info(f"CHAT_CANCELLED | conversation={self.state.id} | kept={len(content)}")
            else:
                self._fail(e)
                return False
        finally:
            self._stream = None
            self.state.pending = False

        if self._abort.is_set():
            content = self.state.messages[-1].content
            if not content:
                self._retract_last()
                return False

        if content:
            self._persist(Role.ASSISTANT, content)
        return True

    def _stream_reply(self, history) -> str:
        stream = self.client.open(history, self.state.id, self.auth)
        self._stream = stream
        if self._abort.is_set():
            stream.close()
            return ""

        decoder = SSEFrameDecoder()
        accumulated = ""
        try:
            for chunk in stream.iter_chunks():
                if self._abort.is_set():
                    break
                for fragment in decoder.feed(chunk):
                    accumulated += fragment
                    self._replace_last_content(accumulated)
                if decoder.done:
                    break
            else:
                decoder.finish()
        finally:
            stream.close()
        return accumulated

    def _fail(self, error: SilkBotError) -> None:
        self.last_error = error
        if self.state.messages and self.state.messages[-1].role is Role.ASSISTANT and self.state.pending:
            self._retract_last()
        notice = RETRY_NOTICE if isinstance(error, TransportError) else error.message
        log.warning(f"CHAT_SEND_FAILED | code={error.code} | status={error.http_status} | notice={notice}")
        if self.notifier is not None:
            self.notifier(notice)

    def cancel(self) -> None:
        """User-initiated stop. Safe to call from another thread."""
        self._abort.set()
        stream = self._stream
        if stream is not None:
            stream.close()
