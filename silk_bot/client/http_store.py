"""
Conversation store that talks to the /functions/v1/conversations endpoints.
Same create_conversation / insert contract as the Redis ConversationStore.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from ..models import MessageRecord
from .agent_client import AuthContext

log = logging.getLogger(__name__)


class HttpConversationStore:
    def __init__(self, base_url: str, auth: AuthContext, session: Optional[requests.Session] = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def for_agent_url(cls, agent_url: str, auth: AuthContext, **kwargs) -> "HttpConversationStore":
        base = agent_url.rstrip("/").rsplit("/", 1)[0]
        return cls(f"{base}/conversations", auth, **kwargs)

    def create_conversation(self, user_id: str) -> Optional[str]:
        try:
            resp = self.session.post(self.base_url, headers=self.auth.headers(), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json().get("id")
        except (requests.RequestException, ValueError) as e:
            log.error(f"CONVERSATION_CREATE_FAILED | user={user_id} | error={e}")
            return None

    def insert(self, record: MessageRecord) -> bool:
        try:
            resp = self.session.post(
                f"{self.base_url}/{record.conversation_id}/messages",
                headers=self.auth.headers(),
                json={"role": record.role, "content": record.content},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            log.error(f"MESSAGE_INSERT_FAILED | conversation={record.conversation_id} | role={record.role} | error={e}")
            return False
        return True
