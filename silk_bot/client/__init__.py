"""Chat client: session state, master-agent HTTP client and HTTP-backed store."""

from .agent_client import AgentStream, AuthContext, MasterAgentClient
from .chat_session import ChatSession
from .http_store import HttpConversationStore

__all__ = ["AgentStream", "AuthContext", "ChatSession", "HttpConversationStore", "MasterAgentClient"]
