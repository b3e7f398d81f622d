"""
Dataclass models shared by the server handlers and the chat client.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from .enums import Role


@dataclass
class MessageMetadata:
    """Tagged optional payload attached to a message (e.g. a loan quote)"""
    kind: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "data": self.data}


@dataclass
class Message:
    role: Role
    content: str
    metadata: Optional[MessageMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape sent upstream: role + content only."""
        return {"role": Role(self.role).value, "content": self.content}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Message":
        if not isinstance(raw, dict):
            raise ValueError("message must be an object")
        role = Role(str(raw.get("role", "")))
        if role is Role.SYSTEM:
            raise ValueError("system messages are composed server side")
        content = raw.get("content")
        if not isinstance(content, str):
            raise ValueError("message content must be a string")
        meta = raw.get("metadata")
        metadata = None
        if isinstance(meta, dict) and meta.get("kind"):
            metadata = MessageMetadata(kind=str(meta["kind"]), data=dict(meta.get("data") or {}))
        return cls(role=role, content=content, metadata=metadata)


@dataclass
class ConversationSession:
    id: Optional[str] = None
    messages: List[Message] = field(default_factory=list)
    pending: bool = False

    def history(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self.messages]


@dataclass
class MessageRecord:
    """Row handed to the persistence collaborator."""
    conversation_id: str
    role: str
    content: str

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


@dataclass
class TenureOption:
    tenure: int
    emi: int
    total_payment: int
    total_interest: int
    interest_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tenure": self.tenure,
            "emi": self.emi,
            "totalPayment": self.total_payment,
            "totalInterest": self.total_interest,
            "interestRate": self.interest_rate,
        }


@dataclass
class LoanQuote:
    requested_emi: int
    total_payment: int
    total_interest: int
    options: List[TenureOption] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestedEmi": self.requested_emi,
            "totalPayment": self.total_payment,
            "totalInterest": self.total_interest,
            "options": [o.to_dict() for o in self.options],
        }


@dataclass
class CustomerProfile:
    """What the relationship manager knows about a customer up front."""
    user_id: str
    full_name: str
    email: str = ""
    existing_products: List[str] = field(default_factory=list)
    loyalty_years: int = 0
    credit_score: int = 0
    created_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CustomerProfile":
        return cls(
            user_id=str(raw["user_id"]),
            full_name=str(raw.get("full_name") or ""),
            email=str(raw.get("email") or ""),
            existing_products=[str(p) for p in raw.get("existing_products") or []],
            loyalty_years=int(raw.get("loyalty_years") or 0),
            credit_score=int(raw.get("credit_score") or 0),
            created_at=float(raw.get("created_at") or 0.0),
        )
