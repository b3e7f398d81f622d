# silk_bot/enums.py
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"        # only ever the composed prompt, prepended server side


class Intent(str, Enum):
    """Conversation stage used to select system guidance text"""
    LOAN_INQUIRY = "loan_inquiry"
    EMI_NEGOTIATION = "emi_negotiation"
    APPROVAL = "approval"
    NEEDS_EMPATHY = "needs_empathy"
    GENERAL = "general"


class DecoderState(str, Enum):
    AWAITING_LINE = "awaiting_line"
    HAVE_LINE = "have_line"
    DONE = "done"
