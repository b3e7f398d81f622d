from __future__ import annotations

import pytest

from silk_bot.enums import Intent
from silk_bot.intent_classifier import classify, last_message_text


@pytest.mark.parametrize(
    "text,expected",
    [
        ("I need a loan for my wedding", Intent.LOAN_INQUIRY),
        ("Can I BORROW 2 lakhs?", Intent.LOAN_INQUIRY),
        ("short on money this month", Intent.LOAN_INQUIRY),
        ("The EMI looks high", Intent.EMI_NEGOTIATION),
        ("what is the interest?", Intent.EMI_NEGOTIATION),
        ("monthly payment options", Intent.EMI_NEGOTIATION),
        ("Yes, go ahead", Intent.APPROVAL),
        ("I accept the offer", Intent.APPROVAL),
        ("please approve it", Intent.APPROVAL),
        ("I'm a bit anxious", Intent.NEEDS_EMPATHY),
        ("honestly scared of debt", Intent.NEEDS_EMPATHY),
        ("hello there", Intent.GENERAL),
        ("", Intent.GENERAL),
    ],
)
def test_keyword_rules(text: str, expected: Intent):
    assert classify(text) is expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("I'm worried about the loan", Intent.LOAN_INQUIRY),
        ("yes, but the emi is too high", Intent.EMI_NEGOTIATION),
        ("scared, but yes I accept", Intent.APPROVAL),
        ("money for interest payment", Intent.LOAN_INQUIRY),
    ],
)
def test_first_matching_rule_wins(text: str, expected: Intent):
    assert classify(text) is expected


def test_substring_containment_is_literal():
    # "premium" contains "emi"
    assert classify("premium account") is Intent.EMI_NEGOTIATION


@pytest.mark.parametrize("value", [None, 42, ["loan"]])
def test_non_text_falls_back_to_general(value):
    assert classify(value) is Intent.GENERAL


def test_last_message_text_uses_final_entry_only():
    history = [
        {"role": "user", "content": "I need a loan"},
        {"role": "assistant", "content": "Sure"},
        {"role": "user", "content": "thanks"},
    ]
    assert last_message_text(history) == "thanks"
    assert classify(last_message_text(history)) is Intent.GENERAL
    assert last_message_text([]) == ""
    assert last_message_text([{"role": "user"}]) == ""
