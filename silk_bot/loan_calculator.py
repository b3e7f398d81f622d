"""
EMI (equated monthly installment) arithmetic for the sales flow.

EMI = P x R x (1+R)^N / ((1+R)^N - 1), R being the monthly rate.
"""

from __future__ import annotations

from typing import Iterable

from .models import LoanQuote, TenureOption

DEFAULT_INTEREST_RATE = 10.5
DEFAULT_TENURE_MONTHS = 36
TENURE_OPTIONS = (24, 36, 48, 60)


def calculate_emi(principal: float, annual_rate: float, months: int) -> float:
    if months <= 0:
        raise ValueError("tenure must be at least one month")
    r = annual_rate / 12 / 100
    if r == 0:
        return principal / months
    growth = (1 + r) ** months
    return principal * r * growth / (growth - 1)


def _option(principal: float, annual_rate: float, months: int) -> TenureOption:
    emi = calculate_emi(principal, annual_rate, months)
    total = emi * months
    return TenureOption(
        tenure=months,
        emi=round(emi),
        total_payment=round(total),
        total_interest=round(total - principal),
        interest_rate=annual_rate,
    )


def quote_loan(
    amount: float,
    interest_rate: float = DEFAULT_INTEREST_RATE,
    tenure_months: int = DEFAULT_TENURE_MONTHS,
    tenures: Iterable[int] = TENURE_OPTIONS,
) -> LoanQuote:
    if amount is None or amount <= 0:
        raise ValueError("Invalid loan amount")

    requested = _option(amount, interest_rate, tenure_months)
    return LoanQuote(
        requested_emi=requested.emi,
        total_payment=requested.total_payment,
        total_interest=requested.total_interest,
        options=[_option(amount, interest_rate, t) for t in tenures],
    )
