"""Cancellation refund policy."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from booking.services.pricing import round_half_up

FULL_REFUND_HOURS = 24
HALF_REFUND_HOURS = 12


@dataclass(frozen=True)
class RefundQuote:
    percent: int
    amount: int


def compute_refund(amount: int, session_start: datetime, now: datetime) -> RefundQuote:
    """Full refund more than 24h out, half more than 12h out, nothing after."""
    hours_until = (session_start - now).total_seconds() / 3600
    if hours_until > FULL_REFUND_HOURS:
        return RefundQuote(percent=100, amount=amount)
    if hours_until > HALF_REFUND_HOURS:
        return RefundQuote(percent=50, amount=round_half_up(Decimal(amount) * Decimal("0.5")))
    return RefundQuote(percent=0, amount=0)
