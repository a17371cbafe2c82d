"""Rule-based dynamic pricing.

Matching rules compound: each one multiplies the running price and the
result is rounded half-up to a whole minor unit before the next rule runs,
so rule order changes the outcome.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from booking.domain.models import PricingRule


def round_half_up(value: Decimal | float | int) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _day_of_week(moment: datetime) -> int:
    # 0 = Sunday, matching how rule day sets are stored.
    return moment.isoweekday() % 7


def _to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def rule_matches(rule: PricingRule, session_start: datetime) -> bool:
    """Return True if the rule's day set and time window cover session_start (UTC)."""
    moment = _to_utc(session_start)

    if rule.days_of_week and _day_of_week(moment) not in rule.days_of_week:
        return False

    time_of_day = moment.strftime("%H:%M")
    if rule.start_time and time_of_day < rule.start_time:
        return False
    if rule.end_time and time_of_day > rule.end_time:
        return False
    return True


def apply_rules(
    base_price: int,
    session_start: datetime,
    rules: Iterable[PricingRule],
) -> int:
    """Return the price of a session after applying active matching rules in order."""
    price = base_price
    for rule in rules:
        if not rule.is_active or not rule_matches(rule, session_start):
            continue
        price = round_half_up(Decimal(price) * rule.multiplier)
    return max(price, 0)
