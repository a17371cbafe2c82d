"""Checkout totals for one purchaser plus guests."""

from dataclasses import dataclass
from decimal import Decimal

from booking.domain.errors import ValidationError
from booking.domain.models import Membership, OrderDraft
from booking.domain.value_objects import BookingId, MembershipId, Money
from booking.services.pricing import round_half_up


@dataclass(frozen=True)
class CheckoutQuote:
    total_spots: int
    amount: int
    discount: int


def compute_checkout(
    session_price: int,
    guest_count: int,
    membership: Membership | None,
) -> CheckoutQuote:
    """Return spots, amount due and discount for a purchaser and their guests.

    Raises:
        ValidationError: If guest_count is negative.
    """
    if guest_count < 0:
        raise ValidationError("guests cannot be negative", field="guests")

    total_spots = 1 + guest_count
    raw_amount = session_price * total_spots
    discount = 0
    if membership is not None and membership.is_active:
        discount = round_half_up(
            Decimal(raw_amount) * Decimal(membership.discount_percent) / 100
        )
    return CheckoutQuote(
        total_spots=total_spots,
        amount=raw_amount - discount,
        discount=discount,
    )


def normalize_membership_id(
    membership_id: MembershipId | str | None,
) -> MembershipId | None:
    if membership_id is None or membership_id == "":
        return None
    if isinstance(membership_id, MembershipId):
        return membership_id
    return MembershipId.from_string(membership_id)


def build_order(
    booking_id: BookingId,
    purchaser_id: str,
    quote: CheckoutQuote,
    membership_id: MembershipId | str | None,
    payment_reference: str,
) -> OrderDraft:
    return OrderDraft(
        booking_id=booking_id,
        user_id=purchaser_id,
        amount=Money(quote.amount),
        discount=Money(quote.discount),
        payment_reference=payment_reference,
        membership_id=normalize_membership_id(membership_id),
    )
