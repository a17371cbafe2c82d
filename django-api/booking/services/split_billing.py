"""Split a session's price across participants.

Per-person amounts always round up, so the venue collects at least the full
price. The overage is strictly less than the number of participants.
"""

from uuid import UUID

from booking.domain.errors import ValidationError
from booking.domain.models import OrderDraft
from booking.domain.value_objects import BookingId, Money


def compute_split(total_price: int, participant_count: int) -> int:
    if participant_count < 1:
        raise ValidationError(
            "At least one participant is required", field="participant_emails"
        )
    if total_price < 0:
        raise ValidationError("Price cannot be negative", field="total_price")
    return -(-total_price // participant_count)


def split_overage(total_price: int, participant_count: int) -> int:
    return compute_split(total_price, participant_count) * participant_count - total_price


def build_split_order(
    booking_id: BookingId,
    participant_id: str,
    per_person_amount: int,
    split_group_id: UUID,
    payment_reference: str,
) -> OrderDraft:
    return OrderDraft(
        booking_id=booking_id,
        user_id=participant_id,
        amount=Money(per_person_amount),
        discount=Money(0),
        payment_reference=payment_reference,
        is_split=True,
        split_group_id=split_group_id,
    )
