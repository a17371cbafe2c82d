"""Booking lifecycle after checkout: cancellation and payment confirmation."""

import logging
from dataclasses import dataclass
from datetime import datetime

from booking.domain import Booking, BookingId, BookingStatus, Order, OrderStatus
from booking.domain.errors import (
    BookingAlreadyCancelledError,
    BookingForbiddenError,
    BookingNotFoundError,
    PaymentProcessorError,
    ValidationError,
)
from booking.gateways.interfaces import PaymentConfirmation, PaymentGateway
from booking.services.refunds import RefundQuote, compute_refund
from booking.stores.interfaces import BookingStore, CatalogStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationResult:
    booking_id: str
    refund_amount: int
    refund_percent: int
    booking_status: str


def parse_booking_id(booking_id: str | None) -> BookingId:
    if not booking_id:
        raise ValidationError("booking_id is required", field="booking_id")
    try:
        return BookingId.from_string(booking_id)
    except (ValueError, TypeError, AttributeError):
        raise ValidationError("Invalid booking ID format", field="booking_id") from None


class BookingService:
    """Service for cancelling bookings and applying payment outcomes."""

    def __init__(
        self,
        bookings: BookingStore,
        catalog: CatalogStore,
        gateway: PaymentGateway,
    ) -> None:
        self._bookings = bookings
        self._catalog = catalog
        self._gateway = gateway

    def cancel_booking(
        self,
        booking_id: str,
        user_id: str,
        now: datetime,
        is_admin: bool = False,
    ) -> CancellationResult:
        """Cancel a booking, refund per policy and release its spots.

        The cancellation is claimed atomically before any money moves, so
        concurrent cancels of one booking issue at most one refund. If the
        refund then fails the booking is reinstated.

        Raises:
            ValidationError: If the booking_id is malformed.
            BookingNotFoundError: If the booking does not exist.
            BookingAlreadyCancelledError: If it was already cancelled.
            BookingForbiddenError: If the user neither owns it nor is an admin.
            PaymentProcessorError: If the refund fails.
        """
        bid = parse_booking_id(booking_id)
        booking = self._bookings.get_booking(bid)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if booking.status is BookingStatus.CANCELLED:
            raise BookingAlreadyCancelledError(booking_id)
        if booking.user_id != user_id and not is_admin:
            raise BookingForbiddenError(booking_id)

        cancelled = self._bookings.cancel_booking(bid)

        order = self._bookings.get_paid_order(bid)
        refund = RefundQuote(percent=0, amount=0)
        if order is not None:
            session = self._catalog.get_session(booking.session_id)
            if session is not None:
                refund = compute_refund(order.amount.cents, session.starts_at, now)

        if order is not None and refund.amount > 0 and order.payment_reference:
            self._refund(booking, order.payment_reference, refund.amount)

        if order is not None and refund.percent == 100:
            self._bookings.update_order_status(order.id, OrderStatus.REFUNDED)

        logger.info(
            "Booking %s cancelled by user %s, refund %s%% (%s)",
            bid,
            user_id,
            refund.percent,
            refund.amount,
        )
        return CancellationResult(
            booking_id=str(bid),
            refund_amount=refund.amount,
            refund_percent=refund.percent,
            booking_status=cancelled.status.value,
        )

    def _refund(self, booking: Booking, reference: str, amount: int) -> None:
        try:
            self._gateway.refund(reference, amount, idempotency_key=f"refund-{booking.id}")
        except PaymentProcessorError as exc:
            if self._bookings.reinstate_booking(booking):
                logger.warning("Refund failed for booking %s; booking reinstated", booking.id)
            else:
                logger.error(
                    "Refund of %s failed for booking %s and its spots are gone; "
                    "refund must be issued manually",
                    amount,
                    booking.id,
                )
            raise PaymentProcessorError(exc.message, booking_id=str(booking.id)) from exc

    def apply_payment_confirmation(self, confirmation: PaymentConfirmation) -> Order | None:
        """Mark the matching order paid or failed; a paid order confirms its booking.

        A successful payment with no order row (the order write failed after
        the charge was created) confirms the booking named in the charge
        metadata instead.

        Raises:
            InvalidOrderTransitionError: If the order's status cannot change that way.
        """
        order = self._bookings.get_order_by_reference(confirmation.reference)
        if order is None:
            self._confirm_orphaned_payment(confirmation)
            return None

        target = OrderStatus.PAID if confirmation.succeeded else OrderStatus.FAILED
        updated = self._bookings.update_order_status(order.id, target)
        if target is OrderStatus.PAID:
            self._bookings.confirm_booking(order.booking_id)
        logger.info("Order %s is now %s", updated.id, updated.status.value)
        return updated

    def _confirm_orphaned_payment(self, confirmation: PaymentConfirmation) -> None:
        raw_id = confirmation.metadata.get("booking_id")
        if not confirmation.succeeded or not raw_id:
            logger.warning("No order for payment reference %s", confirmation.reference)
            return
        try:
            bid = BookingId.from_string(raw_id)
        except ValueError:
            logger.warning(
                "Payment %s names malformed booking %r", confirmation.reference, raw_id
            )
            return
        self._bookings.confirm_booking(bid)
        logger.error(
            "Payment %s succeeded without an order; confirmed booking %s for reconciliation",
            confirmation.reference,
            bid,
        )
