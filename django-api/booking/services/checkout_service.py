"""Checkout service - reserve seats, price them, start payment, record orders.

Each checkout performs one atomic reservation and then one order write. Any
failure after seats are held carries the booking id so the hold can be
reconciled: PaymentProcessorError when the processor fails, and
CheckoutIncompleteError when a store write fails. The reservation is not
rolled back here.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence
from uuid import UUID

from booking.conf import booking_setting
from booking.domain import (
    Booking,
    InteractionType,
    MembershipId,
    Order,
    OrderDraft,
    Session,
    SessionId,
)
from booking.domain.errors import (
    CheckoutIncompleteError,
    DomainError,
    InsufficientCapacityError,
    PaymentProcessorError,
    SessionNotFoundError,
    SessionNotOpenError,
    TransientStoreError,
    UserNotFoundError,
    ValidationError,
)
from booking.gateways.interfaces import ChargeIntent, PaymentGateway
from booking.services.checkout import build_order, compute_checkout, normalize_membership_id
from booking.services.pricing import apply_rules
from booking.services.retry import call_with_retry
from booking.services.split_billing import build_split_order, compute_split
from booking.stores.interfaces import (
    BookingStore,
    CatalogStore,
    InteractionStore,
    PricingRuleStore,
    ProfileStore,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    booking_id: str
    order_id: str
    amount: int
    discount: int
    payment_reference: str
    client_secret: str


@dataclass(frozen=True)
class ParticipantResult:
    email: str
    booking_id: str | None = None
    order_id: str | None = None
    payment_reference: str | None = None
    client_secret: str | None = None
    error_code: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_code is None


@dataclass(frozen=True)
class SplitCheckoutResult:
    split_group_id: UUID
    per_person_amount: int
    participants: list[ParticipantResult] = field(default_factory=list)

    @property
    def payment_references(self) -> list[str]:
        return [p.payment_reference for p in self.participants if p.ok and p.payment_reference]


def parse_session_id(session_id: str | None) -> SessionId:
    if not session_id:
        raise ValidationError("session_id is required", field="session_id")
    try:
        return SessionId.from_string(session_id)
    except (ValueError, TypeError, AttributeError):
        raise ValidationError("Invalid session ID format", field="session_id") from None


def parse_membership_id(membership_id: str | None) -> MembershipId | None:
    try:
        return normalize_membership_id(membership_id)
    except (ValueError, TypeError, AttributeError):
        raise ValidationError("Invalid membership ID format", field="membership_id") from None


class CheckoutService:
    """Service for single and split checkouts."""

    def __init__(
        self,
        catalog: CatalogStore,
        rules: PricingRuleStore,
        profiles: ProfileStore,
        interactions: InteractionStore,
        bookings: BookingStore,
        gateway: PaymentGateway,
    ) -> None:
        self._catalog = catalog
        self._rules = rules
        self._profiles = profiles
        self._interactions = interactions
        self._bookings = bookings
        self._gateway = gateway

    def checkout(
        self,
        user_id: str,
        session_id: str | None,
        guests: int,
        membership_id: str | None,
        now: datetime,
    ) -> CheckoutResult:
        """Reserve 1 + guests spots for user_id and start a payment.

        Raises:
            ValidationError: If input is missing or malformed.
            CapacityError: If the session is missing, not open or sold out.
            TransientStoreError: If the reservation itself stays unavailable after retries.
            PaymentProcessorError: If the processor fails after the reservation.
            CheckoutIncompleteError: If a store write fails after the reservation.
        """
        sid = parse_session_id(session_id)
        mid = parse_membership_id(membership_id)
        if guests < 0:
            raise ValidationError("guests cannot be negative", field="guests")

        booking = self._reserve(sid, user_id, guests)
        try:
            session = self._require_session(sid)
            price = self._display_price(session)
            membership = self._profiles.get_membership(mid, user_id) if mid else None
            quote = compute_checkout(price, guests, membership)
            intent = self._charge(
                booking,
                user_id,
                quote.amount,
                {"booking_id": str(booking.id), "session_id": str(sid), "user_id": user_id},
            )
        except TransientStoreError as exc:
            logger.error("Store failed after reserving booking %s", booking.id)
            raise CheckoutIncompleteError(str(booking.id)) from exc

        applied_membership = membership.id if membership and membership.is_active else None
        order = self._write_order(
            booking,
            build_order(booking.id, user_id, quote, applied_membership, intent.reference),
        )
        self._log_booking(user_id, session, now)

        logger.info(
            "Checkout for booking %s: amount=%s discount=%s",
            booking.id,
            quote.amount,
            quote.discount,
        )
        return CheckoutResult(
            booking_id=str(booking.id),
            order_id=str(order.id),
            amount=quote.amount,
            discount=quote.discount,
            payment_reference=intent.reference,
            client_secret=intent.client_secret,
        )

    def split_checkout(
        self,
        host_user_id: str,
        session_id: str | None,
        participant_emails: Sequence[str] | None,
        now: datetime,
    ) -> SplitCheckoutResult:
        """Split the session price across participants, one order each.

        Capacity is checked for the whole group before any charge. Failures
        for individual participants are reported in their result entries.
        """
        sid = parse_session_id(session_id)
        if not participant_emails:
            raise ValidationError(
                "participant_emails must be a non-empty list", field="participant_emails"
            )

        session = self._require_session(sid)
        count = len(participant_emails)
        if not session.is_open:
            raise SessionNotOpenError(str(sid), session.status.value)
        if session.spots_remaining.value < count:
            raise InsufficientCapacityError(str(sid), count, session.spots_remaining.value)

        per_person = compute_split(self._display_price(session), count)
        group_id = uuid.uuid4()
        participants = [
            self._split_participant(email, session, host_user_id, per_person, group_id, now)
            for email in participant_emails
        ]

        logger.info(
            "Split checkout %s on session %s: %s participants at %s each, %s failed",
            group_id,
            sid,
            count,
            per_person,
            sum(1 for p in participants if not p.ok),
        )
        return SplitCheckoutResult(
            split_group_id=group_id,
            per_person_amount=per_person,
            participants=participants,
        )

    def _split_participant(
        self,
        email: str,
        session: Session,
        host_user_id: str,
        per_person: int,
        group_id: UUID,
        now: datetime,
    ) -> ParticipantResult:
        booking: Booking | None = None
        try:
            participant_id = self._profiles.find_user_id_by_email(email)
            if participant_id is None:
                raise UserNotFoundError()
            booking = self._reserve(session.id, participant_id, 0)
            try:
                intent = self._charge(
                    booking,
                    participant_id,
                    per_person,
                    {
                        "booking_id": str(booking.id),
                        "session_id": str(session.id),
                        "user_id": participant_id,
                        "split_group_id": str(group_id),
                        "host_user_id": host_user_id,
                    },
                )
            except TransientStoreError as exc:
                raise CheckoutIncompleteError(str(booking.id)) from exc
            order = self._write_order(
                booking,
                build_split_order(
                    booking.id, participant_id, per_person, group_id, intent.reference
                ),
            )
            self._log_booking(participant_id, session, now)
        except DomainError as exc:
            return ParticipantResult(
                email=email,
                booking_id=str(booking.id) if booking else None,
                payment_reference=getattr(exc, "payment_reference", None),
                error_code=exc.code.value,
                error=exc.message,
            )
        return ParticipantResult(
            email=email,
            booking_id=str(booking.id),
            order_id=str(order.id),
            payment_reference=intent.reference,
            client_secret=intent.client_secret,
        )

    def _reserve(self, session_id: SessionId, user_id: str, guests: int) -> Booking:
        return call_with_retry(
            self._bookings.reserve,
            session_id,
            user_id,
            guests,
            attempts=booking_setting("RESERVATION_RETRY_ATTEMPTS"),
            delay=booking_setting("RESERVATION_RETRY_DELAY"),
        )

    def _require_session(self, session_id: SessionId) -> Session:
        session = self._catalog.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(str(session_id))
        return session

    def _display_price(self, session: Session) -> int:
        return apply_rules(session.price.cents, session.starts_at, self._rules.list_active_rules())

    def _ensure_customer(self, user_id: str) -> str:
        customer = self._profiles.get_payment_customer(user_id)
        if not customer:
            customer = self._gateway.create_customer(user_id, self._profiles.get_email(user_id))
            self._profiles.save_payment_customer(user_id, customer)
        return customer

    def _charge(
        self, booking: Booking, user_id: str, amount: int, metadata: dict[str, str]
    ) -> ChargeIntent:
        try:
            return self._gateway.create_charge_intent(
                amount, self._ensure_customer(user_id), metadata
            )
        except PaymentProcessorError as exc:
            logger.error(
                "Payment processor failed for booking %s; %s spot(s) remain held",
                booking.id,
                booking.spots,
            )
            raise PaymentProcessorError(exc.message, booking_id=str(booking.id)) from exc

    def _write_order(self, booking: Booking, draft: OrderDraft) -> Order:
        try:
            return self._bookings.create_order(draft)
        except Exception as exc:
            logger.exception(
                "Order write failed for booking %s after charge %s",
                booking.id,
                draft.payment_reference,
            )
            raise CheckoutIncompleteError(str(booking.id), draft.payment_reference) from exc

    def _log_booking(self, user_id: str, session: Session, now: datetime) -> None:
        # The order is already written; a lost feed signal must not fail the checkout.
        try:
            self._interactions.append_interaction(
                user_id, session.product_id, InteractionType.BOOK.value, now
            )
        except TransientStoreError:
            logger.warning("Could not log book interaction for user %s", user_id)
