"""In-memory store implementation.

Holds every booking entity in dictionaries behind a single lock. Used for
tests and local development; it honours the same atomicity contract as the
database-backed store.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Sequence

from django.utils import timezone

from booking.domain import (
    Booking,
    BookingId,
    BookingStatus,
    Capacity,
    InteractionEvent,
    Membership,
    MembershipId,
    Order,
    OrderDraft,
    OrderId,
    OrderStatus,
    PricingRule,
    Product,
    ProductId,
    Session,
    SessionId,
    SessionStatus,
    SkillLevel,
)
from booking.domain.errors import (
    AlreadyBookedError,
    BookingAlreadyCancelledError,
    BookingNotFoundError,
    InsufficientCapacityError,
    InvalidOrderTransitionError,
    SessionNotFoundError,
    SessionNotOpenError,
)
from booking.stores.interfaces import (
    BookingStore,
    CatalogFilters,
    CatalogStore,
    InteractionStore,
    PricingRuleStore,
    ProfileStore,
)

logger = logging.getLogger(__name__)

BOOKABLE_STATUSES = (SessionStatus.OPEN, SessionStatus.FULL)


@dataclass
class _User:
    user_id: str
    email: str
    skill_level: SkillLevel | None = None
    payment_customer: str | None = None


@dataclass(frozen=True)
class _LoggedInteraction:
    user_id: str
    event: InteractionEvent


class InMemoryStore(CatalogStore, PricingRuleStore, ProfileStore, InteractionStore, BookingStore):
    """All stores in one object, guarded by one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._products: dict[ProductId, Product] = {}
        self._sessions: dict[SessionId, Session] = {}
        self._rules: list[PricingRule] = []
        self._users: dict[str, _User] = {}
        self._memberships: dict[MembershipId, Membership] = {}
        self._interactions: list[_LoggedInteraction] = []
        self._bookings: dict[BookingId, Booking] = {}
        self._orders: dict[OrderId, Order] = {}

    # Seeding

    def add_product(self, product: Product) -> Product:
        self._products[product.id] = product
        return product

    def add_session(self, session: Session) -> Session:
        self._sessions[session.id] = session
        return session

    def add_rule(self, rule: PricingRule) -> PricingRule:
        self._rules.append(rule)
        return rule

    def add_user(
        self, user_id: str, email: str, skill_level: SkillLevel | None = None
    ) -> None:
        self._users[user_id] = _User(user_id=user_id, email=email, skill_level=skill_level)

    def add_membership(self, membership: Membership) -> Membership:
        self._memberships[membership.id] = membership
        return membership

    def add_booking(self, booking: Booking) -> Booking:
        """Record a booking without touching capacity (history only)."""
        self._bookings[booking.id] = booking
        return booking

    @property
    def orders(self) -> list[Order]:
        return list(self._orders.values())

    @property
    def bookings(self) -> list[Booking]:
        return list(self._bookings.values())

    # CatalogStore

    def list_active_products(self, filters: CatalogFilters | None = None) -> list[Product]:
        products = sorted(
            (p for p in self._products.values() if p.is_active),
            key=lambda p: p.created_at,
            reverse=True,
        )
        if filters is None:
            return products
        return [p for p in products if filters.matches(p)]

    def get_product(self, product_id: ProductId) -> Product | None:
        return self._products.get(product_id)

    def list_upcoming_sessions(
        self, product_ids: Sequence[ProductId], now: datetime
    ) -> list[Session]:
        wanted = set(product_ids)
        sessions = [
            s
            for s in self._sessions.values()
            if s.product_id in wanted and s.starts_at >= now and s.status in BOOKABLE_STATUSES
        ]
        return sorted(sessions, key=lambda s: s.starts_at)

    def get_session(self, session_id: SessionId) -> Session | None:
        return self._sessions.get(session_id)

    # PricingRuleStore

    def list_active_rules(self) -> list[PricingRule]:
        return [rule for rule in self._rules if rule.is_active]

    # ProfileStore

    def get_skill_level(self, user_id: str) -> SkillLevel | None:
        user = self._users.get(user_id)
        return user.skill_level if user else None

    def get_active_membership(self, user_id: str) -> Membership | None:
        for membership in self._memberships.values():
            if membership.user_id == user_id and membership.is_active:
                return membership
        return None

    def get_membership(self, membership_id: MembershipId, user_id: str) -> Membership | None:
        membership = self._memberships.get(membership_id)
        if membership is None or membership.user_id != user_id:
            return None
        return membership

    def find_user_id_by_email(self, email: str) -> str | None:
        for user in self._users.values():
            if user.email.lower() == email.lower():
                return user.user_id
        return None

    def get_email(self, user_id: str) -> str | None:
        user = self._users.get(user_id)
        return user.email if user else None

    def get_payment_customer(self, user_id: str) -> str | None:
        user = self._users.get(user_id)
        return user.payment_customer if user else None

    def save_payment_customer(self, user_id: str, customer_ref: str) -> None:
        self._users[user_id].payment_customer = customer_ref

    # InteractionStore

    def list_interactions(
        self, user_id: str, product_ids: Sequence[ProductId]
    ) -> list[InteractionEvent]:
        wanted = set(product_ids)
        return [
            logged.event
            for logged in self._interactions
            if logged.user_id == user_id and logged.event.product_id in wanted
        ]

    def append_interaction(
        self,
        user_id: str,
        product_id: ProductId,
        interaction_type: str,
        created_at: datetime,
    ) -> InteractionEvent:
        event = InteractionEvent(
            product_id=product_id,
            interaction_type=interaction_type,
            created_at=created_at,
        )
        with self._lock:
            self._interactions.append(_LoggedInteraction(user_id=user_id, event=event))
        return event

    def co_booking_counts(self, user_id: str, since: datetime) -> dict[str, int]:
        confirmed = [
            b
            for b in self._bookings.values()
            if b.status is BookingStatus.CONFIRMED and b.reserved_at >= since
        ]

        def product_of(booking: Booking) -> ProductId:
            return self._sessions[booking.session_id].product_id

        booked = {product_of(b) for b in confirmed if b.user_id == user_id}
        if not booked:
            return {}
        similar = {
            b.user_id for b in confirmed if b.user_id != user_id and product_of(b) in booked
        }
        counts: dict[str, int] = {}
        for b in confirmed:
            if b.user_id not in similar:
                continue
            product_id = product_of(b)
            if product_id in booked:
                continue
            counts[str(product_id)] = counts.get(str(product_id), 0) + 1
        return counts

    # BookingStore

    def reserve(self, session_id: SessionId, user_id: str, guests: int) -> Booking:
        needed = 1 + guests
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(str(session_id))
            if not session.is_open:
                raise SessionNotOpenError(str(session_id), session.status.value)
            remaining = session.spots_remaining.value
            if remaining < needed:
                raise InsufficientCapacityError(str(session_id), needed, remaining)
            if any(
                b.session_id == session_id
                and b.user_id == user_id
                and b.status is not BookingStatus.CANCELLED
                for b in self._bookings.values()
            ):
                raise AlreadyBookedError(str(session_id))

            left = remaining - needed
            self._sessions[session_id] = replace(
                session,
                spots_remaining=Capacity(left),
                status=SessionStatus.FULL if left == 0 else session.status,
            )
            booking = Booking(
                id=BookingId(uuid.uuid4()),
                session_id=session_id,
                user_id=user_id,
                guests=guests,
                status=BookingStatus.RESERVED,
                reserved_at=timezone.now(),
            )
            self._bookings[booking.id] = booking
        logger.debug("Reserved %s spot(s) on session %s", needed, session_id)
        return booking

    def get_booking(self, booking_id: BookingId) -> Booking | None:
        return self._bookings.get(booking_id)

    def cancel_booking(self, booking_id: BookingId) -> Booking:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None:
                raise BookingNotFoundError(str(booking_id))
            if booking.status is BookingStatus.CANCELLED:
                raise BookingAlreadyCancelledError(str(booking_id))

            cancelled = replace(
                booking, status=BookingStatus.CANCELLED, cancelled_at=timezone.now()
            )
            self._bookings[booking_id] = cancelled

            session = self._sessions[booking.session_id]
            self._sessions[session.id] = replace(
                session,
                spots_remaining=Capacity(session.spots_remaining.value + booking.spots),
                status=SessionStatus.OPEN
                if session.status is SessionStatus.FULL
                else session.status,
            )
        return cancelled

    def reinstate_booking(self, booking: Booking) -> bool:
        with self._lock:
            current = self._bookings.get(booking.id)
            if current is None or current.status is not BookingStatus.CANCELLED:
                return False
            session = self._sessions[booking.session_id]
            remaining = session.spots_remaining.value
            if remaining < booking.spots or any(
                b.session_id == booking.session_id
                and b.user_id == booking.user_id
                and b.status is not BookingStatus.CANCELLED
                for b in self._bookings.values()
            ):
                return False

            left = remaining - booking.spots
            self._sessions[session.id] = replace(
                session,
                spots_remaining=Capacity(left),
                status=SessionStatus.FULL
                if left == 0 and session.status is SessionStatus.OPEN
                else session.status,
            )
            self._bookings[booking.id] = replace(current, status=booking.status, cancelled_at=None)
        return True

    def confirm_booking(self, booking_id: BookingId) -> None:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or booking.status in (
                BookingStatus.CONFIRMED,
                BookingStatus.CANCELLED,
            ):
                return
            self._bookings[booking_id] = replace(
                booking, status=BookingStatus.CONFIRMED, confirmed_at=timezone.now()
            )

    def create_order(self, draft: OrderDraft) -> Order:
        order = Order(
            id=OrderId(uuid.uuid4()),
            booking_id=draft.booking_id,
            user_id=draft.user_id,
            amount=draft.amount,
            discount=draft.discount,
            payment_reference=draft.payment_reference,
            status=draft.status,
            created_at=timezone.now(),
            membership_id=draft.membership_id,
            is_split=draft.is_split,
            split_group_id=draft.split_group_id,
        )
        with self._lock:
            self._orders[order.id] = order
        return order

    def get_paid_order(self, booking_id: BookingId) -> Order | None:
        for order in self._orders.values():
            if order.booking_id == booking_id and order.status is OrderStatus.PAID:
                return order
        return None

    def get_order_by_reference(self, payment_reference: str) -> Order | None:
        if not payment_reference:
            return None
        for order in self._orders.values():
            if order.payment_reference == payment_reference:
                return order
        return None

    def update_order_status(self, order_id: OrderId, status: OrderStatus) -> Order:
        with self._lock:
            order = self._orders[order_id]
            if order.status is status:
                return order
            if not order.status.can_transition_to(status):
                raise InvalidOrderTransitionError(order.status.value, status.value)
            updated = replace(order, status=status)
            self._orders[order_id] = updated
        return updated
