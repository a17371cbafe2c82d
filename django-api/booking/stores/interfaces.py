"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from booking.domain import (
    Booking,
    BookingId,
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
    SkillLevel,
)


@dataclass(frozen=True)
class CatalogFilters:
    """Product filters: types must match, tags must overlap."""

    types: tuple[str, ...] = field(default_factory=tuple)
    tags: tuple[str, ...] = field(default_factory=tuple)

    def matches(self, product: Product) -> bool:
        if self.types and product.type.value not in self.types:
            return False
        if self.tags and not set(self.tags) & set(product.tags):
            return False
        return True


class CatalogStore(ABC):
    """Interface for catalog reads."""

    @abstractmethod
    def list_active_products(self, filters: CatalogFilters | None = None) -> list[Product]:
        """Return active products, newest first."""
        ...

    @abstractmethod
    def get_product(self, product_id: ProductId) -> Product | None:
        """Return a product by ID, or None if not found."""
        ...

    @abstractmethod
    def list_upcoming_sessions(
        self, product_ids: Sequence[ProductId], now: datetime
    ) -> list[Session]:
        """Return open or full sessions starting at or after now, ordered by starts_at."""
        ...

    @abstractmethod
    def get_session(self, session_id: SessionId) -> Session | None:
        """Return a session by ID, or None if not found."""
        ...


class PricingRuleStore(ABC):
    """Interface for pricing rule reads."""

    @abstractmethod
    def list_active_rules(self) -> list[PricingRule]:
        """Return active rules in their configured order."""
        ...


class ProfileStore(ABC):
    """Interface for player profile and membership reads."""

    @abstractmethod
    def get_skill_level(self, user_id: str) -> SkillLevel | None:
        ...

    @abstractmethod
    def get_active_membership(self, user_id: str) -> Membership | None:
        ...

    @abstractmethod
    def get_membership(self, membership_id: MembershipId, user_id: str) -> Membership | None:
        """Return the membership if it belongs to user_id, whatever its status."""
        ...

    @abstractmethod
    def find_user_id_by_email(self, email: str) -> str | None:
        ...

    @abstractmethod
    def get_email(self, user_id: str) -> str | None:
        ...

    @abstractmethod
    def get_payment_customer(self, user_id: str) -> str | None:
        ...

    @abstractmethod
    def save_payment_customer(self, user_id: str, customer_ref: str) -> None:
        ...


class InteractionStore(ABC):
    """Interface for the append-only interaction log."""

    @abstractmethod
    def list_interactions(
        self, user_id: str, product_ids: Sequence[ProductId]
    ) -> list[InteractionEvent]:
        ...

    @abstractmethod
    def append_interaction(
        self,
        user_id: str,
        product_id: ProductId,
        interaction_type: str,
        created_at: datetime,
    ) -> InteractionEvent:
        ...

    @abstractmethod
    def co_booking_counts(self, user_id: str, since: datetime) -> dict[str, int]:
        """Count confirmed bookings by similar users per product.

        Similar users booked the same products as user_id since `since`.
        Products the user already booked are excluded.
        """
        ...


class BookingStore(ABC):
    """Interface for reservations and orders."""

    @abstractmethod
    def reserve(self, session_id: SessionId, user_id: str, guests: int) -> Booking:
        """Atomically claim 1 + guests spots and create a reserved booking.

        The capacity check and decrement are one indivisible step with respect
        to every other reserve or cancel on the same session.

        Raises:
            SessionNotFoundError: If the session does not exist.
            SessionNotOpenError: If the session is not open.
            InsufficientCapacityError: If fewer spots remain than needed.
            AlreadyBookedError: If the user already holds a live booking.
            TransientStoreError: If the store is unavailable. No state changed.
        """
        ...

    @abstractmethod
    def get_booking(self, booking_id: BookingId) -> Booking | None:
        ...

    @abstractmethod
    def cancel_booking(self, booking_id: BookingId) -> Booking:
        """Atomically cancel a booking and return its spots to the session.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            BookingAlreadyCancelledError: If it was already cancelled.
        """
        ...

    @abstractmethod
    def reinstate_booking(self, booking: Booking) -> bool:
        """Undo a cancellation, restoring booking.status and reclaiming its spots.

        Returns False and leaves the booking cancelled if the spots were
        taken in the meantime or the user has booked the session again.
        """
        ...

    @abstractmethod
    def confirm_booking(self, booking_id: BookingId) -> None:
        ...

    @abstractmethod
    def create_order(self, draft: OrderDraft) -> Order:
        ...

    @abstractmethod
    def get_paid_order(self, booking_id: BookingId) -> Order | None:
        ...

    @abstractmethod
    def get_order_by_reference(self, payment_reference: str) -> Order | None:
        ...

    @abstractmethod
    def update_order_status(self, order_id: OrderId, status: OrderStatus) -> Order:
        """Move an order to a new status.

        Raises:
            InvalidOrderTransitionError: If the transition is not allowed.
        """
        ...
