"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in booking/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from booking.domain.value_objects import (
    BookingId,
    Capacity,
    MembershipId,
    Money,
    OrderId,
    PricingRuleId,
    ProductId,
    SessionId,
)


class ProductType(Enum):
    COURT_RENTAL = "court_rental"
    OPEN_PLAY = "open_play"
    COACHING = "coaching"
    CLINIC = "clinic"
    TOURNAMENT = "tournament"
    COMMUNITY_DAY = "community_day"
    FOOD_ADDON = "food_addon"


class SessionStatus(Enum):
    OPEN = "open"
    FULL = "full"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SkillLevel(Enum):
    """Ordered skill scale; declaration order is the ranking."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PRO = "pro"


class InteractionType(Enum):
    VIEW = "view"
    TAP = "tap"
    BOOK = "book"
    DISMISS = "dismiss"


class MembershipTier(Enum):
    LOCAL_PLAYER = "local_player"
    SAND_REGULAR = "sand_regular"
    FOUNDERS = "founders"


class MembershipStatus(Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


class PricingRuleType(Enum):
    PEAK = "peak"
    OFF_PEAK = "off_peak"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    SURGE = "surge"


class BookingStatus(Enum):
    RESERVED = "reserved"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return target in _ORDER_TRANSITIONS[self]


_ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.FAILED}),
    OrderStatus.PAID: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.REFUNDED: frozenset(),
    OrderStatus.FAILED: frozenset(),
}


@dataclass(frozen=True)
class Product:
    """Domain representation of a bookable catalog item."""

    id: ProductId
    type: ProductType
    title: str
    created_at: datetime
    tags: tuple[str, ...] = ()
    is_active: bool = True
    description: str = ""
    image_url: str | None = None


@dataclass(frozen=True)
class Session:
    """Domain representation of a scheduled, capacity-limited Session."""

    id: SessionId
    product_id: ProductId
    starts_at: datetime
    ends_at: datetime
    price: Money
    spots_total: Capacity
    spots_remaining: Capacity
    status: SessionStatus = SessionStatus.OPEN

    def __post_init__(self) -> None:
        if self.spots_remaining.value > self.spots_total.value:
            raise ValueError("Remaining spots cannot exceed total spots")

    @property
    def is_open(self) -> bool:
        return self.status is SessionStatus.OPEN


@dataclass(frozen=True)
class InteractionEvent:
    """A single feed interaction; the type is kept raw so unknown values score zero."""

    product_id: ProductId
    interaction_type: str
    created_at: datetime


@dataclass(frozen=True)
class Membership:
    """Domain representation of a Membership."""

    id: MembershipId
    user_id: str
    tier: MembershipTier
    status: MembershipStatus
    discount_percent: int

    @property
    def is_active(self) -> bool:
        return self.status is MembershipStatus.ACTIVE


@dataclass(frozen=True)
class PricingRule:
    """Multiplier applied to sessions matching a day set and time window.

    days_of_week uses 0 for Sunday through 6 for Saturday. Times are
    zero-padded "HH:MM" strings; a missing bound leaves that side open.
    """

    id: PricingRuleId
    name: str
    rule_type: PricingRuleType
    multiplier: Decimal
    days_of_week: tuple[int, ...] | None = None
    start_time: str | None = None
    end_time: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class Booking:
    """Domain representation of a seat reservation."""

    id: BookingId
    session_id: SessionId
    user_id: str
    guests: int
    status: BookingStatus
    reserved_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def spots(self) -> int:
        return 1 + self.guests


@dataclass(frozen=True)
class OrderDraft:
    """An order ready to be written; the store assigns id and timestamp."""

    booking_id: BookingId
    user_id: str
    amount: Money
    discount: Money
    payment_reference: str
    membership_id: MembershipId | None = None
    status: OrderStatus = OrderStatus.PENDING
    is_split: bool = False
    split_group_id: UUID | None = None


@dataclass(frozen=True)
class Order:
    """Domain representation of a payable Order."""

    id: OrderId
    booking_id: BookingId
    user_id: str
    amount: Money
    discount: Money
    payment_reference: str
    status: OrderStatus
    created_at: datetime
    membership_id: MembershipId | None = None
    is_split: bool = False
    split_group_id: UUID | None = None
