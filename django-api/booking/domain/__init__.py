from booking.domain.models import (
    Booking,
    BookingStatus,
    InteractionEvent,
    InteractionType,
    Membership,
    MembershipStatus,
    MembershipTier,
    Order,
    OrderDraft,
    OrderStatus,
    PricingRule,
    PricingRuleType,
    Product,
    ProductType,
    Session,
    SessionStatus,
    SkillLevel,
)
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

__all__ = [
    "Booking",
    "BookingStatus",
    "InteractionEvent",
    "InteractionType",
    "Membership",
    "MembershipStatus",
    "MembershipTier",
    "Order",
    "OrderDraft",
    "OrderStatus",
    "PricingRule",
    "PricingRuleType",
    "Product",
    "ProductType",
    "Session",
    "SessionStatus",
    "SkillLevel",
    "BookingId",
    "Capacity",
    "MembershipId",
    "Money",
    "OrderId",
    "PricingRuleId",
    "ProductId",
    "SessionId",
]
