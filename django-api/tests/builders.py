"""Builders for domain objects and database rows used across tests."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from django.utils import timezone as django_timezone

from booking import models as orm
from booking.domain import (
    Capacity,
    InteractionEvent,
    Membership,
    MembershipId,
    MembershipStatus,
    MembershipTier,
    Money,
    PricingRule,
    PricingRuleId,
    PricingRuleType,
    Product,
    ProductId,
    ProductType,
    Session,
    SessionId,
    SessionStatus,
)

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)  # a Wednesday


def make_product(
    title: str = "Open Play",
    product_type: ProductType = ProductType.OPEN_PLAY,
    tags: tuple[str, ...] = (),
    age_days: float = 60,
    is_active: bool = True,
) -> Product:
    return Product(
        id=ProductId(uuid.uuid4()),
        type=product_type,
        title=title,
        created_at=NOW - timedelta(days=age_days),
        tags=tags,
        is_active=is_active,
    )


def make_session(
    product: Product,
    starts_in: timedelta = timedelta(days=3),
    price: int = 2000,
    total: int = 10,
    remaining: int | None = None,
    status: SessionStatus = SessionStatus.OPEN,
) -> Session:
    starts_at = NOW + starts_in
    return Session(
        id=SessionId(uuid.uuid4()),
        product_id=product.id,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(hours=2),
        price=Money(price),
        spots_total=Capacity(total),
        spots_remaining=Capacity(total if remaining is None else remaining),
        status=status,
    )


def make_rule(
    multiplier: str,
    days: tuple[int, ...] | None = None,
    start: str | None = None,
    end: str | None = None,
    is_active: bool = True,
    rule_type: PricingRuleType = PricingRuleType.PEAK,
) -> PricingRule:
    return PricingRule(
        id=PricingRuleId(uuid.uuid4()),
        name=f"x{multiplier}",
        rule_type=rule_type,
        multiplier=Decimal(multiplier),
        days_of_week=days,
        start_time=start,
        end_time=end,
        is_active=is_active,
    )


def make_membership(
    user_id: str,
    discount_percent: int = 10,
    status: MembershipStatus = MembershipStatus.ACTIVE,
) -> Membership:
    return Membership(
        id=MembershipId(uuid.uuid4()),
        user_id=user_id,
        tier=MembershipTier.LOCAL_PLAYER,
        status=status,
        discount_percent=discount_percent,
    )


def make_interaction(product: Product, kind: str, age_days: float) -> InteractionEvent:
    return InteractionEvent(
        product_id=product.id,
        interaction_type=kind,
        created_at=NOW - timedelta(days=age_days),
    )


def create_product_row(title: str = "Open Play", **fields):
    fields.setdefault("type", orm.Product.Type.OPEN_PLAY)
    return orm.Product.objects.create(title=title, **fields)


def create_session_row(product_row, starts_in: timedelta = timedelta(days=3), **fields):
    starts_at = django_timezone.now() + starts_in
    fields.setdefault("price_cents", 2000)
    fields.setdefault("spots_total", 10)
    fields.setdefault("spots_remaining", fields["spots_total"])
    return orm.Session.objects.create(
        product=product_row,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(hours=2),
        **fields,
    )
