"""Django ORM implementation of the booking stores.

Reservation relies on the database to serialise concurrent callers: the
session row is locked with SELECT ... FOR UPDATE, and the decrement itself is
a conditional UPDATE guarded on spots_remaining, so backends that ignore row
locks still cannot oversell.
"""

import logging
from datetime import datetime
from decimal import Decimal
from functools import wraps
from typing import Sequence

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import Case, F, Value, When
from django.utils import timezone

from booking import models as orm
from booking.conf import booking_setting
from booking.domain import (
    Booking,
    BookingId,
    BookingStatus,
    Capacity,
    InteractionEvent,
    Membership,
    MembershipId,
    MembershipStatus,
    MembershipTier,
    Money,
    Order,
    OrderDraft,
    OrderId,
    OrderStatus,
    PricingRule,
    PricingRuleId,
    PricingRuleType,
    Product,
    ProductId,
    ProductType,
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
    TransientStoreError,
)
from booking.stores import cache_keys
from booking.stores.interfaces import (
    BookingStore,
    CatalogFilters,
    CatalogStore,
    InteractionStore,
    PricingRuleStore,
    ProfileStore,
)

logger = logging.getLogger(__name__)

BOOKABLE_STATUSES = (orm.Session.Status.OPEN, orm.Session.Status.FULL)


def _transient(operation: str):
    """Translate connectivity failures into TransientStoreError."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (OperationalError, InterfaceError) as exc:
                logger.warning("Store operation %s failed: %s", operation, type(exc).__name__)
                raise TransientStoreError(operation) from exc

        return wrapper

    return decorator


def _format_time(value) -> str | None:
    return value.strftime("%H:%M") if value else None


def product_to_domain(row: orm.Product) -> Product:
    return Product(
        id=ProductId(row.id),
        type=ProductType(row.type),
        title=row.title,
        created_at=row.created_at,
        tags=tuple(row.tags or ()),
        is_active=row.is_active,
        description=row.description,
        image_url=row.image_url,
    )


def session_to_domain(row: orm.Session) -> Session:
    return Session(
        id=SessionId(row.id),
        product_id=ProductId(row.product_id),
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        price=Money(row.price_cents),
        spots_total=Capacity(row.spots_total),
        spots_remaining=Capacity(row.spots_remaining),
        status=SessionStatus(row.status),
    )


def rule_to_domain(row: orm.PricingRule) -> PricingRule:
    return PricingRule(
        id=PricingRuleId(row.id),
        name=row.name,
        rule_type=PricingRuleType(row.rule_type),
        multiplier=Decimal(row.multiplier),
        days_of_week=tuple(row.days_of_week) if row.days_of_week else None,
        start_time=_format_time(row.start_time),
        end_time=_format_time(row.end_time),
        is_active=row.is_active,
    )


def membership_to_domain(row: orm.Membership) -> Membership:
    return Membership(
        id=MembershipId(row.id),
        user_id=str(row.user_id),
        tier=MembershipTier(row.tier),
        status=MembershipStatus(row.status),
        discount_percent=row.discount_percent,
    )


def booking_to_domain(row: orm.Booking) -> Booking:
    return Booking(
        id=BookingId(row.id),
        session_id=SessionId(row.session_id),
        user_id=str(row.user_id),
        guests=row.guests,
        status=BookingStatus(row.status),
        reserved_at=row.reserved_at,
        confirmed_at=row.confirmed_at,
        cancelled_at=row.cancelled_at,
    )


def order_to_domain(row: orm.Order) -> Order:
    return Order(
        id=OrderId(row.id),
        booking_id=BookingId(row.booking_id),
        user_id=str(row.user_id),
        amount=Money(row.amount_cents),
        discount=Money(row.discount_cents),
        payment_reference=row.payment_reference,
        status=OrderStatus(row.status),
        created_at=row.created_at,
        membership_id=MembershipId(row.membership_id) if row.membership_id else None,
        is_split=row.is_split,
        split_group_id=row.split_group_id,
    )


class DjangoCatalogStore(CatalogStore, PricingRuleStore):
    """Catalog and pricing-rule reads; active products and rules are cached."""

    @_transient("list_active_products")
    def list_active_products(self, filters: CatalogFilters | None = None) -> list[Product]:
        products = cache.get(cache_keys.ACTIVE_PRODUCTS)
        if products is None:
            products = [
                product_to_domain(row)
                for row in orm.Product.objects.filter(is_active=True).order_by("-created_at")
            ]
            cache.set(
                cache_keys.ACTIVE_PRODUCTS,
                products,
                booking_setting("CATALOG_CACHE_TIMEOUT"),
            )
        if filters is None:
            return list(products)
        return [product for product in products if filters.matches(product)]

    @_transient("get_product")
    def get_product(self, product_id: ProductId) -> Product | None:
        row = orm.Product.objects.filter(pk=product_id.value).first()
        return product_to_domain(row) if row else None

    @_transient("list_upcoming_sessions")
    def list_upcoming_sessions(
        self, product_ids: Sequence[ProductId], now: datetime
    ) -> list[Session]:
        rows = orm.Session.objects.filter(
            product_id__in=[product_id.value for product_id in product_ids],
            starts_at__gte=now,
            status__in=BOOKABLE_STATUSES,
        ).order_by("starts_at")
        return [session_to_domain(row) for row in rows]

    @_transient("get_session")
    def get_session(self, session_id: SessionId) -> Session | None:
        row = orm.Session.objects.filter(pk=session_id.value).first()
        return session_to_domain(row) if row else None

    @_transient("list_active_rules")
    def list_active_rules(self) -> list[PricingRule]:
        rules = cache.get(cache_keys.ACTIVE_PRICING_RULES)
        if rules is None:
            rules = [
                rule_to_domain(row)
                for row in orm.PricingRule.objects.filter(is_active=True).order_by(
                    "position", "name"
                )
            ]
            cache.set(
                cache_keys.ACTIVE_PRICING_RULES,
                rules,
                booking_setting("CATALOG_CACHE_TIMEOUT"),
            )
        return list(rules)


class DjangoProfileStore(ProfileStore):
    """Player profiles, memberships and user lookups."""

    @_transient("get_skill_level")
    def get_skill_level(self, user_id: str) -> SkillLevel | None:
        level = (
            orm.PlayerProfile.objects.filter(user_id=user_id)
            .values_list("skill_level", flat=True)
            .first()
        )
        return SkillLevel(level) if level else None

    @_transient("get_active_membership")
    def get_active_membership(self, user_id: str) -> Membership | None:
        row = (
            orm.Membership.objects.filter(user_id=user_id, status=orm.Membership.Status.ACTIVE)
            .order_by("-created_at")
            .first()
        )
        return membership_to_domain(row) if row else None

    @_transient("get_membership")
    def get_membership(self, membership_id: MembershipId, user_id: str) -> Membership | None:
        row = orm.Membership.objects.filter(pk=membership_id.value, user_id=user_id).first()
        return membership_to_domain(row) if row else None

    @_transient("find_user_id_by_email")
    def find_user_id_by_email(self, email: str) -> str | None:
        user_id = (
            get_user_model()
            .objects.filter(email__iexact=email)
            .values_list("pk", flat=True)
            .first()
        )
        return str(user_id) if user_id is not None else None

    @_transient("get_email")
    def get_email(self, user_id: str) -> str | None:
        email = get_user_model().objects.filter(pk=user_id).values_list("email", flat=True).first()
        return email or None

    @_transient("get_payment_customer")
    def get_payment_customer(self, user_id: str) -> str | None:
        customer = (
            orm.PlayerProfile.objects.filter(user_id=user_id)
            .values_list("payment_customer_id", flat=True)
            .first()
        )
        return customer or None

    @_transient("save_payment_customer")
    def save_payment_customer(self, user_id: str, customer_ref: str) -> None:
        orm.PlayerProfile.objects.update_or_create(
            user_id=user_id, defaults={"payment_customer_id": customer_ref}
        )


class DjangoInteractionStore(InteractionStore):
    """Interaction log and co-booking signal."""

    @_transient("list_interactions")
    def list_interactions(
        self, user_id: str, product_ids: Sequence[ProductId]
    ) -> list[InteractionEvent]:
        rows = orm.FeedInteraction.objects.filter(
            user_id=user_id,
            product_id__in=[product_id.value for product_id in product_ids],
        ).values_list("product_id", "interaction_type", "created_at")
        return [
            InteractionEvent(
                product_id=ProductId(product_id),
                interaction_type=interaction_type,
                created_at=created_at,
            )
            for product_id, interaction_type, created_at in rows
        ]

    @_transient("append_interaction")
    def append_interaction(
        self,
        user_id: str,
        product_id: ProductId,
        interaction_type: str,
        created_at: datetime,
    ) -> InteractionEvent:
        orm.FeedInteraction.objects.create(
            user_id=user_id,
            product_id=product_id.value,
            interaction_type=interaction_type,
            created_at=created_at,
        )
        return InteractionEvent(
            product_id=product_id,
            interaction_type=interaction_type,
            created_at=created_at,
        )

    @_transient("co_booking_counts")
    def co_booking_counts(self, user_id: str, since: datetime) -> dict[str, int]:
        confirmed = orm.Booking.objects.filter(
            status=orm.Booking.Status.CONFIRMED, reserved_at__gte=since
        )
        booked_products = set(
            confirmed.filter(user_id=user_id).values_list("session__product_id", flat=True)
        )
        if not booked_products:
            return {}

        similar_users = list(
            confirmed.filter(session__product_id__in=booked_products)
            .exclude(user_id=user_id)
            .values_list("user_id", flat=True)
            .distinct()[: booking_setting("COLLABORATIVE_MAX_SIMILAR_USERS")]
        )
        if not similar_users:
            return {}

        counts: dict[str, int] = {}
        for product_id in confirmed.filter(user_id__in=similar_users).values_list(
            "session__product_id", flat=True
        ):
            if product_id in booked_products:
                continue
            key = str(product_id)
            counts[key] = counts.get(key, 0) + 1
        return counts


class DjangoBookingStore(BookingStore):
    """Reservations and orders backed by PostgreSQL (or any Django database)."""

    def reserve(self, session_id: SessionId, user_id: str, guests: int) -> Booking:
        needed = 1 + guests
        try:
            with transaction.atomic():
                session = (
                    orm.Session.objects.select_for_update()
                    .filter(pk=session_id.value)
                    .first()
                )
                if session is None:
                    raise SessionNotFoundError(str(session_id))
                if session.status != orm.Session.Status.OPEN:
                    raise SessionNotOpenError(str(session_id), session.status)
                if session.spots_remaining < needed:
                    raise InsufficientCapacityError(
                        str(session_id), needed, session.spots_remaining
                    )

                claimed = orm.Session.objects.filter(
                    pk=session_id.value,
                    status=orm.Session.Status.OPEN,
                    spots_remaining__gte=needed,
                ).update(
                    spots_remaining=F("spots_remaining") - needed,
                    status=Case(
                        When(spots_remaining=needed, then=Value(orm.Session.Status.FULL)),
                        default=F("status"),
                    ),
                    updated_at=timezone.now(),
                )
                if not claimed:
                    # Lost a race on a backend without row locks.
                    raise InsufficientCapacityError(
                        str(session_id), needed, session.spots_remaining
                    )

                try:
                    with transaction.atomic():
                        row = orm.Booking.objects.create(
                            session_id=session_id.value,
                            user_id=user_id,
                            guests=guests,
                            status=orm.Booking.Status.RESERVED,
                        )
                except IntegrityError:
                    raise AlreadyBookedError(str(session_id)) from None
        except (OperationalError, InterfaceError) as exc:
            logger.warning(
                "Reservation on session %s hit the store: %s", session_id, type(exc).__name__
            )
            raise TransientStoreError("reserve") from exc

        logger.info(
            "Reserved %s spot(s) on session %s for user %s", needed, session_id, user_id
        )
        return booking_to_domain(row)

    @_transient("get_booking")
    def get_booking(self, booking_id: BookingId) -> Booking | None:
        row = orm.Booking.objects.filter(pk=booking_id.value).first()
        return booking_to_domain(row) if row else None

    @_transient("cancel_booking")
    def cancel_booking(self, booking_id: BookingId) -> Booking:
        with transaction.atomic():
            row = orm.Booking.objects.select_for_update().filter(pk=booking_id.value).first()
            if row is None:
                raise BookingNotFoundError(str(booking_id))
            if row.status == orm.Booking.Status.CANCELLED:
                raise BookingAlreadyCancelledError(str(booking_id))

            row.status = orm.Booking.Status.CANCELLED
            row.cancelled_at = timezone.now()
            row.save(update_fields=["status", "cancelled_at"])

            released = 1 + row.guests
            orm.Session.objects.filter(pk=row.session_id).update(
                spots_remaining=F("spots_remaining") + released,
                status=Case(
                    When(status=orm.Session.Status.FULL, then=Value(orm.Session.Status.OPEN)),
                    default=F("status"),
                ),
                updated_at=timezone.now(),
            )

        logger.info("Cancelled booking %s, released %s spot(s)", booking_id, released)
        return booking_to_domain(row)

    @_transient("reinstate_booking")
    def reinstate_booking(self, booking: Booking) -> bool:
        try:
            with transaction.atomic():
                row = (
                    orm.Booking.objects.select_for_update()
                    .filter(pk=booking.id.value)
                    .first()
                )
                if row is None or row.status != orm.Booking.Status.CANCELLED:
                    return False

                claimed = orm.Session.objects.filter(
                    pk=row.session_id, spots_remaining__gte=booking.spots
                ).update(
                    spots_remaining=F("spots_remaining") - booking.spots,
                    status=Case(
                        When(
                            status=orm.Session.Status.OPEN,
                            spots_remaining=booking.spots,
                            then=Value(orm.Session.Status.FULL),
                        ),
                        default=F("status"),
                    ),
                    updated_at=timezone.now(),
                )
                if not claimed:
                    return False

                row.status = booking.status.value
                row.cancelled_at = None
                row.save(update_fields=["status", "cancelled_at"])
        except IntegrityError:
            # The user booked the session again after the cancellation.
            return False

        logger.info("Reinstated booking %s, reclaimed %s spot(s)", booking.id, booking.spots)
        return True

    @_transient("confirm_booking")
    def confirm_booking(self, booking_id: BookingId) -> None:
        orm.Booking.objects.filter(pk=booking_id.value).exclude(
            status__in=[orm.Booking.Status.CONFIRMED, orm.Booking.Status.CANCELLED]
        ).update(status=orm.Booking.Status.CONFIRMED, confirmed_at=timezone.now())

    @_transient("create_order")
    def create_order(self, draft: OrderDraft) -> Order:
        row = orm.Order.objects.create(
            booking_id=draft.booking_id.value,
            user_id=draft.user_id,
            amount_cents=draft.amount.cents,
            discount_cents=draft.discount.cents,
            membership_id=draft.membership_id.value if draft.membership_id else None,
            payment_reference=draft.payment_reference,
            status=draft.status.value,
            is_split=draft.is_split,
            split_group_id=draft.split_group_id,
        )
        return order_to_domain(row)

    @_transient("get_paid_order")
    def get_paid_order(self, booking_id: BookingId) -> Order | None:
        row = orm.Order.objects.filter(
            booking_id=booking_id.value, status=orm.Order.Status.PAID
        ).first()
        return order_to_domain(row) if row else None

    @_transient("get_order_by_reference")
    def get_order_by_reference(self, payment_reference: str) -> Order | None:
        if not payment_reference:
            return None
        row = orm.Order.objects.filter(payment_reference=payment_reference).first()
        return order_to_domain(row) if row else None

    @_transient("update_order_status")
    def update_order_status(self, order_id: OrderId, status: OrderStatus) -> Order:
        with transaction.atomic():
            row = orm.Order.objects.select_for_update().get(pk=order_id.value)
            current = OrderStatus(row.status)
            if current is not status:
                if not current.can_transition_to(status):
                    raise InvalidOrderTransitionError(current.value, status.value)
                row.status = status.value
                row.save(update_fields=["status"])
        return order_to_domain(row)

