"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class Product(models.Model):
    """Persistence model for catalog products."""

    class Type(models.TextChoices):
        COURT_RENTAL = "court_rental"
        OPEN_PLAY = "open_play"
        COACHING = "coaching"
        CLINIC = "clinic"
        TOURNAMENT = "tournament"
        COMMUNITY_DAY = "community_day"
        FOOD_ADDON = "food_addon"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    type = models.CharField(max_length=32, choices=Type.choices)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    image_url = models.URLField(max_length=500, blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["is_active", "-created_at"], name="product_active_created_idx"),
        ]

    def __str__(self) -> str:
        return self.title


class Session(models.Model):
    """Persistence model for scheduled product sessions."""

    class Status(models.TextChoices):
        OPEN = "open"
        FULL = "full"
        IN_PROGRESS = "in_progress"
        COMPLETED = "completed"
        CANCELLED = "cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="sessions")
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    price_cents = models.PositiveIntegerField()
    spots_total = models.PositiveIntegerField()
    spots_remaining = models.PositiveIntegerField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.OPEN)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["starts_at"]
        indexes = [
            models.Index(fields=["product", "starts_at"], name="session_product_start_idx"),
            models.Index(fields=["status"], name="session_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(spots_remaining__lte=models.F("spots_total")),
                name="session_remaining_lte_total",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product.title} - {self.starts_at}"


class PlayerProfile(models.Model):
    """Booking-related attributes of a user."""

    class SkillLevel(models.TextChoices):
        BEGINNER = "beginner"
        INTERMEDIATE = "intermediate"
        ADVANCED = "advanced"
        PRO = "pro"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="player_profile"
    )
    skill_level = models.CharField(
        max_length=16, choices=SkillLevel.choices, blank=True, null=True
    )
    payment_customer_id = models.CharField(max_length=255, blank=True, default="")

    def __str__(self) -> str:
        return f"Profile of {self.user_id}"


class Membership(models.Model):
    """Persistence model for memberships."""

    class Tier(models.TextChoices):
        LOCAL_PLAYER = "local_player"
        SAND_REGULAR = "sand_regular"
        FOUNDERS = "founders"

    class Status(models.TextChoices):
        ACTIVE = "active"
        PAST_DUE = "past_due"
        CANCELLED = "cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="memberships"
    )
    tier = models.CharField(max_length=16, choices=Tier.choices)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    discount_percent = models.PositiveSmallIntegerField()
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["user", "status"], name="membership_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.tier} ({self.status})"


class PricingRule(models.Model):
    """Persistence model for dynamic pricing rules."""

    class RuleType(models.TextChoices):
        PEAK = "peak"
        OFF_PEAK = "off_peak"
        WEEKEND = "weekend"
        HOLIDAY = "holiday"
        SURGE = "surge"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    rule_type = models.CharField(max_length=16, choices=RuleType.choices)
    multiplier = models.DecimalField(max_digits=6, decimal_places=3)
    days_of_week = models.JSONField(blank=True, null=True)
    start_time = models.TimeField(blank=True, null=True)
    end_time = models.TimeField(blank=True, null=True)
    position = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["position", "name"]

    def __str__(self) -> str:
        return f"{self.name} x{self.multiplier}"


class FeedInteraction(models.Model):
    """Append-only log of feed interactions."""

    class Type(models.TextChoices):
        VIEW = "view"
        TAP = "tap"
        BOOK = "book"
        DISMISS = "dismiss"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="feed_interactions"
    )
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="interactions")
    interaction_type = models.CharField(max_length=16, choices=Type.choices)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["user", "product"], name="interaction_user_product_idx"),
        ]


class Booking(models.Model):
    """Persistence model for seat reservations."""

    class Status(models.TextChoices):
        RESERVED = "reserved"
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"
        NO_SHOW = "no_show"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(Session, on_delete=models.CASCADE, related_name="bookings")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings"
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.RESERVED)
    guests = models.PositiveSmallIntegerField(default=0)
    reserved_at = models.DateTimeField(default=timezone.now)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["session", "user"],
                condition=~models.Q(status="cancelled"),
                name="booking_unique_live_user_session",
            ),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} ({self.status})"


class Order(models.Model):
    """Payment record tied to a booking."""

    class Status(models.TextChoices):
        PENDING = "pending"
        PAID = "paid"
        REFUNDED = "refunded"
        FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="orders")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="orders"
    )
    amount_cents = models.PositiveIntegerField()
    discount_cents = models.PositiveIntegerField(default=0)
    membership = models.ForeignKey(
        Membership, on_delete=models.SET_NULL, blank=True, null=True, related_name="orders"
    )
    payment_reference = models.CharField(max_length=255, blank=True, default="", db_index=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    is_split = models.BooleanField(default=False)
    split_group_id = models.UUIDField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self) -> str:
        return f"Order {self.id} ({self.status})"
