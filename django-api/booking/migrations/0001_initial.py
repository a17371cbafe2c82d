import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("type", models.CharField(choices=[("court_rental", "Court Rental"), ("open_play", "Open Play"), ("coaching", "Coaching"), ("clinic", "Clinic"), ("tournament", "Tournament"), ("community_day", "Community Day"), ("food_addon", "Food Addon")], max_length=32)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("image_url", models.URLField(blank=True, max_length=500, null=True)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["is_active", "-created_at"], name="product_active_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="PricingRule",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("rule_type", models.CharField(choices=[("peak", "Peak"), ("off_peak", "Off Peak"), ("weekend", "Weekend"), ("holiday", "Holiday"), ("surge", "Surge")], max_length=16)),
                ("multiplier", models.DecimalField(decimal_places=3, max_digits=6)),
                ("days_of_week", models.JSONField(blank=True, null=True)),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("end_time", models.TimeField(blank=True, null=True)),
                ("position", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["position", "name"],
            },
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("starts_at", models.DateTimeField()),
                ("ends_at", models.DateTimeField()),
                ("price_cents", models.PositiveIntegerField()),
                ("spots_total", models.PositiveIntegerField()),
                ("spots_remaining", models.PositiveIntegerField()),
                ("status", models.CharField(choices=[("open", "Open"), ("full", "Full"), ("in_progress", "In Progress"), ("completed", "Completed"), ("cancelled", "Cancelled")], default="open", max_length=16)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sessions", to="booking.product")),
            ],
            options={
                "ordering": ["starts_at"],
                "indexes": [
                    models.Index(fields=["product", "starts_at"], name="session_product_start_idx"),
                    models.Index(fields=["status"], name="session_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("spots_remaining__lte", models.F("spots_total"))), name="session_remaining_lte_total"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PlayerProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("skill_level", models.CharField(blank=True, choices=[("beginner", "Beginner"), ("intermediate", "Intermediate"), ("advanced", "Advanced"), ("pro", "Pro")], max_length=16, null=True)),
                ("payment_customer_id", models.CharField(blank=True, default="", max_length=255)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="player_profile", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("tier", models.CharField(choices=[("local_player", "Local Player"), ("sand_regular", "Sand Regular"), ("founders", "Founders")], max_length=16)),
                ("status", models.CharField(choices=[("active", "Active"), ("past_due", "Past Due"), ("cancelled", "Cancelled")], default="active", max_length=16)),
                ("discount_percent", models.PositiveSmallIntegerField()),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["user", "status"], name="membership_user_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="FeedInteraction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("interaction_type", models.CharField(choices=[("view", "View"), ("tap", "Tap"), ("book", "Book"), ("dismiss", "Dismiss")], max_length=16)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="interactions", to="booking.product")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="feed_interactions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [models.Index(fields=["user", "product"], name="interaction_user_product_idx")],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=[("reserved", "Reserved"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled"), ("no_show", "No Show")], default="reserved", max_length=16)),
                ("guests", models.PositiveSmallIntegerField(default=0)),
                ("reserved_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("session", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bookings", to="booking.session")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="bookings", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("status", "cancelled"), _negated=True), fields=("session", "user"), name="booking_unique_live_user_session"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount_cents", models.PositiveIntegerField()),
                ("discount_cents", models.PositiveIntegerField(default=0)),
                ("payment_reference", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("paid", "Paid"), ("refunded", "Refunded"), ("failed", "Failed")], default="pending", max_length=16)),
                ("is_split", models.BooleanField(default=False)),
                ("split_group_id", models.UUIDField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="orders", to="booking.booking")),
                ("membership", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to="booking.membership")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="orders", to=settings.AUTH_USER_MODEL)),
            ],
        ),
    ]
