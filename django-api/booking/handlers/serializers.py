"""Serializers for request validation and for rendering domain models."""

from rest_framework import serializers

from booking.domain import InteractionType


class SessionSerializer(serializers.Serializer):
    """Serializer for Session domain model."""

    id = serializers.CharField()
    product_id = serializers.CharField()
    starts_at = serializers.DateTimeField()
    ends_at = serializers.DateTimeField()
    price_cents = serializers.IntegerField(source="price.cents")
    spots_total = serializers.IntegerField(source="spots_total.value")
    spots_remaining = serializers.IntegerField(source="spots_remaining.value")
    status = serializers.CharField(source="status.value")


class FeedItemSerializer(serializers.Serializer):
    """Serializer for a ranked feed item (product plus sessions)."""

    id = serializers.CharField()
    type = serializers.CharField(source="product.type.value")
    title = serializers.CharField(source="product.title")
    description = serializers.CharField(source="product.description")
    image_url = serializers.CharField(source="product.image_url", allow_null=True)
    tags = serializers.ListField(source="product.tags", child=serializers.CharField())
    created_at = serializers.DateTimeField(source="product.created_at")
    relevance_score = serializers.FloatField()
    next_session = SessionSerializer(allow_null=True)
    sessions = SessionSerializer(many=True)


class FeedRequestSerializer(serializers.Serializer):
    filters = serializers.ListField(
        child=serializers.CharField(), required=False, default=list
    )
    cursor = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    limit = serializers.IntegerField(required=False, default=None, allow_null=True)


class InteractionRequestSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    interaction_type = serializers.ChoiceField(choices=[kind.value for kind in InteractionType])


class InteractionSerializer(serializers.Serializer):
    """Serializer for a logged InteractionEvent."""

    product_id = serializers.CharField()
    interaction_type = serializers.CharField()
    created_at = serializers.DateTimeField()


class CheckoutRequestSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    guests = serializers.IntegerField(min_value=0, required=False, default=0)
    membership_id = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, default=None
    )


class SplitCheckoutRequestSerializer(serializers.Serializer):
    session_id = serializers.UUIDField()
    participant_emails = serializers.ListField(
        child=serializers.EmailField(), allow_empty=False
    )


class CheckoutResultSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
    order_id = serializers.CharField()
    amount = serializers.IntegerField()
    discount = serializers.IntegerField()
    payment_reference = serializers.CharField()
    client_secret = serializers.CharField()


class ParticipantResultSerializer(serializers.Serializer):
    email = serializers.EmailField()
    booking_id = serializers.CharField(allow_null=True)
    order_id = serializers.CharField(allow_null=True)
    payment_reference = serializers.CharField(allow_null=True)
    client_secret = serializers.CharField(allow_null=True)
    error_code = serializers.CharField(allow_null=True)
    error = serializers.CharField(allow_null=True)


class SplitCheckoutResultSerializer(serializers.Serializer):
    split_group_id = serializers.UUIDField()
    per_person_amount = serializers.IntegerField()
    payment_references = serializers.ListField(child=serializers.CharField())
    players = ParticipantResultSerializer(source="participants", many=True)


class CancellationResultSerializer(serializers.Serializer):
    booking_id = serializers.CharField()
    refund_amount = serializers.IntegerField()
    refund_percent = serializers.IntegerField()
    booking_status = serializers.CharField()
