"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from booking.conf import booking_setting
from booking.domain.errors import (
    CheckoutIncompleteError,
    DomainError,
    ErrorCode,
    InvalidOrderTransitionError,
    PaymentProcessorError,
)
from booking.gateways import get_payment_gateway
from booking.handlers.serializers import (
    CancellationResultSerializer,
    CheckoutRequestSerializer,
    CheckoutResultSerializer,
    FeedItemSerializer,
    FeedRequestSerializer,
    InteractionRequestSerializer,
    InteractionSerializer,
    SessionSerializer,
    SplitCheckoutRequestSerializer,
    SplitCheckoutResultSerializer,
)
from booking.services.booking_service import BookingService
from booking.services.checkout_service import CheckoutService
from booking.services.feed_service import FeedService, InteractionService, split_filters
from booking.stores.django_store import (
    DjangoBookingStore,
    DjangoCatalogStore,
    DjangoInteractionStore,
    DjangoProfileStore,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.SESSION_NOT_OPEN: status.HTTP_409_CONFLICT,
    ErrorCode.INSUFFICIENT_CAPACITY: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_BOOKED: status.HTTP_409_CONFLICT,
    ErrorCode.BOOKING_ALREADY_CANCELLED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_ORDER_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.PAYMENT_PROCESSOR_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.CHECKOUT_INCOMPLETE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error: DomainError) -> Response:
    """Map a domain error to its HTTP status and a safe JSON body."""
    body = {"code": error.code.value, "message": error.message}
    field = getattr(error, "field", None)
    if field:
        body["field"] = field
    # Seats are held: give the client what it needs to reconcile them.
    if isinstance(error, (PaymentProcessorError, CheckoutIncompleteError)):
        if error.booking_id:
            body["booking_id"] = error.booking_id
        if getattr(error, "payment_reference", None):
            body["payment_reference"] = error.payment_reference
    return Response(
        {"error": body},
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def invalid_request(errors) -> Response:
    return Response(
        {
            "error": {
                "code": ErrorCode.INVALID_INPUT.value,
                "message": "Invalid request",
                "fields": errors,
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def _user_id(request: Request) -> str:
    return str(request.user.pk)


def feed_service() -> FeedService:
    catalog = DjangoCatalogStore()
    return FeedService(
        catalog=catalog,
        rules=catalog,
        profiles=DjangoProfileStore(),
        interactions=DjangoInteractionStore(),
    )


def checkout_service() -> CheckoutService:
    catalog = DjangoCatalogStore()
    return CheckoutService(
        catalog=catalog,
        rules=catalog,
        profiles=DjangoProfileStore(),
        interactions=DjangoInteractionStore(),
        bookings=DjangoBookingStore(),
        gateway=get_payment_gateway(),
    )


def booking_service() -> BookingService:
    return BookingService(
        bookings=DjangoBookingStore(),
        catalog=DjangoCatalogStore(),
        gateway=get_payment_gateway(),
    )


class FeedView(APIView):
    """Handler for GET/POST /api/feed"""

    def get(self, request: Request) -> Response:
        params = request.query_params
        filters = [
            value
            for raw in params.getlist("filters")
            for value in raw.split(",")
            if value
        ]
        data = {"filters": filters, "cursor": params.get("cursor")}
        if params.get("limit"):
            data["limit"] = params.get("limit")
        return self._respond(request, data)

    def post(self, request: Request) -> Response:
        return self._respond(request, request.data)

    def _respond(self, request: Request, data) -> Response:
        serializer = FeedRequestSerializer(data=data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)
        params = serializer.validated_data
        limit = params["limit"]
        if limit is None:
            limit = booking_setting("FEED_PAGE_SIZE")

        try:
            page = feed_service().get_feed(
                user_id=_user_id(request),
                filters=split_filters(params["filters"]),
                cursor=params["cursor"] or None,
                limit=limit,
                now=timezone.now(),
            )
        except DomainError as exc:
            return error_response(exc)

        return Response(
            {
                "items": FeedItemSerializer(page.items, many=True).data,
                "next_cursor": page.next_cursor,
                "has_more": page.has_more,
            }
        )


class ProductSessionsView(APIView):
    """Handler for GET /api/products/{product_id}/sessions"""

    def get(self, request: Request, product_id: str) -> Response:
        try:
            sessions = feed_service().get_product_sessions(product_id, timezone.now())
        except DomainError as exc:
            return error_response(exc)
        return Response(SessionSerializer(sessions, many=True).data)


class InteractionView(APIView):
    """Handler for POST /api/interactions"""

    def post(self, request: Request) -> Response:
        serializer = InteractionRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)
        catalog = DjangoCatalogStore()
        service = InteractionService(catalog=catalog, interactions=DjangoInteractionStore())
        try:
            event = service.log_interaction(
                user_id=_user_id(request),
                product_id=str(serializer.validated_data["product_id"]),
                interaction_type=serializer.validated_data["interaction_type"],
                now=timezone.now(),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            InteractionSerializer(event).data, status=status.HTTP_201_CREATED
        )


class CheckoutView(APIView):
    """Handler for POST /api/checkout"""

    def post(self, request: Request) -> Response:
        serializer = CheckoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)
        params = serializer.validated_data
        try:
            result = checkout_service().checkout(
                user_id=_user_id(request),
                session_id=str(params["session_id"]),
                guests=params["guests"],
                membership_id=params["membership_id"],
                now=timezone.now(),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            CheckoutResultSerializer(result).data, status=status.HTTP_201_CREATED
        )


class SplitCheckoutView(APIView):
    """Handler for POST /api/checkout/split"""

    def post(self, request: Request) -> Response:
        serializer = SplitCheckoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer.errors)
        params = serializer.validated_data
        try:
            result = checkout_service().split_checkout(
                host_user_id=_user_id(request),
                session_id=str(params["session_id"]),
                participant_emails=params["participant_emails"],
                now=timezone.now(),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            SplitCheckoutResultSerializer(result).data, status=status.HTTP_201_CREATED
        )


class CancelBookingView(APIView):
    """Handler for POST /api/bookings/{booking_id}/cancel"""

    def post(self, request: Request, booking_id: str) -> Response:
        try:
            result = booking_service().cancel_booking(
                booking_id=booking_id,
                user_id=_user_id(request),
                now=timezone.now(),
                is_admin=request.user.is_staff,
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(CancellationResultSerializer(result).data)


class PaymentWebhookView(APIView):
    """Handler for POST /api/payments/webhook

    Authenticated by the processor's signature header, not by a user session.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request: Request) -> Response:
        signature = request.headers.get("Stripe-Signature", "")
        try:
            service = booking_service()
            confirmation = get_payment_gateway().parse_confirmation(request.body, signature)
            if confirmation is not None:
                service.apply_payment_confirmation(confirmation)
        except InvalidOrderTransitionError as exc:
            # A settled order cannot change; acknowledge the stale event.
            logger.warning("Payment webhook ignored: %s", exc)
        except DomainError as exc:
            logger.warning("Payment webhook rejected: %s", exc)
            return error_response(exc)
        return Response({"received": True})
