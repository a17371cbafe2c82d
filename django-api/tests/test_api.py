"""Integration tests for the booking HTTP API.

Requests go through DRF's APIClient against the Django stores; the payment
processor is replaced with a fake.
Run with: pytest tests/test_api.py -v
"""

import json
import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from booking import models as orm
from booking.domain.errors import TransientStoreError
from booking.stores.django_store import DjangoBookingStore
from tests.builders import create_product_row, create_session_row
from tests.fakes import VALID_SIGNATURE


@pytest.fixture
def court():
    product = create_product_row("Court", type=orm.Product.Type.COURT_RENTAL, tags=["sand"])
    return create_session_row(product, price_cents=2000, spots_total=4)


@pytest.fixture
def friend():
    return get_user_model().objects.create_user(username="friend", email="friend@example.com")


def error_code(response) -> str:
    return response.json()["error"]["code"]


@pytest.mark.django_db
class TestFeed:
    """Tests for GET/POST /api/feed"""

    def test_requires_authentication(self, api_client: APIClient):
        response = api_client.get("/api/feed")
        assert response.status_code in (401, 403)

    def test_returns_ranked_items_with_sessions(self, auth_client: APIClient, court):
        orm.PricingRule.objects.create(name="peak", rule_type="peak", multiplier=Decimal("1.5"))
        response = auth_client.get("/api/feed")

        assert response.status_code == 200
        body = response.json()
        [item] = body["items"]
        assert item["id"] == str(court.product_id)
        assert item["type"] == "court_rental"
        assert item["next_session"]["id"] == str(court.id)
        assert item["sessions"][0]["price_cents"] == 3000
        assert body["next_cursor"] is None
        assert body["has_more"] is False

    def test_cursor_pagination(self, auth_client: APIClient):
        for n in range(3):
            create_session_row(create_product_row(f"P{n}"), starts_in=timedelta(days=n + 2))

        first = auth_client.get("/api/feed", {"limit": 2}).json()
        assert [i["title"] for i in first["items"]] == ["P0", "P1"]
        second = auth_client.get("/api/feed", {"limit": 2, "cursor": first["next_cursor"]}).json()
        assert [i["title"] for i in second["items"]] == ["P2"]
        assert second["has_more"] is False

    def test_post_with_filters(self, auth_client: APIClient, court):
        create_session_row(create_product_row("Clinic", type=orm.Product.Type.CLINIC))
        response = auth_client.post(
            "/api/feed", {"filters": ["court_rental"], "limit": 10}, format="json"
        )
        assert [i["title"] for i in response.json()["items"]] == ["Court"]

    def test_invalid_limit(self, auth_client: APIClient):
        response = auth_client.get("/api/feed", {"limit": "many"})
        assert response.status_code == 400
        assert error_code(response) == "INVALID_INPUT"


@pytest.mark.django_db
class TestProductSessions:
    """Tests for GET /api/products/{id}/sessions"""

    def test_lists_sessions(self, auth_client: APIClient, court):
        response = auth_client.get(f"/api/products/{court.product_id}/sessions")
        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [str(court.id)]

    def test_product_not_found(self, auth_client: APIClient):
        response = auth_client.get(f"/api/products/{uuid.uuid4()}/sessions")
        assert response.status_code == 404
        assert error_code(response) == "PRODUCT_NOT_FOUND"

    def test_invalid_id_format(self, auth_client: APIClient):
        response = auth_client.get("/api/products/not-a-uuid/sessions")
        assert response.status_code == 400


@pytest.mark.django_db
class TestInteractions:
    """Tests for POST /api/interactions"""

    def test_logs_interaction(self, auth_client: APIClient, user, court):
        response = auth_client.post(
            "/api/interactions",
            {"product_id": str(court.product_id), "interaction_type": "tap"},
            format="json",
        )
        assert response.status_code == 201
        assert response.json()["interaction_type"] == "tap"
        assert response.json()["product_id"] == str(court.product_id)
        assert orm.FeedInteraction.objects.filter(user=user, interaction_type="tap").exists()

    def test_unknown_type(self, auth_client: APIClient, court):
        response = auth_client.post(
            "/api/interactions",
            {"product_id": str(court.product_id), "interaction_type": "like"},
            format="json",
        )
        assert response.status_code == 400


@pytest.mark.django_db
class TestCheckout:
    """Tests for POST /api/checkout"""

    def test_checkout_reserves_and_creates_order(
        self, auth_client: APIClient, view_gateway, user, court
    ):
        response = auth_client.post(
            "/api/checkout", {"session_id": str(court.id), "guests": 1}, format="json"
        )

        assert response.status_code == 201
        body = response.json()
        assert body["amount"] == 4000
        assert body["client_secret"].endswith("_secret")
        court.refresh_from_db()
        assert court.spots_remaining == 2
        order = orm.Order.objects.get(pk=body["order_id"])
        assert order.user == user
        assert order.status == orm.Order.Status.PENDING
        assert order.membership_id is None

    def test_membership_discount(self, auth_client: APIClient, view_gateway, user, court):
        membership = orm.Membership.objects.create(user=user, tier="founders", discount_percent=25)
        response = auth_client.post(
            "/api/checkout",
            {"session_id": str(court.id), "membership_id": str(membership.id)},
            format="json",
        )
        assert response.json()["discount"] == 500
        assert orm.Order.objects.get().membership_id == membership.id

    def test_sold_out(self, auth_client: APIClient, view_gateway, court):
        response = auth_client.post(
            "/api/checkout", {"session_id": str(court.id), "guests": 4}, format="json"
        )
        assert response.status_code == 409
        assert response.json()["error"] == {
            "code": "INSUFFICIENT_CAPACITY",
            "message": "Not enough spots. Need 5, available: 4",
        }

    def test_already_booked(self, auth_client: APIClient, view_gateway, court):
        payload = {"session_id": str(court.id)}
        auth_client.post("/api/checkout", payload, format="json")
        response = auth_client.post("/api/checkout", payload, format="json")
        assert response.status_code == 409
        assert error_code(response) == "ALREADY_BOOKED"

    def test_unknown_session(self, auth_client: APIClient, view_gateway):
        response = auth_client.post(
            "/api/checkout", {"session_id": str(uuid.uuid4())}, format="json"
        )
        assert response.status_code == 404

    def test_missing_session_id(self, auth_client: APIClient, view_gateway):
        response = auth_client.post("/api/checkout", {"guests": 1}, format="json")
        assert response.status_code == 400
        assert "session_id" in response.json()["error"]["fields"]

    def test_processor_failure(self, auth_client: APIClient, view_gateway, court):
        view_gateway.fail_charges = True
        response = auth_client.post(
            "/api/checkout", {"session_id": str(court.id)}, format="json"
        )
        assert response.status_code == 502
        booking_id = response.json()["error"]["booking_id"]
        assert orm.Booking.objects.filter(pk=booking_id).exists()

    def test_order_write_failure_reports_held_booking(
        self, auth_client: APIClient, view_gateway, court, monkeypatch
    ):
        def unavailable(self, draft):
            raise TransientStoreError("create_order")

        monkeypatch.setattr(DjangoBookingStore, "create_order", unavailable)
        response = auth_client.post(
            "/api/checkout", {"session_id": str(court.id)}, format="json"
        )

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "CHECKOUT_INCOMPLETE"
        assert orm.Booking.objects.filter(pk=error["booking_id"]).exists()
        assert error["payment_reference"] == view_gateway.intents[0][0]


@pytest.mark.django_db
class TestSplitCheckout:
    """Tests for POST /api/checkout/split"""

    def test_split_creates_one_order_per_player(
        self, auth_client: APIClient, view_gateway, user, friend, court
    ):
        response = auth_client.post(
            "/api/checkout/split",
            {
                "session_id": str(court.id),
                "participant_emails": [
                    "player@example.com",
                    "friend@example.com",
                    "ghost@example.com",
                ],
            },
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["per_person_amount"] == 667
        assert len(body["payment_references"]) == 2
        assert [p["error_code"] for p in body["players"]] == [None, None, "USER_NOT_FOUND"]
        orders = orm.Order.objects.all()
        assert {o.user_id for o in orders} == {user.pk, friend.pk}
        assert all(o.is_split for o in orders)

    def test_invalid_email(self, auth_client: APIClient, view_gateway, court):
        response = auth_client.post(
            "/api/checkout/split",
            {"session_id": str(court.id), "participant_emails": ["not-an-email"]},
            format="json",
        )
        assert response.status_code == 400


@pytest.mark.django_db
class TestCancelBooking:
    """Tests for POST /api/bookings/{id}/cancel"""

    def paid_checkout(self, client, court) -> dict:
        body = client.post("/api/checkout", {"session_id": str(court.id)}, format="json").json()
        orm.Order.objects.filter(pk=body["order_id"]).update(status=orm.Order.Status.PAID)
        return body

    def test_cancel_refunds_and_releases(self, auth_client: APIClient, view_gateway, court):
        body = self.paid_checkout(auth_client, court)
        response = auth_client.post(f"/api/bookings/{body['booking_id']}/cancel")

        assert response.status_code == 200
        assert response.json()["refund_percent"] == 100
        assert response.json()["refund_amount"] == 2000
        assert view_gateway.refunds == [(body["payment_reference"], 2000)]
        court.refresh_from_db()
        assert court.spots_remaining == 4
        assert orm.Order.objects.get(pk=body["order_id"]).status == orm.Order.Status.REFUNDED

    def test_other_user_forbidden(self, auth_client: APIClient, view_gateway, friend, court):
        body = self.paid_checkout(auth_client, court)
        other = APIClient()
        other.force_authenticate(user=friend)
        response = other.post(f"/api/bookings/{body['booking_id']}/cancel")
        assert response.status_code == 403
        assert error_code(response) == "BOOKING_FORBIDDEN"

    def test_staff_may_cancel(self, auth_client: APIClient, view_gateway, friend, court):
        body = self.paid_checkout(auth_client, court)
        friend.is_staff = True
        friend.save()
        staff = APIClient()
        staff.force_authenticate(user=friend)
        assert staff.post(f"/api/bookings/{body['booking_id']}/cancel").status_code == 200

    def test_cancel_twice(self, auth_client: APIClient, view_gateway, court):
        body = self.paid_checkout(auth_client, court)
        auth_client.post(f"/api/bookings/{body['booking_id']}/cancel")
        response = auth_client.post(f"/api/bookings/{body['booking_id']}/cancel")
        assert response.status_code == 409

    def test_unknown_booking(self, auth_client: APIClient, view_gateway):
        response = auth_client.post(f"/api/bookings/{uuid.uuid4()}/cancel")
        assert response.status_code == 404


@pytest.mark.django_db
class TestPaymentWebhook:
    """Tests for POST /api/payments/webhook"""

    def post_event(self, client, event_type, reference, signature=VALID_SIGNATURE):
        payload = {"type": event_type, "data": {"object": {"id": reference}}}
        return client.post(
            "/api/payments/webhook",
            data=json.dumps(payload),
            content_type="application/json",
            HTTP_STRIPE_SIGNATURE=signature,
        )

    def test_success_marks_order_paid(self, auth_client: APIClient, view_gateway, court):
        body = auth_client.post(
            "/api/checkout", {"session_id": str(court.id)}, format="json"
        ).json()
        webhook_client = APIClient()

        response = self.post_event(
            webhook_client, "payment_intent.succeeded", body["payment_reference"]
        )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert orm.Order.objects.get(pk=body["order_id"]).status == orm.Order.Status.PAID
        booking = orm.Booking.objects.get(pk=body["booking_id"])
        assert booking.status == orm.Booking.Status.CONFIRMED

    def test_failure_after_payment_is_acknowledged(
        self, auth_client: APIClient, view_gateway, court
    ):
        body = auth_client.post(
            "/api/checkout", {"session_id": str(court.id)}, format="json"
        ).json()
        webhook_client = APIClient()
        self.post_event(webhook_client, "payment_intent.succeeded", body["payment_reference"])

        response = self.post_event(
            webhook_client, "payment_intent.payment_failed", body["payment_reference"]
        )

        assert response.status_code == 200
        assert orm.Order.objects.get(pk=body["order_id"]).status == orm.Order.Status.PAID

    def test_unknown_reference_is_acknowledged(self, api_client: APIClient, view_gateway):
        response = self.post_event(api_client, "payment_intent.succeeded", "pi_missing")
        assert response.status_code == 200

    def test_bad_signature(self, api_client: APIClient, view_gateway):
        response = self.post_event(
            api_client, "payment_intent.succeeded", "pi_1", signature="forged"
        )
        assert response.status_code == 400
