"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from booking.stores.memory_store import InMemoryStore
from tests.fakes import FakePaymentGateway


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def no_retry_delay(settings):
    settings.BOOKING = {**settings.BOOKING, "RESERVATION_RETRY_DELAY": 0}


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def view_gateway(monkeypatch, gateway) -> FakePaymentGateway:
    """Route the API views to the fake gateway."""
    monkeypatch.setattr("booking.handlers.views.get_payment_gateway", lambda: gateway)
    return gateway


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(
        username="player", email="player@example.com", password="pw"
    )


@pytest.fixture
def auth_client(api_client, user) -> APIClient:
    api_client.force_authenticate(user=user)
    return api_client
