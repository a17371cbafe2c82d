"""App settings with defaults, overridable through settings.BOOKING."""

from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "FEED_PAGE_SIZE": 20,
    "FEED_SESSIONS_PER_ITEM": 5,
    "COLLABORATIVE_LOOKBACK_DAYS": 90,
    "COLLABORATIVE_MAX_SIMILAR_USERS": 50,
    "RESERVATION_RETRY_ATTEMPTS": 3,
    "RESERVATION_RETRY_DELAY": 0.2,
    "CATALOG_CACHE_TIMEOUT": 300,
    "CURRENCY": "usd",
    "PAYMENT_GATEWAY": "booking.gateways.stripe_gateway.StripePaymentGateway",
    "STRIPE_SECRET_KEY": "",
    "STRIPE_WEBHOOK_SECRET": "",
}


def booking_setting(name: str) -> Any:
    """Return a BOOKING setting, falling back to its default.

    Read on every call so override_settings works in tests.
    """
    overrides = getattr(settings, "BOOKING", {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
