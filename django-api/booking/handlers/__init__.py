from booking.handlers.views import (
    CancelBookingView,
    CheckoutView,
    FeedView,
    InteractionView,
    PaymentWebhookView,
    ProductSessionsView,
    SplitCheckoutView,
)

__all__ = [
    "CancelBookingView",
    "CheckoutView",
    "FeedView",
    "InteractionView",
    "PaymentWebhookView",
    "ProductSessionsView",
    "SplitCheckoutView",
]
