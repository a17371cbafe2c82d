from django.urls import path

from booking.handlers import (
    CancelBookingView,
    CheckoutView,
    FeedView,
    InteractionView,
    PaymentWebhookView,
    ProductSessionsView,
    SplitCheckoutView,
)

urlpatterns = [
    path("feed", FeedView.as_view(), name="feed"),
    path(
        "products/<str:product_id>/sessions",
        ProductSessionsView.as_view(),
        name="product-sessions",
    ),
    path("interactions", InteractionView.as_view(), name="interaction-create"),
    path("checkout", CheckoutView.as_view(), name="checkout"),
    path("checkout/split", SplitCheckoutView.as_view(), name="checkout-split"),
    path(
        "bookings/<str:booking_id>/cancel",
        CancelBookingView.as_view(),
        name="booking-cancel",
    ),
    path("payments/webhook", PaymentWebhookView.as_view(), name="payment-webhook"),
]
