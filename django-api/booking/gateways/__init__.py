from django.utils.module_loading import import_string

from booking.conf import booking_setting
from booking.gateways.interfaces import ChargeIntent, PaymentConfirmation, PaymentGateway


def get_payment_gateway() -> PaymentGateway:
    """Instantiate the gateway class named by BOOKING["PAYMENT_GATEWAY"]."""
    return import_string(booking_setting("PAYMENT_GATEWAY"))()


__all__ = ["ChargeIntent", "PaymentConfirmation", "PaymentGateway", "get_payment_gateway"]
