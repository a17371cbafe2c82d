"""Stripe implementation of the payment gateway."""

import json
import logging

import stripe

from booking.conf import booking_setting
from booking.domain.errors import PaymentProcessorError, ValidationError
from booking.gateways.interfaces import ChargeIntent, PaymentConfirmation, PaymentGateway

logger = logging.getLogger(__name__)

SUCCEEDED_EVENT = "payment_intent.succeeded"
FAILED_EVENT = "payment_intent.payment_failed"


class StripePaymentGateway(PaymentGateway):
    """Payment intents, refunds and webhooks through the Stripe API."""

    def __init__(
        self,
        secret_key: str | None = None,
        webhook_secret: str | None = None,
        currency: str | None = None,
    ) -> None:
        self._secret_key = secret_key or booking_setting("STRIPE_SECRET_KEY")
        self._webhook_secret = webhook_secret or booking_setting("STRIPE_WEBHOOK_SECRET")
        self._currency = currency or booking_setting("CURRENCY")

    def create_customer(self, user_id: str, email: str | None) -> str:
        try:
            customer = stripe.Customer.create(
                api_key=self._secret_key,
                email=email,
                metadata={"user_id": user_id},
            )
        except stripe.StripeError as exc:
            logger.error("Stripe customer creation failed for user %s: %s", user_id, exc)
            raise PaymentProcessorError("Could not register payment customer") from exc
        return customer.id

    def create_charge_intent(
        self, amount: int, customer_ref: str, metadata: dict[str, str]
    ) -> ChargeIntent:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self._secret_key,
                amount=amount,
                currency=self._currency,
                customer=customer_ref,
                metadata=metadata,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe payment intent failed: %s", exc)
            raise PaymentProcessorError(
                "Payment could not be started", booking_id=metadata.get("booking_id")
            ) from exc
        return ChargeIntent(reference=intent.id, client_secret=intent.client_secret)

    def refund(self, reference: str, amount: int, idempotency_key: str | None = None) -> None:
        try:
            stripe.Refund.create(
                api_key=self._secret_key,
                payment_intent=reference,
                amount=amount,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as exc:
            logger.error("Stripe refund failed for %s: %s", reference, exc)
            raise PaymentProcessorError("Refund could not be issued") from exc

    def parse_confirmation(self, payload: bytes, signature: str) -> PaymentConfirmation | None:
        if not signature:
            raise ValidationError("Missing stripe-signature header", field="signature")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise ValidationError("Invalid signature", field="signature") from exc

        event = json.loads(payload)
        event_type = event.get("type")
        if event_type not in (SUCCEEDED_EVENT, FAILED_EVENT):
            logger.info("Ignoring webhook event type %s", event_type)
            return None

        intent = event["data"]["object"]
        return PaymentConfirmation(
            reference=intent["id"],
            succeeded=event_type == SUCCEEDED_EVENT,
            metadata={key: str(value) for key, value in (intent.get("metadata") or {}).items()},
        )
