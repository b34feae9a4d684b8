"""Stripe implementation of the PaymentGateway port.

The client secret returned by ``create_payment_intent`` is handed to the
frontend for Stripe Elements; this core never sees card data.
"""

from __future__ import annotations

import logging

import stripe

from nailstudio.domain.exceptions import UpstreamError, ValidationError
from nailstudio.domain.gateway.payment_gateway import (
    PaymentEvent,
    PaymentGateway,
    PaymentIntent,
)

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):

    def __init__(self, api_key: str | None, webhook_secret: str | None = None) -> None:
        self._api_key = api_key
        self._webhook_secret = webhook_secret

    def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        if not self._api_key:
            raise UpstreamError("Payments are not configured (STRIPE_SECRET_KEY unset)")
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self._api_key,
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe rejected payment intent creation: %s", exc)
            raise UpstreamError(f"Payment provider error: {exc}") from exc

        return PaymentIntent(
            id=intent["id"],
            client_secret=intent["client_secret"],
            amount=intent["amount"],
            currency=intent["currency"],
        )

    def verify_webhook(self, payload: bytes | str, signature: str) -> PaymentEvent:
        if not self._webhook_secret:
            raise UpstreamError("Webhooks are not configured (STRIPE_WEBHOOK_SECRET unset)")
        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError as exc:
            raise ValidationError("Invalid webhook signature") from exc
        except ValueError as exc:
            raise ValidationError(f"Invalid webhook payload: {exc}") from exc

        obj = event["data"]["object"]
        intent_id = obj.get("id") if obj.get("object") == "payment_intent" else None
        return PaymentEvent(
            id=event["id"],
            type=event["type"],
            payment_intent_id=intent_id,
            metadata=dict(obj.get("metadata") or {}),
        )
