"""Tests for the Stripe adapter with the stripe client monkeypatched."""

import pytest
import stripe

from nailstudio.domain.exceptions import UpstreamError, ValidationError
from nailstudio.infrastructure.payments.stripe_gateway import StripePaymentGateway


class TestCreatePaymentIntent:

    def test_creates_intent(self, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return {
                "id": "pi_123",
                "client_secret": "pi_123_secret_abc",
                "amount": kwargs["amount"],
                "currency": kwargs["currency"],
            }

        monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
        gateway = StripePaymentGateway("sk_test_123")

        intent = gateway.create_payment_intent(4500, "usd", {"order_id": "7"})

        assert intent.id == "pi_123"
        assert intent.client_secret == "pi_123_secret_abc"
        assert intent.amount == 4500
        assert calls[0]["metadata"] == {"order_id": "7"}
        assert calls[0]["api_key"] == "sk_test_123"

    def test_provider_error_is_upstream(self, monkeypatch):
        def fail(**kwargs):
            raise stripe.APIConnectionError("network down")

        monkeypatch.setattr(stripe.PaymentIntent, "create", fail)
        with pytest.raises(UpstreamError, match="network down"):
            StripePaymentGateway("sk_test_123").create_payment_intent(100, "usd", {})

    def test_missing_key(self):
        with pytest.raises(UpstreamError, match="not configured"):
            StripePaymentGateway(None).create_payment_intent(100, "usd", {})


class TestVerifyWebhook:

    def test_parses_payment_intent_event(self, monkeypatch):
        event = {
            "id": "evt_1",
            "type": "payment_intent.succeeded",
            "data": {"object": {"object": "payment_intent", "id": "pi_123",
                                "metadata": {"order_id": "7"}}},
        }
        monkeypatch.setattr(stripe.Webhook, "construct_event", lambda p, s, k: event)

        parsed = StripePaymentGateway("sk", "whsec_1").verify_webhook(b"{}", "t=1,v1=abc")

        assert parsed.type == "payment_intent.succeeded"
        assert parsed.payment_intent_id == "pi_123"
        assert parsed.metadata == {"order_id": "7"}

    def test_non_intent_objects_carry_no_intent(self, monkeypatch):
        event = {"id": "evt_2", "type": "charge.refunded",
                 "data": {"object": {"object": "charge", "id": "ch_1"}}}
        monkeypatch.setattr(stripe.Webhook, "construct_event", lambda p, s, k: event)
        assert StripePaymentGateway("sk", "whsec_1").verify_webhook(b"{}", "sig").payment_intent_id is None

    def test_bad_signature(self, monkeypatch):
        def reject(payload, sig, secret):
            raise stripe.SignatureVerificationError("No signatures found", sig)

        monkeypatch.setattr(stripe.Webhook, "construct_event", reject)
        with pytest.raises(ValidationError, match="Invalid webhook signature"):
            StripePaymentGateway("sk", "whsec_1").verify_webhook(b"{}", "forged")
