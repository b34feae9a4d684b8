"""Abstract payment processor.

Only the two calls this core needs: creating a payment intent for an
order total, and verifying a webhook delivery.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    amount: int
    currency: str


@dataclass(frozen=True)
class PaymentEvent:
    """A verified webhook event."""

    id: str
    type: str
    payment_intent_id: str | None
    metadata: dict[str, str] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    def create_payment_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        """Create an intent; raises UpstreamError when the provider fails."""

    @abstractmethod
    def verify_webhook(self, payload: bytes | str, signature: str) -> PaymentEvent:
        """Verify and parse a webhook; raises ValidationError on bad signature."""
