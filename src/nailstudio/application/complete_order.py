"""Application service: Complete Order (payment confirmed) use case.

Reached two ways: directly from the checkout flow, and from the payment
provider's webhook.  Both go through ``CompleteOrderHandler`` so a
payment confirmed twice (or by both paths at once) is processed once.

Idempotency is the correctness mechanism: an order that is already paid
is returned unchanged.  If two completions race, the versioned save lets
exactly one write; the loser re-reads and returns the paid order.  Promo
redemption is idempotent per order, so the loser never consumes a second
use, and a missing capacity slot is only reserved by the winner.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from nailstudio.application.dto import OrderDTO, order_to_dto
from nailstudio.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    PaymentIntentMismatchError,
)
from nailstudio.domain.gateway.payment_gateway import PAYMENT_SUCCEEDED, PaymentGateway
from nailstudio.domain.model.capacity import week_start_for
from nailstudio.domain.repository.order_repository import OrderRepository
from nailstudio.domain.service.capacity_admission import CapacityAdmission
from nailstudio.domain.service.promo_validator import PromoValidator

logger = logging.getLogger(__name__)


class CompleteOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        promo_validator: PromoValidator,
        capacity: CapacityAdmission,
    ) -> None:
        self._order_repo = order_repo
        self._promo_validator = promo_validator
        self._capacity = capacity

    def handle(
        self,
        order_id: int,
        payment_intent_id: str | None = None,
        now: datetime | None = None,
    ) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        now = now or datetime.now(timezone.utc)
        try:
            changed = order.mark_paid(payment_intent_id, now)
        except PaymentIntentMismatchError:
            logger.warning(
                "Payment intent %s does not match order #%s", payment_intent_id, order_id
            )
            raise

        if not changed:
            logger.info("Order #%s already paid; nothing to do", order_id)
            return order_to_dto(order)

        # Orders that never went through checkout (zero total) redeem here.
        if order.promo_code_id is not None and not order.promo_applied:
            self._promo_validator.apply(order.promo_code_id, order.id, order.user_id)
            order.mark_promo_applied()

        needs_slot = order.capacity_week is None
        if needs_slot:
            order.record_capacity_reservation(week_start_for(now))

        try:
            self._order_repo.save(order)
        except ConcurrentModificationError:
            current = self._order_repo.get_by_id(order_id)
            if current is not None and current.is_paid:
                logger.info("Order #%s was completed concurrently", order_id)
                return order_to_dto(current)
            raise

        if needs_slot:
            # A paid order is never refused; a full week is only logged.
            status = self._capacity.check_and_reserve(now)
            if not status.available:
                logger.warning(
                    "Order #%s paid into full week %s", order_id, status.week_start
                )

        logger.info(
            "Order #%s paid; %d production job(s) created",
            order_id,
            len(order.production_jobs),
        )
        return order_to_dto(order)


class HandlePaymentWebhookHandler:
    """Verifies a provider webhook and completes the matching order."""

    def __init__(
        self,
        order_repo: OrderRepository,
        gateway: PaymentGateway,
        complete_handler: CompleteOrderHandler,
    ) -> None:
        self._order_repo = order_repo
        self._gateway = gateway
        self._complete = complete_handler

    def handle(self, payload: bytes | str, signature: str) -> OrderDTO | None:
        """Return the completed order, or None for events we do not handle."""
        event = self._gateway.verify_webhook(payload, signature)
        if event.type != PAYMENT_SUCCEEDED or not event.payment_intent_id:
            logger.debug("Ignoring webhook event %s (%s)", event.id, event.type)
            return None

        order = self._order_repo.get_by_payment_intent(event.payment_intent_id)
        if order is None:
            raise EntityNotFoundError(
                f"No order for payment intent {event.payment_intent_id}"
            )

        logger.info("Webhook %s confirms payment for order #%s", event.id, order.id)
        return self._complete.handle(order.id, payment_intent_id=event.payment_intent_id)  # type: ignore[arg-type]
