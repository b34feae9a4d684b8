"""Application service: Initiate Payment use case.

Finalizes an order for checkout: takes the capacity slot if the order
never had one, redeems the promo code, then creates a payment intent for
the total in minor units and moves the order to ``pending_payment``.

Not idempotent at the provider: a second call for the same order returns
the stored intent instead of creating another one.  Two calls racing on
the same order are decided by the versioned save, which always happens
before the counter it guards is touched: the week is claimed on the order
before the slot is reserved, and the order is saved again before the
provider is called.  Promo redemption is idempotent per order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from nailstudio.application.dto import PaymentDTO
from nailstudio.domain.exceptions import ConflictError, EntityNotFoundError, StateError
from nailstudio.domain.gateway.payment_gateway import PaymentGateway
from nailstudio.domain.model.capacity import week_start_for
from nailstudio.domain.model.order import EDITABLE_STATUSES, Order, OrderStatus
from nailstudio.domain.repository.order_repository import OrderRepository
from nailstudio.domain.service.capacity_admission import CapacityAdmission
from nailstudio.domain.service.promo_validator import PromoValidator

logger = logging.getLogger(__name__)


class InitiatePaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        promo_validator: PromoValidator,
        capacity: CapacityAdmission,
        gateway: PaymentGateway,
    ) -> None:
        self._order_repo = order_repo
        self._promo_validator = promo_validator
        self._capacity = capacity
        self._gateway = gateway

    def handle(self, order_id: int, reference: datetime | None = None) -> PaymentDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        if order.payment_intent_id is not None:
            return self._reuse_intent(order)

        if order.status not in EDITABLE_STATUSES:
            raise StateError(
                f"Cannot start payment for order in {order.status.value} status"
            )
        if order.total.is_zero:
            raise StateError(
                f"Order #{order.id} has nothing to pay; complete it directly"
            )

        if order.capacity_week is None:
            self._reserve_slot(order, reference or datetime.now(timezone.utc))
        if order.promo_code_id is not None and not order.promo_applied:
            self._promo_validator.apply(order.promo_code_id, order.id, order.user_id)
            order.mark_promo_applied()
        # Saved before the provider call so a racing checkout stops here.
        self._order_repo.save(order)

        amount = order.total.cents
        currency = order.total.currency.lower()
        intent = self._gateway.create_payment_intent(
            amount,
            currency,
            metadata={"order_id": str(order.id), "user_id": order.user_id},
        )
        order.attach_payment_intent(intent.id, intent.client_secret, amount)
        self._order_repo.save(order)

        logger.info("Created payment intent %s for order #%s", intent.id, order.id)
        return PaymentDTO(
            order_id=order.id,  # type: ignore[arg-type]
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount_cents=amount,
            currency=currency,
        )

    def _reserve_slot(self, order: Order, reference: datetime) -> None:
        order.record_capacity_reservation(week_start_for(reference))
        self._order_repo.save(order)
        try:
            self._capacity.reserve(reference)
        except ConflictError:
            order.withdraw_capacity_reservation()
            self._order_repo.save(order)
            raise

    def _reuse_intent(self, order: Order) -> PaymentDTO:
        if order.status != OrderStatus.PENDING_PAYMENT:
            raise StateError(
                f"Order #{order.id} is {order.status.value}; payment already handled"
            )
        if order.payment_amount_cents != order.total.cents:
            raise StateError(
                f"Order #{order.id} total changed since its payment intent was created"
            )
        return PaymentDTO(
            order_id=order.id,  # type: ignore[arg-type]
            payment_intent_id=order.payment_intent_id,  # type: ignore[arg-type]
            client_secret=order.payment_client_secret or "",
            amount_cents=order.payment_amount_cents,
            currency=order.total.currency.lower(),
        )
