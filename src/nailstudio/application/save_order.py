"""Application service: Create / Update Order use case.

Orchestrates capacity admission, promo validation and pricing before
handing the result to the Order aggregate.  Updates are full
replacements: every nail set is discarded and rebuilt, then re-priced.
"""

from __future__ import annotations

from datetime import datetime, timezone

from nailstudio.application.dto import NailSetSpec, OrderDTO, order_to_dto
from nailstudio.domain.exceptions import (
    CapacityFullError,
    EntityNotFoundError,
    PromoRejectedError,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.order import Order
from nailstudio.domain.model.pricing import AppliedDiscount
from nailstudio.domain.model.promo import normalize_code
from nailstudio.domain.repository.order_repository import OrderRepository
from nailstudio.domain.service.capacity_admission import CapacityAdmission
from nailstudio.domain.service.pricing_calculator import PricingCalculator
from nailstudio.domain.service.promo_validator import CartSnapshot, PromoValidator


class SaveOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        pricing: PricingCalculator,
        promo_validator: PromoValidator,
        capacity: CapacityAdmission,
    ) -> None:
        self._order_repo = order_repo
        self._pricing = pricing
        self._promo_validator = promo_validator
        self._capacity = capacity

    def handle(
        self,
        user_id: str,
        nail_set_specs: list[NailSetSpec],
        fulfillment: FulfillmentSelection,
        promo_code: str | None = None,
        order_id: int | None = None,
        order_notes: str = "",
        reference: datetime | None = None,
    ) -> OrderDTO:
        """Create a draft order, or replace the contents of an existing one.

        Steps:
        1. Build NailSets from the specs.
        2. New orders only: refuse when this week is already full.
        3. Price the cart; a broken cart fails here, before any promo check.
        4. Validate the promo code (if any) and re-price with its discount.
        5. Create or replace on the aggregate, persist, return a DTO.
        """
        reference = reference or datetime.now(timezone.utc)
        nail_sets = [spec.to_domain() for spec in nail_set_specs]

        existing: Order | None = None
        if order_id is None:
            status = self._capacity.check(reference)
            if not status.available:
                raise CapacityFullError(status.week_start, status.next_week_start)
        else:
            existing = self._order_repo.get_by_id(order_id)
            if existing is None or existing.user_id != user_id:
                raise EntityNotFoundError(f"Order #{order_id} not found")

        pricing = self._pricing.compute_breakdown(
            nail_sets, fulfillment, reference=reference
        )

        promo_id = None
        applied_code = None
        if promo_code and promo_code.strip():
            result = self._promo_validator.validate(
                promo_code,
                CartSnapshot(nail_sets=nail_sets, fulfillment=fulfillment),
                user_id=user_id,
                now=reference,
                redeemed=existing is not None
                and existing.promo_applied
                and normalize_code(promo_code) == existing.promo_code,
            )
            if not result.valid:
                raise PromoRejectedError(result.code, result.error or "Invalid promo code")
            discount = AppliedDiscount(
                amount=result.discount,
                label=f"Promo {result.code} ({result.description})",
            )
            promo_id = result.promo_id
            applied_code = result.code
            pricing = self._pricing.compute_breakdown(
                nail_sets, fulfillment, discount=discount, reference=reference
            )

        if existing is None:
            order = Order.create(
                user_id=user_id,
                nail_sets=nail_sets,
                fulfillment=fulfillment,
                pricing=pricing,
                order_notes=order_notes,
                promo_code=applied_code,
                promo_code_id=promo_id,
            )
        else:
            order = existing
            order.replace_contents(
                nail_sets=nail_sets,
                fulfillment=fulfillment,
                pricing=pricing,
                order_notes=order_notes,
                promo_code=applied_code,
                promo_code_id=promo_id,
            )

        self._order_repo.save(order)
        return order_to_dto(order)
