"""Application service: Quote use case.

Prices a cart for live preview without persisting anything.  A promo
code is validated and, when accepted, reflected in the quote; a rejected
code is reported alongside the undiscounted price rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from nailstudio.application.dto import (
    NailSetSpec,
    PriceBreakdownDTO,
    PromoValidationDTO,
    breakdown_to_dto,
    promo_validation_to_dto,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.pricing import AppliedDiscount
from nailstudio.domain.service.pricing_calculator import PricingCalculator
from nailstudio.domain.service.promo_validator import CartSnapshot, PromoValidator


@dataclass(frozen=True)
class QuoteDTO:
    pricing: PriceBreakdownDTO
    promo: PromoValidationDTO | None


class QuoteOrderHandler:

    def __init__(
        self,
        pricing: PricingCalculator,
        promo_validator: PromoValidator,
    ) -> None:
        self._pricing = pricing
        self._promo_validator = promo_validator

    def handle(
        self,
        nail_set_specs: list[NailSetSpec],
        fulfillment: FulfillmentSelection,
        promo_code: str | None = None,
        user_id: str | None = None,
        reference: datetime | None = None,
    ) -> QuoteDTO:
        reference = reference or datetime.now(timezone.utc)
        nail_sets = [spec.to_domain() for spec in nail_set_specs]

        promo = None
        discount = None
        if promo_code and promo_code.strip():
            promo = self._promo_validator.validate(
                promo_code,
                CartSnapshot(nail_sets=nail_sets, fulfillment=fulfillment),
                user_id=user_id,
                now=reference,
            )
            if promo.valid:
                discount = AppliedDiscount(
                    amount=promo.discount,
                    label=f"Promo {promo.code} ({promo.description})",
                )

        breakdown = self._pricing.compute_breakdown(
            nail_sets, fulfillment, discount=discount, reference=reference
        )
        return QuoteDTO(
            pricing=breakdown_to_dto(breakdown),
            promo=promo_validation_to_dto(promo) if promo is not None else None,
        )
