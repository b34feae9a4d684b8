"""Application service: Validate Promo Code use case (query)."""

from __future__ import annotations

from datetime import datetime

from nailstudio.application.dto import (
    NailSetSpec,
    PromoValidationDTO,
    promo_validation_to_dto,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.service.promo_validator import CartSnapshot, PromoValidator


class ValidatePromoHandler:

    def __init__(self, promo_validator: PromoValidator) -> None:
        self._promo_validator = promo_validator

    def handle(
        self,
        code: str,
        nail_set_specs: list[NailSetSpec],
        fulfillment: FulfillmentSelection,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> PromoValidationDTO:
        cart = CartSnapshot(
            nail_sets=[spec.to_domain() for spec in nail_set_specs],
            fulfillment=fulfillment,
        )
        result = self._promo_validator.validate(code, cart, user_id=user_id, now=now)
        return promo_validation_to_dto(result)
