"""Domain service: Promotion Validator.

Two separate operations with different guarantees:

``validate`` is a read-only check used for live cart previews.  It walks
the rules in a fixed order and stops at the first failure, returning the
reason as a value.

``apply`` is called when an order is finalized.  It consumes one use of
the code with a conditional (compare-and-swap) increment so two checkouts
racing for the last use cannot both win.  Each order redeems a code at
most once, however many times ``apply`` runs for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from nailstudio.domain.exceptions import (
    EntityNotFoundError,
    MaxUsesReachedError,
    ValidationError,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.nail_set import NailSet
from nailstudio.domain.model.promo import (
    PromoCode,
    PromoUsageRecord,
    PromoValidation,
    normalize_code,
)
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.repository.promo_repository import PromoRepository
from nailstudio.domain.service.pricing_calculator import PricingCalculator

logger = logging.getLogger(__name__)

NOT_FOUND_OR_EXPIRED = "Promo code not found or expired"
MAX_APPLY_ATTEMPTS = 5


@dataclass(frozen=True)
class CartSnapshot:
    """The cart contents a code is validated against."""

    nail_sets: list[NailSet]
    fulfillment: FulfillmentSelection


class PromoValidator:

    def __init__(self, promo_repo: PromoRepository, pricing: PricingCalculator) -> None:
        self._promo_repo = promo_repo
        self._pricing = pricing

    def validate(
        self,
        code: str | None,
        cart: CartSnapshot,
        user_id: str | None = None,
        now: datetime | None = None,
        redeemed: bool = False,
    ) -> PromoValidation:
        """Check ``code`` against the cart; never raises for rule violations.

        Unknown, inactive and expired codes share one message so the
        response does not reveal which codes exist.  ``redeemed`` skips the
        usage limits for an order that already holds one of the code's uses.
        """
        if not code or not isinstance(code, str) or not code.strip():
            return PromoValidation.rejected("", "Promo code is required")

        normalized = normalize_code(code)
        now = now or datetime.now(timezone.utc)

        promo = self._promo_repo.get_by_code(normalized)
        if promo is None or not promo.active:
            return PromoValidation.rejected(normalized, NOT_FOUND_OR_EXPIRED)
        if not promo.has_started(now):
            return PromoValidation.rejected(normalized, "This promo code is not yet active")
        if promo.has_ended(now):
            return PromoValidation.rejected(normalized, NOT_FOUND_OR_EXPIRED)

        # Priced without any promo so the discount is never counted twice.
        try:
            breakdown = self._pricing.compute_breakdown(
                cart.nail_sets, cart.fulfillment, reference=now
            )
        except (ValidationError, EntityNotFoundError) as exc:
            return PromoValidation.rejected(normalized, str(exc))
        subtotal = breakdown.subtotal

        if promo.min_order_amount is not None and subtotal < promo.min_order_amount:
            return PromoValidation.rejected(
                normalized, f"Minimum order {promo.min_order_amount} required"
            )
        if not redeemed and promo.uses_exhausted:
            return PromoValidation.rejected(normalized, "This code has been used up")
        if not redeemed and user_id and promo.per_user_limit:
            used = self._promo_repo.count_usage(promo.id, user_id)
            if used >= promo.per_user_limit:
                return PromoValidation.rejected(
                    normalized,
                    "You have already used this promo code the maximum number of times",
                )

        discount = promo.compute_discount(breakdown)
        return PromoValidation(
            valid=True,
            code=promo.code,
            discount=discount,
            description=promo.describe(),
            promo_id=promo.id,
            subtotal=subtotal,
            new_total=(subtotal - discount).clamp_min(Money.zero(subtotal.currency)),
        )

    def apply(self, promo_id: str, order_id: int, user_id: str | None = None) -> PromoCode:
        """Consume one use of a validated code for ``order_id``.

        Idempotent per order: an order that already redeemed the code gets
        the promo back without a second use.  The increment is conditional
        on the uses_count we read.  Losing that race re-reads the row: if
        uses remain we try again, otherwise the caller gets
        MaxUsesReachedError and must re-validate.
        """
        for _ in range(MAX_APPLY_ATTEMPTS):
            redeemed = self._promo_repo.find_usage(promo_id, order_id)
            promo = self._promo_repo.get_by_id(promo_id)
            if promo is None:
                raise EntityNotFoundError(f"Promo code '{promo_id}' not found")
            if redeemed is not None:
                logger.info("Promo %s already redeemed for order #%s", promo.code, order_id)
                return promo
            if promo.uses_exhausted:
                logger.info("Promo %s has no uses left (order #%s)", promo.code, order_id)
                raise MaxUsesReachedError(promo.code)

            usage = PromoUsageRecord(
                promo_code_id=promo.id, user_id=user_id, order_id=order_id
            )
            if self._promo_repo.increment_uses_if(usage, promo.uses_count):
                promo.uses_count += 1
                return promo

            logger.info("Lost uses_count race on promo %s; re-reading", promo.code)

        raise MaxUsesReachedError(promo.code)
