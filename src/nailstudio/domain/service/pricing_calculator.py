"""Domain service: Pricing Calculator.

Maps (nail sets, fulfillment selection, pre-validated discount) to an
itemized PriceBreakdown.  Pure and deterministic: the only collaborator
is the read-only catalog, and the reference time is passed in.
"""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta, timezone
from enum import Enum

from nailstudio.domain.exceptions import (
    EmptyOrderError,
    UnknownShapeError,
    ValidationError,
)
from nailstudio.domain.model.catalog import DeliveryMethod, DeliveryTier
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.nail_set import NailSet
from nailstudio.domain.model.pricing import (
    DELIVERY_LINE_ID,
    PROMO_LINE_ID,
    AppliedDiscount,
    LineItem,
    PriceBreakdown,
    SetSummary,
)
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.repository.catalog_repository import CatalogRepository

logger = logging.getLogger(__name__)


class SetupFeeMode(Enum):
    """How the design setup fee scales with a set's quantity."""

    PER_UNIT = "per_unit"  # fee * quantity
    PER_SET = "per_set"  # fee once per set line


class PricingCalculator:

    def __init__(
        self,
        catalog: CatalogRepository,
        setup_fee: Money | None = None,
        setup_fee_mode: SetupFeeMode = SetupFeeMode.PER_UNIT,
    ) -> None:
        self._catalog = catalog
        self._setup_fee = setup_fee or Money.zero()
        self._setup_fee_mode = setup_fee_mode

    def compute_breakdown(
        self,
        nail_sets: list[NailSet],
        fulfillment: FulfillmentSelection,
        discount: AppliedDiscount | None = None,
        reference: datetime | None = None,
    ) -> PriceBreakdown:
        """Price an order.

        Steps:
        1. One line item per set: base price * quantity (+ setup fee).
        2. One ``delivery`` line for the resolved tier, omitted when free.
        3. subtotal = sum of the above.
        4. Optional ``promo`` line with a negative amount;
           total = max(0, subtotal - discount).
        """
        if not nail_sets:
            raise EmptyOrderError()

        line_items: list[LineItem] = []
        summaries: list[SetSummary] = []

        for index, nail_set in enumerate(nail_sets):
            summary = self._price_set(nail_set)
            qty = nail_set.quantity.value
            label_name = nail_set.name or f"{summary.shape_name} Set"
            line_items.append(
                LineItem(
                    id=f"set_{index}",
                    label=f"{label_name} ({qty} set{'s' if qty > 1 else ''})",
                    amount=summary.subtotal,
                )
            )
            summaries.append(summary)

        method, tier = self.resolve_tier(fulfillment)
        if not tier.fee.is_zero:
            line_items.append(
                LineItem(
                    id=DELIVERY_LINE_ID,
                    label=f"{method.label} - {tier.label} ({tier.description})"
                    if tier.description
                    else f"{method.label} - {tier.label}",
                    amount=tier.fee,
                )
            )

        subtotal = Money.zero()
        for item in line_items:
            subtotal = subtotal + item.amount

        discount_amount = Money.zero()
        if discount is not None and not discount.amount.is_zero:
            discount_amount = discount.amount
            line_items.append(
                LineItem(
                    id=PROMO_LINE_ID,
                    label=discount.label,
                    amount=discount_amount.negate(),
                )
            )

        total = (subtotal - discount_amount).clamp_min(Money.zero())

        return PriceBreakdown(
            line_items=tuple(line_items),
            subtotal=subtotal,
            discount=discount_amount,
            total=total,
            estimated_completion_days=tier.days,
            estimated_completion_date=_completion_date(tier.days, reference),
            method=method.name,
            tier=tier.name,
            set_summaries=tuple(summaries),
        )

    def resolve_tier(
        self, fulfillment: FulfillmentSelection
    ) -> tuple[DeliveryMethod, DeliveryTier]:
        """Resolve the selection against the catalog.

        An unknown tier falls back to the method's default tier (logged so
        misconfigured clients can be found); an unknown method is an error.
        """
        methods = self._catalog.get_delivery_methods()
        method = methods.get(fulfillment.method)
        if method is None:
            raise ValidationError(
                f"Unknown fulfillment method: '{fulfillment.method}'"
            )

        tier = method.tier(fulfillment.speed)
        if tier is None:
            if fulfillment.speed is not None:
                logger.warning(
                    "Speed tier %r not offered for %s; falling back to %r",
                    fulfillment.speed,
                    method.name,
                    method.default_tier,
                )
            tier = method.fallback_tier
        return method, tier

    # --- Internal helpers -----------------------------------------------------

    def _price_set(self, nail_set: NailSet) -> SetSummary:
        shape = self._catalog.get_shape_by_id(nail_set.shape_id)
        if shape is None:
            raise UnknownShapeError(nail_set.shape_id)

        qty = nail_set.quantity.value
        setup_fee = self._setup_fee if nail_set.has_custom_art else Money.zero()
        if self._setup_fee_mode is SetupFeeMode.PER_UNIT:
            unit_price = shape.base_price + setup_fee
            subtotal = unit_price * qty
        else:
            unit_price = shape.base_price
            subtotal = unit_price * qty + setup_fee

        return SetSummary(
            set_id=nail_set.id,
            shape_id=shape.id,
            shape_name=shape.name,
            name=nail_set.name,
            quantity=qty,
            unit_price=unit_price,
            setup_fee=setup_fee,
            subtotal=subtotal,
            requires_custom_art=nail_set.has_custom_art,
        )


def _completion_date(days: int, reference: datetime | None) -> datetime:
    reference = reference or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    reference = reference.astimezone(timezone.utc)
    midnight = datetime.combine(reference.date(), time.min, tzinfo=timezone.utc)
    return midnight + timedelta(days=days)
