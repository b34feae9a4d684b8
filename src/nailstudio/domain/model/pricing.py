"""Price breakdown produced by the pricing calculator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from nailstudio.domain.exceptions import ValidationError
from nailstudio.domain.model.value_objects import Money

DELIVERY_LINE_ID = "delivery"
PROMO_LINE_ID = "promo"


@dataclass(frozen=True)
class LineItem:
    id: str
    label: str
    amount: Money

    @property
    def is_discount(self) -> bool:
        return self.amount.cents < 0


@dataclass(frozen=True)
class SetSummary:
    """Per-set pricing detail kept alongside the line items."""

    set_id: str
    shape_id: str
    shape_name: str
    name: str | None
    quantity: int
    unit_price: Money
    setup_fee: Money
    subtotal: Money
    requires_custom_art: bool


@dataclass(frozen=True)
class AppliedDiscount:
    """A pre-validated discount handed to the calculator.

    The calculator never sees promo codes, only the amount a validator
    already approved.
    """

    amount: Money
    label: str = "Promo discount"

    def __post_init__(self) -> None:
        if self.amount.cents < 0:
            raise ValidationError("Discount amount cannot be negative")


@dataclass(frozen=True)
class PriceBreakdown:
    """Itemized price of an order.

    Invariants:
    - ``subtotal`` is the sum of every non-discount line item
    - ``total == max(0, subtotal - discount)``
    - discount line items carry negative amounts and come last
    """

    line_items: tuple[LineItem, ...]
    subtotal: Money
    discount: Money
    total: Money
    estimated_completion_days: int | None
    estimated_completion_date: datetime | None
    method: str
    tier: str
    set_summaries: tuple[SetSummary, ...] = ()

    def __post_init__(self) -> None:
        charged = sum(i.amount.cents for i in self.line_items if not i.is_discount)
        if charged != self.subtotal.cents:
            raise ValidationError("Subtotal does not match line items")
        expected_total = max(0, self.subtotal.cents - self.discount.cents)
        if self.total.cents != expected_total:
            raise ValidationError("Total does not match subtotal minus discount")

    def line(self, item_id: str) -> LineItem | None:
        for item in self.line_items:
            if item.id == item_id:
                return item
        return None

    @property
    def fulfillment_fee(self) -> Money:
        item = self.line(DELIVERY_LINE_ID)
        return item.amount if item is not None else Money.zero(self.subtotal.currency)

    @property
    def currency(self) -> str:
        return self.subtotal.currency
