"""Promo codes, their usage records, and validation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from nailstudio.domain.exceptions import ValidationError
from nailstudio.domain.model.pricing import PriceBreakdown
from nailstudio.domain.model.value_objects import Money


class PromoType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"
    FREE_ORDER = "free_order"
    FIXED_PRICE_ITEM = "fixed_price_item"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass
class PromoCode:
    """A promotional code as configured by the studio.

    ``uses_count`` is only ever changed through the repository's
    conditional increment; never assign it and save.
    """

    id: str
    code: str
    type: PromoType
    value: Decimal = Decimal("0")
    description: str = ""
    active: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_order_amount: Money | None = None
    max_uses: int | None = None
    uses_count: int = 0
    per_user_limit: int | None = None
    combinable: bool = False

    def __post_init__(self) -> None:
        self.code = normalize_code(self.code)
        if not self.code:
            raise ValidationError("Promo code is required")
        if not isinstance(self.value, Decimal):
            self.value = Decimal(str(self.value))
        if self.value < 0:
            raise ValidationError("Promo value cannot be negative")
        if self.max_uses is not None and self.uses_count > self.max_uses:
            raise ValidationError(f"Promo {self.code} exceeds its max uses")

    # --- Rules ----------------------------------------------------------------

    def has_started(self, now: datetime) -> bool:
        return self.start_date is None or self.start_date <= now

    def has_ended(self, now: datetime) -> bool:
        return self.end_date is not None and self.end_date < now

    @property
    def uses_exhausted(self) -> bool:
        return self.max_uses is not None and self.uses_count >= self.max_uses

    def compute_discount(self, breakdown: PriceBreakdown) -> Money:
        """Discount for a promo-free breakdown; never exceeds its subtotal."""
        subtotal = breakdown.subtotal
        currency = subtotal.currency

        if self.type is PromoType.PERCENTAGE:
            discount = subtotal.percent(self.value)
        elif self.type in (PromoType.FIXED_AMOUNT, PromoType.FIXED_PRICE_ITEM):
            # TODO: fixed_price_item should price a specific shape once
            # promo codes can reference catalog items.
            discount = Money.of(self.value, currency)
        elif self.type is PromoType.FREE_SHIPPING:
            discount = breakdown.fulfillment_fee
        elif self.type is PromoType.FREE_ORDER:
            discount = subtotal
        else:  # pragma: no cover
            discount = Money.zero(currency)

        if discount > subtotal:
            discount = subtotal
        return discount.clamp_min(Money.zero(currency))

    def describe(self) -> str:
        if self.type is PromoType.PERCENTAGE:
            return f"{self.value.normalize():f}% off"
        if self.type in (PromoType.FIXED_AMOUNT, PromoType.FIXED_PRICE_ITEM):
            return f"{Money.of(self.value)} off"
        if self.type is PromoType.FREE_SHIPPING:
            return "Free shipping"
        return "Free order"


@dataclass(frozen=True)
class PromoUsageRecord:
    promo_code_id: str
    user_id: str | None
    order_id: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class PromoValidation:
    """Outcome of validating a code against a cart.

    Rejections are values, not exceptions: ``error`` holds the message to
    show the customer.
    """

    valid: bool
    code: str
    discount: Money = field(default_factory=Money.zero)
    description: str = ""
    error: str | None = None
    promo_id: str | None = None
    subtotal: Money | None = None
    new_total: Money | None = None

    @staticmethod
    def rejected(code: str, error: str) -> PromoValidation:
        return PromoValidation(valid=False, code=code, error=error)
