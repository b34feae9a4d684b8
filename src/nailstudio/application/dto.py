"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Money is rendered as
display strings ("$25.00"), dates as ISO-8601.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nailstudio.domain.model.capacity import CapacityStatus
from nailstudio.domain.model.nail_set import NailSet, SizeSpec
from nailstudio.domain.model.order import Order
from nailstudio.domain.model.pricing import PriceBreakdown
from nailstudio.domain.model.promo import PromoValidation


@dataclass(frozen=True)
class NailSetSpec:
    """Input: one nail set as the customer described it."""

    shape_id: str
    quantity: int = 1
    name: str | None = None
    description: str = ""
    set_notes: str = ""
    design_uploads: tuple[str, ...] = ()
    sizes: dict | None = None
    requires_follow_up: bool = False

    def to_domain(self) -> NailSet:
        return NailSet.create(
            shape_id=self.shape_id,
            quantity=self.quantity,
            name=self.name,
            description=self.description,
            set_notes=self.set_notes,
            design_uploads=self.design_uploads,
            sizes=SizeSpec.from_raw(self.sizes),
            requires_follow_up=self.requires_follow_up,
        )


@dataclass(frozen=True)
class LineItemDTO:
    id: str
    label: str
    amount: str  # formatted, e.g. "$50.00" or "-$5.00"


@dataclass(frozen=True)
class PriceBreakdownDTO:
    line_items: list[LineItemDTO]
    subtotal: str
    discount: str
    total: str
    estimated_completion_days: int | None
    estimated_completion_date: str | None
    method: str
    tier: str


@dataclass(frozen=True)
class ProductionJobDTO:
    id: str
    nail_set_id: str
    shape_id: str
    quantity: int
    name: str | None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    user_id: str
    status: str
    nail_set_count: int
    fulfillment_method: str
    pricing: PriceBreakdownDTO
    total: str
    total_cents: int
    promo_code: str | None
    payment_intent_id: str | None
    paid_at: str | None
    estimated_fulfillment_date: str | None
    production_jobs: list[ProductionJobDTO] = field(default_factory=list)
    created_at: str = ""


@dataclass(frozen=True)
class PaymentDTO:
    order_id: int
    payment_intent_id: str
    client_secret: str
    amount_cents: int
    currency: str


@dataclass(frozen=True)
class PromoValidationDTO:
    valid: bool
    code: str
    discount: str
    description: str
    error: str | None
    subtotal: str | None
    new_total: str | None


@dataclass(frozen=True)
class CapacityDTO:
    available: bool
    remaining: int | None
    weekly_capacity: int | None
    orders_count: int | None
    is_almost_full: bool
    is_full: bool
    week_start: str
    next_week_start: str
    degraded: bool


# --- Mapping -----------------------------------------------------------------


def breakdown_to_dto(breakdown: PriceBreakdown) -> PriceBreakdownDTO:
    return PriceBreakdownDTO(
        line_items=[
            LineItemDTO(id=item.id, label=item.label, amount=str(item.amount))
            for item in breakdown.line_items
        ],
        subtotal=str(breakdown.subtotal),
        discount=str(breakdown.discount),
        total=str(breakdown.total),
        estimated_completion_days=breakdown.estimated_completion_days,
        estimated_completion_date=(
            breakdown.estimated_completion_date.isoformat()
            if breakdown.estimated_completion_date
            else None
        ),
        method=breakdown.method,
        tier=breakdown.tier,
    )


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        user_id=order.user_id,
        status=order.status.value,
        nail_set_count=len(order.nail_sets),
        fulfillment_method=order.fulfillment.method,
        pricing=breakdown_to_dto(order.pricing),
        total=str(order.total),
        total_cents=order.total.cents,
        promo_code=order.promo_code,
        payment_intent_id=order.payment_intent_id,
        paid_at=order.paid_at.isoformat() if order.paid_at else None,
        estimated_fulfillment_date=(
            order.estimated_fulfillment_date.isoformat()
            if order.estimated_fulfillment_date
            else None
        ),
        production_jobs=[
            ProductionJobDTO(
                id=job.id,
                nail_set_id=job.nail_set_id,
                shape_id=job.shape_id,
                quantity=job.quantity,
                name=job.name,
            )
            for job in order.production_jobs
        ],
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )


def promo_validation_to_dto(result: PromoValidation) -> PromoValidationDTO:
    return PromoValidationDTO(
        valid=result.valid,
        code=result.code,
        discount=str(result.discount),
        description=result.description,
        error=result.error,
        subtotal=str(result.subtotal) if result.subtotal is not None else None,
        new_total=str(result.new_total) if result.new_total is not None else None,
    )


def capacity_to_dto(status: CapacityStatus) -> CapacityDTO:
    return CapacityDTO(
        available=status.available,
        remaining=status.remaining,
        weekly_capacity=status.weekly_capacity,
        orders_count=status.orders_count,
        is_almost_full=status.is_almost_full,
        is_full=status.is_full,
        week_start=status.week_start.isoformat(),
        next_week_start=status.next_week_start.isoformat(),
        degraded=status.degraded,
    )
