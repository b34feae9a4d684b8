"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its nail sets, its price
breakdown and the production jobs derived from it.  All status
transitions are enforced here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum

from nailstudio.domain.exceptions import (
    EmptyOrderError,
    PaymentIntentMismatchError,
    StateError,
    ValidationError,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.nail_set import NailSet
from nailstudio.domain.model.pricing import PriceBreakdown
from nailstudio.domain.model.value_objects import Money


class OrderStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


EDITABLE_STATUSES = (OrderStatus.DRAFT, OrderStatus.SUBMITTED)
PRE_PAYMENT_STATUSES = (
    OrderStatus.DRAFT,
    OrderStatus.SUBMITTED,
    OrderStatus.PENDING_PAYMENT,
)
PAID_STATUSES = (OrderStatus.PAID, OrderStatus.COMPLETED)

# Lead time used when a stored breakdown carries no completion date.
DEFAULT_COMPLETION_DAYS = 7


@dataclass(frozen=True)
class ProductionJob:
    """Work item for the studio: one per nail set of a paid order."""

    id: str
    order_id: int
    nail_set_id: str
    shape_id: str
    quantity: int
    name: str | None = None
    description: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Order:
    """Aggregate root for custom nail orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.

    ``version`` is owned by the repository and used for optimistic
    concurrency on save.
    """

    id: int | None
    user_id: str
    nail_sets: list[NailSet]
    fulfillment: FulfillmentSelection
    pricing: PriceBreakdown
    status: OrderStatus = OrderStatus.DRAFT
    order_notes: str = ""
    promo_code: str | None = None
    promo_code_id: str | None = None
    promo_applied: bool = False
    payment_intent_id: str | None = None
    payment_client_secret: str | None = None
    payment_amount_cents: int | None = None
    capacity_week: date | None = None
    paid_at: datetime | None = None
    estimated_fulfillment_date: datetime | None = None
    production_jobs: list[ProductionJob] = field(default_factory=list)
    version: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        user_id: str,
        nail_sets: list[NailSet],
        fulfillment: FulfillmentSelection,
        pricing: PriceBreakdown,
        order_notes: str = "",
        promo_code: str | None = None,
        promo_code_id: str | None = None,
    ) -> Order:
        """Create a new draft order, enforcing all invariants."""
        if not user_id or not str(user_id).strip():
            raise ValidationError("userId is required to create an order")
        _validate_nail_sets(nail_sets)

        return Order(
            id=None,
            user_id=str(user_id).strip(),
            nail_sets=list(nail_sets),
            fulfillment=fulfillment,
            pricing=pricing,
            order_notes=(order_notes or "").strip(),
            promo_code=promo_code,
            promo_code_id=promo_code_id,
        )

    # --- Editing --------------------------------------------------------------

    def replace_contents(
        self,
        nail_sets: list[NailSet],
        fulfillment: FulfillmentSelection,
        pricing: PriceBreakdown,
        order_notes: str = "",
        promo_code: str | None = None,
        promo_code_id: str | None = None,
    ) -> None:
        """Replace every nail set and re-price (draft or submitted only).

        This is a full replacement, not a patch: the previous sets are
        discarded and the new ones get fresh ids.
        """
        if self.status not in EDITABLE_STATUSES:
            raise StateError(
                f"Cannot edit order #{self.id} — current status is {self.status.value}"
            )
        if self.promo_applied and promo_code_id != self.promo_code_id:
            raise StateError(
                f"Promo code {self.promo_code} is already redeemed for order #{self.id}"
            )
        _validate_nail_sets(nail_sets)

        self.nail_sets = list(nail_sets)
        self.fulfillment = fulfillment
        self.pricing = pricing
        self.order_notes = (order_notes or "").strip()
        self.promo_code = promo_code
        self.promo_code_id = promo_code_id
        self.touch()

    # --- State transitions ----------------------------------------------------

    def submit(self) -> None:
        """Transition DRAFT -> SUBMITTED."""
        if self.status != OrderStatus.DRAFT:
            raise StateError(
                f"Cannot submit order — current status is {self.status.value}, "
                f"expected draft"
            )
        self.status = OrderStatus.SUBMITTED
        self.touch()

    def revert_to_draft(self) -> None:
        """Transition SUBMITTED -> DRAFT so the customer can keep editing."""
        if self.status != OrderStatus.SUBMITTED:
            raise StateError(
                f"Cannot reopen order — current status is {self.status.value}, "
                f"expected submitted"
            )
        self.status = OrderStatus.DRAFT
        self.touch()

    def record_capacity_reservation(self, week_start: date) -> None:
        self.capacity_week = week_start

    def withdraw_capacity_reservation(self) -> None:
        """Drop a claimed week whose slot could not be taken."""
        self.capacity_week = None

    def mark_promo_applied(self) -> None:
        if self.promo_code_id is None:
            raise StateError(f"Order #{self.id} has no promo code to apply")
        self.promo_applied = True

    def attach_payment_intent(
        self, intent_id: str, client_secret: str, amount_cents: int
    ) -> None:
        """Transition DRAFT|SUBMITTED -> PENDING_PAYMENT.

        The intent id is immutable once set.
        """
        if self.payment_intent_id is not None:
            raise StateError(f"Order #{self.id} already has a payment intent")
        if self.status not in EDITABLE_STATUSES:
            raise StateError(
                f"Cannot start payment for order in {self.status.value} status"
            )
        if amount_cents != self.total.cents:
            raise ValidationError(
                f"Payment amount {amount_cents} does not match order total "
                f"{self.total.cents}"
            )
        self.payment_intent_id = intent_id
        self.payment_client_secret = client_secret
        self.payment_amount_cents = amount_cents
        self.status = OrderStatus.PENDING_PAYMENT
        self.touch()

    def mark_paid(
        self,
        payment_intent_id: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Transition PENDING_PAYMENT -> PAID; returns False when already paid.

        A submitted order with nothing to pay skips the payment step and
        may be completed directly.  Idempotent: a second call (direct
        completion racing the webhook) changes nothing.  Production jobs
        are derived exactly once, here.
        """
        if self.status in PAID_STATUSES:
            return False
        if self.status == OrderStatus.CANCELLED:
            raise StateError(f"Cannot complete cancelled order #{self.id}")
        free_submission = self.status == OrderStatus.SUBMITTED and self.total.is_zero
        if self.status != OrderStatus.PENDING_PAYMENT and not free_submission:
            raise StateError(
                f"Cannot complete order #{self.id} in {self.status.value} status, "
                f"expected pending_payment"
            )

        if payment_intent_id is not None:
            if self.payment_intent_id is None:
                self.payment_intent_id = payment_intent_id
            elif payment_intent_id != self.payment_intent_id:
                raise PaymentIntentMismatchError(
                    self.id, self.payment_intent_id, payment_intent_id
                )

        now = now or _utcnow()
        self.status = OrderStatus.PAID
        self.paid_at = now
        self.estimated_fulfillment_date = self._estimate_fulfillment(now)
        if not self.production_jobs:
            self.production_jobs = [
                ProductionJob(
                    id=f"{self.id}_{nail_set.id}",
                    order_id=self.id,  # type: ignore[arg-type]
                    nail_set_id=nail_set.id,
                    shape_id=nail_set.shape_id,
                    quantity=nail_set.quantity.value,
                    name=nail_set.name,
                    description=nail_set.description,
                )
                for nail_set in self.nail_sets
            ]
        self.touch(now)
        return True

    def complete_production(self) -> None:
        """Transition PAID -> COMPLETED once the sets are handed over."""
        if self.status != OrderStatus.PAID:
            raise StateError(
                f"Cannot complete order in {self.status.value} status, expected paid"
            )
        self.status = OrderStatus.COMPLETED
        self.touch()

    def cancel(self) -> None:
        """Transition any pre-payment status -> CANCELLED."""
        if self.status == OrderStatus.CANCELLED:
            raise StateError("Order is already cancelled")
        if self.status not in PRE_PAYMENT_STATUSES:
            raise StateError(f"Cannot cancel order in {self.status.value} status")
        self.status = OrderStatus.CANCELLED
        self.touch()

    def ensure_deletable(self) -> None:
        if self.status != OrderStatus.DRAFT or self.payment_intent_id is not None:
            raise StateError(
                f"Only draft orders can be deleted (order #{self.id} is "
                f"{self.status.value})"
            )

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        return self.pricing.total

    @property
    def is_paid(self) -> bool:
        return self.status in PAID_STATUSES

    # --- Internal helpers -----------------------------------------------------

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or _utcnow()

    def _estimate_fulfillment(self, now: datetime) -> datetime:
        if self.pricing.estimated_completion_date is not None:
            return self.pricing.estimated_completion_date
        days = self.pricing.estimated_completion_days
        if days is None:
            days = DEFAULT_COMPLETION_DAYS
        midnight = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        return midnight + timedelta(days=days)


def _validate_nail_sets(nail_sets: list[NailSet]) -> None:
    if not nail_sets:
        raise EmptyOrderError()
    for index, nail_set in enumerate(nail_sets):
        nail_set.validate_design_input(nail_set.name or str(index + 1))
