"""Unit tests for the Order aggregate and its lifecycle rules."""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from nailstudio.domain.exceptions import (
    EmptyOrderError,
    MissingDesignInputError,
    PaymentIntentMismatchError,
    StateError,
    ValidationError,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.nail_set import NailSet
from nailstudio.domain.model.order import Order, OrderStatus
from nailstudio.domain.model.pricing import AppliedDiscount
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.service.pricing_calculator import PricingCalculator
from tests.fakes import FakeCatalogRepository

PAID_AT = datetime(2026, 3, 4, 18, 45, tzinfo=timezone.utc)
_pricing = PricingCalculator(FakeCatalogRepository())


def _set(qty: int = 2, **kwargs) -> NailSet:
    kwargs.setdefault("description", "pink ombre")
    return NailSet.create("almond", qty, **kwargs)


def _order(*sets: NailSet, status: OrderStatus | None = None) -> Order:
    sets = list(sets) or [_set()]
    fulfillment = FulfillmentSelection("pickup", "priority")
    order = Order.create(
        user_id="user-1",
        nail_sets=sets,
        fulfillment=fulfillment,
        pricing=_pricing.compute_breakdown(
            sets, fulfillment, reference=datetime(2026, 3, 1, tzinfo=timezone.utc)
        ),
    )
    order.id = 42
    if status is not None:
        order.status = status
    return order


class TestOrderCreation:

    def test_happy_path(self):
        order = _order()
        assert order.status == OrderStatus.DRAFT
        assert order.user_id == "user-1"
        assert order.total == Money.of("55")
        assert order.production_jobs == []

    def test_id_is_none_for_new_orders(self):
        s = [_set()]
        order = Order.create("user-1", s, FulfillmentSelection(),
                             _pricing.compute_breakdown(s, FulfillmentSelection()))
        assert order.id is None  # assigned by repository

    def test_user_required(self):
        s = [_set()]
        with pytest.raises(ValidationError, match="userId is required"):
            Order.create(" ", s, FulfillmentSelection(),
                         _pricing.compute_breakdown(s, FulfillmentSelection()))

    def test_empty_order_rejected(self):
        s = [_set()]
        with pytest.raises(EmptyOrderError):
            Order.create("user-1", [], FulfillmentSelection(),
                         _pricing.compute_breakdown(s, FulfillmentSelection()))

    def test_every_set_needs_design_input(self):
        with pytest.raises(MissingDesignInputError, match="Nail set 2 "):
            _order(_set(), _set(description=""))


class TestEditing:

    def test_replace_contents_in_draft(self):
        order = _order()
        new_sets = [_set(qty=1)]
        order.replace_contents(
            new_sets, FulfillmentSelection(), _pricing.compute_breakdown(new_sets, FulfillmentSelection())
        )
        assert order.total == Money.of("25")
        assert order.nail_sets == new_sets

    def test_cannot_edit_paid_order(self):
        order = _order(status=OrderStatus.PAID)
        with pytest.raises(StateError, match="Cannot edit"):
            order.replace_contents(order.nail_sets, order.fulfillment, order.pricing)

    def test_cannot_swap_an_applied_promo(self):
        order = _order()
        order.promo_code, order.promo_code_id = "HOLIDAY10", "promo_1"
        order.mark_promo_applied()
        with pytest.raises(StateError, match="already redeemed"):
            order.replace_contents(order.nail_sets, order.fulfillment, order.pricing)


class TestTransitions:

    def test_submit_and_reopen(self):
        order = _order()
        order.submit()
        assert order.status == OrderStatus.SUBMITTED
        order.revert_to_draft()
        assert order.status == OrderStatus.DRAFT

    def test_submit_twice_rejected(self):
        order = _order()
        order.submit()
        with pytest.raises(StateError, match="expected draft"):
            order.submit()

    def test_attach_payment_intent(self):
        order = _order()
        order.attach_payment_intent("pi_1", "secret", 5500)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.payment_intent_id == "pi_1"

    def test_intent_amount_must_match_total(self):
        with pytest.raises(ValidationError, match="does not match"):
            _order().attach_payment_intent("pi_1", "secret", 5000)

    def test_intent_id_is_immutable(self):
        order = _order()
        order.attach_payment_intent("pi_1", "secret", 5500)
        with pytest.raises(StateError, match="already has a payment intent"):
            order.attach_payment_intent("pi_2", "secret", 5500)

    def test_cancel_before_payment(self):
        order = _order(status=OrderStatus.PENDING_PAYMENT)
        order.cancel()
        assert order.status == OrderStatus.CANCELLED
        with pytest.raises(StateError, match="already cancelled"):
            order.cancel()

    def test_cannot_cancel_paid_order(self):
        with pytest.raises(StateError, match="Cannot cancel"):
            _order(status=OrderStatus.PAID).cancel()

    def test_complete_production(self):
        order = _order(status=OrderStatus.PAID)
        order.complete_production()
        assert order.status == OrderStatus.COMPLETED
        with pytest.raises(StateError, match="expected paid"):
            order.complete_production()

    def test_only_plain_drafts_are_deletable(self):
        _order().ensure_deletable()
        with pytest.raises(StateError, match="Only draft orders"):
            _order(status=OrderStatus.SUBMITTED).ensure_deletable()
        order = _order()
        order.payment_intent_id = "pi_1"
        with pytest.raises(StateError):
            order.ensure_deletable()


class TestMarkPaid:

    def test_creates_one_job_per_set(self):
        order = _order(_set(), _set(qty=1, name="Summer"), status=OrderStatus.PENDING_PAYMENT)
        assert order.mark_paid(now=PAID_AT) is True
        assert order.status == OrderStatus.PAID
        assert order.paid_at == PAID_AT
        assert [j.id for j in order.production_jobs] == [
            f"42_{s.id}" for s in order.nail_sets
        ]
        assert order.production_jobs[1].name == "Summer"

    def test_fulfillment_date_comes_from_pricing(self):
        order = _order(status=OrderStatus.PENDING_PAYMENT)
        order.mark_paid(now=PAID_AT)
        assert order.estimated_fulfillment_date == order.pricing.estimated_completion_date

    def test_is_idempotent(self):
        order = _order(status=OrderStatus.PENDING_PAYMENT)
        order.mark_paid(now=PAID_AT)
        jobs = list(order.production_jobs)
        assert order.mark_paid(now=datetime(2026, 3, 5, tzinfo=timezone.utc)) is False
        assert order.production_jobs == jobs
        assert order.paid_at == PAID_AT

    def test_already_completed_is_a_no_op(self):
        assert _order(status=OrderStatus.COMPLETED).mark_paid() is False

    def test_mismatched_intent_leaves_order_unchanged(self):
        order = _order()
        order.attach_payment_intent("pi_1", "secret", 5500)
        with pytest.raises(PaymentIntentMismatchError):
            order.mark_paid("pi_other", now=PAID_AT)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.production_jobs == []

    def test_intent_recorded_when_missing(self):
        order = _order(status=OrderStatus.PENDING_PAYMENT)
        order.mark_paid("pi_9", now=PAID_AT)
        assert order.payment_intent_id == "pi_9"

    def test_cancelled_order_cannot_be_paid(self):
        with pytest.raises(StateError, match="cancelled"):
            _order(status=OrderStatus.CANCELLED).mark_paid()

    def test_draft_cannot_be_paid(self):
        order = _order()
        with pytest.raises(StateError, match="draft status, expected pending_payment"):
            order.mark_paid("pi_1", now=PAID_AT)
        assert order.status == OrderStatus.DRAFT
        assert order.production_jobs == []

    def test_submitted_order_with_a_balance_cannot_be_paid(self):
        with pytest.raises(StateError, match="expected pending_payment"):
            _order(status=OrderStatus.SUBMITTED).mark_paid(now=PAID_AT)

    def test_free_submitted_order_is_paid_directly(self):
        order = _order(status=OrderStatus.SUBMITTED)
        order.pricing = _pricing.compute_breakdown(
            order.nail_sets,
            order.fulfillment,
            discount=AppliedDiscount(Money.of("55"), "Free order"),
        )
        assert order.mark_paid(now=PAID_AT) is True
        assert order.status == OrderStatus.PAID

    def test_zero_day_lead_time_is_kept(self):
        order = _order(status=OrderStatus.PENDING_PAYMENT)
        order.pricing = replace(
            order.pricing, estimated_completion_days=0, estimated_completion_date=None
        )
        order.mark_paid(now=PAID_AT)
        assert order.estimated_fulfillment_date == datetime(2026, 3, 4, tzinfo=timezone.utc)

    def test_missing_lead_time_uses_default(self):
        order = _order(status=OrderStatus.PENDING_PAYMENT)
        order.pricing = replace(
            order.pricing, estimated_completion_days=None, estimated_completion_date=None
        )
        order.mark_paid(now=PAID_AT)
        assert order.estimated_fulfillment_date == datetime(2026, 3, 11, tzinfo=timezone.utc)

    def test_capacity_week_recorded(self):
        order = _order()
        order.record_capacity_reservation(date(2026, 3, 2))
        assert order.capacity_week == date(2026, 3, 2)
