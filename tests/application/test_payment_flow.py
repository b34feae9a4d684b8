"""Integration tests for checkout: initiate payment, complete, webhook.

The same order is driven through the payment provider fake and the
completion paths to check that every route converges on one paid order.
"""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from nailstudio.application.complete_order import (
    CompleteOrderHandler,
    HandlePaymentWebhookHandler,
)
from nailstudio.application.dto import NailSetSpec
from nailstudio.application.initiate_payment import InitiatePaymentHandler
from nailstudio.application.save_order import SaveOrderHandler
from nailstudio.application.submit_order import SubmitOrderHandler
from nailstudio.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    MaxUsesReachedError,
    PaymentIntentMismatchError,
    StateError,
    UpstreamError,
    ValidationError,
)
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.order import OrderStatus
from nailstudio.domain.model.promo import PromoType
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.service.capacity_admission import CapacityAdmission
from nailstudio.domain.service.pricing_calculator import PricingCalculator
from nailstudio.domain.service.promo_validator import PromoValidator
from tests.fakes import (
    FakeCapacityRepository,
    FakeCatalogRepository,
    FakeOrderRepository,
    FakePaymentGateway,
    FakePromoRepository,
    RacingOrderRepository,
    make_promo,
    succeeded,
)

PAID_AT = datetime(2026, 3, 5, 9, 0, tzinfo=timezone.utc)
PAID_WEEK = date(2026, 3, 2)
PINK = NailSetSpec("almond", 2, description="pink ombre")


class _Checkout:
    """All handlers of the checkout flow sharing one set of fakes."""

    def __init__(self, promos=None, gateway=None, order_repo=None):
        self.order_repo = order_repo or FakeOrderRepository()
        self.promo_repo = FakePromoRepository(promos or [])
        self.capacity_repo = FakeCapacityRepository()
        self.gateway = gateway or FakePaymentGateway()
        pricing = PricingCalculator(FakeCatalogRepository())
        promo_validator = PromoValidator(self.promo_repo, pricing)
        capacity = CapacityAdmission(self.capacity_repo)

        self.save = SaveOrderHandler(self.order_repo, pricing, promo_validator, capacity)
        self.pay = InitiatePaymentHandler(
            self.order_repo, promo_validator, capacity, self.gateway
        )
        self.submit = SubmitOrderHandler(self.order_repo, capacity)
        self.complete = CompleteOrderHandler(self.order_repo, promo_validator, capacity)
        self.webhook = HandlePaymentWebhookHandler(self.order_repo, self.gateway, self.complete)

    def draft(self, promo_code=None, sets=None) -> int:
        return self.save.handle(
            "user-1", sets or [PINK], FulfillmentSelection(), promo_code=promo_code
        ).id


class TestInitiatePayment:

    def test_creates_intent_for_total_in_cents(self):
        flow = _Checkout()
        order_id = flow.draft()

        payment = flow.pay.handle(order_id)

        assert payment.amount_cents == 5000
        assert payment.currency == "usd"
        assert payment.client_secret == "pi_test_1_secret"
        order = flow.order_repo.get_by_id(order_id)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.payment_intent_id == payment.payment_intent_id
        assert order.capacity_week is not None

    def test_intent_currency_follows_order_total(self):
        flow = _Checkout()
        order_id = flow.draft()
        order = flow.order_repo.get_by_id(order_id)
        order.pricing = replace(order.pricing, total=Money(4200, "EUR"))
        flow.order_repo.save(order)

        payment = flow.pay.handle(order_id)

        assert payment.currency == "eur"
        assert flow.gateway.created[0].currency == "eur"
        assert payment.amount_cents == 4200

    def test_intent_metadata_carries_order(self):
        flow = _Checkout()
        order_id = flow.draft()
        flow.pay.handle(order_id)
        assert flow.gateway.metadata == [{"order_id": str(order_id), "user_id": "user-1"}]

    def test_promo_redeemed_exactly_once(self):
        flow = _Checkout(promos=[make_promo("HOLIDAY10", max_uses=10)])
        order_id = flow.draft(promo_code="HOLIDAY10")

        first = flow.pay.handle(order_id)
        second = flow.pay.handle(order_id)

        assert first.amount_cents == 4500
        assert second.payment_intent_id == first.payment_intent_id
        assert len(flow.gateway.created) == 1
        assert flow.promo_repo.get_by_id("promo_holiday10").uses_count == 1
        assert flow.order_repo.get_by_id(order_id).promo_applied

    def test_promo_race_lost_blocks_checkout(self):
        flow = _Checkout(promos=[make_promo("LAST", max_uses=1)])
        first, second = flow.draft(promo_code="LAST"), flow.draft(promo_code="LAST")
        flow.pay.handle(first)

        with pytest.raises(MaxUsesReachedError):
            flow.pay.handle(second)
        assert flow.order_repo.get_by_id(second).status == OrderStatus.DRAFT
        assert len(flow.gateway.created) == 1

    def test_zero_total_cannot_be_paid(self):
        flow = _Checkout(promos=[make_promo("GIFT", type=PromoType.FREE_ORDER)])
        order_id = flow.draft(promo_code="GIFT")
        with pytest.raises(StateError, match="nothing to pay"):
            flow.pay.handle(order_id)

    def test_provider_failure_surfaces_and_keeps_order_editable(self):
        flow = _Checkout(gateway=FakePaymentGateway(fail=True))
        order_id = flow.draft()
        with pytest.raises(UpstreamError):
            flow.pay.handle(order_id)
        assert flow.order_repo.get_by_id(order_id).status == OrderStatus.DRAFT

    def test_paid_order_cannot_start_payment(self):
        flow = _Checkout()
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)
        flow.complete.handle(order_id, payment.payment_intent_id, now=PAID_AT)
        with pytest.raises(StateError, match="payment already handled"):
            flow.pay.handle(order_id)
        assert len(flow.gateway.created) == 1


class TestCompleteOrder:

    def test_complete_creates_production_jobs(self):
        flow = _Checkout()
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)

        dto = flow.complete.handle(order_id, payment.payment_intent_id, now=PAID_AT)

        assert dto.status == "paid"
        assert dto.paid_at == PAID_AT.isoformat()
        assert len(dto.production_jobs) == 1
        assert dto.production_jobs[0].id.startswith(f"{order_id}_")

    def test_complete_twice_is_a_no_op(self):
        flow = _Checkout()
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)
        first = flow.complete.handle(order_id, payment.payment_intent_id, now=PAID_AT)
        second = flow.complete.handle(order_id, payment.payment_intent_id)
        assert second.production_jobs == first.production_jobs
        assert second.paid_at == first.paid_at

    def test_mismatched_intent_rejected(self):
        flow = _Checkout()
        order_id = flow.draft()
        flow.pay.handle(order_id)
        with pytest.raises(PaymentIntentMismatchError):
            flow.complete.handle(order_id, "pi_forged")
        assert flow.order_repo.get_by_id(order_id).status == OrderStatus.PENDING_PAYMENT

    def test_zero_total_order_completes_and_redeems_promo(self):
        flow = _Checkout(promos=[make_promo("GIFT", type=PromoType.FREE_ORDER)])
        order_id = flow.draft(promo_code="GIFT")
        flow.submit.handle(order_id)

        dto = flow.complete.handle(order_id, now=PAID_AT)

        assert dto.status == "paid"
        assert dto.total == "$0.00"
        assert flow.promo_repo.get_by_id("promo_gift").uses_count == 1
        week = flow.order_repo.get_by_id(order_id).capacity_week
        assert flow.capacity_repo.get(week).orders_count == 1

    def test_unpaid_draft_cannot_be_completed(self):
        flow = _Checkout()
        order_id = flow.draft()
        with pytest.raises(StateError, match="expected pending_payment"):
            flow.complete.handle(order_id, now=PAID_AT)
        order = flow.order_repo.get_by_id(order_id)
        assert order.status == OrderStatus.DRAFT
        assert order.production_jobs == []

    def test_free_draft_must_be_submitted_first(self):
        flow = _Checkout(promos=[make_promo("GIFT", type=PromoType.FREE_ORDER)])
        order_id = flow.draft(promo_code="GIFT")
        with pytest.raises(StateError, match="draft status"):
            flow.complete.handle(order_id, now=PAID_AT)
        assert flow.promo_repo.get_by_id("promo_gift").uses_count == 0

    def test_unknown_order(self):
        flow = _Checkout()
        with pytest.raises(EntityNotFoundError):
            flow.complete.handle(404)


class TestWebhook:

    def test_webhook_completes_order(self):
        flow = _Checkout()
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)

        dto = flow.webhook.handle(succeeded(payment.payment_intent_id), FakePaymentGateway.SIGNATURE)

        assert dto.id == order_id
        assert dto.status == "paid"

    def test_webhook_and_direct_completion_converge(self):
        flow = _Checkout()
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)

        direct = flow.complete.handle(order_id, payment.payment_intent_id, now=PAID_AT)
        version = flow.order_repo.get_by_id(order_id).version
        via_hook = flow.webhook.handle(
            succeeded(payment.payment_intent_id), FakePaymentGateway.SIGNATURE
        )

        assert via_hook.production_jobs == direct.production_jobs
        assert flow.order_repo.get_by_id(order_id).version == version

    def test_other_events_are_ignored(self):
        flow = _Checkout()
        assert flow.webhook.handle(("charge.refunded", "pi_x"), FakePaymentGateway.SIGNATURE) is None

    def test_bad_signature(self):
        flow = _Checkout()
        with pytest.raises(ValidationError, match="signature"):
            flow.webhook.handle(succeeded("pi_x"), "forged")

    def test_unknown_intent(self):
        flow = _Checkout()
        with pytest.raises(EntityNotFoundError, match="pi_nobody"):
            flow.webhook.handle(succeeded("pi_nobody"), FakePaymentGateway.SIGNATURE)


def _paid(order):
    return order.status == OrderStatus.PAID


class TestConcurrentCompletion:

    def test_losing_writer_returns_the_winner(self):
        racing_repo = RacingOrderRepository(when=_paid)
        flow = _Checkout(order_repo=racing_repo)
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)
        racing_repo.competitor = lambda oid: flow.complete.handle(
            oid, payment.payment_intent_id, now=PAID_AT
        )

        dto = flow.complete.handle(order_id, now=datetime(2026, 3, 6, tzinfo=timezone.utc))

        assert racing_repo.raced
        assert dto.status == "paid"
        assert dto.paid_at == PAID_AT.isoformat()

    def test_racing_free_completions_redeem_once(self):
        racing_repo = RacingOrderRepository(when=_paid)
        flow = _Checkout(
            promos=[make_promo("GIFT", type=PromoType.FREE_ORDER)], order_repo=racing_repo
        )
        order_id = flow.draft(promo_code="GIFT")
        flow.submit.handle(order_id)
        racing_repo.competitor = lambda oid: flow.complete.handle(oid, now=PAID_AT)

        dto = flow.complete.handle(order_id, now=datetime(2026, 3, 6, tzinfo=timezone.utc))

        assert racing_repo.raced
        assert dto.paid_at == PAID_AT.isoformat()
        assert flow.promo_repo.get_by_id("promo_gift").uses_count == 1
        assert len(flow.promo_repo.usage) == 1
        week = flow.order_repo.get_by_id(order_id).capacity_week
        assert flow.capacity_repo.get(week).orders_count == 1

    def test_order_without_a_slot_takes_one_when_paid(self):
        flow = _Checkout()
        order_id = flow.draft()
        payment = flow.pay.handle(order_id)
        order = flow.order_repo.get_by_id(order_id)
        order.withdraw_capacity_reservation()
        flow.order_repo.save(order)

        flow.complete.handle(order_id, payment.payment_intent_id, now=PAID_AT)

        assert flow.order_repo.get_by_id(order_id).capacity_week == PAID_WEEK
        assert flow.capacity_repo.get(PAID_WEEK).orders_count == 1


class TestConcurrentCheckout:

    def test_racing_checkouts_consume_one_slot_and_one_use(self):
        racing_repo = RacingOrderRepository(when=lambda o: o.status == OrderStatus.DRAFT)
        flow = _Checkout(
            promos=[make_promo("HOLIDAY10", max_uses=10)], order_repo=racing_repo
        )
        order_id = flow.draft(promo_code="HOLIDAY10")
        racing_repo.competitor = flow.pay.handle

        with pytest.raises(ConcurrentModificationError):
            flow.pay.handle(order_id)

        assert racing_repo.raced
        order = flow.order_repo.get_by_id(order_id)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert flow.capacity_repo.get(order.capacity_week).orders_count == 1
        assert flow.promo_repo.get_by_id("promo_holiday10").uses_count == 1
        assert len(flow.promo_repo.usage) == 1
        assert len(flow.gateway.created) == 1

    def test_racing_checkouts_of_a_submitted_order_redeem_once(self):
        racing_repo = RacingOrderRepository(when=lambda o: o.status == OrderStatus.SUBMITTED)
        flow = _Checkout(
            promos=[make_promo("HOLIDAY10", max_uses=10)], order_repo=racing_repo
        )
        order_id = flow.draft(promo_code="HOLIDAY10")
        flow.submit.handle(order_id)
        racing_repo.competitor = flow.pay.handle

        with pytest.raises(ConcurrentModificationError):
            flow.pay.handle(order_id)

        assert flow.promo_repo.get_by_id("promo_holiday10").uses_count == 1
        assert len(flow.gateway.created) == 1
