"""Unit tests for the PromoValidator domain service."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from nailstudio.domain.exceptions import ConflictError, EntityNotFoundError, MaxUsesReachedError
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.nail_set import NailSet
from nailstudio.domain.model.promo import PromoCode, PromoType, PromoUsageRecord
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.service.pricing_calculator import PricingCalculator
from nailstudio.domain.service.promo_validator import CartSnapshot, PromoValidator
from tests.fakes import FakeCatalogRepository, FakePromoRepository, make_promo

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def _cart(qty: int = 2, method: str = "pickup", speed: str | None = None) -> CartSnapshot:
    return CartSnapshot(
        nail_sets=[NailSet.create("almond", qty, description="pink ombre")],
        fulfillment=FulfillmentSelection(method, speed),
    )


def _setup(*promos: PromoCode) -> tuple[PromoValidator, FakePromoRepository]:
    promo_repo = FakePromoRepository(list(promos))
    validator = PromoValidator(promo_repo, PricingCalculator(FakeCatalogRepository()))
    return validator, promo_repo


class TestValidateHappyPath:

    def test_percentage_code(self):
        validator, _ = _setup(make_promo("HOLIDAY10"))
        result = validator.validate("HOLIDAY10", _cart(), now=NOW)
        assert result.valid
        assert result.discount == Money.of("5")
        assert result.new_total == Money.of("45")
        assert result.description == "10% off"

    def test_code_is_case_and_space_insensitive(self):
        validator, _ = _setup(make_promo("HOLIDAY10"))
        result = validator.validate("  holiday10 ", _cart(), now=NOW)
        assert result.valid
        assert result.code == "HOLIDAY10"

    def test_fixed_amount_capped_at_subtotal(self):
        validator, _ = _setup(
            make_promo("BIG", type=PromoType.FIXED_AMOUNT, value=Decimal("80"))
        )
        result = validator.validate("BIG", _cart(), now=NOW)
        assert result.discount == Money.of("50")
        assert result.new_total == Money.zero()

    def test_free_shipping_waives_fulfillment_fee(self):
        validator, _ = _setup(make_promo("SHIPFREE", type=PromoType.FREE_SHIPPING))
        result = validator.validate("SHIPFREE", _cart(method="shipping"), now=NOW)
        assert result.discount == Money.of("7")
        assert result.new_total == Money.of("50")
        assert result.description == "Free shipping"

    def test_free_order(self):
        validator, _ = _setup(make_promo("GIFT", type=PromoType.FREE_ORDER))
        result = validator.validate("GIFT", _cart(method="delivery"), now=NOW)
        assert result.discount == result.subtotal
        assert result.new_total == Money.zero()

    def test_percentage_includes_fulfillment_fee(self):
        validator, _ = _setup(make_promo("HOLIDAY10"))
        result = validator.validate("HOLIDAY10", _cart(method="delivery", speed="rush"), now=NOW)
        assert result.subtotal == Money.of("65")
        assert result.discount == Money.of("6.50")

    def test_discount_is_monotonic_in_subtotal(self):
        validator, _ = _setup(make_promo("HOLIDAY10"))
        discounts = [
            validator.validate("HOLIDAY10", _cart(qty=q), now=NOW).discount for q in range(1, 6)
        ]
        assert discounts == sorted(discounts)


class TestValidateRejections:

    def test_empty_code(self):
        validator, _ = _setup()
        result = validator.validate("  ", _cart(), now=NOW)
        assert not result.valid
        assert result.error == "Promo code is required"

    def test_unknown_code(self):
        validator, _ = _setup()
        result = validator.validate("NOPE", _cart(), now=NOW)
        assert result.error == "Promo code not found or expired"

    def test_inactive_code_looks_like_unknown(self):
        validator, _ = _setup(make_promo("OFF", active=False))
        assert validator.validate("OFF", _cart(), now=NOW).error == (
            "Promo code not found or expired"
        )

    def test_not_yet_active(self):
        validator, _ = _setup(make_promo("SOON", start_date=NOW + timedelta(days=1)))
        result = validator.validate("SOON", _cart(), now=NOW)
        assert result.error == "This promo code is not yet active"

    def test_expired(self):
        validator, _ = _setup(make_promo("OLD", end_date=NOW - timedelta(seconds=1)))
        result = validator.validate("OLD", _cart(), now=NOW)
        assert result.error == "Promo code not found or expired"

    def test_minimum_order(self):
        validator, _ = _setup(make_promo("MIN60", min_order_amount=Money.of("60")))
        result = validator.validate("MIN60", _cart(), now=NOW)
        assert not result.valid
        assert result.error == "Minimum order $60.00 required"

    def test_used_up(self):
        validator, _ = _setup(make_promo("ONCE", max_uses=1, uses_count=1))
        result = validator.validate("ONCE", _cart(), now=NOW)
        assert result.error == "This code has been used up"

    def test_per_user_limit(self):
        validator, promo_repo = _setup(make_promo("MINE", per_user_limit=1))
        promo_repo.add_usage(PromoUsageRecord("promo_mine", "user-1", 7))
        assert not validator.validate("MINE", _cart(), user_id="user-1", now=NOW).valid
        assert validator.validate("MINE", _cart(), user_id="user-2", now=NOW).valid

    def test_empty_cart_is_rejected_not_raised(self):
        validator, _ = _setup(make_promo("HOLIDAY10"))
        cart = CartSnapshot(nail_sets=[], fulfillment=FulfillmentSelection())
        result = validator.validate("HOLIDAY10", cart, now=NOW)
        assert not result.valid
        assert result.error == "At least one nail set is required"

    def test_unknown_shape_is_rejected_not_raised(self):
        validator, _ = _setup(make_promo("HOLIDAY10"))
        cart = CartSnapshot(
            nail_sets=[NailSet.create("oval", 1, description="x")],
            fulfillment=FulfillmentSelection(),
        )
        result = validator.validate("HOLIDAY10", cart, now=NOW)
        assert not result.valid
        assert result.error == "Unknown nail shape: 'oval'"

    def test_redeemed_order_skips_usage_limits(self):
        validator, _ = _setup(make_promo("ONCE", max_uses=1, uses_count=1))
        assert validator.validate("ONCE", _cart(), now=NOW, redeemed=True).valid

class TestApply:

    def test_apply_consumes_one_use_and_records_usage(self):
        validator, promo_repo = _setup(make_promo("HOLIDAY10", max_uses=3))
        promo = validator.apply("promo_holiday10", order_id=1, user_id="user-1")
        assert promo.uses_count == 1
        assert promo_repo.get_by_id("promo_holiday10").uses_count == 1
        assert promo_repo.count_usage("promo_holiday10", "user-1") == 1

    def test_apply_when_used_up(self):
        validator, _ = _setup(make_promo("ONCE", max_uses=1, uses_count=1))
        with pytest.raises(MaxUsesReachedError, match="ONCE"):
            validator.apply("promo_once", order_id=1)

    def test_apply_unknown_promo(self):
        validator, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            validator.apply("promo_missing", order_id=1)

    def test_apply_is_idempotent_per_order(self):
        validator, promo_repo = _setup(make_promo("HOLIDAY10", max_uses=3))
        validator.apply("promo_holiday10", order_id=1, user_id="user-1")
        promo = validator.apply("promo_holiday10", order_id=1, user_id="user-1")
        assert promo.uses_count == 1
        assert len(promo_repo.usage) == 1

    def test_apply_for_redeemed_order_survives_exhaustion(self):
        validator, _ = _setup(make_promo("ONCE", max_uses=1))
        validator.apply("promo_once", order_id=1)
        assert validator.apply("promo_once", order_id=1).uses_count == 1
        with pytest.raises(MaxUsesReachedError):
            validator.apply("promo_once", order_id=2)

    def test_concurrent_apply_for_one_order(self):
        validator, promo_repo = _setup(make_promo("HOLIDAY10", max_uses=10))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: validator.apply("promo_holiday10", order_id=7), range(16)))

        assert promo_repo.get_by_id("promo_holiday10").uses_count == 1
        assert len(promo_repo.usage) == 1

    def test_concurrent_apply_for_the_last_use(self):
        validator, promo_repo = _setup(make_promo("LAST", max_uses=1))

        def attempt(order_id: int) -> str:
            try:
                validator.apply("promo_last", order_id=order_id)
                return "ok"
            except ConflictError:
                return "conflict"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(1, 17)))

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == 15
        assert promo_repo.get_by_id("promo_last").uses_count == 1
        assert len(promo_repo.usage) == 1

    def test_uses_never_exceed_max_under_contention(self):
        validator, promo_repo = _setup(make_promo("FEW", max_uses=5))

        def attempt(order_id: int) -> bool:
            try:
                validator.apply("promo_few", order_id=order_id)
                return True
            except ConflictError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            wins = sum(pool.map(attempt, range(1, 41)))

        # Lost races may exhaust retries, so fewer wins than uses is allowed
        assert wins == promo_repo.get_by_id("promo_few").uses_count <= 5
