"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from nailstudio.application.cancel_order import CancelOrderHandler
from nailstudio.application.capacity import CheckCapacityHandler, UpdateCapacityHandler
from nailstudio.application.complete_order import (
    CompleteOrderHandler,
    HandlePaymentWebhookHandler,
)
from nailstudio.application.delete_order import DeleteOrderHandler
from nailstudio.application.finish_order import FinishOrderHandler
from nailstudio.application.initiate_payment import InitiatePaymentHandler
from nailstudio.application.quote_order import QuoteOrderHandler
from nailstudio.application.save_order import SaveOrderHandler
from nailstudio.application.show_order import ListOrdersHandler, ShowOrderHandler
from nailstudio.application.submit_order import ReopenOrderHandler, SubmitOrderHandler
from nailstudio.application.validate_promo import ValidatePromoHandler
from nailstudio.domain.service.capacity_admission import CapacityAdmission
from nailstudio.domain.service.pricing_calculator import PricingCalculator
from nailstudio.domain.service.promo_validator import PromoValidator
from nailstudio.infrastructure.config import Settings
from nailstudio.infrastructure.payments.stripe_gateway import StripePaymentGateway
from nailstudio.infrastructure.persistence.json_capacity_repository import (
    JsonCapacityRepository,
)
from nailstudio.infrastructure.persistence.json_catalog_repository import (
    JsonCatalogRepository,
)
from nailstudio.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from nailstudio.infrastructure.persistence.json_promo_repository import (
    JsonPromoRepository,
)


def settings() -> Settings:
    return Settings.from_env()


# --- Repositories --------------------------------------------------------------


def order_repository(cfg: Settings | None = None) -> JsonOrderRepository:
    cfg = cfg or settings()
    return JsonOrderRepository(cfg.data_dir / "orders.json")


def catalog_repository(cfg: Settings | None = None) -> JsonCatalogRepository:
    cfg = cfg or settings()
    return JsonCatalogRepository(cfg.data_dir / "catalog.json")


def promo_repository(cfg: Settings | None = None) -> JsonPromoRepository:
    cfg = cfg or settings()
    return JsonPromoRepository(
        cfg.data_dir / "promo_codes.json", cfg.data_dir / "promo_usage.json"
    )


def capacity_repository(cfg: Settings | None = None) -> JsonCapacityRepository:
    cfg = cfg or settings()
    return JsonCapacityRepository(cfg.data_dir / "weekly_capacity.json")


def payment_gateway(cfg: Settings | None = None) -> StripePaymentGateway:
    cfg = cfg or settings()
    return StripePaymentGateway(cfg.stripe_secret_key, cfg.stripe_webhook_secret)


# --- Domain services -----------------------------------------------------------


def pricing_calculator(cfg: Settings | None = None) -> PricingCalculator:
    cfg = cfg or settings()
    return PricingCalculator(
        catalog_repository(cfg),
        setup_fee=cfg.design_setup_fee,
        setup_fee_mode=cfg.setup_fee_mode,
    )


def promo_validator(cfg: Settings | None = None) -> PromoValidator:
    cfg = cfg or settings()
    return PromoValidator(promo_repository(cfg), pricing_calculator(cfg))


def capacity_admission(cfg: Settings | None = None) -> CapacityAdmission:
    cfg = cfg or settings()
    return CapacityAdmission(
        capacity_repository(cfg), default_capacity=cfg.default_weekly_capacity
    )


# --- Use cases -------------------------------------------------------------------


def save_order_handler(cfg: Settings | None = None) -> SaveOrderHandler:
    cfg = cfg or settings()
    return SaveOrderHandler(
        order_repo=order_repository(cfg),
        pricing=pricing_calculator(cfg),
        promo_validator=promo_validator(cfg),
        capacity=capacity_admission(cfg),
    )


def quote_order_handler(cfg: Settings | None = None) -> QuoteOrderHandler:
    cfg = cfg or settings()
    return QuoteOrderHandler(pricing=pricing_calculator(cfg), promo_validator=promo_validator(cfg))


def submit_order_handler(cfg: Settings | None = None) -> SubmitOrderHandler:
    cfg = cfg or settings()
    return SubmitOrderHandler(order_repo=order_repository(cfg), capacity=capacity_admission(cfg))


def reopen_order_handler(cfg: Settings | None = None) -> ReopenOrderHandler:
    return ReopenOrderHandler(order_repo=order_repository(cfg))


def initiate_payment_handler(cfg: Settings | None = None) -> InitiatePaymentHandler:
    cfg = cfg or settings()
    return InitiatePaymentHandler(
        order_repo=order_repository(cfg),
        promo_validator=promo_validator(cfg),
        capacity=capacity_admission(cfg),
        gateway=payment_gateway(cfg),
    )


def complete_order_handler(cfg: Settings | None = None) -> CompleteOrderHandler:
    cfg = cfg or settings()
    return CompleteOrderHandler(
        order_repo=order_repository(cfg),
        promo_validator=promo_validator(cfg),
        capacity=capacity_admission(cfg),
    )


def payment_webhook_handler(cfg: Settings | None = None) -> HandlePaymentWebhookHandler:
    cfg = cfg or settings()
    return HandlePaymentWebhookHandler(
        order_repo=order_repository(cfg),
        gateway=payment_gateway(cfg),
        complete_handler=complete_order_handler(cfg),
    )


def finish_order_handler(cfg: Settings | None = None) -> FinishOrderHandler:
    return FinishOrderHandler(order_repo=order_repository(cfg))


def cancel_order_handler(cfg: Settings | None = None) -> CancelOrderHandler:
    return CancelOrderHandler(order_repo=order_repository(cfg))


def delete_order_handler(cfg: Settings | None = None) -> DeleteOrderHandler:
    return DeleteOrderHandler(order_repo=order_repository(cfg))


def show_order_handler(cfg: Settings | None = None) -> ShowOrderHandler:
    return ShowOrderHandler(order_repo=order_repository(cfg))


def list_orders_handler(cfg: Settings | None = None) -> ListOrdersHandler:
    return ListOrdersHandler(order_repo=order_repository(cfg))


def validate_promo_handler(cfg: Settings | None = None) -> ValidatePromoHandler:
    return ValidatePromoHandler(promo_validator=promo_validator(cfg))


def check_capacity_handler(cfg: Settings | None = None) -> CheckCapacityHandler:
    return CheckCapacityHandler(capacity=capacity_admission(cfg))


def update_capacity_handler(cfg: Settings | None = None) -> UpdateCapacityHandler:
    return UpdateCapacityHandler(capacity=capacity_admission(cfg))
