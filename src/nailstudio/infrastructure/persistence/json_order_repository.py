"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

from nailstudio.domain.exceptions import ConcurrentModificationError, UpstreamError
from nailstudio.domain.model.fulfillment import FulfillmentSelection
from nailstudio.domain.model.nail_set import NailSet, SizeSpec
from nailstudio.domain.model.order import Order, OrderStatus, ProductionJob
from nailstudio.domain.model.pricing import LineItem, PriceBreakdown, SetSummary
from nailstudio.domain.model.value_objects import Money, Quantity
from nailstudio.domain.repository.order_repository import OrderRepository
from nailstudio.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, default=[])

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        orders = self._file.load()
        if not orders:
            return 1
        return max(o["id"] for o in orders) + 1

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._file.load():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def get_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        for raw in self._file.load():
            if raw.get("payment_intent_id") == payment_intent_id:
                return self._to_domain(raw)
        return None

    def list(
        self,
        user_id: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        orders = [
            self._to_domain(raw)
            for raw in self._file.load()
            if (user_id is None or raw["user_id"] == user_id)
            and (status is None or raw["status"] == status.value)
        ]
        orders.sort(key=lambda o: (o.created_at, o.id or 0), reverse=True)
        return orders

    def save(self, order: Order) -> None:
        with self._file.locked():
            orders = self._file.load()
            previous_id, previous_version = order.id, order.version

            index = None
            if order.id is None:
                order.id = max((o["id"] for o in orders), default=0) + 1
            else:
                for i, raw in enumerate(orders):
                    if raw["id"] == order.id:
                        index = i
                        break
                stored_version = orders[index].get("version", 0) if index is not None else 0
                if index is None and order.version != 0:
                    raise ConcurrentModificationError(f"Order #{order.id} no longer exists")
                if stored_version != order.version:
                    raise ConcurrentModificationError(
                        f"Order #{order.id} was modified by another request"
                    )

            order.version += 1
            if index is None:
                orders.append(self._to_raw(order))
            else:
                orders[index] = self._to_raw(order)

            try:
                self._file.persist(orders)
            except UpstreamError:
                order.id, order.version = previous_id, previous_version
                raise

    def delete(self, order_id: int) -> None:
        with self._file.locked():
            orders = self._file.load()
            remaining = [raw for raw in orders if raw["id"] != order_id]
            if len(remaining) != len(orders):
                self._file.persist(remaining)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "status": order.status.value,
            "version": order.version,
            "order_notes": order.order_notes,
            "fulfillment": order.fulfillment.to_raw(),
            "nail_sets": [_nail_set_to_raw(s) for s in order.nail_sets],
            "pricing": _breakdown_to_raw(order.pricing),
            "promo_code": order.promo_code,
            "promo_code_id": order.promo_code_id,
            "promo_applied": order.promo_applied,
            "payment_intent_id": order.payment_intent_id,
            "payment_client_secret": order.payment_client_secret,
            "payment_amount_cents": order.payment_amount_cents,
            "capacity_week": _iso(order.capacity_week),
            "paid_at": _iso(order.paid_at),
            "estimated_fulfillment_date": _iso(order.estimated_fulfillment_date),
            "production_jobs": [
                {
                    "id": job.id,
                    "order_id": job.order_id,
                    "nail_set_id": job.nail_set_id,
                    "shape_id": job.shape_id,
                    "quantity": job.quantity,
                    "name": job.name,
                    "description": job.description,
                }
                for job in order.production_jobs
            ],
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        return Order(
            id=raw["id"],
            user_id=raw["user_id"],
            nail_sets=[_nail_set_from_raw(s) for s in raw["nail_sets"]],
            fulfillment=FulfillmentSelection.from_raw(raw.get("fulfillment")),
            pricing=_breakdown_from_raw(raw["pricing"]),
            status=OrderStatus(raw["status"]),
            order_notes=raw.get("order_notes", ""),
            promo_code=raw.get("promo_code"),
            promo_code_id=raw.get("promo_code_id"),
            promo_applied=raw.get("promo_applied", False),
            payment_intent_id=raw.get("payment_intent_id"),
            payment_client_secret=raw.get("payment_client_secret"),
            payment_amount_cents=raw.get("payment_amount_cents"),
            capacity_week=(
                date.fromisoformat(raw["capacity_week"])
                if raw.get("capacity_week")
                else None
            ),
            paid_at=_parse_datetime(raw.get("paid_at")),
            estimated_fulfillment_date=_parse_datetime(
                raw.get("estimated_fulfillment_date")
            ),
            production_jobs=[
                ProductionJob(
                    id=j["id"],
                    order_id=j["order_id"],
                    nail_set_id=j["nail_set_id"],
                    shape_id=j["shape_id"],
                    quantity=j["quantity"],
                    name=j.get("name"),
                    description=j.get("description", ""),
                )
                for j in raw.get("production_jobs", [])
            ],
            version=raw.get("version", 0),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw.get("updated_at", raw["created_at"])),
        )


# --- Field helpers ----------------------------------------------------------------


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _nail_set_to_raw(nail_set: NailSet) -> dict:
    return {
        "id": nail_set.id,
        "shape_id": nail_set.shape_id,
        "quantity": nail_set.quantity.value,
        "name": nail_set.name,
        "description": nail_set.description,
        "set_notes": nail_set.set_notes,
        "design_uploads": list(nail_set.design_uploads),
        "sizes": nail_set.sizes.to_raw(),
        "requires_follow_up": nail_set.requires_follow_up,
    }


def _nail_set_from_raw(raw: dict) -> NailSet:
    return NailSet(
        id=raw["id"],
        shape_id=raw["shape_id"],
        quantity=Quantity(raw["quantity"]),
        name=raw.get("name"),
        description=raw.get("description", ""),
        set_notes=raw.get("set_notes", ""),
        design_uploads=tuple(raw.get("design_uploads", [])),
        sizes=SizeSpec.from_raw(raw.get("sizes")),
        requires_follow_up=raw.get("requires_follow_up", False),
    )


def _breakdown_to_raw(breakdown: PriceBreakdown) -> dict:
    return {
        "currency": breakdown.currency,
        "line_items": [
            {"id": item.id, "label": item.label, "amount_cents": item.amount.cents}
            for item in breakdown.line_items
        ],
        "subtotal_cents": breakdown.subtotal.cents,
        "discount_cents": breakdown.discount.cents,
        "total_cents": breakdown.total.cents,
        "estimated_completion_days": breakdown.estimated_completion_days,
        "estimated_completion_date": _iso(breakdown.estimated_completion_date),
        "method": breakdown.method,
        "tier": breakdown.tier,
        "set_summaries": [
            {
                "set_id": s.set_id,
                "shape_id": s.shape_id,
                "shape_name": s.shape_name,
                "name": s.name,
                "quantity": s.quantity,
                "unit_price_cents": s.unit_price.cents,
                "setup_fee_cents": s.setup_fee.cents,
                "subtotal_cents": s.subtotal.cents,
                "requires_custom_art": s.requires_custom_art,
            }
            for s in breakdown.set_summaries
        ],
    }


def _breakdown_from_raw(raw: dict) -> PriceBreakdown:
    currency = raw.get("currency", "USD")

    def money(cents: int) -> Money:
        return Money(cents, currency)

    return PriceBreakdown(
        line_items=tuple(
            LineItem(id=i["id"], label=i["label"], amount=money(i["amount_cents"]))
            for i in raw["line_items"]
        ),
        subtotal=money(raw["subtotal_cents"]),
        discount=money(raw["discount_cents"]),
        total=money(raw["total_cents"]),
        estimated_completion_days=raw.get("estimated_completion_days"),
        estimated_completion_date=_parse_datetime(raw.get("estimated_completion_date")),
        method=raw["method"],
        tier=raw["tier"],
        set_summaries=tuple(
            SetSummary(
                set_id=s["set_id"],
                shape_id=s["shape_id"],
                shape_name=s["shape_name"],
                name=s.get("name"),
                quantity=s["quantity"],
                unit_price=money(s["unit_price_cents"]),
                setup_fee=money(s["setup_fee_cents"]),
                subtotal=money(s["subtotal_cents"]),
                requires_custom_art=s["requires_custom_art"],
            )
            for s in raw.get("set_summaries", [])
        ),
    )
