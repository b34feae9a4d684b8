"""JSON-file-backed implementation of CatalogRepository.

The file is seeded with the studio's default shapes and delivery tiers
the first time it is created; after that it is edited by admin tooling
and only read here.
"""

from __future__ import annotations

from pathlib import Path

from nailstudio.domain.model.catalog import DeliveryMethod, DeliveryTier, Shape
from nailstudio.domain.model.value_objects import Money
from nailstudio.domain.repository.catalog_repository import CatalogRepository
from nailstudio.infrastructure.persistence.json_file import JsonFile


def _tiers(standard: str, priority: str, rush: str) -> dict:
    return {
        "standard": {"label": "Standard", "description": "10 to 14 days", "fee": standard, "days": 14},
        "priority": {"label": "Priority", "description": "3 to 5 days", "fee": priority, "days": 5},
        "rush": {"label": "Rush", "description": "Next day", "fee": rush, "days": 1},
    }


DEFAULT_CATALOG = {
    "shapes": [
        {"id": "almond", "name": "Almond", "base_price": "10.00"},
        {"id": "square", "name": "Square", "base_price": "10.00"},
        {"id": "oval", "name": "Oval", "base_price": "10.00"},
    ],
    "delivery_methods": {
        "pickup": {
            "label": "Pick Up",
            "description": "Ready in 10 to 14 days",
            "default_tier": "standard",
            "tiers": _tiers("0", "5", "10"),
        },
        "delivery": {
            "label": "Local Delivery",
            "description": "Ready in 10 to 14 days",
            "default_tier": "standard",
            "tiers": _tiers("5", "10", "15"),
        },
        "shipping": {
            "label": "Shipping",
            "description": "Ready to ship in 10 to 14 days",
            "default_tier": "standard",
            "tiers": _tiers("7", "15", "20"),
        },
    },
}


class JsonCatalogRepository(CatalogRepository):

    def __init__(self, file_path: Path, currency: str = "USD") -> None:
        self._file = JsonFile(file_path, default=DEFAULT_CATALOG)
        self._currency = currency

    # --- CatalogRepository interface ------------------------------------------

    def get_shape_by_id(self, shape_id: str) -> Shape | None:
        for raw in self._file.load().get("shapes", []):
            if raw["id"] == shape_id:
                return self._shape(raw)
        return None

    def list_shapes(self) -> list[Shape]:
        return [self._shape(raw) for raw in self._file.load().get("shapes", [])]

    def get_delivery_methods(self) -> dict[str, DeliveryMethod]:
        methods = self._file.load().get("delivery_methods", {})
        return {name: self._method(name, raw) for name, raw in methods.items()}

    # --- Serialization helpers ------------------------------------------------

    def _shape(self, raw: dict) -> Shape:
        return Shape(
            id=raw["id"],
            name=raw["name"],
            base_price=Money.of(raw["base_price"], self._currency),
        )

    def _method(self, name: str, raw: dict) -> DeliveryMethod:
        return DeliveryMethod(
            name=name,
            label=raw.get("label", name.title()),
            description=raw.get("description", ""),
            default_tier=raw.get("default_tier", "standard"),
            tiers={
                tier_name: DeliveryTier(
                    name=tier_name,
                    label=tier["label"],
                    description=tier.get("description", ""),
                    fee=Money.of(tier["fee"], self._currency),
                    days=int(tier["days"]),
                )
                for tier_name, tier in raw.get("tiers", {}).items()
            },
        )
