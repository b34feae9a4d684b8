"""Catalog entries consumed by pricing: nail shapes and fulfillment tiers.

The catalog is owned by the studio's admin tooling.  This core only reads
it, so the classes here are plain immutable records.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from nailstudio.domain.exceptions import ValidationError
from nailstudio.domain.model.value_objects import Money


@dataclass(frozen=True)
class Shape:
    id: str
    name: str
    base_price: Money


@dataclass(frozen=True)
class DeliveryTier:
    """A fulfillment speed option with its own fee and lead time."""

    name: str
    label: str
    fee: Money
    days: int
    description: str = ""

    def __post_init__(self) -> None:
        if self.days < 0:
            raise ValidationError(f"Tier '{self.name}' has negative lead time")
        if self.fee.cents < 0:
            raise ValidationError(f"Tier '{self.name}' has a negative fee")


@dataclass(frozen=True)
class DeliveryMethod:
    """pickup / delivery / shipping, each with its own tier table."""

    name: str
    label: str
    tiers: dict[str, DeliveryTier] = field(default_factory=dict)
    default_tier: str = "standard"
    description: str = ""

    def __post_init__(self) -> None:
        if self.default_tier not in self.tiers:
            raise ValidationError(
                f"Delivery method '{self.name}' has no default tier "
                f"'{self.default_tier}'"
            )

    def tier(self, name: str | None) -> DeliveryTier | None:
        if name is None:
            return None
        return self.tiers.get(name)

    @property
    def fallback_tier(self) -> DeliveryTier:
        return self.tiers[self.default_tier]
