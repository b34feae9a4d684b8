"""Fulfillment selection: how (method) and how fast (speed tier)."""

from __future__ import annotations

from dataclasses import dataclass

from nailstudio.domain.exceptions import ValidationError

PICKUP = "pickup"
DELIVERY = "delivery"
SHIPPING = "shipping"


@dataclass(frozen=True)
class ShippingAddress:
    name: str
    line1: str
    city: str
    postal_code: str
    region: str = ""
    line2: str = ""
    country: str = "US"

    def to_raw(self) -> dict:
        return {
            "name": self.name,
            "line1": self.line1,
            "line2": self.line2,
            "city": self.city,
            "region": self.region,
            "postal_code": self.postal_code,
            "country": self.country,
        }

    @staticmethod
    def from_raw(raw: dict | None) -> ShippingAddress | None:
        if not raw:
            return None
        return ShippingAddress(
            name=raw.get("name", ""),
            line1=raw.get("line1", ""),
            line2=raw.get("line2", ""),
            city=raw.get("city", ""),
            region=raw.get("region", ""),
            postal_code=raw.get("postal_code", ""),
            country=raw.get("country", "US"),
        )


@dataclass(frozen=True)
class FulfillmentSelection:
    """Method + speed tier chosen by the customer.

    Tier names are not validated here; the catalog may define tiers
    dynamically and pricing falls back to the method's default tier.
    """

    method: str = PICKUP
    speed: str | None = None
    address: ShippingAddress | None = None

    def __post_init__(self) -> None:
        if not self.method or not self.method.strip():
            raise ValidationError("Fulfillment method is required")

    def to_raw(self) -> dict:
        return {
            "method": self.method,
            "speed": self.speed,
            "address": self.address.to_raw() if self.address else None,
        }

    @staticmethod
    def from_raw(raw: dict | None) -> FulfillmentSelection:
        raw = raw or {}
        return FulfillmentSelection(
            method=raw.get("method") or PICKUP,
            speed=raw.get("speed"),
            address=ShippingAddress.from_raw(raw.get("address")),
        )
