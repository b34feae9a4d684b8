"""Abstract repository for promo codes and their usage records."""

from __future__ import annotations

from abc import ABC, abstractmethod

from nailstudio.domain.model.promo import PromoCode, PromoUsageRecord


class PromoRepository(ABC):

    @abstractmethod
    def get_by_code(self, code: str) -> PromoCode | None:
        """Return a promo by its normalized code (exact match), or None."""

    @abstractmethod
    def get_by_id(self, promo_id: str) -> PromoCode | None:
        """Return a promo by its ID, or None."""

    @abstractmethod
    def list_all(self) -> list[PromoCode]:
        """Return every promo code."""

    @abstractmethod
    def save(self, promo: PromoCode) -> None:
        """Persist a new or updated promo definition."""

    @abstractmethod
    def increment_uses_if(self, usage: PromoUsageRecord, expected_uses: int) -> bool:
        """Atomically set uses_count = expected_uses + 1 and record ``usage``.

        Only succeeds when the stored uses_count still equals
        ``expected_uses``, a use remains, and ``usage.order_id`` has not
        redeemed this promo yet; returns False (nothing written) otherwise.
        """

    @abstractmethod
    def find_usage(self, promo_id: str, order_id: int) -> PromoUsageRecord | None:
        """The record of ``promo_id`` being redeemed on ``order_id``, or None."""

    @abstractmethod
    def count_usage(self, promo_id: str, user_id: str) -> int:
        """Number of usage records for (promo, user)."""
