"""Abstract repository for weekly capacity counters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from nailstudio.domain.model.capacity import WeeklyCapacity


class CapacityRepository(ABC):

    @abstractmethod
    def get(self, week_start: date) -> WeeklyCapacity | None:
        """Return the record for a week, or None."""

    @abstractmethod
    def latest_before(self, week_start: date) -> WeeklyCapacity | None:
        """Return the most recent record strictly before ``week_start``."""

    @abstractmethod
    def create_if_absent(self, record: WeeklyCapacity) -> WeeklyCapacity:
        """Insert ``record`` unless its week exists; return the stored row."""

    @abstractmethod
    def increment_orders_if(self, week_start: date, expected_count: int) -> bool:
        """Atomically set orders_count = expected_count + 1.

        Only succeeds when the stored orders_count still equals
        ``expected_count``; returns False otherwise.
        """

    @abstractmethod
    def update_capacity(self, week_start: date, weekly_capacity: int) -> None:
        """Set a week's capacity without touching its orders_count."""

    @abstractmethod
    def reset_orders(self, week_start: date) -> None:
        """Set a week's orders_count back to 0 (admin action)."""
