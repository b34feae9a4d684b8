"""Domain service: Weekly Capacity Admission Control.

The studio accepts a limited number of orders per Monday-aligned week.
Week records are created lazily and inherit the most recent capacity.
Reservations use a conditional increment on the stored count, never a
read-modify-write, so concurrent submissions cannot lose updates.

Capacity is a non-critical guard: when the store itself is unreachable
the service fails open and lets the order through.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone

from nailstudio.domain.exceptions import (
    CapacityFullError,
    ConflictError,
    UpstreamError,
    ValidationError,
)
from nailstudio.domain.model.capacity import (
    DEFAULT_WEEKLY_CAPACITY,
    CapacityStatus,
    WeeklyCapacity,
    next_week_start_for,
    week_start_for,
)
from nailstudio.domain.repository.capacity_repository import CapacityRepository

logger = logging.getLogger(__name__)

MAX_RESERVE_ATTEMPTS = 10


def _today(reference: date | datetime | None) -> date | datetime:
    return reference if reference is not None else datetime.now(timezone.utc)


class CapacityAdmission:

    def __init__(
        self,
        capacity_repo: CapacityRepository,
        default_capacity: int = DEFAULT_WEEKLY_CAPACITY,
    ) -> None:
        if default_capacity < 1:
            raise ValidationError("Default weekly capacity must be at least 1")
        self._capacity_repo = capacity_repo
        self._default_capacity = default_capacity

    # --- Queries --------------------------------------------------------------

    def get_or_create(self, week_start: date) -> WeeklyCapacity:
        """Return the week's record, creating it from the latest prior week."""
        existing = self._capacity_repo.get(week_start)
        if existing is not None:
            return existing

        previous = self._capacity_repo.latest_before(week_start)
        capacity = previous.weekly_capacity if previous else self._default_capacity
        return self._capacity_repo.create_if_absent(
            WeeklyCapacity(week_start=week_start, weekly_capacity=capacity)
        )

    def check(self, reference: date | datetime | None = None) -> CapacityStatus:
        """Availability for the week of ``reference`` (no reservation)."""
        reference = _today(reference)
        try:
            record = self.get_or_create(week_start_for(reference))
        except UpstreamError as exc:
            logger.warning("Capacity store unavailable, failing open: %s", exc)
            return CapacityStatus.fail_open(reference)
        return CapacityStatus.from_record(record)

    # --- Reservation ----------------------------------------------------------

    def reserve(self, reference: date | datetime | None = None) -> CapacityStatus:
        """Take one slot in the week of ``reference``.

        Raises CapacityFullError when the week is full.  Returns the
        counts after the reservation; ``available`` reports that this
        reservation got a slot, even when it took the last one.
        """
        reference = _today(reference)
        week_start = week_start_for(reference)
        try:
            for _ in range(MAX_RESERVE_ATTEMPTS):
                record = self.get_or_create(week_start)
                if not record.has_room:
                    raise CapacityFullError(week_start, next_week_start_for(reference))
                if self._capacity_repo.increment_orders_if(week_start, record.orders_count):
                    record.orders_count += 1
                    return replace(CapacityStatus.from_record(record), available=True)
                logger.info("Lost orders_count race for week %s; retrying", week_start)
        except UpstreamError as exc:
            logger.warning("Capacity store unavailable, failing open: %s", exc)
            return CapacityStatus.fail_open(reference)

        raise ConflictError(
            f"Could not reserve capacity for week {week_start.isoformat()}, please retry"
        )

    def check_and_reserve(self, reference: date | datetime | None = None) -> CapacityStatus:
        """Reserve a slot, reporting a full week as ``available=False``."""
        reference = _today(reference)
        try:
            return self.reserve(reference)
        except CapacityFullError:
            return self.check(reference)

    # --- Admin ----------------------------------------------------------------

    def set_weekly_capacity(
        self, capacity: int, reference: date | datetime | None = None
    ) -> WeeklyCapacity:
        """Change the capacity of the current week; later weeks inherit it."""
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValidationError("Capacity must be a positive number")
        record = self.get_or_create(week_start_for(_today(reference)))
        self._capacity_repo.update_capacity(record.week_start, capacity)
        record.weekly_capacity = capacity
        return record

    def reset_week(self, reference: date | datetime | None = None) -> WeeklyCapacity:
        """Zero the current week's order count."""
        record = self.get_or_create(week_start_for(_today(reference)))
        self._capacity_repo.reset_orders(record.week_start)
        record.orders_count = 0
        return record

    def simulate_week(self, target: date | datetime) -> WeeklyCapacity:
        """Get-or-create the record of an arbitrary week (admin testing aid)."""
        return self.get_or_create(week_start_for(target))
