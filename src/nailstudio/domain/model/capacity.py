"""Weekly order capacity records and the admission status derived from them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from nailstudio.domain.exceptions import ValidationError

DEFAULT_WEEKLY_CAPACITY = 50
ALMOST_FULL_THRESHOLD = 3


def week_start_for(reference: date | datetime) -> date:
    """Monday of the ISO week containing ``reference``.

    Sunday belongs to the week that started six days earlier.
    """
    if isinstance(reference, datetime):
        reference = reference.date()
    return reference - timedelta(days=reference.weekday())


def next_week_start_for(reference: date | datetime) -> date:
    return week_start_for(reference) + timedelta(days=7)


@dataclass
class WeeklyCapacity:
    """Order counter for one Monday-aligned week.

    Invariants:
    - ``weekly_capacity`` >= 1
    - ``orders_count`` >= 0 and only grows, except through an admin reset
    """

    week_start: date
    weekly_capacity: int = DEFAULT_WEEKLY_CAPACITY
    orders_count: int = 0

    def __post_init__(self) -> None:
        if self.week_start.weekday() != 0:
            raise ValidationError(
                f"Week start {self.week_start.isoformat()} is not a Monday"
            )
        if self.weekly_capacity < 1:
            raise ValidationError("Weekly capacity must be at least 1")
        if self.orders_count < 0:
            raise ValidationError("Orders count cannot be negative")

    @property
    def remaining(self) -> int:
        return max(0, self.weekly_capacity - self.orders_count)

    @property
    def has_room(self) -> bool:
        return self.orders_count < self.weekly_capacity


@dataclass(frozen=True)
class CapacityStatus:
    """Admission answer for a reference date.

    ``degraded`` is set when the capacity store could not be reached and
    the answer is the fail-open default; ``remaining`` is then unknown.
    """

    available: bool
    remaining: int | None
    weekly_capacity: int | None
    orders_count: int | None
    week_start: date
    next_week_start: date
    degraded: bool = False

    @property
    def is_full(self) -> bool:
        return not self.available

    @property
    def is_almost_full(self) -> bool:
        return self.remaining is not None and 0 < self.remaining <= ALMOST_FULL_THRESHOLD

    @staticmethod
    def from_record(record: WeeklyCapacity) -> CapacityStatus:
        return CapacityStatus(
            available=record.has_room,
            remaining=record.remaining,
            weekly_capacity=record.weekly_capacity,
            orders_count=record.orders_count,
            week_start=record.week_start,
            next_week_start=record.week_start + timedelta(days=7),
        )

    @staticmethod
    def fail_open(reference: date | datetime) -> CapacityStatus:
        return CapacityStatus(
            available=True,
            remaining=None,
            weekly_capacity=None,
            orders_count=None,
            week_start=week_start_for(reference),
            next_week_start=next_week_start_for(reference),
            degraded=True,
        )
