"""Application services: weekly capacity queries and admin updates."""

from __future__ import annotations

from datetime import date, datetime

from nailstudio.application.dto import CapacityDTO, capacity_to_dto
from nailstudio.domain.exceptions import ValidationError
from nailstudio.domain.service.capacity_admission import CapacityAdmission


class CheckCapacityHandler:

    def __init__(self, capacity: CapacityAdmission) -> None:
        self._capacity = capacity

    def handle(self, reference: date | datetime | None = None) -> CapacityDTO:
        return capacity_to_dto(self._capacity.check(reference))


class UpdateCapacityHandler:
    """Admin: change this week's capacity and/or reset its order count."""

    def __init__(self, capacity: CapacityAdmission) -> None:
        self._capacity = capacity

    def handle(
        self,
        weekly_capacity: int | None = None,
        reset: bool = False,
        reference: date | datetime | None = None,
    ) -> CapacityDTO:
        if weekly_capacity is None and not reset:
            raise ValidationError("Nothing to update: give a capacity or reset")

        if weekly_capacity is not None:
            self._capacity.set_weekly_capacity(weekly_capacity, reference)
        if reset:
            self._capacity.reset_week(reference)
        return capacity_to_dto(self._capacity.check(reference))
