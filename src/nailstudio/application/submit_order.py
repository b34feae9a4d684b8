"""Application service: Submit Order use case.

Moves a draft to ``submitted`` and takes the order's slot in the weekly
capacity.  A slot is reserved at most once per order, even if the order
is reopened and submitted again.

The order is saved with the week it claims before the counter moves, so
when two submits race only the one whose versioned save wins reserves;
the other fails with ConcurrentModificationError having consumed nothing.
"""

from __future__ import annotations

from datetime import datetime, timezone

from nailstudio.application.dto import OrderDTO, order_to_dto
from nailstudio.domain.exceptions import ConflictError, EntityNotFoundError
from nailstudio.domain.model.capacity import week_start_for
from nailstudio.domain.repository.order_repository import OrderRepository
from nailstudio.domain.service.capacity_admission import CapacityAdmission


class SubmitOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        capacity: CapacityAdmission,
    ) -> None:
        self._order_repo = order_repo
        self._capacity = capacity

    def handle(self, order_id: int, reference: datetime | None = None) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        # Status check first so a rejected submit never consumes a slot
        order.submit()

        if order.capacity_week is not None:
            self._order_repo.save(order)
            return order_to_dto(order)

        reference = reference or datetime.now(timezone.utc)
        order.record_capacity_reservation(week_start_for(reference))
        self._order_repo.save(order)
        try:
            self._capacity.reserve(reference)
        except ConflictError:
            order.withdraw_capacity_reservation()
            order.revert_to_draft()
            self._order_repo.save(order)
            raise
        return order_to_dto(order)


class ReopenOrderHandler:
    """submitted -> draft, so the customer can keep editing."""

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.revert_to_draft()
        self._order_repo.save(order)
        return order_to_dto(order)
