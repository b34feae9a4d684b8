"""Application service: Delete Order use case (drafts only)."""

from __future__ import annotations

from nailstudio.domain.exceptions import EntityNotFoundError
from nailstudio.domain.repository.order_repository import OrderRepository


class DeleteOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> None:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.ensure_deletable()
        self._order_repo.delete(order_id)
