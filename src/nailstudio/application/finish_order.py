"""Application service: Finish Order use case (paid -> completed)."""

from __future__ import annotations

from nailstudio.application.dto import OrderDTO, order_to_dto
from nailstudio.domain.exceptions import EntityNotFoundError
from nailstudio.domain.repository.order_repository import OrderRepository


class FinishOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.complete_production()
        self._order_repo.save(order)
        return order_to_dto(order)
