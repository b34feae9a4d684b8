"""Application service: Show / List Orders use cases (queries)."""

from __future__ import annotations

from nailstudio.application.dto import OrderDTO, order_to_dto
from nailstudio.domain.exceptions import EntityNotFoundError, ValidationError
from nailstudio.domain.model.order import OrderStatus
from nailstudio.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order)


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(
        self,
        user_id: str | None = None,
        status: str | None = None,
    ) -> list[OrderDTO]:
        status_filter = None
        if status:
            try:
                status_filter = OrderStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown order status: '{status}'")
        return [
            order_to_dto(order)
            for order in self._order_repo.list(user_id=user_id, status=status_filter)
        ]
