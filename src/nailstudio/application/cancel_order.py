"""Application service: Cancel Order use case.

Any order that has not been paid can be cancelled.  The weekly capacity
slot and any redeemed promo use are not given back: both counters only
move forward.
"""

from __future__ import annotations

from nailstudio.application.dto import OrderDTO, order_to_dto
from nailstudio.domain.exceptions import EntityNotFoundError
from nailstudio.domain.repository.order_repository import OrderRepository


class CancelOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        order.cancel()
        self._order_repo.save(order)
        return order_to_dto(order)
