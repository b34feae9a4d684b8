"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from nailstudio.domain.model.order import Order, OrderStatus


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        """Return the order holding this payment intent, or None."""

    @abstractmethod
    def list(
        self,
        user_id: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        """Return orders, newest first, optionally filtered."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        New orders get an ID.  Updates are versioned: if the stored
        version differs from ``order.version`` the save is rejected with
        ConcurrentModificationError.  On success ``order.version`` is
        incremented.  The whole aggregate (order row and nail sets) is
        written in one step; a failure leaves no partial state.
        """

    @abstractmethod
    def delete(self, order_id: int) -> None:
        """Remove an order and its nail sets."""
