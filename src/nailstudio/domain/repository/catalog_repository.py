"""Abstract read-only repository for the shape and delivery catalog.

Defined in the domain layer so the domain never depends on
infrastructure.  The catalog is maintained by admin tooling outside
this core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from nailstudio.domain.model.catalog import DeliveryMethod, Shape


class CatalogRepository(ABC):

    @abstractmethod
    def get_shape_by_id(self, shape_id: str) -> Shape | None:
        """Return a shape by its ID, or None if not found."""

    @abstractmethod
    def list_shapes(self) -> list[Shape]:
        """Return every shape in the catalog."""

    @abstractmethod
    def get_delivery_methods(self) -> dict[str, DeliveryMethod]:
        """Return the method -> tier table, keyed by method name."""
