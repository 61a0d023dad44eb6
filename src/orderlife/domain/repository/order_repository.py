"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from orderlife.domain.model.order import Order
from orderlife.domain.model.order_update import OrderUpdate


class OrderRepository(ABC):

    @abstractmethod
    def count(self) -> int:
        """Return how many orders exist (feeds order-number generation)."""

    @abstractmethod
    def add(self, order: Order) -> None:
        """Persist a brand-new order.

        Raises ValidationError if the id or order number is already taken.
        """

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Order | None:
        """Return an order by its public order number, or None."""

    @abstractmethod
    def apply(self, order_id: str, update: OrderUpdate, now: datetime) -> Order:
        """Atomically apply ``update`` to the latest stored order.

        Implementations must re-read the stored order under a write lock,
        call ``update.apply_to()`` and persist the result in one step.
        Raises EntityNotFoundError, ConcurrencyConflictError (precondition
        failed) or StorageError (nothing was written).
        """
