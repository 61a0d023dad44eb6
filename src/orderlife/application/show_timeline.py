"""Application service: customer tracking timeline (query).

Read-only: it never goes through the Concurrency Guard and never writes.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from orderlife.application.concurrency_guard import utcnow
from orderlife.application.dto import TimelineView
from orderlife.application.mapping import to_timeline_view
from orderlife.domain.exceptions import EntityNotFoundError, ValidationError
from orderlife.domain.repository.order_repository import OrderRepository


class ShowTimelineHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._clock = clock

    def handle(self, order_id: str) -> TimelineView:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        return to_timeline_view(order, self._clock())

    def handle_by_number(self, order_number: str) -> TimelineView:
        """Lookup used by the public tracking page."""
        if not order_number or not order_number.strip():
            raise ValidationError("Order number is required", field="order_number")
        order = self._order_repo.get_by_order_number(order_number.strip())
        if order is None:
            raise EntityNotFoundError(f"Order {order_number} not found")
        return to_timeline_view(order, self._clock())
