"""Application service: Add Delivery Attempt use case.

Recording an attempt never changes the order status; deciding to cancel
after repeated failures is a separate transition.
"""

from __future__ import annotations

import logging

from orderlife.application.concurrency_guard import ConcurrencyGuard
from orderlife.application.dto import OrderView
from orderlife.application.mapping import to_order_view
from orderlife.domain.model.status import DeliveryAttemptStatus
from orderlife.domain.service.tracking_amender import TrackingAmender

logger = logging.getLogger(__name__)


class AddDeliveryAttemptHandler:

    def __init__(
        self, guard: ConcurrencyGuard, amender: TrackingAmender | None = None
    ) -> None:
        self._guard = guard
        self._amender = amender or TrackingAmender()

    def handle(
        self,
        order_id: str,
        status: str | DeliveryAttemptStatus,
        notes: str | None = None,
        location: str | None = None,
    ) -> OrderView:
        result = self._guard.mutate(
            order_id,
            lambda order, now: self._amender.add_delivery_attempt(
                order, status, now, notes=notes, location=location
            ),
        )
        order = result.after
        logger.info(
            "Order %s: delivery attempt #%d recorded (%s)",
            order.order_number,
            len(order.delivery_attempts),
            order.delivery_attempts[-1].status.value,
        )
        return to_order_view(order)
