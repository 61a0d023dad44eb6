"""Application service: Amend Tracking use case."""

from __future__ import annotations

import logging
from datetime import datetime

from orderlife.application.concurrency_guard import ConcurrencyGuard
from orderlife.application.dto import OrderView
from orderlife.application.mapping import to_order_view
from orderlife.domain.model.order import Order
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.service.tracking_amender import (
    TrackingAmender,
    TrackingAmendment,
)

logger = logging.getLogger(__name__)


class AmendTrackingHandler:

    def __init__(
        self, guard: ConcurrencyGuard, amender: TrackingAmender | None = None
    ) -> None:
        self._guard = guard
        self._amender = amender or TrackingAmender()

    def handle(self, order_id: str, amendment: TrackingAmendment) -> OrderView:
        changed: list[str] = []

        def compute(order: Order, now: datetime) -> OrderUpdate:
            update = self._amender.amend(order, amendment)
            changed[:] = update.changed_fields()
            return update

        result = self._guard.mutate(order_id, compute)
        if result.committed:
            logger.info(
                "Order %s amended: %s", result.after.order_number, ", ".join(changed)
            )
        else:
            logger.info("Order %s unchanged, nothing to amend", result.after.order_number)
        return to_order_view(result.after)
