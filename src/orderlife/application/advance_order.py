"""Application service: Quick Advance use case.

Moves an order one step along its forward path (never to cancelled). The
next status is recomputed on every retry, so two admins pressing the
button at once advance the order twice rather than both aiming at the
same target.
"""

from __future__ import annotations

from datetime import datetime

from orderlife.application.concurrency_guard import ConcurrencyGuard
from orderlife.application.dto import OrderView
from orderlife.application.mapping import to_order_view
from orderlife.application.notifications import OrderNotifier
from orderlife.application.transition_order import commit_transition
from orderlife.domain.exceptions import ValidationError
from orderlife.domain.model.order import Order
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.model.principal import Principal
from orderlife.domain.model.status import next_logical_status
from orderlife.domain.service.transition_engine import (
    TransitionEngine,
    TransitionRequest,
)


class AdvanceOrderHandler:

    def __init__(
        self,
        guard: ConcurrencyGuard,
        notifier: OrderNotifier,
        engine: TransitionEngine | None = None,
    ) -> None:
        self._guard = guard
        self._notifier = notifier
        self._engine = engine or TransitionEngine()

    def handle(
        self,
        order_id: str,
        actor: Principal | None = None,
        notes: str | None = None,
    ) -> OrderView:
        def compute(order: Order, now: datetime) -> OrderUpdate:
            target = next_logical_status(order.status)
            if target is None:
                raise ValidationError(
                    f"Order {order.order_number} is {order.status.value} "
                    f"and cannot be advanced",
                    field="status",
                )
            request = TransitionRequest(
                new_status=target,
                notes=notes,
                actor_id=actor.id if actor else None,
            )
            return self._engine.transition(order, request, now)

        result = commit_transition(self._guard, self._notifier, order_id, compute)
        return to_order_view(result.after)
