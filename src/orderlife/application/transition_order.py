"""Application service: Transition Order use case.

Runs the Transition Engine inside the Concurrency Guard and, once the
status change is committed, hands a confirmation intent to the notifier
when the order moved from pending to confirmed.
"""

from __future__ import annotations

import logging

from orderlife.application.concurrency_guard import (
    Compute,
    ConcurrencyGuard,
    MutationResult,
)
from orderlife.application.dto import OrderView, TransitionOptions
from orderlife.application.mapping import to_order_view
from orderlife.application.notifications import OrderConfirmation, OrderNotifier
from orderlife.domain.model.order import Order
from orderlife.domain.model.principal import Principal
from orderlife.domain.model.status import OrderStatus, parse_status
from orderlife.domain.service.transition_engine import (
    TransitionEngine,
    TransitionRequest,
)

logger = logging.getLogger(__name__)


class TransitionOrderHandler:

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
        new_status: str | OrderStatus,
        options: TransitionOptions | None = None,
        actor: Principal | None = None,
    ) -> OrderView:
        options = options or TransitionOptions()
        request = TransitionRequest(
            new_status=parse_status(new_status),
            notes=options.notes,
            actor_id=actor.id if actor else None,
            location=options.location,
            tracking_patch=options.tracking_patch,
            admin_notes=options.admin_notes,
            strict=options.strict,
        )
        result = commit_transition(
            self._guard,
            self._notifier,
            order_id,
            lambda order, now: self._engine.transition(order, request, now),
        )
        return to_order_view(result.after)


def commit_transition(
    guard: ConcurrencyGuard,
    notifier: OrderNotifier,
    order_id: str,
    compute: Compute,
) -> MutationResult:
    """Run a status-changing ``compute`` through the guard.

    Once committed, a pending -> confirmed move hands a confirmation to
    ``notifier``. Notifier failures are logged and never raised.
    """
    result = guard.mutate(order_id, compute)
    before, after = result.before, result.after
    logger.info(
        "Order %s: %s -> %s (revision %d)",
        after.order_number,
        before.status.value,
        after.status.value,
        after.revision,
    )
    if before.status is OrderStatus.PENDING and after.status is OrderStatus.CONFIRMED:
        _notify_confirmed(notifier, after)
    return result


def _notify_confirmed(notifier: OrderNotifier, order: Order) -> None:
    try:
        notifier.order_confirmed(OrderConfirmation.from_order(order))
    except Exception:
        # The transition is committed; a mail problem must not undo it
        logger.exception(
            "Error queueing order confirmation email for %s", order.order_number
        )
