"""Domain service: Transition Engine.

The only code path that changes ``Order.status``. It validates the request
against the status graph, builds the history entry and derives the
one-shot timestamps, and hands everything back as a single conditional
``OrderUpdate`` so status, history and tracking commit together.

Out-of-graph transitions are an admin override, not an error: they are
logged at WARNING and applied. Strict mode turns them into
IllegalTransitionError for callers that want enforcement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from orderlife.domain.exceptions import IllegalTransitionError, ValidationError
from orderlife.domain.model.order import Order, StatusHistoryEntry
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.model.status import (
    OrderStatus,
    PaymentStatus,
    is_valid_transition,
)
from orderlife.domain.service.tracking_amender import TrackingPatch

logger = logging.getLogger(__name__)

# Status reached -> timestamp fields stamped the first time it is reached
DERIVED_TIMESTAMPS: dict[OrderStatus, tuple[str, ...]] = {
    OrderStatus.SHIPPED: ("shipped_at",),
    OrderStatus.OUT_FOR_DELIVERY: ("out_for_delivery_at",),
    OrderStatus.DELIVERED: ("delivered_at", "actual_delivery"),
    OrderStatus.CANCELLED: ("cancelled_at",),
}


@dataclass(frozen=True)
class TransitionRequest:
    new_status: OrderStatus
    notes: str | None = None
    actor_id: str | None = None
    location: str | None = None
    tracking_patch: TrackingPatch | None = None
    admin_notes: str | None = None
    strict: bool | None = None


class TransitionEngine:

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def transition(
        self, order: Order, request: TransitionRequest, now: datetime
    ) -> OrderUpdate:
        new_status = request.new_status
        if new_status == order.status:
            raise ValidationError(
                f"Order {order.order_number} is already {new_status.value}",
                field="status",
            )

        if not is_valid_transition(order.status, new_status):
            strict = self._strict if request.strict is None else request.strict
            if strict:
                raise IllegalTransitionError(order.status.value, new_status.value)
            logger.warning(
                "Admin %s performed invalid status transition from %s to %s for order %s",
                request.actor_id or "unknown",
                order.status.value,
                new_status.value,
                order.order_number,
            )

        tracking_fields: dict[str, Any] = {}
        if request.tracking_patch is not None:
            tracking_fields = request.tracking_patch.tracking_values()

        location = request.location
        if location is None:
            location = tracking_fields.get("current_location")

        # History must never go backwards, even if the clock does
        timestamp = max(now, order.current_entry.timestamp)
        entry = StatusHistoryEntry(
            status=new_status,
            timestamp=timestamp,
            notes=request.notes or f"Status updated to {new_status.value}",
            updated_by=request.actor_id,
            location=location,
        )

        fields: dict[str, Any] = {"status": new_status}
        if new_status is OrderStatus.DELIVERED:
            # Cash on delivery: reaching the door means we got paid
            fields["payment_status"] = PaymentStatus.PAID
        if (
            new_status is OrderStatus.CANCELLED
            and request.notes
            and order.cancellation_reason is None
        ):
            fields["cancellation_reason"] = request.notes
        if request.admin_notes is not None:
            fields["admin_notes"] = request.admin_notes.strip()

        set_once = {
            name: timestamp
            for name in DERIVED_TIMESTAMPS.get(new_status, ())
            if getattr(order, name) is None
        }

        return OrderUpdate(
            fields=fields,
            set_once=set_once,
            tracking_fields=tracking_fields,
            history=(entry,),
            expected_status=order.status,
            expected_history_length=len(order.status_history),
        )
