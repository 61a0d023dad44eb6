"""Read-only projections of an Order for customer-facing views."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from orderlife.domain.model.order import Order
from orderlife.domain.model.status import (
    CANCELLABLE_STATUSES,
    ESTIMATED_DELIVERY_DAYS,
    PROGRESS_PERCENT,
    STATUS_LABELS,
    OrderStatus,
)


@dataclass(frozen=True)
class TimelineEntry:
    status: OrderStatus
    label: str
    timestamp: datetime
    notes: str | None = None
    location: str | None = None


def progress_percent(status: OrderStatus) -> int:
    return PROGRESS_PERCENT[status]


def timeline(order: Order) -> list[TimelineEntry]:
    """Status history, oldest first.

    Always re-sorted: override transitions may have left entries out of
    order. ``sorted`` is stable, so equal timestamps keep append order.
    """
    return [
        TimelineEntry(
            status=entry.status,
            label=STATUS_LABELS[entry.status],
            timestamp=entry.timestamp,
            notes=entry.notes,
            location=entry.location,
        )
        for entry in sorted(order.status_history, key=lambda e: e.timestamp)
    ]


def can_be_cancelled(order: Order) -> bool:
    return order.status in CANCELLABLE_STATUSES


def estimated_delivery(order: Order, now: datetime) -> datetime | None:
    """Best guess at the delivery date.

    An explicit ``estimated_delivery`` always wins. Otherwise the estimate
    is counted from placement, except out-for-delivery (tomorrow) and
    delivered (the actual date).
    """
    if order.estimated_delivery is not None:
        return order.estimated_delivery
    if order.status is OrderStatus.DELIVERED:
        return order.delivered_at or order.actual_delivery
    if order.status is OrderStatus.OUT_FOR_DELIVERY:
        return now + timedelta(days=1)

    days = ESTIMATED_DELIVERY_DAYS[order.status]
    if days is None:
        return None
    return order.created_at + timedelta(days=days)
