"""Field-level change set for an Order.

Services never write an order directly. They describe what should change
as an ``OrderUpdate`` and the repository applies it to the *latest*
stored order under its write lock, so two updates touching disjoint
fields merge instead of overwriting each other.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from orderlife.domain.exceptions import ConcurrencyConflictError
from orderlife.domain.model.order import (
    DeliveryAttempt,
    Order,
    StatusHistoryEntry,
    TrackingInfo,
)
from orderlife.domain.model.status import OrderStatus

ORDER_FIELDS = frozenset(
    {
        "status",
        "payment_status",
        "admin_notes",
        "customer_notes",
        "estimated_delivery",
        "cancellation_reason",
    }
)
SET_ONCE_FIELDS = frozenset(
    {
        "shipped_at",
        "out_for_delivery_at",
        "delivered_at",
        "cancelled_at",
        "actual_delivery",
    }
)
TRACKING_FIELDS = frozenset(
    {
        "tracking_number",
        "carrier",
        "tracking_url",
        "current_location",
        "expected_delivery",
    }
)


@dataclass(frozen=True)
class OrderUpdate:
    """What to change on one order, plus the precondition for changing it.

    ``expected_status`` and ``expected_history_length`` make the commit
    conditional: if another writer moved the order in between, the
    repository raises ConcurrencyConflictError instead of applying.
    ``set_once`` fields are only written while still unset in the store.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    set_once: dict[str, datetime] = field(default_factory=dict)
    tracking_fields: dict[str, Any] = field(default_factory=dict)
    history: tuple[StatusHistoryEntry, ...] = ()
    delivery_attempts: tuple[DeliveryAttempt, ...] = ()
    expected_status: OrderStatus | None = None
    expected_history_length: int | None = None

    def __post_init__(self) -> None:
        for name, allowed in (
            ("fields", ORDER_FIELDS),
            ("set_once", SET_ONCE_FIELDS),
            ("tracking_fields", TRACKING_FIELDS),
        ):
            unknown = set(getattr(self, name)) - allowed
            if unknown:
                raise ValueError(f"Unsupported {name} in OrderUpdate: {sorted(unknown)}")

    @property
    def is_empty(self) -> bool:
        return not (
            self.fields
            or self.set_once
            or self.tracking_fields
            or self.history
            or self.delivery_attempts
        )

    def changed_fields(self) -> list[str]:
        names = list(self.fields) + list(self.set_once)
        names += [f"tracking_info.{name}" for name in self.tracking_fields]
        if self.history:
            names.append("status_history")
        if self.delivery_attempts:
            names.append("tracking_info.delivery_attempts")
        return names

    # --- Commit ---------------------------------------------------------------

    def check_preconditions(self, current: Order) -> None:
        if self.expected_status is not None and current.status != self.expected_status:
            raise ConcurrencyConflictError(
                f"Order {current.order_number} is now {current.status.value}, "
                f"expected {self.expected_status.value}"
            )
        if (
            self.expected_history_length is not None
            and len(current.status_history) != self.expected_history_length
        ):
            raise ConcurrencyConflictError(
                f"Order {current.order_number} status history changed concurrently"
            )

    def apply_to(self, current: Order, now: datetime) -> Order:
        """Return a new Order with this update applied on top of ``current``.

        ``current`` itself is left untouched; the caller persists the result
        only after ``check_invariants()`` passes.
        """
        self.check_preconditions(current)

        changes: dict[str, Any] = dict(self.fields)
        for name, value in self.set_once.items():
            if getattr(current, name) is None:
                changes[name] = value

        if self.tracking_fields or self.delivery_attempts:
            tracking = current.tracking_info or TrackingInfo()
            changes["tracking_info"] = replace(
                tracking,
                **self.tracking_fields,
                delivery_attempts=tracking.delivery_attempts + self.delivery_attempts,
            )

        if self.history:
            changes["status_history"] = current.status_history + self.history

        updated = replace(
            current,
            **changes,
            revision=current.revision + 1,
            updated_at=max(now, current.updated_at),
        )
        updated.check_invariants()
        return updated
