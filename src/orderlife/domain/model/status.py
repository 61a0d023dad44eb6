"""Order status graph.

A fixed table of statuses and the legal edges between them, plus the
customer-facing labels used when rendering a tracking page. Pure data and
pure functions; nothing here touches an order.
"""

from __future__ import annotations

from enum import Enum

from orderlife.domain.exceptions import ValidationError


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class DeliveryAttemptStatus(Enum):
    SUCCESSFUL = "successful"
    FAILED = "failed"
    RESCHEDULED = "rescheduled"


# current -> allowed next
VALID_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Forward-progress edge used by the "quick advance" action (never cancellation)
_NEXT_LOGICAL: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.OUT_FOR_DELIVERY: OrderStatus.DELIVERED,
}

CANCELLABLE_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}
)

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Order Placed",
    OrderStatus.CONFIRMED: "Confirmed",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

STATUS_DESCRIPTIONS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Your order has been received and is being reviewed",
    OrderStatus.CONFIRMED: "Your order has been confirmed and payment is being processed",
    OrderStatus.PROCESSING: "Your order is being prepared for shipment",
    OrderStatus.SHIPPED: "Your order has been shipped and is on its way",
    OrderStatus.OUT_FOR_DELIVERY: "Your order is out for delivery and will arrive soon",
    OrderStatus.DELIVERED: "Your order has been successfully delivered",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}

PROGRESS_PERCENT: dict[OrderStatus, int] = {
    OrderStatus.PENDING: 10,
    OrderStatus.CONFIRMED: 20,
    OrderStatus.PROCESSING: 40,
    OrderStatus.SHIPPED: 60,
    OrderStatus.OUT_FOR_DELIVERY: 80,
    OrderStatus.DELIVERED: 100,
    OrderStatus.CANCELLED: 0,
}

# Days until delivery, counted from placement
ESTIMATED_DELIVERY_DAYS: dict[OrderStatus, int | None] = {
    OrderStatus.PENDING: 7,
    OrderStatus.CONFIRMED: 7,
    OrderStatus.PROCESSING: 5,
    OrderStatus.SHIPPED: 3,
    OrderStatus.OUT_FOR_DELIVERY: 1,
    OrderStatus.DELIVERED: 0,
    OrderStatus.CANCELLED: None,
}


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """True if ``new`` is a legal edge out of ``current``."""
    return new in VALID_TRANSITIONS[current]


def next_logical_status(current: OrderStatus) -> OrderStatus | None:
    return _NEXT_LOGICAL.get(current)


def is_terminal(status: OrderStatus) -> bool:
    return not VALID_TRANSITIONS[status]


def status_flow() -> list[OrderStatus]:
    """Statuses in display order for a progress timeline (cancelled excluded)."""
    return [status for status in OrderStatus if status is not OrderStatus.CANCELLED]


def parse_status(raw: str | OrderStatus) -> OrderStatus:
    """Resolve user input to an OrderStatus or raise ValidationError."""
    if isinstance(raw, OrderStatus):
        return raw
    try:
        return OrderStatus(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid order status: {raw!r}", field="status") from exc


def parse_payment_status(raw: str | PaymentStatus) -> PaymentStatus:
    if isinstance(raw, PaymentStatus):
        return raw
    try:
        return PaymentStatus(raw)
    except ValueError as exc:
        raise ValidationError(
            "Invalid payment status. Must be pending, paid, or failed",
            field="payment_status",
        ) from exc


def parse_attempt_status(raw: str | DeliveryAttemptStatus) -> DeliveryAttemptStatus:
    if isinstance(raw, DeliveryAttemptStatus):
        return raw
    try:
        return DeliveryAttemptStatus(raw)
    except ValueError as exc:
        raise ValidationError(
            "Invalid delivery attempt status. Must be successful, failed, or rescheduled",
            field="status",
        ) from exc
