"""Order aggregate: the core of the domain.

The Order is an aggregate root that owns its line items, its status
history and its tracking sub-record. Everything an order carries is a
frozen value except the aggregate itself; history and delivery attempts
are tuples, so an appended entry can never be edited afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from orderlife.domain.exceptions import ValidationError
from orderlife.domain.model.status import (
    DeliveryAttemptStatus,
    OrderStatus,
    PaymentStatus,
)
from orderlife.domain.model.value_objects import Money, Quantity

MAX_HISTORY_NOTES = 500
MAX_ADMIN_NOTES = 1000
MAX_CUSTOMER_NOTES = 500

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[+]?[\d\s\-()]{10,15}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderLineItem:
    """Snapshot of a catalog product at placement time.

    Never re-read from the catalog, so later price or name edits leave
    historical orders untouched.
    """

    product_id: str
    name: str
    unit_price: Money
    quantity: Quantity
    image: str = ""

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class ShippingAddress:
    full_name: str
    email: str
    address_line1: str
    city: str
    state: str
    postal_code: str
    phone_number: str
    country: str = "India"
    address_line2: str | None = None

    def validate(self) -> None:
        required = {
            "full_name": self.full_name,
            "address_line1": self.address_line1,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }
        for name, value in required.items():
            if not value or not value.strip():
                raise ValidationError(
                    f"{name.replace('_', ' ').capitalize()} is required", field=name
                )
        if not _EMAIL_RE.match(self.email or ""):
            raise ValidationError("Please provide a valid email address", field="email")
        if not _PHONE_RE.match(self.phone_number or ""):
            raise ValidationError(
                "Please provide a valid phone number", field="phone_number"
            )


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: OrderStatus
    timestamp: datetime
    notes: str | None = None
    updated_by: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class DeliveryAttempt:
    attempt_date: datetime
    status: DeliveryAttemptStatus
    notes: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class TrackingInfo:
    tracking_number: str | None = None
    carrier: str | None = None
    tracking_url: str | None = None
    current_location: str | None = None
    expected_delivery: datetime | None = None
    delivery_attempts: tuple[DeliveryAttempt, ...] = ()


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders. The ``__init__`` is kept simple
    so repositories can reconstitute persisted orders without re-running
    placement rules; ``check_invariants()`` is what every commit re-runs.
    """

    id: str
    order_number: str
    customer_id: str
    items: tuple[OrderLineItem, ...]
    subtotal: Money
    tax: Money
    shipping_cost: Money
    total: Money
    shipping_address: ShippingAddress
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str = "cod"
    status_history: tuple[StatusHistoryEntry, ...] = ()
    tracking_info: TrackingInfo | None = None
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    shipped_at: datetime | None = None
    out_for_delivery_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    notes: str | None = None
    admin_notes: str | None = None
    customer_notes: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    revision: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        order_id: str,
        order_number: str,
        customer_id: str,
        items: list[OrderLineItem],
        shipping_address: ShippingAddress,
        tax: Money,
        shipping_cost: Money,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new pending order with its initial history entry."""
        if not customer_id:
            raise ValidationError("Customer is required", field="customer_id")
        if not items:
            raise ValidationError("Order must contain at least one item", field="items")
        if notes is not None and len(notes) > MAX_HISTORY_NOTES:
            raise ValidationError(
                f"Notes cannot exceed {MAX_HISTORY_NOTES} characters", field="notes"
            )
        shipping_address.validate()

        subtotal = Money.zero(tax.currency)
        for item in items:
            subtotal = subtotal + item.line_total

        placed_at = now or _utcnow()
        order = Order(
            id=order_id,
            order_number=order_number,
            customer_id=customer_id,
            items=tuple(items),
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            total=subtotal + tax + shipping_cost,
            shipping_address=shipping_address,
            status_history=(
                StatusHistoryEntry(
                    status=OrderStatus.PENDING,
                    timestamp=placed_at,
                    notes="Order placed",
                ),
            ),
            notes=notes,
            created_at=placed_at,
            updated_at=placed_at,
        )
        order.check_invariants()
        return order

    # --- Invariants -----------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise ValidationError if the aggregate is not in a committable state."""
        if self.subtotal + self.tax + self.shipping_cost != self.total:
            raise ValidationError(
                f"Order total {self.total} does not equal subtotal {self.subtotal} "
                f"+ tax {self.tax} + shipping {self.shipping_cost}",
                field="total",
            )
        if not self.status_history:
            raise ValidationError("Status history cannot be empty", field="status_history")
        for earlier, later in zip(self.status_history, self.status_history[1:]):
            if later.timestamp < earlier.timestamp:
                raise ValidationError(
                    "Status history timestamps must not decrease",
                    field="status_history",
                )
        for entry in self.status_history:
            if entry.notes is not None and len(entry.notes) > MAX_HISTORY_NOTES:
                raise ValidationError(
                    f"Notes cannot exceed {MAX_HISTORY_NOTES} characters", field="notes"
                )
        if self.admin_notes is not None and len(self.admin_notes) > MAX_ADMIN_NOTES:
            raise ValidationError(
                f"Admin notes cannot exceed {MAX_ADMIN_NOTES} characters",
                field="admin_notes",
            )
        if self.customer_notes is not None and len(self.customer_notes) > MAX_CUSTOMER_NOTES:
            raise ValidationError(
                f"Customer notes cannot exceed {MAX_CUSTOMER_NOTES} characters",
                field="customer_notes",
            )

    # --- Computed properties --------------------------------------------------

    @property
    def current_entry(self) -> StatusHistoryEntry:
        return self.status_history[-1]

    @property
    def delivery_attempts(self) -> tuple[DeliveryAttempt, ...]:
        if self.tracking_info is None:
            return ()
        return self.tracking_info.delivery_attempts


def generate_order_number(sequence: int, now: datetime | None = None) -> str:
    """``ORD-<last 6 digits of epoch millis>-<sequence padded to 4>``."""
    millis = int((now or _utcnow()).timestamp() * 1000)
    return f"ORD-{str(millis)[-6:]}-{sequence:04d}"
