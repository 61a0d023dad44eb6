"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world. Timestamps are ISO-8601
strings and money is pre-formatted.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderlife.domain.service.tracking_amender import TrackingPatch


# --- Inputs ------------------------------------------------------------------


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: what the customer asked for (product name + quantity)."""

    product_name: str
    quantity: int


@dataclass(frozen=True)
class TransitionOptions:
    """Input: optional extras recorded alongside a status change."""

    notes: str | None = None
    location: str | None = None
    tracking_patch: TrackingPatch | None = None
    admin_notes: str | None = None
    strict: bool | None = None


# --- Outputs -----------------------------------------------------------------


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_id: str
    name: str
    quantity: int
    unit_price: str
    line_total: str
    image: str


@dataclass(frozen=True)
class StatusHistoryDTO:
    status: str
    timestamp: str
    notes: str | None
    updated_by: str | None
    location: str | None


@dataclass(frozen=True)
class DeliveryAttemptDTO:
    attempt_date: str
    status: str
    notes: str | None
    location: str | None


@dataclass(frozen=True)
class TrackingDTO:
    tracking_number: str | None
    carrier: str | None
    tracking_url: str | None
    current_location: str | None
    expected_delivery: str | None
    delivery_attempts: list[DeliveryAttemptDTO]


@dataclass(frozen=True)
class OrderView:
    """Output: the full admin view of an order."""

    id: str
    order_number: str
    customer_id: str
    status: str
    status_label: str
    payment_status: str
    payment_method: str
    items: list[OrderLineItemDTO]
    subtotal: str
    tax: str
    shipping_cost: str
    total: str
    shipping_address: dict[str, str | None]
    status_history: list[StatusHistoryDTO]
    tracking: TrackingDTO | None
    estimated_delivery: str | None
    actual_delivery: str | None
    shipped_at: str | None
    out_for_delivery_at: str | None
    delivered_at: str | None
    cancelled_at: str | None
    cancellation_reason: str | None
    notes: str | None
    admin_notes: str | None
    customer_notes: str | None
    created_at: str
    updated_at: str
    revision: int
    can_be_cancelled: bool
    next_status: str | None
    allowed_statuses: list[str]


@dataclass(frozen=True)
class TimelineEntryDTO:
    status: str
    label: str
    timestamp: str
    notes: str | None
    location: str | None


@dataclass(frozen=True)
class TimelineItemDTO:
    name: str
    quantity: int
    price: str
    image: str


@dataclass(frozen=True)
class TimelineView:
    """Output: the customer tracking page. Admin notes never appear here."""

    order_number: str
    status: str
    status_label: str
    status_description: str
    progress: int
    payment_status: str
    total: str
    can_be_cancelled: bool
    estimated_delivery: str | None
    actual_delivery: str | None
    created_at: str
    shipped_at: str | None
    out_for_delivery_at: str | None
    delivered_at: str | None
    customer_notes: str | None
    tracking: TrackingDTO
    shipping_address: dict[str, str]
    items: list[TimelineItemDTO]
    timeline: list[TimelineEntryDTO]
