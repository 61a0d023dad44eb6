"""Domain -> DTO mapping shared by the handlers."""

from __future__ import annotations

from datetime import datetime

from orderlife.application.dto import (
    DeliveryAttemptDTO,
    OrderLineItemDTO,
    OrderView,
    StatusHistoryDTO,
    TimelineEntryDTO,
    TimelineItemDTO,
    TimelineView,
    TrackingDTO,
)
from orderlife.domain.model.order import Order, TrackingInfo
from orderlife.domain.model.status import (
    STATUS_DESCRIPTIONS,
    STATUS_LABELS,
    VALID_TRANSITIONS,
    OrderStatus,
    next_logical_status,
)
from orderlife.domain.service import timeline as projections


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _tracking_dto(tracking: TrackingInfo | None) -> TrackingDTO:
    tracking = tracking or TrackingInfo()
    return TrackingDTO(
        tracking_number=tracking.tracking_number,
        carrier=tracking.carrier,
        tracking_url=tracking.tracking_url,
        current_location=tracking.current_location,
        expected_delivery=_iso(tracking.expected_delivery),
        delivery_attempts=[
            DeliveryAttemptDTO(
                attempt_date=attempt.attempt_date.isoformat(),
                status=attempt.status.value,
                notes=attempt.notes,
                location=attempt.location,
            )
            for attempt in tracking.delivery_attempts
        ],
    )


def to_order_view(order: Order) -> OrderView:
    nxt = next_logical_status(order.status)
    address = order.shipping_address
    return OrderView(
        id=order.id,
        order_number=order.order_number,
        customer_id=order.customer_id,
        status=order.status.value,
        status_label=STATUS_LABELS[order.status],
        payment_status=order.payment_status.value,
        payment_method=order.payment_method,
        items=[
            OrderLineItemDTO(
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                image=item.image,
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        tax=str(order.tax),
        shipping_cost=str(order.shipping_cost),
        total=str(order.total),
        shipping_address={
            "full_name": address.full_name,
            "email": address.email,
            "address_line1": address.address_line1,
            "address_line2": address.address_line2,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
            "country": address.country,
            "phone_number": address.phone_number,
        },
        status_history=[
            StatusHistoryDTO(
                status=entry.status.value,
                timestamp=entry.timestamp.isoformat(),
                notes=entry.notes,
                updated_by=entry.updated_by,
                location=entry.location,
            )
            for entry in order.status_history
        ],
        tracking=_tracking_dto(order.tracking_info) if order.tracking_info else None,
        estimated_delivery=_iso(order.estimated_delivery),
        actual_delivery=_iso(order.actual_delivery),
        shipped_at=_iso(order.shipped_at),
        out_for_delivery_at=_iso(order.out_for_delivery_at),
        delivered_at=_iso(order.delivered_at),
        cancelled_at=_iso(order.cancelled_at),
        cancellation_reason=order.cancellation_reason,
        notes=order.notes,
        admin_notes=order.admin_notes,
        customer_notes=order.customer_notes,
        created_at=order.created_at.isoformat(),
        updated_at=order.updated_at.isoformat(),
        revision=order.revision,
        can_be_cancelled=projections.can_be_cancelled(order),
        next_status=nxt.value if nxt else None,
        allowed_statuses=[
            status.value for status in OrderStatus if status in VALID_TRANSITIONS[order.status]
        ],
    )


def to_timeline_view(order: Order, now: datetime) -> TimelineView:
    address = order.shipping_address
    return TimelineView(
        order_number=order.order_number,
        status=order.status.value,
        status_label=STATUS_LABELS[order.status],
        status_description=STATUS_DESCRIPTIONS[order.status],
        progress=projections.progress_percent(order.status),
        payment_status=order.payment_status.value,
        total=str(order.total),
        can_be_cancelled=projections.can_be_cancelled(order),
        estimated_delivery=_iso(projections.estimated_delivery(order, now)),
        actual_delivery=_iso(order.actual_delivery),
        created_at=order.created_at.isoformat(),
        shipped_at=_iso(order.shipped_at),
        out_for_delivery_at=_iso(order.out_for_delivery_at),
        delivered_at=_iso(order.delivered_at),
        customer_notes=order.customer_notes,
        tracking=_tracking_dto(order.tracking_info),
        # Partial address only: this view is public
        shipping_address={
            "full_name": address.full_name,
            "city": address.city,
            "state": address.state,
            "postal_code": address.postal_code,
        },
        items=[
            TimelineItemDTO(
                name=item.name,
                quantity=item.quantity.value,
                price=str(item.unit_price),
                image=item.image,
            )
            for item in order.items
        ],
        timeline=[
            TimelineEntryDTO(
                status=entry.status.value,
                label=entry.label,
                timestamp=entry.timestamp.isoformat(),
                notes=entry.notes,
                location=entry.location,
            )
            for entry in projections.timeline(order)
        ],
    )
