"""Domain service: Tracking Amender.

Computes changes to shipping/carrier metadata, notes, payment status and
delivery attempts. None of these touch ``status`` or ``status_history``,
and all of them stay legal on delivered and cancelled orders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from orderlife.domain.model.order import DeliveryAttempt, Order, TrackingInfo
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.model.status import (
    DeliveryAttemptStatus,
    PaymentStatus,
    parse_attempt_status,
    parse_payment_status,
)
from orderlife.domain.model.value_objects import parse_calendar_date

logger = logging.getLogger(__name__)

DateInput = str | date | datetime


@dataclass(frozen=True)
class TrackingPatch:
    """Partial tracking sub-record. ``None`` means "leave as is"."""

    tracking_number: str | None = None
    carrier: str | None = None
    tracking_url: str | None = None
    current_location: str | None = None
    expected_delivery: DateInput | None = None

    def tracking_values(self) -> dict[str, Any]:
        """Present fields only, with dates parsed (raises ValidationError)."""
        values: dict[str, Any] = {}
        for name in ("tracking_number", "carrier", "tracking_url", "current_location"):
            value = getattr(self, name)
            if value is not None:
                values[name] = value.strip()
        if self.expected_delivery is not None:
            values["expected_delivery"] = parse_calendar_date(
                self.expected_delivery, "expected_delivery"
            )
        return values


@dataclass(frozen=True)
class TrackingAmendment(TrackingPatch):
    """Everything an admin may change on an order without a transition."""

    admin_notes: str | None = None
    customer_notes: str | None = None
    payment_status: str | PaymentStatus | None = None
    estimated_delivery: DateInput | None = None

    def order_values(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        if self.admin_notes is not None:
            values["admin_notes"] = self.admin_notes.strip()
        if self.customer_notes is not None:
            values["customer_notes"] = self.customer_notes.strip()
        if self.payment_status is not None:
            values["payment_status"] = parse_payment_status(self.payment_status)
        if self.estimated_delivery is not None:
            values["estimated_delivery"] = parse_calendar_date(
                self.estimated_delivery, "estimated_delivery"
            )
        return values


class TrackingAmender:

    def amend(self, order: Order, amendment: TrackingAmendment) -> OrderUpdate:
        """Diff ``amendment`` against ``order`` field by field.

        Returns an empty update when every present field already holds the
        requested value; callers must not write in that case.
        """
        # Parse everything first so a bad date never yields a partial diff
        tracking_values = amendment.tracking_values()
        order_values = amendment.order_values()

        current_tracking = order.tracking_info or TrackingInfo()
        tracking_fields = {
            name: value
            for name, value in tracking_values.items()
            if getattr(current_tracking, name) != value
        }
        fields = {
            name: value
            for name, value in order_values.items()
            if getattr(order, name) != value
        }
        return OrderUpdate(fields=fields, tracking_fields=tracking_fields)

    def add_delivery_attempt(
        self,
        order: Order,
        status: str | DeliveryAttemptStatus,
        now: datetime,
        notes: str | None = None,
        location: str | None = None,
    ) -> OrderUpdate:
        """Record one physical delivery try.

        A failed attempt is data, not an implicit transition: the order's
        status is never touched here.
        """
        attempt = DeliveryAttempt(
            attempt_date=now,
            status=parse_attempt_status(status),
            notes=notes.strip() if notes else None,
            location=location.strip() if location else None,
        )
        failed = sum(
            1 for a in order.delivery_attempts if a.status is DeliveryAttemptStatus.FAILED
        )
        if attempt.status is DeliveryAttemptStatus.FAILED:
            failed += 1
        if failed:
            logger.info(
                "Order %s has %d failed delivery attempt(s)", order.order_number, failed
            )
        return OrderUpdate(delivery_attempts=(attempt,))
