"""Unit tests for the Tracking Amender."""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from orderlife.domain.exceptions import ValidationError
from orderlife.domain.model.order import TrackingInfo
from orderlife.domain.model.status import DeliveryAttemptStatus, OrderStatus, PaymentStatus
from orderlife.domain.service.tracking_amender import TrackingAmender, TrackingAmendment
from tests.fakes import T0, make_order


class TestAmend:

    def test_only_changed_fields_in_update(self):
        order = replace(make_order(), tracking_info=TrackingInfo(carrier="BlueDart"))
        update = TrackingAmender().amend(
            order, TrackingAmendment(carrier="BlueDart", tracking_number="TN1")
        )
        assert update.tracking_fields == {"tracking_number": "TN1"}
        assert update.fields == {}

    def test_identical_values_give_empty_update(self):
        order = replace(
            make_order(),
            admin_notes="fragile",
            tracking_info=TrackingInfo(tracking_number="TN1"),
        )
        update = TrackingAmender().amend(
            order, TrackingAmendment(tracking_number="TN1", admin_notes="fragile")
        )
        assert update.is_empty

    def test_values_are_trimmed(self):
        update = TrackingAmender().amend(
            make_order(), TrackingAmendment(carrier="  Delhivery ", customer_notes=" ring twice ")
        )
        assert update.tracking_fields["carrier"] == "Delhivery"
        assert update.fields["customer_notes"] == "ring twice"

    def test_never_touches_status(self):
        update = TrackingAmender().amend(
            make_order(), TrackingAmendment(payment_status="paid", current_location="Pune")
        )
        assert "status" not in update.fields
        assert update.history == ()
        assert update.expected_status is None

    def test_payment_status_parsed(self):
        update = TrackingAmender().amend(make_order(), TrackingAmendment(payment_status="failed"))
        assert update.fields["payment_status"] is PaymentStatus.FAILED

    def test_bad_payment_status_rejected(self):
        with pytest.raises(ValidationError, match="pending, paid, or failed"):
            TrackingAmender().amend(make_order(), TrackingAmendment(payment_status="refunded"))

    def test_bad_date_rejects_whole_amendment(self):
        with pytest.raises(ValidationError) as exc_info:
            TrackingAmender().amend(
                make_order(),
                TrackingAmendment(carrier="BlueDart", expected_delivery="next tuesday"),
            )
        assert exc_info.value.field == "expected_delivery"

    def test_estimated_delivery_parsed_as_utc(self):
        update = TrackingAmender().amend(
            make_order(), TrackingAmendment(estimated_delivery="2024-05-08")
        )
        assert update.fields["estimated_delivery"] == datetime(2024, 5, 8, tzinfo=timezone.utc)

    def test_allowed_on_terminal_order(self):
        order = replace(make_order(), status=OrderStatus.DELIVERED)
        update = TrackingAmender().amend(order, TrackingAmendment(customer_notes="Thanks!"))
        assert update.fields == {"customer_notes": "Thanks!"}


class TestDeliveryAttempt:

    def test_attempt_appended_without_status_change(self):
        update = TrackingAmender().add_delivery_attempt(
            make_order(), "failed", T0, notes=" nobody home ", location="Koramangala"
        )
        assert update.fields == {}
        assert update.history == ()
        (attempt,) = update.delivery_attempts
        assert attempt.status is DeliveryAttemptStatus.FAILED
        assert attempt.attempt_date == T0
        assert attempt.notes == "nobody home"
        assert attempt.location == "Koramangala"

    def test_unknown_attempt_status_rejected(self):
        with pytest.raises(ValidationError):
            TrackingAmender().add_delivery_attempt(make_order(), "lost", T0)

    def test_failed_attempts_logged(self, caplog):
        amender = TrackingAmender()
        order = make_order()
        order = amender.add_delivery_attempt(order, "failed", T0).apply_to(order, T0)
        with caplog.at_level(logging.INFO):
            amender.add_delivery_attempt(order, "failed", T0 + timedelta(hours=4))
        assert any("2 failed delivery attempt" in r.getMessage() for r in caplog.records)

    def test_attempts_accumulate_in_order(self):
        amender = TrackingAmender()
        order = make_order()
        for i, status in enumerate(["failed", "rescheduled", "successful"]):
            now = T0 + timedelta(hours=i)
            order = amender.add_delivery_attempt(order, status, now).apply_to(order, now)
        assert [a.status.value for a in order.delivery_attempts] == [
            "failed", "rescheduled", "successful",
        ]
        assert order.status is OrderStatus.PENDING
