"""Unit tests for the Transition Engine (pure change-set computation)."""

import logging
from datetime import timedelta

import pytest

from orderlife.domain.exceptions import IllegalTransitionError, ValidationError
from orderlife.domain.model.status import OrderStatus, PaymentStatus
from orderlife.domain.service.tracking_amender import TrackingPatch
from orderlife.domain.service.transition_engine import TransitionEngine, TransitionRequest
from tests.fakes import T0, make_order

S = OrderStatus


def _step(order, status, minutes=1, engine=None, **kwargs):
    """Compute and apply one transition, as the repository would."""
    engine = engine or TransitionEngine()
    now = order.status_history[-1].timestamp + timedelta(minutes=minutes)
    update = engine.transition(order, TransitionRequest(new_status=status, **kwargs), now)
    return update.apply_to(order, now)


def _walk(*statuses):
    order = make_order()
    for status in statuses:
        order = _step(order, status)
    return order


class TestLegalTransitions:

    def test_appends_history_entry(self):
        order = _step(make_order(), S.CONFIRMED, notes="Stock checked", actor_id="admin-1")
        assert order.status == S.CONFIRMED
        assert len(order.status_history) == 2
        entry = order.status_history[-1]
        assert entry.status == S.CONFIRMED
        assert entry.notes == "Stock checked"
        assert entry.updated_by == "admin-1"
        assert entry.timestamp == T0 + timedelta(minutes=1)

    def test_default_note(self):
        order = _step(make_order(), S.CONFIRMED)
        assert order.status_history[-1].notes == "Status updated to confirmed"

    def test_conditioned_on_observed_state(self):
        order = make_order()
        update = TransitionEngine().transition(
            order, TransitionRequest(new_status=S.CONFIRMED), T0
        )
        assert update.expected_status == S.PENDING
        assert update.expected_history_length == 1

    def test_confirmation_leaves_payment_alone(self):
        order = _step(make_order(), S.CONFIRMED)
        assert order.payment_status == PaymentStatus.PENDING

    def test_full_happy_path(self):
        order = _walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.OUT_FOR_DELIVERY, S.DELIVERED)
        assert [e.status for e in order.status_history] == [
            S.PENDING, S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.OUT_FOR_DELIVERY, S.DELIVERED,
        ]
        assert order.shipped_at == T0 + timedelta(minutes=3)
        assert order.out_for_delivery_at == T0 + timedelta(minutes=4)
        assert order.delivered_at == T0 + timedelta(minutes=5)


class TestNoOpTransition:

    def test_same_status_rejected(self):
        with pytest.raises(ValidationError, match="already pending"):
            TransitionEngine().transition(
                make_order(), TransitionRequest(new_status=S.PENDING), T0
            )


class TestDerivedTimestamps:

    def test_delivered_sets_delivery_fields_and_forces_paid(self):
        order = _walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.OUT_FOR_DELIVERY)
        assert order.payment_status == PaymentStatus.PENDING
        order = _step(order, S.DELIVERED)
        assert order.delivered_at is not None
        assert order.actual_delivery == order.delivered_at
        assert order.payment_status == PaymentStatus.PAID

    def test_cancel_sets_cancelled_at_and_reason(self):
        order = _step(make_order(), S.CANCELLED, notes="Customer changed mind")
        assert order.cancelled_at == T0 + timedelta(minutes=1)
        assert order.cancellation_reason == "Customer changed mind"

    def test_timestamp_never_reset_by_later_transition(self):
        order = _walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED)
        first_shipped = order.shipped_at
        # Override path: back to processing, then shipped again
        order = _step(order, S.PROCESSING)
        order = _step(order, S.SHIPPED)
        assert order.shipped_at == first_shipped
        assert len(order.status_history) == 6

    def test_set_once_skipped_when_already_set(self):
        order = _walk(S.CONFIRMED, S.PROCESSING, S.SHIPPED, S.PROCESSING)
        update = TransitionEngine().transition(
            order, TransitionRequest(new_status=S.SHIPPED), T0 + timedelta(days=1)
        )
        assert "shipped_at" not in update.set_once


class TestOverrideTransitions:

    def test_out_of_graph_jump_applied_with_warning(self, caplog):
        order = _step(make_order(), S.CONFIRMED)
        with caplog.at_level(logging.WARNING):
            order = _step(order, S.SHIPPED, actor_id="admin-7")
        assert order.status == S.SHIPPED
        assert order.shipped_at is not None
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "invalid status transition from confirmed to shipped" in warnings[0].getMessage()
        assert "admin-7" in warnings[0].getMessage()

    def test_legal_transition_does_not_warn(self, caplog):
        with caplog.at_level(logging.WARNING):
            _step(make_order(), S.CONFIRMED)
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_transition_out_of_terminal_still_recorded(self, caplog):
        order = _step(make_order(), S.CANCELLED)
        with caplog.at_level(logging.WARNING):
            order = _step(order, S.CONFIRMED)
        assert order.status == S.CONFIRMED
        assert order.status_history[-1].status == S.CONFIRMED
        assert order.cancelled_at is not None
        assert any("cancelled to confirmed" in r.getMessage() for r in caplog.records)

    def test_strict_engine_rejects(self):
        with pytest.raises(IllegalTransitionError, match="pending -> shipped"):
            TransitionEngine(strict=True).transition(
                make_order(), TransitionRequest(new_status=S.SHIPPED), T0
            )

    def test_per_request_strict_overrides_engine(self):
        engine = TransitionEngine(strict=True)
        update = engine.transition(
            make_order(), TransitionRequest(new_status=S.SHIPPED, strict=False), T0
        )
        assert update.fields["status"] == S.SHIPPED

    def test_strict_allows_legal_edges(self):
        order = _step(make_order(), S.CONFIRMED, engine=TransitionEngine(strict=True))
        assert order.status == S.CONFIRMED


class TestHistoryOrdering:

    def test_clock_skew_clamped(self):
        order = make_order()
        update = TransitionEngine().transition(
            order, TransitionRequest(new_status=S.CONFIRMED), T0 - timedelta(hours=2)
        )
        assert update.history[0].timestamp == T0


class TestTrackingPatch:

    def test_patch_merged_in_same_update(self):
        order = _walk(S.CONFIRMED, S.PROCESSING)
        order = _step(
            order,
            S.SHIPPED,
            tracking_patch=TrackingPatch(
                tracking_number="TN123", carrier="BlueDart", expected_delivery="2024-05-07"
            ),
        )
        assert order.tracking_info.tracking_number == "TN123"
        assert order.tracking_info.carrier == "BlueDart"
        assert order.tracking_info.expected_delivery.date().isoformat() == "2024-05-07"

    def test_current_location_becomes_history_location(self):
        order = _walk(S.CONFIRMED, S.PROCESSING)
        order = _step(
            order, S.SHIPPED, tracking_patch=TrackingPatch(current_location="Mumbai hub")
        )
        assert order.status_history[-1].location == "Mumbai hub"
        assert order.tracking_info.current_location == "Mumbai hub"

    def test_explicit_location_wins(self):
        order = _step(
            make_order(),
            S.CONFIRMED,
            location="Warehouse 3",
            tracking_patch=TrackingPatch(current_location="Mumbai hub"),
        )
        assert order.status_history[-1].location == "Warehouse 3"

    def test_bad_date_rejects_whole_transition(self):
        with pytest.raises(ValidationError, match="expected delivery"):
            TransitionEngine().transition(
                make_order(),
                TransitionRequest(
                    new_status=S.CONFIRMED,
                    tracking_patch=TrackingPatch(expected_delivery="soon"),
                ),
                T0,
            )

    def test_admin_notes_set_with_transition(self):
        order = _step(make_order(), S.CONFIRMED, admin_notes="VIP customer")
        assert order.admin_notes == "VIP customer"
