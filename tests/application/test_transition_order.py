"""Integration tests for the TransitionOrder use case."""

import logging

import pytest

from orderlife.application.concurrency_guard import ConcurrencyGuard
from orderlife.application.dto import TransitionOptions
from orderlife.application.transition_order import TransitionOrderHandler
from orderlife.domain.exceptions import (
    EntityNotFoundError,
    IllegalTransitionError,
    ValidationError,
)
from orderlife.domain.model.principal import Principal
from orderlife.domain.service.tracking_amender import TrackingPatch
from orderlife.domain.service.transition_engine import TransitionEngine
from tests.fakes import (
    FailingNotifier,
    FakeOrderRepository,
    RecordingNotifier,
    TickingClock,
    make_order,
)

ADMIN = Principal(id="admin-1")


def _setup(notifier=None, engine=None):
    order_repo = FakeOrderRepository()
    order_repo.add(make_order())
    guard = ConcurrencyGuard(order_repo, clock=TickingClock(), sleep=lambda _: None)
    notifier = notifier or RecordingNotifier()
    handler = TransitionOrderHandler(guard, notifier, engine=engine)
    return order_repo, notifier, handler


class TestConfirmation:

    def test_pending_to_confirmed_notifies_once(self):
        order_repo, notifier, handler = _setup()
        view = handler.handle("ord-1", "confirmed", actor=ADMIN)

        assert view.status == "confirmed"
        assert len(view.status_history) == 2
        assert view.status_history[-1].updated_by == "admin-1"
        assert len(notifier.confirmations) == 1
        confirmation = notifier.confirmations[0]
        assert confirmation.order_number == "ORD-123456-0001"
        assert confirmation.customer_email == "asha@example.com"
        assert confirmation.customer_name == "Asha Rao"
        assert confirmation.total == "INR 810.82"
        assert confirmation.items[0].name == "Brass Diya"
        assert "Bengaluru" in confirmation.shipping_address

    def test_later_transitions_do_not_notify(self):
        _, notifier, handler = _setup()
        handler.handle("ord-1", "confirmed")
        handler.handle("ord-1", "processing")
        handler.handle("ord-1", "shipped")
        assert len(notifier.confirmations) == 1

    def test_cancel_does_not_notify(self):
        _, notifier, handler = _setup()
        handler.handle("ord-1", "cancelled", TransitionOptions(notes="Out of stock"))
        assert notifier.confirmations == []

    def test_notifier_failure_does_not_fail_transition(self, caplog):
        notifier = FailingNotifier()
        order_repo, _, handler = _setup(notifier=notifier)
        with caplog.at_level(logging.ERROR):
            view = handler.handle("ord-1", "confirmed")

        assert view.status == "confirmed"
        assert order_repo.get_by_id("ord-1").status.value == "confirmed"
        assert notifier.calls == 1
        assert any("confirmation email" in r.getMessage() for r in caplog.records)


class TestOverride:

    def test_skip_ahead_applied_and_logged(self, caplog):
        order_repo, _, handler = _setup()
        handler.handle("ord-1", "confirmed", actor=ADMIN)
        with caplog.at_level(logging.WARNING):
            view = handler.handle(
                "ord-1",
                "shipped",
                TransitionOptions(tracking_patch=TrackingPatch(tracking_number="TN123")),
                actor=ADMIN,
            )

        assert view.status == "shipped"
        assert view.shipped_at is not None
        assert view.tracking.tracking_number == "TN123"
        assert any(
            r.levelno == logging.WARNING and "invalid status transition" in r.getMessage()
            for r in caplog.records
        )

    def test_strict_engine_rejects_and_leaves_order(self):
        order_repo, _, handler = _setup(engine=TransitionEngine(strict=True))
        with pytest.raises(IllegalTransitionError):
            handler.handle("ord-1", "delivered")
        assert order_repo.get_by_id("ord-1").status.value == "pending"
        assert order_repo.writes == 0

    def test_strict_option_per_call(self):
        order_repo, _, handler = _setup()
        with pytest.raises(IllegalTransitionError):
            handler.handle("ord-1", "shipped", TransitionOptions(strict=True))
        assert order_repo.writes == 0


class TestDelivery:

    def test_delivered_forces_paid_and_stamps_dates(self):
        _, _, handler = _setup()
        for status in ("confirmed", "processing", "shipped", "out-for-delivery"):
            handler.handle("ord-1", status)
        view = handler.handle("ord-1", "delivered")

        assert view.payment_status == "paid"
        assert view.delivered_at is not None
        assert view.actual_delivery == view.delivered_at
        assert view.out_for_delivery_at is not None
        assert view.next_status is None
        assert view.allowed_statuses == []

    def test_history_grows_by_one_per_transition(self):
        order_repo, _, handler = _setup()
        for i, status in enumerate(("confirmed", "processing", "shipped"), start=2):
            handler.handle("ord-1", status)
            assert len(order_repo.get_by_id("ord-1").status_history) == i


class TestTransitionValidation:

    def test_same_status_rejected_without_write(self):
        order_repo, _, handler = _setup()
        with pytest.raises(ValidationError, match="already pending"):
            handler.handle("ord-1", "pending")
        assert order_repo.writes == 0

    def test_unknown_status_rejected(self):
        _, _, handler = _setup()
        with pytest.raises(ValidationError, match="Invalid order status"):
            handler.handle("ord-1", "teleported")

    def test_missing_order(self):
        _, _, handler = _setup()
        with pytest.raises(EntityNotFoundError):
            handler.handle("nope", "confirmed")

    def test_cancellation_reason_recorded(self):
        _, _, handler = _setup()
        view = handler.handle("ord-1", "cancelled", TransitionOptions(notes="Customer request"))
        assert view.cancellation_reason == "Customer request"
        assert view.cancelled_at is not None
        assert view.can_be_cancelled is False
