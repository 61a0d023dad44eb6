"""Asynchronous delivery of order confirmation emails.

``QueuedMailDispatcher`` is the ``OrderNotifier`` used in production: it
only enqueues, and a daemon worker thread hands each confirmation to a
``Mailer``. A slow or failing mailer therefore never blocks or fails the
order transition that produced the confirmation.
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod

from orderlife.application.notifications import OrderConfirmation, OrderNotifier

logger = logging.getLogger(__name__)

GRACEFUL_SHUTDOWN_WAIT_SEC = 5.0


class Mailer(ABC):

    @abstractmethod
    def send_order_confirmation(self, email: str, confirmation: OrderConfirmation) -> None:
        """Deliver one confirmation; raise on failure."""


class LoggingMailer(Mailer):
    """Stand-in transport that writes the message to the log."""

    def __init__(self, mail_from: str) -> None:
        self._mail_from = mail_from

    def send_order_confirmation(self, email: str, confirmation: OrderConfirmation) -> None:
        logger.info(
            "Mail from=%s to=%s subject=%r items=%d total=%s",
            self._mail_from,
            email,
            f"Order Confirmation - {confirmation.order_number}",
            len(confirmation.items),
            confirmation.total,
        )


class QueuedMailDispatcher(OrderNotifier):

    def __init__(self, mailer: Mailer, maxsize: int = 100) -> None:
        self._mailer = mailer
        self._queue: queue.Queue[OrderConfirmation | None] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None
        self._start_lock = threading.Lock()

    # --- OrderNotifier --------------------------------------------------------

    def order_confirmed(self, confirmation: OrderConfirmation) -> None:
        self.start()
        try:
            self._queue.put_nowait(confirmation)
        except queue.Full:
            logger.error(
                "Mail queue full, dropping confirmation for %s", confirmation.order_number
            )

    # --- Lifecycle ------------------------------------------------------------

    def start(self) -> None:
        with self._start_lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(
                target=self._run, name="mail-dispatcher", daemon=True
            )
            self._thread.start()

    def join(self) -> None:
        """Block until every queued confirmation has been handled."""
        self._queue.join()

    def stop(self, timeout: float = GRACEFUL_SHUTDOWN_WAIT_SEC) -> None:
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Mail dispatcher did not stop within %.1fs", timeout)
        self._thread = None

    def __enter__(self) -> QueuedMailDispatcher:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # --- Worker ---------------------------------------------------------------

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                self._deliver(item)
            finally:
                self._queue.task_done()

    def _deliver(self, confirmation: OrderConfirmation) -> None:
        try:
            self._mailer.send_order_confirmation(confirmation.customer_email, confirmation)
        except Exception:
            logger.exception(
                "Error sending order confirmation email for %s to %s",
                confirmation.order_number,
                confirmation.customer_email,
            )
        else:
            logger.info(
                "Order confirmation email sent for %s to %s",
                confirmation.order_number,
                confirmation.customer_email,
            )
