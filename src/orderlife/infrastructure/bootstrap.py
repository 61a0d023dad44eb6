"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from orderlife.application.concurrency_guard import ConcurrencyGuard
from orderlife.domain.service.transition_engine import TransitionEngine
from orderlife.infrastructure.config import Settings, settings
from orderlife.infrastructure.notifications.mail_dispatcher import (
    LoggingMailer,
    QueuedMailDispatcher,
)
from orderlife.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from orderlife.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


def product_repository(config: Settings = settings) -> JsonProductRepository:
    return JsonProductRepository(config.data_dir / "products.json")


def order_repository(config: Settings = settings) -> JsonOrderRepository:
    return JsonOrderRepository(
        config.data_dir / "orders.json",
        lock_timeout=config.store_lock_timeout_seconds,
    )


def concurrency_guard(config: Settings = settings) -> ConcurrencyGuard:
    return ConcurrencyGuard(
        order_repository(config),
        max_retries=config.commit_max_retries,
        backoff_seconds=config.commit_retry_backoff_seconds,
    )


def transition_engine(config: Settings = settings) -> TransitionEngine:
    return TransitionEngine(strict=config.strict_transitions)


def mail_dispatcher(config: Settings = settings) -> QueuedMailDispatcher:
    return QueuedMailDispatcher(
        LoggingMailer(config.mail_from), maxsize=config.mail_queue_size
    )
