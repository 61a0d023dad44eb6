"""Concurrency Guard: fetch-current -> compute -> conditional commit.

Every mutation of an order goes through ``ConcurrencyGuard.mutate``. The
guard never holds a lock itself; it relies on the repository applying an
``OrderUpdate`` atomically against the latest stored order. When the
update's precondition no longer holds (another writer got there first) or
the store fails transiently on fetch or commit, the whole read-compute-commit
cycle is re-run with exponential backoff, up to ``max_retries`` extra times.

Validation and not-found errors raised by ``compute`` are never retried.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from orderlife.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    StorageError,
)
from orderlife.domain.model.order import Order
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)

Compute = Callable[[Order, datetime], OrderUpdate]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MutationResult:
    """The snapshot an update was computed from and the committed order.

    ``committed`` is False when the computed update was empty and no
    write was issued; ``after`` is then the unchanged snapshot.
    """

    before: Order
    after: Order
    committed: bool


class ConcurrencyGuard:

    def __init__(
        self,
        order_repo: OrderRepository,
        max_retries: int = 3,
        backoff_seconds: float = 0.05,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._order_repo = order_repo
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._clock = clock
        self._sleep = sleep

    def mutate(self, order_id: str, compute: Compute) -> MutationResult:
        attempts = self._max_retries + 1
        attempt = 0

        while True:
            attempt += 1
            try:
                order = self._order_repo.get_by_id(order_id)
                if order is None:
                    raise EntityNotFoundError(f"Order {order_id} not found")

                now = self._clock()
                update = compute(order, now)
                if update.is_empty:
                    logger.debug(
                        "No changes for order %s, skipping write", order.order_number
                    )
                    return MutationResult(before=order, after=order, committed=False)

                committed = self._order_repo.apply(order_id, update, now)
            except (ConcurrencyConflictError, StorageError) as exc:
                if attempt >= attempts:
                    logger.error(
                        "Giving up on order %s after %d attempts: %s", order_id, attempts, exc
                    )
                    raise type(exc)(
                        f"Order {order_id} could not be updated after {attempts} attempts: {exc}"
                    ) from exc
                backoff = self._backoff_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "Commit for order %s failed (attempt %d/%d): %s; retrying in %.3fs",
                    order_id,
                    attempt,
                    attempts,
                    exc,
                    backoff,
                )
                self._sleep(backoff)
                continue

            return MutationResult(before=order, after=committed, committed=True)
