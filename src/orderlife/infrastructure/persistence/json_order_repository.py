"""JSON-file-backed implementation of OrderRepository.

All orders live in one JSON document. Every write holds an OS-level lock
on a sidecar ``<file>.lock`` for the whole read, apply, replace cycle, so
separate CLI processes serialize their commits. Within a process the
thread lock is taken first, shared by every repository instance on the
same file. Writes go to a temp file and ``os.replace`` so readers never
see a torn document.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import threading
from collections.abc import Iterator
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from orderlife.domain.exceptions import (
    EntityNotFoundError,
    StorageError,
    ValidationError,
)
from orderlife.domain.model.order import (
    DeliveryAttempt,
    Order,
    OrderLineItem,
    ShippingAddress,
    StatusHistoryEntry,
    TrackingInfo,
)
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.model.status import (
    DeliveryAttemptStatus,
    OrderStatus,
    PaymentStatus,
)
from orderlife.domain.model.value_objects import Money, Quantity
from orderlife.domain.repository.order_repository import OrderRepository

_file_locks: dict[Path, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _file_locks_guard:
        return _file_locks.setdefault(path.resolve(), threading.Lock())


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path, lock_timeout: float = 10.0) -> None:
        self._file_path = file_path
        self._lock = _lock_for(file_path)
        self._file_lock = FileLock(f"{file_path}.lock", timeout=lock_timeout)
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def count(self) -> int:
        return len(self._load_raw())

    def add(self, order: Order) -> None:
        with self._write_lock():
            orders = self._load_raw()
            for raw in orders:
                if raw["id"] == order.id:
                    raise ValidationError(f"Order id {order.id} already exists", field="id")
                if raw["order_number"] == order.order_number:
                    raise ValidationError(
                        f"Order number {order.order_number} already exists",
                        field="order_number",
                    )
            orders.append(self._to_raw(order))
            self._persist_raw(orders)

    def get_by_id(self, order_id: str) -> Order | None:
        for raw in self._load_raw():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def get_by_order_number(self, order_number: str) -> Order | None:
        for raw in self._load_raw():
            if raw["order_number"] == order_number:
                return self._to_domain(raw)
        return None

    def apply(self, order_id: str, update: OrderUpdate, now: datetime) -> Order:
        with self._write_lock():
            orders = self._load_raw()
            for i, raw in enumerate(orders):
                if raw["id"] == order_id:
                    updated = update.apply_to(self._to_domain(raw), now)
                    orders[i] = self._to_raw(updated)
                    self._persist_raw(orders)
                    return updated
        raise EntityNotFoundError(f"Order {order_id} not found")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict[str, Any]:
        address = order.shipping_address
        tracking = order.tracking_info
        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "currency": order.total.currency,
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.name,
                    "unit_price": str(item.unit_price.amount),
                    "quantity": item.quantity.value,
                    "image": item.image,
                }
                for item in order.items
            ],
            "subtotal": str(order.subtotal.amount),
            "tax": str(order.tax.amount),
            "shipping_cost": str(order.shipping_cost.amount),
            "total": str(order.total.amount),
            "shipping_address": {
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
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "payment_method": order.payment_method,
            "status_history": [
                {
                    "status": entry.status.value,
                    "timestamp": entry.timestamp.isoformat(),
                    "notes": entry.notes,
                    "updated_by": entry.updated_by,
                    "location": entry.location,
                }
                for entry in order.status_history
            ],
            "tracking_info": None
            if tracking is None
            else {
                "tracking_number": tracking.tracking_number,
                "carrier": tracking.carrier,
                "tracking_url": tracking.tracking_url,
                "current_location": tracking.current_location,
                "expected_delivery": _iso(tracking.expected_delivery),
                "delivery_attempts": [
                    {
                        "attempt_date": attempt.attempt_date.isoformat(),
                        "status": attempt.status.value,
                        "notes": attempt.notes,
                        "location": attempt.location,
                    }
                    for attempt in tracking.delivery_attempts
                ],
            },
            "estimated_delivery": _iso(order.estimated_delivery),
            "actual_delivery": _iso(order.actual_delivery),
            "shipped_at": _iso(order.shipped_at),
            "out_for_delivery_at": _iso(order.out_for_delivery_at),
            "delivered_at": _iso(order.delivered_at),
            "cancelled_at": _iso(order.cancelled_at),
            "cancellation_reason": order.cancellation_reason,
            "notes": order.notes,
            "admin_notes": order.admin_notes,
            "customer_notes": order.customer_notes,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "revision": order.revision,
        }

    @staticmethod
    def _to_domain(raw: dict[str, Any]) -> Order:
        currency = raw.get("currency", "INR")

        def money(value: str) -> Money:
            return Money(Decimal(value), currency)

        tracking_raw = raw.get("tracking_info")
        tracking = None
        if tracking_raw is not None:
            tracking = TrackingInfo(
                tracking_number=tracking_raw.get("tracking_number"),
                carrier=tracking_raw.get("carrier"),
                tracking_url=tracking_raw.get("tracking_url"),
                current_location=tracking_raw.get("current_location"),
                expected_delivery=_dt(tracking_raw.get("expected_delivery")),
                delivery_attempts=tuple(
                    DeliveryAttempt(
                        attempt_date=datetime.fromisoformat(a["attempt_date"]),
                        status=DeliveryAttemptStatus(a["status"]),
                        notes=a.get("notes"),
                        location=a.get("location"),
                    )
                    for a in tracking_raw.get("delivery_attempts", [])
                ),
            )

        return Order(
            id=raw["id"],
            order_number=raw["order_number"],
            customer_id=raw["customer_id"],
            items=tuple(
                OrderLineItem(
                    product_id=i["product_id"],
                    name=i["name"],
                    unit_price=money(i["unit_price"]),
                    quantity=Quantity(i["quantity"]),
                    image=i.get("image", ""),
                )
                for i in raw["items"]
            ),
            subtotal=money(raw["subtotal"]),
            tax=money(raw["tax"]),
            shipping_cost=money(raw["shipping_cost"]),
            total=money(raw["total"]),
            shipping_address=ShippingAddress(**raw["shipping_address"]),
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            payment_method=raw.get("payment_method", "cod"),
            status_history=tuple(
                StatusHistoryEntry(
                    status=OrderStatus(e["status"]),
                    timestamp=datetime.fromisoformat(e["timestamp"]),
                    notes=e.get("notes"),
                    updated_by=e.get("updated_by"),
                    location=e.get("location"),
                )
                for e in raw["status_history"]
            ),
            tracking_info=tracking,
            estimated_delivery=_dt(raw.get("estimated_delivery")),
            actual_delivery=_dt(raw.get("actual_delivery")),
            shipped_at=_dt(raw.get("shipped_at")),
            out_for_delivery_at=_dt(raw.get("out_for_delivery_at")),
            delivered_at=_dt(raw.get("delivered_at")),
            cancelled_at=_dt(raw.get("cancelled_at")),
            cancellation_reason=raw.get("cancellation_reason"),
            notes=raw.get("notes"),
            admin_notes=raw.get("admin_notes"),
            customer_notes=raw.get("customer_notes"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            revision=raw.get("revision", 0),
        )

    # --- File helpers ---------------------------------------------------------

    @contextlib.contextmanager
    def _write_lock(self) -> Iterator[None]:
        with self._lock:
            try:
                self._file_lock.acquire()
            except Timeout as exc:
                raise StorageError(
                    f"Timed out waiting for the write lock on {self._file_path}"
                ) from exc
            try:
                yield
            finally:
                self._file_lock.release()

    def _load_raw(self) -> list[dict[str, Any]]:
        try:
            return json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot read {self._file_path}: {exc}") from exc

    def _persist_raw(self, orders: list[dict[str, Any]]) -> None:
        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._file_path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(orders, indent=2) + "\n")
            os.replace(tmp_name, self._file_path)
        except OSError as exc:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise StorageError(f"Cannot write {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        with self._write_lock():
            if not self._file_path.exists():
                self._persist_raw([])


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
