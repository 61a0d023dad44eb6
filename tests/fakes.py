"""In-memory fakes and builders for testing.

The fake repositories implement the same abstract interfaces as the JSON
repositories but keep everything in a dict. No file I/O, no side effects.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from orderlife.application.notifications import OrderConfirmation, OrderNotifier
from orderlife.domain.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    StorageError,
    ValidationError,
)
from orderlife.domain.model.order import (
    Order,
    OrderLineItem,
    ShippingAddress,
)
from orderlife.domain.model.order_update import OrderUpdate
from orderlife.domain.model.product import Product
from orderlife.domain.model.value_objects import Money, Quantity
from orderlife.domain.repository.order_repository import OrderRepository
from orderlife.domain.repository.product_repository import ProductRepository

T0 = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[str, Order] = {}
        self._lock = threading.Lock()
        self.writes = 0

    def count(self) -> int:
        return len(self._store)

    def add(self, order: Order) -> None:
        with self._lock:
            if order.id in self._store:
                raise ValidationError(f"Order id {order.id} already exists")
            if any(o.order_number == order.order_number for o in self._store.values()):
                raise ValidationError(f"Order number {order.order_number} already exists")
            self._store[order.id] = order

    def get_by_id(self, order_id: str) -> Order | None:
        return self._store.get(order_id)

    def get_by_order_number(self, order_number: str) -> Order | None:
        for order in self._store.values():
            if order.order_number == order_number:
                return order
        return None

    def apply(self, order_id: str, update: OrderUpdate, now: datetime) -> Order:
        with self._lock:
            current = self._store.get(order_id)
            if current is None:
                raise EntityNotFoundError(f"Order {order_id} not found")
            updated = update.apply_to(current, now)
            self._store[order_id] = updated
            self.writes += 1
            return updated


class FlakyOrderRepository(FakeOrderRepository):
    """Fails the first ``failures`` commits with ``error`` before behaving."""

    def __init__(self, failures: int, error: type[Exception] = ConcurrencyConflictError) -> None:
        super().__init__()
        self.failures = failures
        self.error = error
        self.apply_calls = 0

    def apply(self, order_id: str, update: OrderUpdate, now: datetime) -> Order:
        self.apply_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise self.error("simulated commit failure")
        return super().apply(order_id, update, now)


class FlakyReadOrderRepository(FakeOrderRepository):
    """Fails the first ``failures`` reads with StorageError before behaving."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.read_calls = 0

    def get_by_id(self, order_id: str) -> Order | None:
        self.read_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise StorageError("simulated read failure")
        return super().get_by_id(order_id)


class InterleavingOrderRepository(FakeOrderRepository):
    """Lets a competing writer commit between a reader's fetch and commit."""

    def __init__(self) -> None:
        super().__init__()
        self.before_next_apply = None

    def apply(self, order_id: str, update: OrderUpdate, now: datetime) -> Order:
        hook, self.before_next_apply = self.before_next_apply, None
        if hook is not None:
            hook()
        return super().apply(order_id, update, now)


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        for p in products or []:
            self._store[p.id] = p

    def get_by_name(self, name: str) -> Product | None:
        for p in self._store.values():
            if p.name.lower() == name.lower():
                return p
        return None

    def list_all(self) -> list[Product]:
        return list(self._store.values())


class RecordingNotifier(OrderNotifier):

    def __init__(self) -> None:
        self.confirmations: list[OrderConfirmation] = []

    def order_confirmed(self, confirmation: OrderConfirmation) -> None:
        self.confirmations.append(confirmation)


class FailingNotifier(OrderNotifier):

    def __init__(self) -> None:
        self.calls = 0

    def order_confirmed(self, confirmation: OrderConfirmation) -> None:
        self.calls += 1
        raise StorageError("SMTP relay unreachable")


class TickingClock:
    """Returns T0, T0+1min, T0+2min, ... on successive calls."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(minutes=1)) -> None:
        self._next = start
        self._step = step

    def __call__(self) -> datetime:
        now = self._next
        self._next += self._step
        return now


# --- Builders -----------------------------------------------------------------


def make_address(**overrides) -> ShippingAddress:
    values = dict(
        full_name="Asha Rao",
        email="asha@example.com",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
        phone_number="+91 98450 12345",
    )
    values.update(overrides)
    return ShippingAddress(**values)


def make_item(name: str = "Brass Diya", qty: int = 2, price: str = "349.00") -> OrderLineItem:
    return OrderLineItem(
        product_id="2",
        name=name,
        unit_price=Money.of(price),
        quantity=Quantity(qty),
        image="https://img.example.com/diya.jpg",
    )


def make_order(
    order_id: str = "ord-1",
    order_number: str = "ORD-123456-0001",
    tax: str = "62.82",
    shipping: str = "50.00",
    now: datetime = T0,
) -> Order:
    return Order.create(
        order_id=order_id,
        order_number=order_number,
        customer_id="user-42",
        items=[make_item()],
        shipping_address=make_address(),
        tax=Money.of(tax),
        shipping_cost=Money.of(shipping),
        now=now,
    )
