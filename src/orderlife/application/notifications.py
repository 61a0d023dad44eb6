"""Outbound notification port.

After a committed ``pending -> confirmed`` transition the application layer
emits an ``OrderConfirmation`` intent. Delivery is best effort: the order
change is already durable, so a failing notifier is logged and ignored.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from orderlife.domain.model.order import Order


@dataclass(frozen=True)
class ConfirmationLine:
    name: str
    quantity: int
    price: str


@dataclass(frozen=True)
class OrderConfirmation:
    order_number: str
    customer_name: str
    customer_email: str
    items: tuple[ConfirmationLine, ...]
    total: str
    shipping_address: str

    @staticmethod
    def from_order(order: Order) -> OrderConfirmation:
        address = order.shipping_address
        lines = [address.address_line1, address.address_line2, address.city,
                 address.state, address.postal_code, address.country]
        return OrderConfirmation(
            order_number=order.order_number,
            customer_name=address.full_name or "Customer",
            customer_email=address.email,
            items=tuple(
                ConfirmationLine(
                    name=item.name,
                    quantity=item.quantity.value,
                    price=str(item.unit_price),
                )
                for item in order.items
            ),
            total=str(order.total),
            shipping_address=", ".join(part for part in lines if part),
        )


class OrderNotifier(ABC):

    @abstractmethod
    def order_confirmed(self, confirmation: OrderConfirmation) -> None:
        """Hand off a confirmation; must not block on delivery."""
