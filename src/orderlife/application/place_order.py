"""Application service: Place Order use case.

The only point where the product catalog is consulted: each requested
product is resolved once and its name, price and image are snapshotted
into the order's line items.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from orderlife.application.concurrency_guard import utcnow
from orderlife.application.dto import OrderItemSpec, OrderView
from orderlife.application.mapping import to_order_view
from orderlife.domain.exceptions import EntityNotFoundError
from orderlife.domain.model.order import (
    Order,
    OrderLineItem,
    ShippingAddress,
    generate_order_number,
)
from orderlife.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from orderlife.domain.repository.order_repository import OrderRepository
from orderlife.domain.repository.product_repository import ProductRepository

logger = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._clock = clock

    def handle(
        self,
        customer_id: str,
        shipping_address: ShippingAddress,
        item_specs: list[OrderItemSpec],
        tax: str = "0",
        shipping_cost: str = "0",
        notes: str | None = None,
    ) -> OrderView:
        """Place a new pending order.

        Steps:
        1. Resolve each product name to a Product (fail if not found).
        2. Build line items with *current* catalog data (snapshot).
        3. Let the Order aggregate validate placement rules and totals.
        4. Persist with a freshly generated order number.
        """
        line_items: list[OrderLineItem] = []
        for spec in item_specs:
            product = self._product_repo.get_by_name(spec.product_name)
            if product is None:
                raise EntityNotFoundError(f"Product not found: '{spec.product_name}'")
            line_items.append(
                OrderLineItem(
                    product_id=product.id,
                    name=product.name,
                    unit_price=product.price,  # <-- price snapshot
                    quantity=Quantity(spec.quantity),
                    image=product.image,
                )
            )

        now = self._clock()
        currency = line_items[0].unit_price.currency if line_items else DEFAULT_CURRENCY
        order = Order.create(
            order_id=uuid.uuid4().hex,
            order_number=generate_order_number(self._order_repo.count() + 1, now),
            customer_id=customer_id,
            items=line_items,
            shipping_address=shipping_address,
            tax=Money.of(tax, currency),
            shipping_cost=Money.of(shipping_cost, currency),
            notes=notes,
            now=now,
        )
        self._order_repo.add(order)
        logger.info("Order %s placed, total %s", order.order_number, order.total)
        return to_order_view(order)
