"""Product as seen by the order lifecycle.

The catalog is owned elsewhere; orders only read it once, at placement,
to snapshot name, price and image into line items.
"""

from __future__ import annotations

from dataclasses import dataclass

from orderlife.domain.model.value_objects import Money


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: Money
    image: str = ""
