"""Catalog lookup port.

The catalog is owned elsewhere; checkout only reads a product's current
name, price and image to freeze them into an order line.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: str
    name: str
    price: float
    image: str | None = None


class CatalogLookup(ABC):
    @abstractmethod
    def snapshot(self, product_id: str) -> ProductSnapshot | None:
        """Current catalog values for ``product_id``, or None if it is not sold."""
        ...
