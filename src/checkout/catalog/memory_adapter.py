"""In-memory catalog for development and tests."""

from checkout.catalog.port import CatalogLookup, ProductSnapshot


class InMemoryCatalog(CatalogLookup):
    def __init__(self) -> None:
        self.products: dict[str, ProductSnapshot] = {}

    def add_product(self, product_id: str, name: str, price: float, image: str | None = None) -> ProductSnapshot:
        snapshot = ProductSnapshot(product_id=product_id, name=name, price=price, image=image)
        self.products[product_id] = snapshot
        return snapshot

    def remove_product(self, product_id: str) -> None:
        self.products.pop(product_id, None)

    def snapshot(self, product_id: str) -> ProductSnapshot | None:
        return self.products.get(product_id)

    def reset(self) -> None:
        self.products.clear()
