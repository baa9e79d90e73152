"""Catalog lookup factory, selected by ``CATALOG_ADAPTER`` (only ``memory`` ships here)."""

import os

from protean.exceptions import ValidationError

from checkout.catalog.port import CatalogLookup, ProductSnapshot

_current_catalog: CatalogLookup | None = None


def get_catalog() -> CatalogLookup:
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "memory")
        if adapter != "memory":
            raise ValueError(f"Unknown catalog adapter: {adapter}")
        from checkout.catalog.memory_adapter import InMemoryCatalog

        _current_catalog = InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: CatalogLookup) -> None:
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None


def snapshot_product(product_id: str) -> ProductSnapshot:
    snapshot = get_catalog().snapshot(product_id)
    if snapshot is None:
        raise ValidationError({"items": [f"Product {product_id} is not available"]})
    return snapshot
