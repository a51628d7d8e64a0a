"""Catalog protocols."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from apprien.models.product import ApprienProduct, ProductType


@dataclass(frozen=True)
class CatalogItem:
    """Product entry of a store catalog."""

    id: str
    type: ProductType = ProductType.CONSUMABLE
    store: str | None = None


@runtime_checkable
class ProductCatalogAdapter(Protocol):
    """Interface for supplying the products to price."""

    def load(self) -> list[ApprienProduct]:
        """Return fresh products, each defaulting to its base IAP id."""
        ...


def products_from_catalog(items: Iterable[CatalogItem]) -> list[ApprienProduct]:
    """Convert catalog items into products ready for fetching Apprien prices."""
    return [ApprienProduct(item.id, item.type, item.store) for item in items]


class StaticProductCatalog:
    """Catalog backed by a fixed list of items."""

    def __init__(self, items: Iterable[CatalogItem]) -> None:
        self._items = tuple(items)

    def load(self) -> list[ApprienProduct]:
        return products_from_catalog(self._items)
