"""Product repository interface.

Extends ``IRepository[Product]`` with the look-ups pricing and order
placement need: snapshot loading by id, row locking for atomic stock
changes, and conditional stock decrement/release.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.pricing.dtos import ProductSnapshot
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List products with optional filters."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def get_snapshots(
        self, ids: Iterable[str], for_update: bool = False
    ) -> List[ProductSnapshot]:
        """Return pricing snapshots for the sellable products among ``ids``.

        Unknown, malformed, inactive and soft-deleted ids are omitted.  With
        ``for_update=True`` the rows are locked (SELECT FOR UPDATE) in
        primary-key order until the surrounding transaction ends.
        """

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int) -> bool:
        """Atomically subtract ``quantity`` if enough stock remains.

        Returns ``False`` (and changes nothing) when stock is insufficient.
        """

    @abstractmethod
    def release_stock(self, id: str, quantity: int) -> None:
        """Return ``quantity`` units to stock."""

    @abstractmethod
    def lock_for_update(self, ids: Iterable[str]) -> List[ProductSnapshot]:
        """Lock the sellable rows among ``ids`` and return their snapshots.

        Shorthand for ``get_snapshots(ids, for_update=True)``; must run
        inside a transaction.
        """
