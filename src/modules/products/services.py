"""Product service layer (catalog queries).

Delegates persistence to the injected ``IProductRepository``.  Only live,
active products are exposed to buyers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog

from modules.products.exceptions import ProductNotFound
from modules.products.models import Product, ProductStatus

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductService:
    """Application service for catalog look-ups.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    def list_products(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "QuerySet[Product]":
        """Return sellable products, optionally filtered."""
        return self._repo.list({"status": ProductStatus.ACTIVE, **(filters or {})})

    def get_product(self, id: str) -> Product:
        """Retrieve a single sellable product by ID.

        Raises:
            ProductNotFound: if the product does not exist or is inactive.
        """
        product = self._repo.get_by_id(id)
        if not product or product.status != ProductStatus.ACTIVE:
            raise ProductNotFound(f"Product {id} not found.")
        logger.info("product.retrieved", product_id=str(id))
        return product
