"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Error handling follows the Null Object pattern: methods return ``None``
(or omit rows) instead of raising HTTP-level exceptions; the Service
Layer decides how to translate a missing entity into an API response.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet
from django.utils import timezone

from modules.pricing.constants import DEFAULT_GST_PERCENT
from modules.pricing.dtos import ProductSnapshot
from modules.products.models import Product, ProductStatus
from modules.products.repositories.interfaces import IProductRepository
from modules.products.snapshots import build_snapshot

logger = structlog.get_logger(__name__)


def _valid_uuids(ids: Iterable[str]) -> List[str]:
    valid = []
    for raw in ids:
        try:
            valid.append(str(UUID(str(raw))))
        except ValueError:
            continue
    return valid


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.alive().select_related("seller").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "QuerySet[Product]":
        """List live products with optional Django ORM look-ups.

        Examples of valid filters::

            {"status": "active"}
            {"category__iexact": "grocery"}
        """
        queryset = Product.objects.alive().select_related("seller")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID."""
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU (case-insensitive via upper normalisation)."""
        return Product.objects.filter(sku=sku.strip().upper()).first()

    # ------------------------------------------------------------------
    # Pricing support
    # ------------------------------------------------------------------

    def get_snapshots(
        self, ids: Iterable[str], for_update: bool = False
    ) -> List[ProductSnapshot]:
        queryset = (
            Product.objects.alive()
            .filter(id__in=_valid_uuids(ids), status=ProductStatus.ACTIVE)
            .order_by("id")
        )
        if for_update:
            # ``of=("self",)`` keeps the nullable seller join out of the lock.
            queryset = queryset.select_for_update(of=("self",))
        queryset = queryset.select_related("seller")

        category_rates = {
            name: Decimal(str(rate))
            for name, rate in getattr(settings, "CATEGORY_GST_RATES", {}).items()
        }
        default_gst = Decimal(
            str(getattr(settings, "DEFAULT_GST_PERCENT", DEFAULT_GST_PERCENT))
        )
        warehouse_state = getattr(settings, "WAREHOUSE_STATE", "")
        return [
            build_snapshot(
                product,
                warehouse_state=warehouse_state,
                category_rates=category_rates,
                default_gst_percent=default_gst,
            )
            for product in queryset
        ]

    def decrement_stock(self, id: str, quantity: int) -> bool:
        updated = Product.objects.filter(id=id, stock_quantity__gte=quantity).update(
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        if updated:
            logger.info("product.stock_reserved", product_id=str(id), quantity=quantity)
        return bool(updated)

    def release_stock(self, id: str, quantity: int) -> None:
        Product.objects.filter(id=id).update(
            stock_quantity=F("stock_quantity") + quantity,
            updated_at=timezone.now(),
        )
        logger.info("product.stock_released", product_id=str(id), quantity=quantity)

    def lock_for_update(self, ids: Iterable[str]) -> List[ProductSnapshot]:
        return self.get_snapshots(ids, for_update=True)
