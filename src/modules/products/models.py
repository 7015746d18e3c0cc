"""Product model with stock control and tax/shipping attributes.

Business rules implemented:
- SKU must be unique in the system (normalised to upper-case).
- Inactive products cannot be sold (treated as missing by pricing).
- Price must be greater than zero; stock cannot be negative.
- ``gst_percent`` is optional; when blank the category rate applies.
- First-party inventory (``is_admin_product``) has no seller.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class WeightUnit(models.TextChoices):
    KG = "kg", "Kilogram"
    G = "g", "Gram"
    MG = "mg", "Milligram"


class DimensionUnit(models.TextChoices):
    CM = "cm", "Centimetre"
    M = "m", "Metre"
    MM = "mm", "Millimetre"
    IN = "in", "Inch"
    FT = "ft", "Foot"


class Product(SoftDeleteModel):
    """Product aggregate root."""

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    brand = models.CharField(max_length=120, blank=True, default="")
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=120, blank=True, default="")
    subcategory = models.CharField(max_length=120, blank=True, default="")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)
    gst_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    is_admin_product = models.BooleanField(default=False)
    seller = models.ForeignKey(
        "sellers.Seller",
        on_delete=models.PROTECT,
        related_name="products",
        null=True,
        blank=True,
    )
    weight = models.DecimalField(
        max_digits=10, decimal_places=3, default=Decimal("0")
    )
    weight_unit = models.CharField(
        max_length=4, choices=WeightUnit.choices, default=WeightUnit.KG
    )
    height = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0")
    )
    width = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    dimension_unit = models.CharField(
        max_length=4, choices=DimensionUnit.choices, default=DimensionUnit.CM
    )
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
            models.Index(fields=["category"], name="products_category_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.gst_percent is not None and not (0 <= self.gst_percent <= 100):
            raise ValidationError({"gst_percent": "GST must be between 0 and 100."})
        if self.is_admin_product and self.seller_id:
            raise ValidationError(
                {"seller": "First-party products cannot belong to a seller."}
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product_created",
                product_id=str(self.id),
                sku=self.sku,
                is_admin_product=self.is_admin_product,
            )

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
