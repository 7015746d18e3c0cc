"""Offer model.

Business rules implemented:
- ``key`` is the unique, client-facing handle of an offer.
- Only active, unexpired offers may be attached to a cart line; the
  repository filters the rest out before pricing sees them.
- Percentage values are bounded to 0–100.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.pricing.constants import OfferType, OfferValueKind
from modules.pricing.dtos import AppliedOffer

OFFER_TYPE_CHOICES = [
    (OfferType.DISCOUNT_MIN.value, "Discount (min order)"),
    (OfferType.PACK_MIN.value, "Pack size (min order)"),
    (OfferType.CATEGORY.value, "Category"),
    (OfferType.SEARCH.value, "Search"),
]

VALUE_KIND_CHOICES = [
    (OfferValueKind.PERCENT.value, "Percent"),
    (OfferValueKind.FLAT.value, "Flat"),
]


class Offer(BaseModel):
    """Promotional rule attachable to a cart line."""

    key = models.SlugField(max_length=80, unique=True)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=OFFER_TYPE_CHOICES)
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    value_kind = models.CharField(
        max_length=10,
        choices=VALUE_KIND_CHOICES,
        default=OfferValueKind.PERCENT.value,
    )
    min_quantity = models.PositiveIntegerField(default=1)
    min_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0")
    )
    category = models.CharField(max_length=120, blank=True, default="")
    subcategory = models.CharField(max_length=120, blank=True, default="")
    search_term = models.CharField(max_length=120, blank=True, default="")
    active = models.BooleanField(default=True)
    expires_at = models.DateTimeField(null=True, blank=True, default=None)
    display_order = models.IntegerField(default=0)

    class Meta:
        db_table = "offers"
        ordering = ["display_order", "name"]
        indexes = [
            models.Index(fields=["active", "expires_at"], name="offers_active_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        if self.value_kind == OfferValueKind.PERCENT and self.value > 100:
            raise ValidationError({"value": "Percentage offers cannot exceed 100."})
        if self.type == OfferType.CATEGORY and not self.category:
            raise ValidationError({"category": "Category offers need a category."})
        if self.type == OfferType.SEARCH and not self.search_term:
            raise ValidationError({"search_term": "Search offers need a term."})

    def is_available(self, now=None) -> bool:
        now = now or timezone.now()
        return self.active and (self.expires_at is None or self.expires_at > now)

    def as_applied_offer(self) -> AppliedOffer:
        return AppliedOffer(
            key=self.key,
            name=self.name,
            type=self.type,
            value=self.value,
            value_kind=self.value_kind,
            min_quantity=self.min_quantity or 1,
            min_amount=self.min_amount,
            category=self.category,
            subcategory=self.subcategory,
            search_term=self.search_term,
        )

    def __str__(self) -> str:
        return f"{self.key} ({self.type})"
