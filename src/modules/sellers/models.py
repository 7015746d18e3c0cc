"""Seller model.

Only the attributes pricing needs are modelled here; onboarding and
approval workflows live outside this service.

Business rules implemented:
- ``state`` is normalised (trimmed, upper-case) so eligibility can compare
  it exactly against a normalised destination state.
- ``gstin`` is optional; a seller with a GSTIN on file is GST-registered
  and may ship across state lines.
"""

from __future__ import annotations

import re

import structlog
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)

GSTIN_PATTERN = re.compile(r"^\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


class Seller(SoftDeleteModel):
    """Marketplace seller."""

    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    state = models.CharField(max_length=64, blank=True, default="")
    gstin = models.CharField(max_length=15, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "sellers"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["state"], name="sellers_state_idx"),
        ]

    @property
    def has_gst(self) -> bool:
        return bool(self.gstin)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def clean(self) -> None:
        super().clean()
        self._normalize()
        if self.gstin and not GSTIN_PATTERN.match(self.gstin):
            logger.warning("seller.invalid_gstin", gstin_suffix=self.gstin[-3:])
            raise ValidationError({"gstin": "Invalid GSTIN format."})

    def _normalize(self) -> None:
        self.state = (self.state or "").strip().upper()
        self.gstin = (self.gstin or "").strip().upper()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args, **kwargs) -> None:
        self._normalize()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.state or '??'})"
