"""Customer (buyer) model with soft delete.

Business rules implemented:
- Email must be unique in the system.
- Inactive customers cannot place orders (enforced at service layer).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
- Phone numbers are stored as ten-digit Indian mobile numbers and masked
  in ``__str__``.
"""

from __future__ import annotations

import re

from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import SoftDeleteModel

MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")


class Customer(SoftDeleteModel):
    """Buyer identity.

    Shipping addresses are captured per order, so the customer row only
    carries contact details.
    """

    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    phone = models.CharField(max_length=15, blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]

    @staticmethod
    def _sanitize_phone(value: str) -> str:
        """Keep the last ten digits, dropping ``+91``/``0`` prefixes."""
        digits = re.sub(r"\D", "", value)
        return digits[-10:] if len(digits) > 10 else digits

    def clean(self) -> None:
        super().clean()
        if self.phone:
            self.phone = self._sanitize_phone(self.phone)
            if not MOBILE_PATTERN.match(self.phone):
                raise ValidationError({"phone": "Invalid mobile number."})

    def save(self, *args, **kwargs) -> None:
        if self.phone:
            self.phone = self._sanitize_phone(self.phone)
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        suffix = self.phone[-4:] if self.phone else "????"
        return f"{self.name} (***{suffix})"
