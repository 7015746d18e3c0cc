"""Order, OrderItem, and OrderStatusHistory models.

Business rules implemented:
- Invalid status transitions are rejected (enforced at service layer).
- Each status change, and each support note, adds a history record.
- Idempotency via ``idempotency_key`` unique constraint.
- Order number auto-generated as a human-readable identifier.
- Customer FK uses PROTECT to preserve financial history.
- Money fields are a snapshot of the server-side pricing pass at
  placement; they never change afterwards, even if catalog prices or tax
  rates do.
- The completion code is stored hashed and expires.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any, Optional

import structlog
from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    COMPLETION_CODE_LENGTH,
    COMPLETION_CODE_TTL,
    DEFAULT_SHIPPING_COUNTRY,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _money_field(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(
        max_digits=12, decimal_places=2, default=ZERO, **kwargs
    )


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``order_number`` is generated on first save (``ORD-YYYYMMDD-XXXXXX``);
    the UUIDv7 ``id`` is used for internal references and API look-ups.

    ``total_amount == subtotal + tax + delivery_fee`` and
    ``tax == cgst + sgst + igst`` hold for every stored order.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    # Shipping destination
    shipping_name = models.CharField(max_length=255)
    shipping_phone = models.CharField(max_length=15, blank=True, default="")
    shipping_address = models.TextField()
    shipping_city = models.CharField(max_length=120)
    shipping_state = models.CharField(max_length=64)
    shipping_pincode = models.CharField(max_length=6)
    shipping_country = models.CharField(
        max_length=64, default=DEFAULT_SHIPPING_COUNTRY
    )

    # Money snapshot
    subtotal = _money_field()
    discount = _money_field()
    tax = _money_field()
    cgst = _money_field()
    sgst = _money_field()
    igst = _money_field()
    delivery_fee = _money_field()
    total_amount = _money_field()
    chargeable_weight_kg = models.DecimalField(
        max_digits=10, decimal_places=3, default=Decimal("0.000")
    )

    notes: models.TextField = models.TextField(blank=True, default="")
    idempotency_key: models.CharField = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    # Buyer-confirmed completion
    completion_code_hash = models.CharField(max_length=128, blank=True, default="")
    completion_code_expires_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["customer", "-created_at"], name="orders_customer_idx"),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Completion code
    # ------------------------------------------------------------------

    def issue_completion_code(self) -> str:
        """Generate a fresh numeric code, store its hash and return it.

        The previous code, if any, stops working.
        """
        code = "".join(
            secrets.choice("0123456789") for _ in range(COMPLETION_CODE_LENGTH)
        )
        self.completion_code_hash = make_password(code)
        self.completion_code_expires_at = timezone.now() + COMPLETION_CODE_TTL
        return code

    def verify_completion_code(self, code: Optional[str]) -> bool:
        if not code or not self.completion_code_hash:
            return False
        expires_at = self.completion_code_expires_at
        if expires_at is None or expires_at <= timezone.now():
            return False
        return check_password(str(code).strip(), self.completion_code_hash)

    def clear_completion_code(self) -> None:
        self.completion_code_hash = ""
        self.completion_code_expires_at = None

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(3).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _ in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(SoftDeleteModel):
    """Priced line of an order.

    Every money field is copied from the pricing summary at placement.
    ``subtotal`` is the line amount after the offer discount and before
    GST; ``cgst + sgst + igst == gst_amount``.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    product_name = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount = _money_field()
    subtotal = _money_field()
    offer_key = models.CharField(max_length=80, blank=True, default="")
    gst_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    gst_amount = _money_field()
    cgst = _money_field()
    sgst = _money_field()
    igst = _money_field()

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    @property
    def line_total(self) -> Decimal:
        return self.subtotal + self.gst_amount

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} (₹{self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for an order.

    A record with ``old_status == new_status`` is a support note that did
    not change the status.  ``user`` is ``None`` for system actions.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
