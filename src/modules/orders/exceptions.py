"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from modules.pricing.dtos import DroppedLine


class OrderNotFound(Exception):
    """The requested order does not exist or has been soft-deleted."""


class InvalidOrderStatus(Exception):
    """The requested status change is not allowed from the current status."""


class InsufficientStock(Exception):
    """Stock ran out between pricing and reservation."""


class CustomerNotFound(Exception):
    """The customer referenced by the order does not exist."""


class InactiveCustomer(Exception):
    """The customer is inactive and cannot place orders."""


class EmptyOrder(Exception):
    """Nothing in the cart could be priced for this destination."""


class CartChanged(Exception):
    """Some cart lines can no longer be fulfilled as sent.

    ``dropped`` lists the lines pricing excluded (missing, undeliverable or
    out of stock); the buyer must review the cart before placing again.
    """

    def __init__(self, message: str, dropped: Sequence[DroppedLine]) -> None:
        super().__init__(message)
        self.dropped: List[DroppedLine] = list(dropped)


class InvalidCompletionCode(Exception):
    """The completion code is wrong, expired or was never issued."""
