"""Domain events for the Orders bounded context.

Payload fields are plain strings so outbox rows round-trip through JSON
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    order_number: str = ""
    customer_id: str = ""
    total_amount: str = "0.00"
    item_count: int = 0


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    reason: str = ""


@dataclass(frozen=True)
class CompletionCodeIssued(DomainEvent):
    """The buyer must be sent a completion code.  Carries no secret."""

    customer_id: str = ""
    expires_at: str = ""


@dataclass(frozen=True)
class OrderCompleted(DomainEvent):
    completed_at: str = ""
