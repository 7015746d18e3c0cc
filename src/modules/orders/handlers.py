"""Event handlers for Orders domain events.

Handlers receive events from the outbox relay after commit.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    CompletionCodeIssued,
    OrderCancelled,
    OrderCompleted,
    OrderPlaced,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderPlacedHandler(IEventHandler[OrderPlaced]):
    def handle(self, event: OrderPlaced) -> None:
        logger.info(
            "order.event.placed",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            total_amount=event.total_amount,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            reason=event.reason,
        )


class CompletionCodeIssuedHandler(IEventHandler[CompletionCodeIssued]):
    """Hand-off point for the buyer notification channel.

    Sending the code (email, SMS) lives outside this service.
    """

    def handle(self, event: CompletionCodeIssued) -> None:
        logger.info(
            "order.event.completion_code_issued",
            order_id=str(event.aggregate_id),
            customer_id=event.customer_id,
            expires_at=event.expires_at,
        )


class OrderCompletedHandler(IEventHandler[OrderCompleted]):
    def handle(self, event: OrderCompleted) -> None:
        logger.info(
            "order.event.completed",
            order_id=str(event.aggregate_id),
            completed_at=event.completed_at,
        )


order_placed_handler = OrderPlacedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
completion_code_issued_handler = CompletionCodeIssuedHandler()
order_completed_handler = OrderCompletedHandler()
