"""Order service layer (Use Cases).

Orchestrates order placement and the order lifecycle.  All write
operations are atomic; the service defines the unit-of-work boundary.

Business rules enforced:
- The customer must exist and be active.
- An order is always priced server-side, from product rows locked for
  the duration of the transaction.  Client totals are never trusted.
- A cart that pricing had to change (dropped lines, stock shortfall) is
  rejected rather than silently altered.
- Stock is reserved atomically at placement and released on cancel.
- Status transitions are validated against the state machine and
  recorded in the history.
- ``COMPLETED`` requires the buyer's completion code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.orders.constants import DEDICATED_TRANSITIONS, OrderStatus
from modules.orders.events import (
    CompletionCodeIssued,
    OrderCancelled,
    OrderCompleted,
    OrderPlaced,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    CartChanged,
    CustomerNotFound,
    EmptyOrder,
    InactiveCustomer,
    InsufficientStock,
    InvalidCompletionCode,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.pricing.quantity import clamp_quantity

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import PlaceOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.pricing.dtos import OrderSummary
    from modules.pricing.services import PricingService
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and the pricing service via constructor
    injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
        pricing_service: PricingService,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository
        self._pricing = pricing_service

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def place_order(self, dto: PlaceOrderDTO) -> Order:
        """Price and persist an order with atomic stock reservation.

        Steps:
        1. Return the existing order for a repeated idempotency key.
        2. Validate the customer exists and is active.
        3. Lock the product rows (sorted by PK to avoid deadlocks) and
           price the cart from the locked state.
        4. Reject the cart if pricing dropped or shortened any line.
        5. Decrement stock, persist order + items, record history and
           the ``OrderPlaced`` outbox event.

        Raises:
            CustomerNotFound: customer does not exist.
            InactiveCustomer: customer is inactive.
            EmptyOrder: no line can be priced for the destination.
            CartChanged: some lines were dropped by pricing.
            InsufficientStock: stock is below the quantity the buyer may
                order.
            InvalidCartLine: a line is malformed.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.placement_started", item_count=len(dto.items))

        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        customer = self._customer_repo.get_by_id(str(dto.customer_id))
        if not customer:
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")
        if not customer.is_active:
            raise InactiveCustomer(f"Customer {dto.customer_id} is inactive.")

        snapshots = self._product_repo.lock_for_update(
            [item.product_id for item in dto.items]
        )
        summary = self._pricing.price(
            dto.items, snapshots, dto.shipping.state, dto.shipping.country
        )
        self._ensure_cart_unchanged(dto, summary)

        for item in sorted(summary.items, key=lambda i: i.product_id):
            if not self._product_repo.decrement_stock(item.product_id, item.quantity):
                raise InsufficientStock(
                    f"Product {item.product_id}: requested {item.quantity}, "
                    "stock no longer available."
                )

        order = self._order_repo.create(
            {
                "customer_id": dto.customer_id,
                "shipping": dto.shipping,
                "summary": summary,
                "notes": dto.notes or "",
                "idempotency_key": dto.idempotency_key,
            }
        )
        order.add_domain_event(
            OrderPlaced(
                aggregate_id=order.id,
                order_number=order.order_number,
                customer_id=str(dto.customer_id),
                total_amount=str(summary.total),
                item_count=len(summary.items),
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order placed",
        )

        log.info(
            "order.placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(summary.total),
            tax=str(summary.tax),
            delivery_fee=str(summary.delivery_fee),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_status(
        self,
        order_id: UUID,
        new_status: str,
        notes: str = "",
    ) -> Order:
        """Transition an order to a new status.

        Locks the order row before validating the transition.
        ``CANCELLED`` and ``COMPLETED`` are refused here; they have their
        own operations.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: unknown status or transition not allowed.
        """
        target = (new_status or "").strip().upper()
        if target not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown status {new_status!r}.")
        if target in DEDICATED_TRANSITIONS:
            raise InvalidOrderStatus(
                f"Status {target} cannot be set directly; use its dedicated endpoint."
            )

        order = self._lock(order_id)
        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=target,
        )
        if not order.can_transition_to(target):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {target}."
            )

        old_status = order.status
        order.status = target
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status=old_status, new_status=target
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=target,
            notes=notes,
            old_status=old_status,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def cancel_order(self, order_id: UUID, notes: str = "") -> Order:
        """Cancel an order and release its reserved stock.

        The order row is locked first so concurrent cancellations cannot
        release stock twice.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: cancellation not allowed from current status.
        """
        order = self._lock(order_id)
        log = logger.bind(order_id=str(order_id), current_status=order.status)

        if not order.can_transition_to(OrderStatus.CANCELLED):
            log.warning("order.cancel_not_allowed")
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")

        for item in sorted(order.items.all(), key=lambda i: str(i.product_id)):
            self._product_repo.release_stock(str(item.product_id), item.quantity)

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.clear_completion_code()
        order.add_domain_event(OrderCancelled(aggregate_id=order.id, reason=notes))
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def issue_completion_code(self, order_id: UUID) -> Tuple[Order, str]:
        """Issue a fresh completion code for a delivered order.

        Returns the order and the plain code; only its hash is stored.
        Sending the code to the buyer is handled by the
        ``CompletionCodeIssued`` event subscriber.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order is not ``DELIVERED``.
        """
        order = self._lock(order_id)
        if order.status != OrderStatus.DELIVERED:
            raise InvalidOrderStatus(
                f"Completion codes are only issued for delivered orders, "
                f"not {order.status}."
            )

        code = order.issue_completion_code()
        order.add_domain_event(
            CompletionCodeIssued(
                aggregate_id=order.id,
                customer_id=str(order.customer_id),
                expires_at=order.completion_code_expires_at.isoformat(),
            )
        )
        self._order_repo.save(order)

        logger.info(
            "order.completion_code_issued",
            order_id=str(order_id),
            expires_at=order.completion_code_expires_at.isoformat(),
        )
        return order, code

    @transaction.atomic
    def complete_order(self, order_id: UUID, code: str) -> Order:
        """Mark a delivered order as completed after verifying the code.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderStatus: the order is not ``DELIVERED``.
            InvalidCompletionCode: wrong, expired or missing code.
        """
        order = self._lock(order_id)
        log = logger.bind(order_id=str(order_id), current_status=order.status)

        if not order.can_transition_to(OrderStatus.COMPLETED):
            log.warning("order.complete_not_allowed")
            raise InvalidOrderStatus(
                f"Cannot complete order in status {order.status}."
            )
        if not order.verify_completion_code(code):
            log.warning("order.completion_code_rejected")
            raise InvalidCompletionCode("Invalid or expired completion code.")

        old_status = order.status
        order.status = OrderStatus.COMPLETED
        order.completed_at = timezone.now()
        order.clear_completion_code()
        order.add_domain_event(
            OrderCompleted(
                aggregate_id=order.id, completed_at=order.completed_at.isoformat()
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.COMPLETED,
            notes="Completion confirmed by buyer",
            old_status=old_status,
        )

        log.info("order.completed")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def add_support_note(self, order_id: UUID, notes: str) -> Order:
        """Append a note to the audit trail without changing the status.

        Allowed in every status, terminal ones included.

        Raises:
            OrderNotFound: order does not exist.
        """
        order = self._lock(order_id)
        self._order_repo.add_history(
            order_id=order.id,
            status=order.status,
            notes=notes,
            old_status=order.status,
        )
        logger.info("order.note_added", order_id=str(order_id), status=order.status)
        return self._order_repo.get_by_id(str(order_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> "QuerySet[Order]":
        return self._order_repo.list(filters)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock(self, order_id: UUID) -> Order:
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    def _ensure_cart_unchanged(dto: PlaceOrderDTO, summary: OrderSummary) -> None:
        """Refuse to place a cart that pricing had to alter.

        Tier clamping is part of the catalog rules and is accepted; a line
        shortened by stock is not.
        """
        if summary.is_empty:
            raise EmptyOrder("No item in the cart can be delivered to this address.")
        if summary.dropped:
            logger.warning(
                "order.cart_changed",
                customer_id=str(dto.customer_id),
                dropped=[line.product_id for line in summary.dropped],
            )
            raise CartChanged(
                "Some items are no longer available for this address.",
                summary.dropped,
            )
        for item in summary.items:
            allowed = clamp_quantity(item.requested_quantity, item.unit_price)
            if item.quantity < allowed:
                raise InsufficientStock(
                    f"Product {item.product_id}: requested {allowed}, "
                    f"available {item.quantity}."
                )
