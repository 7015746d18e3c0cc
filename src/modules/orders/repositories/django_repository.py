"""Django ORM implementation of the Order repository.

All writes run inside ``transaction.atomic()`` so the Order aggregate
(Order + OrderItems + history + outbox rows) is persisted as one unit.
Concurrency control on status changes uses ``select_for_update()``.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    @staticmethod
    def _with_relations(queryset: QuerySet) -> QuerySet:
        return queryset.select_related("customer").prefetch_related(
            "items__product", "status_history"
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        summary = data["summary"]
        shipping = data["shipping"]
        breakdown = summary.tax_breakdown

        order = Order(
            customer_id=data["customer_id"],
            idempotency_key=data.get("idempotency_key"),
            notes=data.get("notes") or "",
            shipping_name=shipping.name,
            shipping_phone=shipping.phone,
            shipping_address=shipping.address,
            shipping_city=shipping.city,
            shipping_state=shipping.state,
            shipping_pincode=shipping.pincode,
            shipping_country=shipping.country,
            subtotal=summary.subtotal,
            discount=summary.discount,
            tax=summary.tax,
            cgst=breakdown.cgst,
            sgst=breakdown.sgst,
            igst=breakdown.igst,
            delivery_fee=summary.delivery_fee,
            total_amount=summary.total,
            chargeable_weight_kg=summary.chargeable_weight_kg,
        )
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=item.product_id,
                    product_name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    discount=item.discount,
                    subtotal=item.adjusted_subtotal,
                    offer_key=item.offer_key or "",
                    gst_percent=item.gst_percent,
                    gst_amount=item.gst_amount,
                    cgst=item.cgst,
                    sgst=item.sgst,
                    igst=item.igst,
                )
                for item in summary.items
            ]
        )

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=len(summary.items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._with_relations(Order.objects.alive()).filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Lock the order row and eager-load its items.

        ``of=("self",)`` keeps the customer join out of the lock.
        """
        try:
            return (
                self._with_relations(
                    Order.objects.alive().select_for_update(of=("self",))
                )
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> "QuerySet[Order]":
        """List live orders.

        Supported filter keys include ``status``, ``customer_id`` and
        ``created_at__range``.
        """
        queryset = Order.objects.alive().select_related("customer")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return self._with_relations(Order.objects.all()).filter(
            idempotency_key=key
        ).first()

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and move its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        OutboxEvent.objects.bulk_create(
            [
                OutboxEvent(
                    event_type=event.event_name,
                    aggregate_id=str(event.aggregate_id),
                    payload=_serialize_event_payload(event),
                    topic=OUTBOX_TOPIC,
                )
                for event in events
            ]
        )
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history


def _serialize_event_payload(event: Any) -> Dict[str, Any]:
    return json.loads(json.dumps(_normalize_for_json(asdict(event))))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
