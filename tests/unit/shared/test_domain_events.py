from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime
from uuid import UUID, uuid4

import pytest

from modules.orders.events import OrderPlaced, OrderStatusChanged
from modules.orders.models import Order
from modules.orders.repositories.django_repository import _serialize_event_payload
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


class TestDomainEvent:
    def test_event_name_is_class_name(self):
        event = OrderPlaced(aggregate_id=uuid4(), order_number="ORD-1")
        assert event.event_name == "OrderPlaced"

    def test_is_immutable(self):
        event = OrderPlaced(aggregate_id=uuid4())
        with pytest.raises(FrozenInstanceError):
            event.order_number = "changed"

    def test_round_trips_through_outbox_payload(self):
        original = OrderStatusChanged(
            aggregate_id=uuid4(), old_status="PENDING", new_status="PAID"
        )

        payload = _serialize_event_payload(original)
        rebuilt = OrderStatusChanged.from_payload(payload)

        assert rebuilt == original
        assert isinstance(rebuilt.aggregate_id, UUID)
        assert isinstance(rebuilt.occurred_on, datetime)

    def test_from_payload_ignores_unknown_keys(self):
        payload = {"aggregate_id": str(uuid4()), "reason": "legacy", "extra": 1}

        event = OrderStatusChanged.from_payload(payload)

        assert event.old_status == ""


class TestDomainEventMixin:
    def test_collects_and_clears_events(self):
        order = Order()
        order.add_domain_event(OrderPlaced(aggregate_id=uuid4()))

        assert len(order.domain_events) == 1
        order.clear_domain_events()
        assert order.domain_events == []


class TestInMemoryEventBus:
    def test_dispatches_to_subscribers_of_the_event_type(self):
        bus = InMemoryEventBus()
        received = []

        class Handler:
            def handle(self, event):
                received.append(event)

        handler = Handler()
        bus.subscribe(OrderPlaced, handler)
        bus.subscribe(OrderPlaced, handler)

        bus.publish(OrderPlaced(aggregate_id=uuid4()))
        bus.publish(OrderStatusChanged(aggregate_id=uuid4()))

        assert len(received) == 1

    def test_resolve_by_name(self):
        bus = InMemoryEventBus()
        bus.subscribe(OrderPlaced, object())

        assert bus.resolve("OrderPlaced") is OrderPlaced
        assert bus.resolve("Unknown") is None
