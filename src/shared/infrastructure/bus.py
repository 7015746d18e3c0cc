"""In-memory event bus.

Handlers run synchronously in the publishing thread.  The outbox relay is
the only publisher: events reach handlers after the transaction that
stored them has committed.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Type

import structlog

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def resolve(self, event_name: str) -> Optional[Type[DomainEvent]]:
        for event_class in self._handlers:
            if event_class.__name__ == event_name:
                return event_class
        return None

    def publish(self, event: DomainEvent) -> None:
        handlers = self._handlers.get(type(event), [])
        logger.debug(
            "event_bus.publish",
            event_name=event.event_name,
            aggregate_id=str(event.aggregate_id),
            handler_count=len(handlers),
        )
        for handler in handlers:
            handler.handle(event)


event_bus = InMemoryEventBus()
