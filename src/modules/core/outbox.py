"""Outbox relay.

Reads ``PENDING`` outbox rows in creation order, rebuilds each domain event
and publishes it on the in-process event bus.  Rows whose event type has
no subscribed class, or whose handler raises, are marked ``FAILED`` with
the error and retried on the next run until ``max_retries`` is reached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.core.models import OutboxEvent

if TYPE_CHECKING:
    from shared.domain.bus import IEventBus

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_RETRIES = 5


@dataclass
class RelayResult:
    published: int = 0
    failed: int = 0


class OutboxRelay:
    def __init__(
        self,
        bus: IEventBus,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self._bus = bus
        self._batch_size = batch_size
        self._max_retries = max_retries

    def relay_pending(self) -> RelayResult:
        result = RelayResult()
        with transaction.atomic():
            rows = list(
                OutboxEvent.objects.select_for_update(skip_locked=True)
                .relayable(self._max_retries)[: self._batch_size]
            )
            for row in rows:
                if self._relay(row):
                    result.published += 1
                else:
                    result.failed += 1

        logger.info(
            "outbox.relay_completed",
            published=result.published,
            failed=result.failed,
        )
        return result

    def _relay(self, row: OutboxEvent) -> bool:
        log = logger.bind(outbox_id=str(row.id), event_type=row.event_type)
        event_class = self._bus.resolve(row.event_type)
        if event_class is None:
            row.mark_as_failed(f"No subscriber registered for {row.event_type}.")
            log.warning("outbox.unknown_event_type")
            return False
        try:
            self._bus.publish(event_class.from_payload(row.payload))
        except Exception as exc:  # noqa: BLE001 - recorded on the row for retry
            row.mark_as_failed(str(exc))
            log.exception("outbox.publish_failed")
            return False
        row.mark_as_published()
        return True
