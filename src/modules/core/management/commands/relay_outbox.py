from django.core.management.base import BaseCommand

from modules.core.outbox import DEFAULT_BATCH_SIZE, DEFAULT_MAX_RETRIES, OutboxRelay
from shared.infrastructure.bus import event_bus


class Command(BaseCommand):
    help = "Publish pending outbox events to their in-process subscribers."

    def add_arguments(self, parser):
        parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
        parser.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES)

    def handle(self, *args, **options):
        relay = OutboxRelay(
            event_bus,
            batch_size=options["batch_size"],
            max_retries=options["max_retries"],
        )
        result = relay.relay_pending()
        self.stdout.write(
            self.style.SUCCESS(
                f"Published {result.published} event(s), {result.failed} failed."
            )
        )
