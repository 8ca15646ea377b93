from __future__ import annotations

import signal

from django.conf import settings
from django.core.management.base import BaseCommand

from modules.orders.ingestion import MessageStage
from modules.orders.runtime import OrderPipeline, warm_cache


class Command(BaseCommand):
    help = "Run the order ingestion loop in the foreground until interrupted."

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-warm",
            action="store_true",
            help="Skip loading the most recent orders into the cache.",
        )

    def handle(self, *args, **options):
        pipeline = OrderPipeline.from_settings()

        if not options["no_warm"]:
            loaded = warm_cache(
                pipeline.store, pipeline.cache, settings.ORDERS_CACHE_WARM_COUNT
            )
            self.stdout.write(f"Cache warmed with {loaded} orders.")

        def request_stop(signum, frame):
            self.stdout.write("Stopping consumer...")
            pipeline.stop_event.set()

        signal.signal(signal.SIGINT, request_stop)
        signal.signal(signal.SIGTERM, request_stop)

        self.stdout.write("Consuming orders (Ctrl+C to stop)...")
        try:
            pipeline.run_forever()
        finally:
            pipeline.source.close()

        stats = pipeline.loop.stats
        self.stdout.write(
            self.style.SUCCESS(
                f"Consumer stopped: processed={sum(stats.values())}, "
                f"acknowledged={stats[MessageStage.ACKNOWLEDGED]}"
            )
        )
