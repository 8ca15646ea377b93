"""Process runtime for the order pipeline.

Wires the process-level cache, the Django store and the configured message
source together, warms the cache from the store and runs the ingestion
loop in a background thread.  One pipeline per process.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Optional

import structlog
from django.conf import settings
from django.db import connections

from modules.orders.cache import get_order_cache
from modules.orders.ingestion import OrderIngestionLoop
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.sources import build_message_source

if TYPE_CHECKING:
    from modules.orders.cache import BoundedCache
    from modules.orders.repositories.interfaces import IOrderStore
    from modules.orders.sources.interfaces import IMessageSource

logger = structlog.get_logger(__name__)


def warm_cache(store: IOrderStore, cache: BoundedCache, limit: int) -> int:
    """Load the *limit* most recent orders into *cache*; returns the count.

    The store yields newest first; the cache is loaded oldest first so the
    newest orders are the last to be evicted.  Store failures propagate:
    a process that cannot read its store must not start serving.
    """
    orders = store.get_most_recent(limit)
    orders.reverse()
    cache.load_all(orders)
    logger.info("order_cache.warmed", loaded=len(orders), limit=limit)
    return len(orders)


class OrderPipeline:
    """Owns the consumer thread and its stop signal."""

    def __init__(
        self,
        source: IMessageSource,
        store: IOrderStore,
        cache: BoundedCache,
        retry_delay: float = 1.0,
    ) -> None:
        self.source = source
        self.store = store
        self.cache = cache
        self.loop = OrderIngestionLoop(source, store, cache, retry_delay=retry_delay)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(cls) -> OrderPipeline:
        return cls(
            source=build_message_source(),
            store=OrderDjangoRepository(),
            cache=get_order_cache(),
            retry_delay=settings.ORDERS_RECEIVE_RETRY_DELAY,
        )

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, warm: bool = True) -> None:
        if self.is_running:
            return
        if warm:
            warm_cache(self.store, self.cache, settings.ORDERS_CACHE_WARM_COUNT)
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._consume, name="order-consumer", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal the loop to stop and wait for it; True if it has exited."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("order_consumer.stop_timeout", timeout=timeout)
                return False
        self.source.close()
        return True

    def run_forever(self) -> None:
        """Consume in the calling thread until ``stop_event`` is set."""
        self.loop.run(self._stop_event)

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def _consume(self) -> None:
        try:
            self.loop.run(self._stop_event)
        except Exception:
            logger.exception("order_consumer.crashed")
            raise
        finally:
            connections.close_all()


_pipeline: Optional[OrderPipeline] = None
_pipeline_lock = threading.Lock()


def get_pipeline() -> Optional[OrderPipeline]:
    return _pipeline


def start_pipeline() -> OrderPipeline:
    """Build the process pipeline from settings (once) and start it."""
    global _pipeline

    with _pipeline_lock:
        if _pipeline is None:
            _pipeline = OrderPipeline.from_settings()
        _pipeline.start()
    return _pipeline


def stop_pipeline(timeout: Optional[float] = None) -> None:
    global _pipeline

    with _pipeline_lock:
        if _pipeline is not None:
            _pipeline.stop(timeout)
            _pipeline = None
