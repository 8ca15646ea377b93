"""Bounded in-memory order cache.

``BoundedCache`` keeps at most ``capacity`` orders keyed by ``order_uid``
and evicts in insertion order (FIFO): when a new key arrives at capacity,
the key inserted earliest among the survivors is dropped.  Reads never
change eviction order and overwriting an existing key only replaces its
value, so the key keeps its original position.

A single ``OrderedDict`` is both the value map and the eviction sequence,
and every access goes through one lock, so no observer can see a key in
one but not the other.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Iterable, List, Optional

import structlog
from django.conf import settings

from modules.orders.dtos import OrderDTO

logger = structlog.get_logger(__name__)


class BoundedCache:
    """Fixed-capacity ``order_uid -> OrderDTO`` store with FIFO eviction."""

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(
                f"Cache capacity must be a positive integer, got {capacity!r}."
            )
        self._capacity = capacity
        self._entries: OrderedDict[str, OrderDTO] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, order_uid: str) -> Optional[OrderDTO]:
        """Return the cached order, or ``None`` on a miss."""
        with self._lock:
            return self._entries.get(order_uid)

    def keys(self) -> List[str]:
        """Snapshot of cached keys, oldest insertion first."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, order_uid: object) -> bool:
        with self._lock:
            return order_uid in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, order: OrderDTO) -> None:
        """Insert or overwrite *order*, evicting the oldest key if needed."""
        key = order.order_uid
        with self._lock:
            if key in self._entries:
                self._entries[key] = order
                return
            evicted = None
            if len(self._entries) >= self._capacity:
                evicted, _ = self._entries.popitem(last=False)
            self._entries[key] = order

        if evicted is not None:
            logger.debug("order_cache.evicted", order_uid=evicted, inserted=key)

    def load_all(self, orders: Iterable[OrderDTO]) -> None:
        """Replace the whole cache with *orders*.

        Iteration order of *orders* becomes the eviction order.  A repeated
        key keeps its first position and its last value.  If more orders
        than ``capacity`` are supplied, the earliest ones are evicted.  The
        replacement is built before the lock is taken and published in one
        step.
        """
        fresh: OrderedDict[str, OrderDTO] = OrderedDict()
        for order in orders:
            fresh[order.order_uid] = order

        overflow = max(0, len(fresh) - self._capacity)
        for _ in range(overflow):
            fresh.popitem(last=False)

        with self._lock:
            self._entries = fresh

        logger.info(
            "order_cache.loaded",
            size=len(fresh),
            capacity=self._capacity,
            evicted=overflow,
        )


# ---------------------------------------------------------------------------
# Process-level instance
# ---------------------------------------------------------------------------

_order_cache: Optional[BoundedCache] = None
_order_cache_lock = threading.Lock()


def get_order_cache() -> BoundedCache:
    """Return the process-wide cache shared by ingestion and the read API."""
    global _order_cache

    if _order_cache is None:
        with _order_cache_lock:
            if _order_cache is None:
                _order_cache = BoundedCache(settings.ORDERS_CACHE_CAPACITY)
    return _order_cache
