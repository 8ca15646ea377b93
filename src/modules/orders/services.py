"""Order read service (cache-aside lookup).

Reads are served from the bounded cache; on a miss the store is queried
and a found order is written back into the cache before it is returned.
Store failures surface as ``OrderStoreUnavailable`` so the API layer can
answer with 503 rather than a false "not found".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

if TYPE_CHECKING:
    from modules.orders.cache import BoundedCache
    from modules.orders.dtos import OrderDTO
    from modules.orders.repositories.interfaces import IOrderStore

logger = structlog.get_logger(__name__)


class OrderReadService:
    """Application service for order lookups.

    Receives the cache and the store via constructor injection (DIP).
    """

    def __init__(self, cache: BoundedCache, store: IOrderStore) -> None:
        self._cache = cache
        self._store = store

    def lookup(self, order_uid: str) -> Optional[OrderDTO]:
        """Return the order for *order_uid*, or ``None`` if it does not exist.

        Raises:
            OrderStoreUnavailable: cache miss and the store read failed.
        """
        if not order_uid or not order_uid.strip():
            return None

        log = logger.bind(order_uid=order_uid)

        order = self._cache.get(order_uid)
        if order is not None:
            log.debug("order.cache_hit")
            return order

        log.debug("order.cache_miss")
        order = self._store.get_by_id(order_uid)
        if order is None:
            log.info("order.not_found")
            return None

        self._cache.put(order)
        log.info("order.cache_backfilled")
        return order
