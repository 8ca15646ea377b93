"""Order store interface.

Extends ``IRepository[OrderDTO]`` with the bulk reads used to warm the
cache at start-up.  The ingestion loop and the read path depend
exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import OrderDTO


class IOrderStore(IRepository["OrderDTO"]):
    """Durable store contract for the Order aggregate.

    The aggregate (order, delivery, payment, items, join rows) is written
    as a unit: ``save`` either persists all of it or nothing.
    """

    @abstractmethod
    def save(self, entity: OrderDTO) -> None:
        """Upsert the whole aggregate in one transaction.

        Saving the same order again leaves the store unchanged; saving a
        new version of an ``order_uid`` replaces every child row.

        Raises:
            OrderPersistError: the store is unavailable or rejected the write.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[OrderDTO]:
        """Rebuild the aggregate for ``order_uid`` or return ``None``.

        Raises:
            OrderStoreUnavailable: the store failed while reading.
        """

    @abstractmethod
    def get_all(self) -> List[OrderDTO]:
        """Every stored order, newest ``date_created`` first."""

    @abstractmethod
    def get_most_recent(self, limit: int) -> List[OrderDTO]:
        """The ``limit`` newest orders by ``date_created``, newest first."""
