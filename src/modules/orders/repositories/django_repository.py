"""Django ORM implementation of the order store.

Satisfies ``IOrderStore`` using Django's QuerySet API.  ``save`` is wrapped
in ``transaction.atomic()`` so the Order aggregate (order, delivery,
payment, items and join rows) is persisted atomically; any database error
rolls the whole aggregate back and surfaces as ``OrderPersistError``.
"""

from __future__ import annotations

from decimal import InvalidOperation
from typing import List, Optional

import structlog
from django.db import DatabaseError, transaction
from django.db.models import Prefetch, QuerySet

from modules.orders.dtos import OrderDTO
from modules.orders.exceptions import OrderPersistError, OrderStoreUnavailable
from modules.orders.models import Delivery, Item, Order, OrderItem, Payment
from modules.orders.repositories.interfaces import IOrderStore

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderStore):
    """Concrete order store backed by Django ORM."""

    # ------------------------------------------------------------------
    # Write (aggregate root + children)
    # ------------------------------------------------------------------

    def save(self, entity: OrderDTO) -> None:
        """Upsert the aggregate; re-applying the same order is a no-op."""
        try:
            self._save_aggregate(entity)
        # Out-of-range values fail in the driver or the field adapter, before
        # Django wraps the error as DatabaseError.
        except (DatabaseError, OverflowError, InvalidOperation) as exc:
            logger.error(
                "order.upsert_failed", order_uid=entity.order_uid, error=str(exc)
            )
            raise OrderPersistError(
                f"Failed to persist order {entity.order_uid}: {exc}"
            ) from exc

    @transaction.atomic
    def _save_aggregate(self, entity: OrderDTO) -> None:
        order, created = Order.objects.update_or_create(
            order_uid=entity.order_uid,
            defaults={
                "track_number": entity.track_number,
                "entry": entity.entry,
                "locale": entity.locale,
                "internal_signature": entity.internal_signature,
                "customer_id": entity.customer_id,
                "delivery_service": entity.delivery_service,
                "shardkey": entity.shardkey,
                "sm_id": entity.sm_id,
                "date_created": entity.date_created,
                "oof_shard": entity.oof_shard,
            },
        )

        Delivery.objects.update_or_create(
            order=order,
            defaults=entity.delivery.model_dump(),
        )
        Payment.objects.update_or_create(
            order=order,
            defaults=entity.payment.model_dump(),
        )

        items = []
        for item_dto in entity.items:
            item, _ = Item.objects.update_or_create(
                chrt_id=item_dto.chrt_id,
                defaults=item_dto.model_dump(exclude={"chrt_id"}),
            )
            items.append(item)

        # Join rows are replaced, not merged: a redelivered order that
        # dropped an item must not keep the stale link.
        OrderItem.objects.filter(order=order).delete()
        OrderItem.objects.bulk_create(
            OrderItem(order=order, item=item, position=position)
            for position, item in enumerate(items)
        )

        log = logger.bind(order_uid=entity.order_uid, item_count=len(items))
        log.info("order.upserted", created=created)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _aggregates(self) -> QuerySet:
        """Orders with delivery, payment and ordered items eager-loaded.

        ``select_related`` covers the one-to-one children (single JOIN);
        items come from one batched prefetch query.  Prevents N+1.
        """
        return Order.objects.select_related("delivery", "payment").prefetch_related(
            Prefetch(
                "order_items",
                queryset=OrderItem.objects.select_related("item").order_by("position"),
            )
        )

    def get_by_id(self, id: str) -> Optional[OrderDTO]:
        """Rebuild one aggregate; ``None`` when the order does not exist."""
        try:
            order = self._aggregates().filter(order_uid=id).first()
        except DatabaseError as exc:
            logger.error("order.read_failed", order_uid=id, error=str(exc))
            raise OrderStoreUnavailable(f"Failed to read order {id}: {exc}") from exc
        if order is None:
            return None
        return OrderDTO.from_entity(order)

    def get_all(self) -> List[OrderDTO]:
        return self._read_many(self._newest_first())

    def get_most_recent(self, limit: int) -> List[OrderDTO]:
        if limit <= 0:
            return []
        return self._read_many(self._newest_first()[:limit])

    def _newest_first(self) -> QuerySet:
        return self._aggregates().order_by("-date_created", "order_uid")

    def _read_many(self, queryset: QuerySet) -> List[OrderDTO]:
        try:
            return [OrderDTO.from_entity(order) for order in queryset]
        except DatabaseError as exc:
            logger.error("order.bulk_read_failed", error=str(exc))
            raise OrderStoreUnavailable(f"Failed to read orders: {exc}") from exc
