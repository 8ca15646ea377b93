"""Order ingestion loop.

Pulls messages from an ``IMessageSource`` and drives each one through

    RECEIVED -> DECODED -> VALIDATED -> PERSISTED -> CACHED -> ACKNOWLEDGED

Acknowledgement happens strictly after the store accepted the order, so a
crash or failure anywhere before that point leaves the message to the
source's redelivery policy (at-least-once).  Decode, validation and persist
failures are logged and the message is dropped without acknowledgement;
nothing is retried in-process.  The same holds for any unexpected error
while processing one message: it never ends the loop.
"""

from __future__ import annotations

import enum
import threading
from collections import Counter
from typing import TYPE_CHECKING

import structlog
from django.db import DatabaseError

from modules.core.correlation import correlation_scope
from modules.orders.exceptions import (
    AcknowledgeError,
    MessageSourceError,
    OrderDecodeError,
    OrderPersistError,
    OrderValidationError,
)
from modules.orders.validation import decode_order_payload, validate_order

if TYPE_CHECKING:
    from modules.orders.cache import BoundedCache
    from modules.orders.repositories.interfaces import IOrderStore
    from modules.orders.sources.interfaces import IMessageSource, Message

logger = structlog.get_logger(__name__)


class MessageStage(enum.IntEnum):
    """Furthest point a message reached in the pipeline."""

    RECEIVED = 1
    DECODED = 2
    VALIDATED = 3
    PERSISTED = 4
    CACHED = 5
    ACKNOWLEDGED = 6


class OrderIngestionLoop:
    """Single-consumer loop: decode, validate, persist, cache, acknowledge.

    Collaborators are injected so the loop can be driven by any source and
    store implementation.  ``stats`` counts messages by the final stage they
    reached.
    """

    def __init__(
        self,
        source: IMessageSource,
        store: IOrderStore,
        cache: BoundedCache,
        retry_delay: float = 1.0,
    ) -> None:
        self._source = source
        self._store = store
        self._cache = cache
        self._retry_delay = retry_delay
        self.stats: Counter[MessageStage] = Counter()

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self, stop_event: threading.Event) -> None:
        """Consume until *stop_event* is set.

        A message already received is processed to completion before the
        stop signal is checked again.
        """
        logger.info("order_consumer.started")
        while not stop_event.is_set():
            try:
                message = self._source.receive(stop_event)
            except MessageSourceError as exc:
                logger.warning("order_consumer.receive_failed", error=str(exc))
                stop_event.wait(self._retry_delay)
                continue
            if message is None:
                continue
            self.process(message)
        logger.info(
            "order_consumer.stopped",
            acknowledged=self.stats[MessageStage.ACKNOWLEDGED],
            processed=sum(self.stats.values()),
        )

    # ------------------------------------------------------------------
    # One message
    # ------------------------------------------------------------------

    def process(self, message: Message) -> MessageStage:
        """Run one message through the pipeline and return its final stage.

        An unexpected error is logged and counted as ``RECEIVED``: the
        message stays unacknowledged and the loop keeps consuming.
        """
        with correlation_scope(message_id=message.handle):
            try:
                stage = self._process(message)
            except Exception:
                logger.exception("order.processing_failed")
                stage = MessageStage.RECEIVED
        self.stats[stage] += 1
        return stage

    def _process(self, message: Message) -> MessageStage:
        try:
            raw = decode_order_payload(message.payload)
        except OrderDecodeError as exc:
            logger.warning("order.decode_failed", error=str(exc))
            return MessageStage.RECEIVED

        try:
            order = validate_order(raw)
        except OrderValidationError as exc:
            logger.warning(
                "order.validation_failed",
                order_uid=raw.get("order_uid"),
                violations=[v.as_dict() for v in exc.violations],
            )
            return MessageStage.DECODED

        log = logger.bind(order_uid=order.order_uid)

        try:
            self._store.save(order)
        except (OrderPersistError, DatabaseError) as exc:
            log.error("order.persist_failed", error=str(exc))
            return MessageStage.VALIDATED
        stage = MessageStage.PERSISTED
        log.info("order.persisted", items=len(order.items))

        try:
            self._cache.put(order)
        except Exception:
            log.exception("order.cache_update_failed")
        else:
            stage = MessageStage.CACHED

        try:
            self._source.acknowledge(message)
        except AcknowledgeError as exc:
            log.warning("order.acknowledge_failed", error=str(exc))
            return stage
        log.info("order.acknowledged")
        return MessageStage.ACKNOWLEDGED
