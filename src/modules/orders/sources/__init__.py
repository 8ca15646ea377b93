"""Message sources feeding the ingestion loop."""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from modules.orders.sources.interfaces import IMessageSource, Message
from modules.orders.sources.memory import InMemoryMessageSource
from modules.orders.sources.redis_stream import RedisStreamSource

__all__ = [
    "IMessageSource",
    "InMemoryMessageSource",
    "Message",
    "RedisStreamSource",
    "build_message_source",
]


def build_message_source() -> IMessageSource:
    """Instantiate the source selected by ``ORDERS_SOURCE_BACKEND``."""
    backend = settings.ORDERS_SOURCE_BACKEND
    if backend == "memory":
        return InMemoryMessageSource(timeout=settings.ORDERS_RECEIVE_TIMEOUT)
    if backend == "redis":
        return RedisStreamSource.from_url(
            settings.ORDERS_REDIS_URL,
            stream=settings.ORDERS_STREAM,
            group=settings.ORDERS_CONSUMER_GROUP,
            consumer=settings.ORDERS_CONSUMER_NAME,
            block_ms=int(settings.ORDERS_RECEIVE_TIMEOUT * 1000),
            claim_idle_ms=settings.ORDERS_REDELIVERY_IDLE_MS,
        )
    raise ImproperlyConfigured(
        f"Unknown ORDERS_SOURCE_BACKEND {backend!r} (expected 'redis' or 'memory')."
    )
