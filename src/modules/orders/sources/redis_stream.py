"""Redis Streams message source.

Consumes one stream through a consumer group.  Entries delivered to this
consumer stay in the group's pending entries list (PEL) until ``XACK``;
entries left pending for longer than ``claim_idle_ms`` are reclaimed with
``XAUTOCLAIM`` and delivered again.  That reclaim is the redelivery policy
for messages the pipeline dropped without acknowledging.
"""

from __future__ import annotations

import threading
from typing import Any, Mapping, Optional, Union

import redis
import structlog

from modules.orders.constants import PAYLOAD_FIELD
from modules.orders.exceptions import AcknowledgeError, MessageSourceError
from modules.orders.sources.interfaces import Message

logger = structlog.get_logger(__name__)


def _text(value: Union[bytes, str]) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisStreamSource:
    """Consumer-group reader over a single Redis stream."""

    def __init__(
        self,
        client: redis.Redis,
        stream: str,
        group: str,
        consumer: str,
        block_ms: int = 1000,
        claim_idle_ms: int = 30000,
        payload_field: str = PAYLOAD_FIELD,
    ) -> None:
        self._client = client
        self._stream = stream
        self._group = group
        self._consumer = consumer
        self._block_ms = block_ms
        self._claim_idle_ms = claim_idle_ms
        self._payload_field = payload_field
        self._group_ready = False

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisStreamSource:
        return cls(redis.Redis.from_url(url), **kwargs)

    # ------------------------------------------------------------------
    # Consumer group
    # ------------------------------------------------------------------

    def _ensure_group(self) -> None:
        if self._group_ready:
            return
        try:
            self._client.xgroup_create(
                self._stream, self._group, id="0", mkstream=True
            )
            logger.info(
                "message_source.group_created", stream=self._stream, group=self._group
            )
        except redis.ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise
        self._group_ready = True

    # ------------------------------------------------------------------
    # Receive / acknowledge
    # ------------------------------------------------------------------

    def receive(self, stop_event: threading.Event) -> Optional[Message]:
        if stop_event.is_set():
            return None
        try:
            self._ensure_group()
            message = self._claim_stale()
            if message is not None:
                return message
            response = self._client.xreadgroup(
                self._group,
                self._consumer,
                {self._stream: ">"},
                count=1,
                block=self._block_ms,
            )
        except redis.RedisError as exc:
            raise MessageSourceError(
                f"Failed to read from stream {self._stream}: {exc}"
            ) from exc

        if not response:
            return None
        _stream, entries = response[0]
        if not entries:
            return None
        entry_id, fields = entries[0]
        return self._to_message(entry_id, fields)

    def _claim_stale(self) -> Optional[Message]:
        result = self._client.xautoclaim(
            self._stream,
            self._group,
            self._consumer,
            min_idle_time=self._claim_idle_ms,
            start_id="0-0",
            count=1,
        )
        for entry_id, fields in result[1]:
            # Entries trimmed from the stream come back without fields.
            if fields:
                logger.info("message_source.reclaimed", message_id=_text(entry_id))
                return self._to_message(entry_id, fields)
        return None

    def _to_message(
        self, entry_id: Union[bytes, str], fields: Mapping[Any, Any]
    ) -> Message:
        payload = fields.get(self._payload_field.encode("utf-8"))
        if payload is None:
            payload = fields.get(self._payload_field, b"")
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        return Message(payload=payload, handle=_text(entry_id))

    def acknowledge(self, message: Message) -> None:
        try:
            acked = self._client.xack(self._stream, self._group, message.handle)
        except redis.RedisError as exc:
            raise AcknowledgeError(
                f"Failed to acknowledge {message.handle}: {exc}"
            ) from exc
        if not acked:
            raise AcknowledgeError(
                f"Message {message.handle} is no longer pending for {self._group}."
            )

    # ------------------------------------------------------------------
    # Producer side / lifecycle
    # ------------------------------------------------------------------

    def publish(self, payload: Union[bytes, str]) -> str:
        try:
            entry_id = self._client.xadd(self._stream, {self._payload_field: payload})
        except redis.RedisError as exc:
            raise MessageSourceError(
                f"Failed to publish to stream {self._stream}: {exc}"
            ) from exc
        return _text(entry_id)

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        self._client.close()
