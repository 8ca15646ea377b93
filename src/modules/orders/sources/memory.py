"""In-memory message source for local runs and tests."""

from __future__ import annotations

import itertools
import queue
import threading
from typing import Dict, List, Optional, Union

import structlog

from modules.orders.exceptions import AcknowledgeError
from modules.orders.sources.interfaces import Message

logger = structlog.get_logger(__name__)


class InMemoryMessageSource:
    """Thread-safe FIFO queue with explicit acknowledgement.

    Delivered-but-unacknowledged messages are tracked as *pending*;
    ``redeliver_pending()`` puts them back on the queue the way a broker
    redelivers after a consumer failure.
    """

    def __init__(self, timeout: float = 1.0) -> None:
        self._timeout = timeout
        self._queue: queue.Queue[Message] = queue.Queue()
        self._lock = threading.Lock()
        self._pending: Dict[str, Message] = {}
        self._acknowledged: List[str] = []
        self._ids = itertools.count(1)

    def publish(self, payload: Union[bytes, str]) -> str:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        handle = f"mem-{next(self._ids)}"
        self._queue.put(Message(payload=payload, handle=handle))
        return handle

    def receive(self, stop_event: threading.Event) -> Optional[Message]:
        if stop_event.is_set():
            return None
        try:
            message = self._queue.get(timeout=self._timeout)
        except queue.Empty:
            return None
        with self._lock:
            self._pending[message.handle] = message
        return message

    def acknowledge(self, message: Message) -> None:
        with self._lock:
            if self._pending.pop(message.handle, None) is None:
                raise AcknowledgeError(f"Message {message.handle} is not pending.")
            self._acknowledged.append(message.handle)

    def redeliver_pending(self) -> int:
        """Requeue every unacknowledged message; returns how many."""
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for message in pending:
            self._queue.put(message)
        if pending:
            logger.info("message_source.redelivered", count=len(pending))
        return len(pending)

    @property
    def acknowledged(self) -> List[str]:
        with self._lock:
            return list(self._acknowledged)

    @property
    def pending(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def qsize(self) -> int:
        return self._queue.qsize()

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        return None
