"""Message source contract consumed by the ingestion loop."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class Message:
    """One delivered message: raw payload plus the handle used to ack it."""

    payload: bytes
    handle: str


class IMessageSource(Protocol):
    """At-least-once message source.

    A delivered message that is never acknowledged is redelivered according
    to the source's own policy; the pipeline places no bound on it.
    """

    def receive(self, stop_event: threading.Event) -> Optional[Message]:
        """Wait for the next message for at most one receive slice.

        Returns ``None`` when the slice ends without a message or when
        *stop_event* is set.

        Raises:
            MessageSourceError: the source could not be read.
        """
        ...

    def acknowledge(self, message: Message) -> None:
        """Commit *message* so it is not delivered again.

        Raises:
            AcknowledgeError: the commit could not be recorded.
        """
        ...

    def ping(self) -> bool: ...

    def close(self) -> None: ...
