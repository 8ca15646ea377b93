"""Order pipeline exceptions.

Raised by the validator, the store and the message sources.  The ingestion
loop decides per type whether a message is dropped or acknowledged; the
API layer (Views) translates read-side failures into HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


class OrderPipelineError(Exception):
    """Base class for every error raised by the order pipeline."""


class OrderDecodeError(OrderPipelineError):
    """The message payload is not a JSON object (malformed envelope)."""


@dataclass(frozen=True)
class FieldViolation:
    """A single failed constraint on one field of an inbound order."""

    path: str
    code: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "code": self.code, "message": self.message}


class OrderValidationError(OrderPipelineError):
    """The payload decoded but violates one or more field constraints."""

    def __init__(self, violations: Iterable[FieldViolation]) -> None:
        self.violations: tuple[FieldViolation, ...] = tuple(violations)
        summary = ", ".join(f"{v.path}: {v.code}" for v in self.violations)
        super().__init__(f"Invalid order ({summary}).")

    @property
    def paths(self) -> set[str]:
        return {v.path for v in self.violations}


class OrderPersistError(OrderPipelineError):
    """The store was unavailable or rejected the write."""


class OrderStoreUnavailable(OrderPipelineError):
    """The store failed while reading an order."""


class MessageSourceError(OrderPipelineError):
    """The message source failed to deliver the next message."""


class AcknowledgeError(MessageSourceError):
    """The message source could not record an acknowledgement."""
