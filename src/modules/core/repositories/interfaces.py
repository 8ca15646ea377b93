"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that domain-specific
store contracts extend.  Pipeline code depends on this abstraction, never on
Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the entity handed in and out of the
    repository (e.g. ``OrderDTO``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its key, or ``None`` if absent."""

    @abstractmethod
    def save(self, entity: T) -> None:
        """Persist (create or replace) an entity."""
