"""Base repository contract shared by the company and order modules.

Services receive repositories through their constructor and only talk to
these abstractions.  ``get_by_id`` returns ``None`` for unknown or
malformed identifiers and ``delete`` is a soft delete for the
``SoftDeleteModel`` aggregates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

from django.db import models

T = TypeVar("T", bound=models.Model)


class IRepository(ABC, Generic[T]):
    """Persistence contract for one aggregate root ``T``."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve a live aggregate by primary key."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Live aggregates, narrowed by ORM look-ups when *filters* is given."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Create or update *entity*."""

    @abstractmethod
    def delete(self, id: str) -> bool:
        """Soft-delete by ID; ``False`` when nothing was deleted."""
