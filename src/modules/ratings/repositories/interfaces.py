"""Rating repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import UUID

if TYPE_CHECKING:
    from modules.ratings.models import Rating


class IRatingRepository(ABC):
    """Ratings are append-only: no update or delete."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Rating:
        """Persist a new rating."""

    @abstractmethod
    def exists(self, order_id: UUID, from_company_id: UUID) -> bool:
        """Whether *from_company_id* already rated the order."""

    @abstractmethod
    def list_for_order(self, order_id: UUID) -> List[Rating]:
        """Ratings of an order, newest first."""

    @abstractmethod
    def refresh_company_rating(self, company_id: UUID) -> None:
        """Recompute the denormalised average and count of a company."""
