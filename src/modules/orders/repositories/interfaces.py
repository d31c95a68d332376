"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the Order aggregate
needs: row locking, status history, visibility per company, rework
lineage and quality reviews.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderReview, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes status history and quality reviews.
    ``save`` publishes the aggregate's pending domain events once the
    surrounding transaction commits.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with both parties and history loaded."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve a live order holding a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """List live orders with optional filters."""

    @abstractmethod
    def visible_to(
        self,
        company_ids: Iterable[UUID],
        include_marketplace: bool = False,
    ) -> "models.QuerySet[Order]":
        """Orders where one of *company_ids* is brand or supplier.

        With ``include_marketplace`` the open orders without a supplier are
        included as well.
        """

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Any = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def next_revision_number(self, parent: Order) -> int:
        """Revision number for the next rework child of *parent*."""

    @abstractmethod
    def children(self, order: Order) -> List[Order]:
        """Direct rework children ordered by revision."""

    @abstractmethod
    def add_review(
        self,
        order: Order,
        reviewer: Any,
        data: Dict[str, Any],
        rejected_items: List[Dict[str, Any]],
        second_quality_items: List[Dict[str, Any]],
    ) -> OrderReview:
        """Persist a review with its rejected / second-quality items."""

    @abstractmethod
    def list_reviews(self, order_id: UUID) -> List[OrderReview]:
        """Reviews of an order, newest first, with items loaded."""
