"""Django ORM implementation of the Order repository.

Status changes and reviews load the order through ``get_for_update``, so
a brand and a supplier acting on the same order are serialised by the row
lock.  Domain events collected on the aggregate are handed to the bus on
commit by ``save``.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Max, Q

from modules.orders.constants import MARKETPLACE_STATES
from modules.orders.models import (
    Order,
    OrderReview,
    OrderStatusHistory,
    RejectedItem,
    SecondQualityItem,
)
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self) -> models.QuerySet:
        return Order.objects.alive().select_related("brand", "supplier", "parent_order")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                self._base_queryset()
                .prefetch_related("status_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Relations are not joined: the nullable supplier FK would put the
        lock on the outer side of a join.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return Order.objects.alive().select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """List orders with optional Django ORM look-ups."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def visible_to(
        self,
        company_ids: Iterable[UUID],
        include_marketplace: bool = False,
    ) -> models.QuerySet:
        ids = list(company_ids)
        condition = Q(brand_id__in=ids) | Q(supplier_id__in=ids)
        if include_marketplace:
            condition |= Q(supplier__isnull=True, status__in=MARKETPLACE_STATES)
        return self._base_queryset().filter(condition)

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and publish its events after commit."""
        entity.save()
        events = entity.pull_domain_events()
        event_bus.publish_on_commit(events)
        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Any = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user=user,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    # ------------------------------------------------------------------
    # Rework lineage
    # ------------------------------------------------------------------

    def next_revision_number(self, parent: Order) -> int:
        latest_child = Order.objects.filter(parent_order_id=parent.id).aggregate(
            latest=Max("revision_number")
        )["latest"]
        return max(latest_child or 0, parent.revision_number) + 1

    def children(self, order: Order) -> List[Order]:
        return list(
            self._base_queryset()
            .filter(parent_order_id=order.id)
            .order_by("revision_number")
        )

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_review(
        self,
        order: Order,
        reviewer: Any,
        data: Dict[str, Any],
        rejected_items: List[Dict[str, Any]],
        second_quality_items: List[Dict[str, Any]],
    ) -> OrderReview:
        review = OrderReview.objects.create(order=order, reviewer=reviewer, **data)
        for item in rejected_items:
            RejectedItem.objects.create(review=review, **item)
        for item in second_quality_items:
            SecondQualityItem(review=review, **item).save()

        logger.info(
            "order.review_added",
            order_id=str(order.id),
            review_id=str(review.id),
            result=review.result,
        )
        return review

    def list_reviews(self, order_id: UUID) -> List[OrderReview]:
        return list(
            OrderReview.objects.filter(order_id=order_id)
            .select_related("reviewer")
            .prefetch_related("rejected_items", "second_quality_items")
        )
