"""Rating service layer.

Business rules enforced:
- Only FINALIZADO orders can be rated.
- The brand rates the supplier and the supplier rates the brand, once
  per side and order.
- The rated company's average is recomputed after every rating.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List

import structlog
from django.db import IntegrityError, transaction

from modules.orders.constants import OrderStatus, Party
from modules.ratings.exceptions import RatingAlreadyExists, RatingNotAllowed

if TYPE_CHECKING:
    from modules.orders.services import OrderService
    from modules.ratings.dtos import CreateRatingDTO
    from modules.ratings.models import Rating
    from modules.ratings.repositories.interfaces import IRatingRepository

logger = structlog.get_logger(__name__)


class RatingService:
    """Application service for rating use-cases.

    Order visibility and the caller's side are delegated to the
    ``OrderService``.
    """

    def __init__(
        self,
        rating_repository: IRatingRepository,
        order_service: OrderService,
    ) -> None:
        self._repo = rating_repository
        self._orders = order_service

    @transaction.atomic
    def rate_order(self, order_id: str, user: Any, dto: CreateRatingDTO) -> Rating:
        """Rate the counterparty of a finalized order.

        Raises:
            OrderNotFound / OrderAccessDenied: order not visible to the user.
            RatingNotAllowed: order not finalized or without a supplier.
            RatingAlreadyExists: this side already rated the order.
        """
        order = self._orders.get_order(order_id, user)
        role = self._orders.resolve_role(order, user)

        if order.status != OrderStatus.FINALIZADO:
            raise RatingNotAllowed("Only finalized orders can be rated.")
        if order.supplier_id is None:
            raise RatingNotAllowed("Order has no supplier to rate.")

        if role == Party.BRAND:
            from_company, to_company = order.brand, order.supplier
        else:
            from_company, to_company = order.supplier, order.brand

        if self._repo.exists(order.id, from_company.id):
            raise RatingAlreadyExists("This order was already rated by your company.")

        try:
            rating = self._repo.create(
                {
                    "order": order,
                    "from_company": from_company,
                    "to_company": to_company,
                    "author": user,
                    "score": dto.score,
                    "comment": dto.comment,
                }
            )
        except IntegrityError as exc:
            # A concurrent request from the same side won the unique
            # (order, from_company) constraint.  create() runs in its own
            # savepoint, so the outer transaction is still usable.
            raise RatingAlreadyExists(
                "This order was already rated by your company."
            ) from exc
        self._repo.refresh_company_rating(to_company.id)

        logger.info(
            "rating.created",
            order_id=str(order.id),
            from_company_id=str(from_company.id),
            to_company_id=str(to_company.id),
            score=dto.score,
        )
        return rating

    def list_ratings(self, order_id: str, user: Any) -> List[Rating]:
        order = self._orders.get_order(order_id, user)
        return self._repo.list_for_order(order.id)
