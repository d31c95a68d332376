"""Django ORM implementation of the Rating repository."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import Avg, Count

from modules.companies.models import Company
from modules.ratings.models import Rating
from modules.ratings.repositories.interfaces import IRatingRepository

logger = structlog.get_logger(__name__)


class RatingDjangoRepository(IRatingRepository):
    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Rating:
        rating = Rating.objects.create(**data)
        logger.info(
            "rating.saved",
            rating_id=str(rating.id),
            order_id=str(rating.order_id),
        )
        return rating

    def exists(self, order_id: UUID, from_company_id: UUID) -> bool:
        return Rating.objects.filter(
            order_id=order_id, from_company_id=from_company_id
        ).exists()

    def list_for_order(self, order_id: UUID) -> List[Rating]:
        return list(
            Rating.objects.filter(order_id=order_id).select_related(
                "from_company", "to_company"
            )
        )

    @transaction.atomic
    def refresh_company_rating(self, company_id: UUID) -> None:
        stats = Rating.objects.filter(to_company_id=company_id).aggregate(
            average=Avg("score"), count=Count("id")
        )
        average = Decimal(str(stats["average"] or 0)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        Company.objects.filter(id=company_id).update(
            average_rating=average, rating_count=stats["count"]
        )
        logger.info(
            "company.rating_refreshed",
            company_id=str(company_id),
            average_rating=str(average),
            rating_count=stats["count"],
        )
