"""Rating model: the brand rates the supplier (and vice versa) per order."""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import TimestampedModel

MIN_SCORE = 1
MAX_SCORE = 5


class Rating(TimestampedModel):
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="ratings",
    )
    from_company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="ratings_given",
    )
    to_company = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="ratings_received",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    score = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_SCORE), MaxValueValidator(MAX_SCORE)],
    )
    comment = models.TextField(blank=True, default="")

    class Meta:
        db_table = "ratings"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "from_company"],
                name="ratings_one_per_side",
            ),
            models.CheckConstraint(
                check=models.Q(score__gte=MIN_SCORE, score__lte=MAX_SCORE),
                name="ratings_score_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.from_company} -> {self.to_company}: {self.score}"
