"""Order, OrderStatusHistory and quality review models.

Business rules implemented:
- Status changes only through the transition policy (service layer).
- Each status change generates an append-only history record.
- ``display_id`` is the human-readable identifier (``TX-YYYYMMDD-XXXX``);
  rework children reuse the root id with a ``-R<n>`` suffix.
- ``total_value`` is always ``quantity * price_per_unit`` (calculated on save).
- Brand/supplier FKs use PROTECT to preserve the commercial history.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

import secrets
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import SoftDeleteModel, TimestampedModel
from modules.orders.constants import (
    DISPLAY_ID_PREFIX,
    PRE_ACCEPT_STATES,
    TERMINAL_STATES,
    OrderOrigin,
    OrderStatus,
    ReviewResult,
    ReviewType,
)
from modules.orders.exceptions import DisplayIdCollision
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)

STATUS_MAX_LENGTH = 32
REWORK_SEPARATOR = "-R"


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``supplier`` is empty while the order is open on the marketplace
    (``DISPONIVEL_PARA_OUTRAS``) or launched without a chosen supplier.
    """

    display_id: models.CharField = models.CharField(
        max_length=32, unique=True, editable=False
    )
    brand: models.ForeignKey = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="brand_orders",
    )
    supplier: models.ForeignKey = models.ForeignKey(
        "companies.Company",
        on_delete=models.PROTECT,
        related_name="supplier_orders",
        null=True,
        blank=True,
    )
    status: models.CharField = models.CharField(
        max_length=STATUS_MAX_LENGTH,
        choices=OrderStatus.choices,
        default=OrderStatus.LANCADO_PELA_MARCA,
    )
    product_type: models.CharField = models.CharField(max_length=100)
    product_name: models.CharField = models.CharField(max_length=255)
    description: models.TextField = models.TextField(blank=True, default="")
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
    )
    price_per_unit: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    total_value: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
    )
    delivery_deadline: models.DateField = models.DateField()
    materials_provided: models.BooleanField = models.BooleanField(default=False)
    observations: models.TextField = models.TextField(blank=True, default="")
    rejection_reason: models.TextField = models.TextField(blank=True, default="")

    # Rework lineage
    parent_order: models.ForeignKey = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        related_name="child_orders",
        null=True,
        blank=True,
    )
    revision_number: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    origin: models.CharField = models.CharField(
        max_length=10,
        choices=OrderOrigin.choices,
        default=OrderOrigin.ORIGINAL,
    )

    # Review counters
    total_review_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    approval_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    rejection_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    second_quality_count: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(fields=["brand", "status"], name="orders_brand_status_idx"),
            models.Index(
                fields=["supplier", "status"], name="orders_supplier_status_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(quantity__gte=1),
                name="orders_quantity_positive",
            ),
        ]

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_rework(self) -> bool:
        return self.origin == OrderOrigin.REWORK

    @property
    def protects_technical_sheet(self) -> bool:
        """Suppliers see description/observations only after accepting."""
        return self.status in PRE_ACCEPT_STATES

    @property
    def base_display_id(self) -> str:
        return self.display_id.split(REWORK_SEPARATOR)[0]

    # ------------------------------------------------------------------
    # Display id generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_display_id() -> str:
        """Generate a display id: ``TX-YYYYMMDD-XXXX``."""
        now = timezone.localtime()
        suffix = secrets.token_hex(2).upper()
        return f"{DISPLAY_ID_PREFIX}-{now:%Y%m%d}-{suffix}"

    @staticmethod
    def rework_display_id(base: str, revision: int) -> str:
        return f"{base}{REWORK_SEPARATOR}{revision}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.display_id:
            retries = settings.DISPLAY_ID_MAX_RETRIES
            for _ in range(retries):
                candidate = self.generate_display_id()
                if not Order.objects.filter(display_id=candidate).exists():
                    self.display_id = candidate
                    break
                logger.warning("order.display_id_collision", candidate=candidate)
            else:
                raise DisplayIdCollision(
                    f"Failed to generate a unique display_id after {retries} attempts"
                )
        self.total_value = Decimal(self.quantity or 0) * (
            self.price_per_unit or Decimal("0.00")
        )
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_value" not in update_fields:
            kwargs["update_fields"] = list(update_fields) + ["total_value"]
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.display_id} ({self.status})"


class OrderStatusHistory(TimestampedModel):
    """Append-only audit trail for order status transitions.

    Inherits ``TimestampedModel`` (not ``SoftDeleteModel``): audit records are
    never edited or deleted.  ``user`` is ``None`` for system changes.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=STATUS_MAX_LENGTH,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=STATUS_MAX_LENGTH,
        choices=OrderStatus.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["order", "-created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"


# ---------------------------------------------------------------------------
# Quality review
# ---------------------------------------------------------------------------


class OrderReview(TimestampedModel):
    """Quality review of a delivered order, submitted by the brand."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="reviews",
    )
    reviewer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    review_type: models.CharField = models.CharField(
        max_length=16,
        choices=ReviewType.choices,
        default=ReviewType.QUALITY_CHECK,
    )
    result: models.CharField = models.CharField(
        max_length=10, choices=ReviewResult.choices
    )
    total_quantity: models.PositiveIntegerField = models.PositiveIntegerField()
    approved_quantity: models.PositiveIntegerField = models.PositiveIntegerField()
    rejected_quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=0
    )
    second_quality_quantity: models.PositiveIntegerField = (
        models.PositiveIntegerField(default=0)
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_reviews"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.order} review: {self.result}"


class RejectedItem(TimestampedModel):
    review: models.ForeignKey = models.ForeignKey(
        "orders.OrderReview",
        on_delete=models.CASCADE,
        related_name="rejected_items",
    )
    reason: models.CharField = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    defect_description: models.TextField = models.TextField(blank=True, default="")
    requires_rework: models.BooleanField = models.BooleanField(default=True)

    class Meta:
        db_table = "order_review_rejected_items"
        ordering = ["created_at"]


class SecondQualityItem(TimestampedModel):
    """Pieces accepted with a defect and sold at a discount.

    ``discounted_unit_value`` is derived from ``original_unit_value`` and
    ``discount_percentage`` on save.
    """

    review: models.ForeignKey = models.ForeignKey(
        "orders.OrderReview",
        on_delete=models.CASCADE,
        related_name="second_quality_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    defect_type: models.CharField = models.CharField(max_length=100)
    defect_description: models.TextField = models.TextField(blank=True, default="")
    original_unit_value: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2
    )
    discount_percentage: models.DecimalField = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    discounted_unit_value: models.DecimalField = models.DecimalField(
        max_digits=10, decimal_places=2, editable=False
    )

    class Meta:
        db_table = "order_review_second_quality_items"
        ordering = ["created_at"]

    def save(self, *args: Any, **kwargs: Any) -> None:
        factor = (Decimal("100") - Decimal(self.discount_percentage)) / Decimal("100")
        self.discounted_unit_value = (
            Decimal(self.original_unit_value) * factor
        ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        super().save(*args, **kwargs)
