"""Company and CompanyUser models.

Business rules implemented:
- A company is either a BRAND (places orders) or a SUPPLIER (a "facção",
  the outsourced sewing workshop that produces them).
- ``document`` is the CNPJ, stored as digits only and unique system-wide.
- Inactive companies cannot take part in new orders (service layer).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
- CNPJ is masked in ``__str__`` and logs.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel, TimestampedModel
from modules.core.validators import strip_cnpj, validate_cnpj


class CompanyType(models.TextChoices):
    BRAND = "BRAND", "Marca"
    SUPPLIER = "SUPPLIER", "Facção"


class MemberRole(models.TextChoices):
    OWNER = "OWNER", "Proprietário"
    MANAGER = "MANAGER", "Gerente"
    OPERATOR = "OPERATOR", "Operador"


class Company(SoftDeleteModel):
    """Brand or supplier taking part in orders.

    ``average_rating`` / ``rating_count`` are denormalised from the
    ratings module and recomputed whenever a rating is stored.
    """

    type = models.CharField(max_length=10, choices=CompanyType.choices)
    legal_name = models.CharField(max_length=255)
    trade_name = models.CharField(max_length=255, blank=True, default="")
    document = models.CharField(
        max_length=14,
        unique=True,
        validators=[validate_cnpj],
    )
    email = models.EmailField(max_length=254)
    phone = models.CharField(max_length=20, blank=True, default="")
    city = models.CharField(max_length=120, blank=True, default="")
    state = models.CharField(max_length=2, blank=True, default="")
    is_active = models.BooleanField(default=True)
    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    rating_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "companies"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["type", "is_active"], name="companies_type_active_idx"),
            models.Index(fields=["-created_at"], name="companies_created_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        if self.document:
            self.document = strip_cnpj(self.document)

    def save(self, *args, **kwargs) -> None:
        if self.document:
            self.document = strip_cnpj(self.document)
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        return self.trade_name or self.legal_name

    @property
    def is_brand(self) -> bool:
        return self.type == CompanyType.BRAND

    @property
    def is_supplier(self) -> bool:
        return self.type == CompanyType.SUPPLIER

    def __str__(self) -> str:
        suffix = self.document[-4:] if self.document else "????"
        return f"{self.display_name} ({self.type}: ***{suffix})"


class CompanyUser(TimestampedModel):
    """Membership of a user in a company."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="company_memberships",
    )
    company = models.ForeignKey(
        "companies.Company",
        on_delete=models.CASCADE,
        related_name="members",
    )
    role = models.CharField(
        max_length=10,
        choices=MemberRole.choices,
        default=MemberRole.OPERATOR,
    )

    class Meta:
        db_table = "company_users"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"],
                name="company_users_unique_member",
            ),
        ]

    @property
    def can_manage(self) -> bool:
        return self.role in (MemberRole.OWNER, MemberRole.MANAGER)

    def __str__(self) -> str:
        return f"{self.user} @ {self.company} ({self.role})"
