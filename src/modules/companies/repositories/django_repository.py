"""Django ORM implementation of the Company repository.

Methods return ``None`` instead of raising for missing entities; the
Service Layer decides how to translate that into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.companies.models import Company, CompanyUser
from modules.companies.repositories.interfaces import ICompanyRepository

logger = structlog.get_logger(__name__)


class CompanyDjangoRepository(ICompanyRepository):
    """Concrete Company repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Company]:
        """Retrieve a live company by primary key.

        Returns ``None`` for non-existent, soft-deleted or malformed IDs.
        """
        try:
            return Company.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """List live companies with optional Django ORM look-ups.

        Examples of valid filters::

            {"type": "SUPPLIER", "is_active": True}
            {"state": "SC"}
        """
        queryset = Company.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Company) -> Company:
        """Persist (create or update) a company."""
        is_new = entity._state.adding
        entity.save()
        logger.info("company.saved", company_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a company by ID."""
        company = self.get_by_id(id)
        if not company:
            return False
        company.delete()
        logger.info("company.soft_deleted", company_id=str(id))
        return True

    def get_by_document(self, document: str) -> Optional[Company]:
        return Company.objects.filter(document=document).first()

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    def get_membership(self, company_id: Any, user_id: Any) -> Optional[CompanyUser]:
        try:
            return (
                CompanyUser.objects.select_related("company")
                .filter(company_id=company_id, user_id=user_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def add_membership(self, company: Company, user: Any, role: str) -> CompanyUser:
        membership = CompanyUser.objects.create(company=company, user=user, role=role)
        logger.info(
            "company.member_added",
            company_id=str(company.id),
            user_id=user.pk,
            role=role,
        )
        return membership

    def memberships_for_user(self, user_id: Any) -> List[CompanyUser]:
        return list(
            CompanyUser.objects.select_related("company")
            .filter(user_id=user_id, company__deleted_at__isnull=True)
            .order_by("created_at")
        )
