"""Company repository interface.

Extends ``IRepository[Company]`` with the CNPJ uniqueness look-up and
membership management used by the Orders module to resolve roles.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.companies.models import Company, CompanyUser


class ICompanyRepository(IRepository["Company"]):
    """Repository contract for the Company aggregate (with memberships)."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Company]":
        """List live companies with optional filters."""

    @abstractmethod
    def get_by_document(self, document: str) -> Optional[Company]:
        """Retrieve a company by CNPJ digits (soft-deleted included)."""

    @abstractmethod
    def get_membership(self, company_id: Any, user_id: Any) -> Optional[CompanyUser]:
        """Retrieve the membership of a user in a company."""

    @abstractmethod
    def add_membership(self, company: Company, user: Any, role: str) -> CompanyUser:
        """Attach a user to a company with the given role."""

    @abstractmethod
    def memberships_for_user(self, user_id: Any) -> List[CompanyUser]:
        """Memberships of a user in live companies."""
