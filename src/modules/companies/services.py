"""Company service layer (Use Cases).

Orchestrates onboarding and membership management for brands and
suppliers, delegating persistence to the injected ``ICompanyRepository``.

Business rules enforced here:
- A CNPJ can be registered only once (soft-deleted companies included).
- The creating user becomes the company OWNER.
- Only OWNER/MANAGER members may update a company or add members;
  only the OWNER may delete it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.db import transaction

from modules.companies.exceptions import (
    CompanyAlreadyExists,
    CompanyNotFound,
    CompanyPermissionDenied,
    MembershipAlreadyExists,
    UserNotFound,
)
from modules.companies.models import Company, CompanyUser, MemberRole

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.companies.dtos import AddMemberDTO, CreateCompanyDTO, UpdateCompanyDTO
    from modules.companies.repositories.interfaces import ICompanyRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "legal_name",
    "trade_name",
    "email",
    "phone",
    "city",
    "state",
    "is_active",
)


class CompanyService:
    """Application service for Company use-cases.

    Receives an ``ICompanyRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: ICompanyRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_company(self, dto: CreateCompanyDTO, owner: Any) -> Company:
        """Register a company and make *owner* its first member.

        Raises:
            CompanyAlreadyExists: the CNPJ is already registered.
        """
        log = logger.bind(company_type=dto.type, document_suffix=dto.document[-4:])

        if self._repo.get_by_document(dto.document):
            log.warning("company.duplicate_document")
            raise CompanyAlreadyExists("CNPJ already registered.")

        company = Company(
            type=dto.type,
            legal_name=dto.legal_name,
            trade_name=dto.trade_name,
            document=dto.document,
            email=dto.email,
            phone=dto.phone,
            city=dto.city,
            state=dto.state,
        )
        company = self._repo.save(company)
        self._repo.add_membership(company, owner, MemberRole.OWNER)

        log.info("company.created", company_id=str(company.id))
        return company

    @transaction.atomic
    def update_company(self, id: str, dto: UpdateCompanyDTO, user: Any) -> Company:
        """Update the supplied fields of a company.

        Raises:
            CompanyNotFound: the company does not exist.
            CompanyPermissionDenied: the user cannot manage the company.
        """
        company = self.get_company(id)
        self._require_manager(company, user)

        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(company, field, value)

        company = self._repo.save(company)
        logger.info("company.updated", company_id=str(id))
        return company

    @transaction.atomic
    def delete_company(self, id: str, user: Any) -> None:
        """Soft-delete a company (OWNER only).

        Raises:
            CompanyNotFound: the company does not exist.
            CompanyPermissionDenied: the user is not the owner.
        """
        company = self.get_company(id)
        membership = self._repo.get_membership(company.id, user.pk)
        if membership is None or membership.role != MemberRole.OWNER:
            raise CompanyPermissionDenied("Only the owner can delete a company.")
        self._repo.delete(id)

    @transaction.atomic
    def add_member(self, id: str, dto: AddMemberDTO, user: Any) -> CompanyUser:
        """Attach an existing user to the company.

        Raises:
            CompanyNotFound: the company does not exist.
            CompanyPermissionDenied: the acting user cannot manage the company.
            UserNotFound: ``dto.user_id`` does not exist.
            MembershipAlreadyExists: the user is already a member.
        """
        company = self.get_company(id)
        self._require_manager(company, user)

        member = get_user_model().objects.filter(pk=dto.user_id).first()
        if member is None:
            raise UserNotFound(f"User {dto.user_id} not found.")
        if self._repo.get_membership(company.id, member.pk):
            raise MembershipAlreadyExists("User is already a member of this company.")

        return self._repo.add_membership(company, member, dto.role)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_company(self, id: str) -> Company:
        """Retrieve a single live company by ID.

        Raises:
            CompanyNotFound: if the company does not exist.
        """
        company = self._repo.get_by_id(id)
        if not company:
            raise CompanyNotFound(f"Company {id} not found.")
        return company

    def list_companies(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._repo.list(filters)

    def companies_for_user(self, user: Any) -> List[CompanyUser]:
        """Memberships of *user*, each with its company loaded."""
        return self._repo.memberships_for_user(user.pk)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_manager(self, company: Company, user: Any) -> None:
        membership = self._repo.get_membership(company.id, user.pk)
        if membership is None or not membership.can_manage:
            logger.warning(
                "company.permission_denied",
                company_id=str(company.id),
                user_id=user.pk,
            )
            raise CompanyPermissionDenied(
                "Only owners and managers can change this company."
            )
