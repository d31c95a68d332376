"""Company DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateCompanyDTO``: onboarding of a brand or supplier.
- ``UpdateCompanyDTO``: partial update; ``document`` and ``type`` are fixed.
- ``AddMemberDTO``: attach an existing user to a company.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from validate_docbr import CNPJ

from modules.core.validators import INVALID_CNPJ_MESSAGE, is_valid_cnpj, strip_cnpj


class CompanyTypeEnum(StrEnum):
    BRAND = "BRAND"
    SUPPLIER = "SUPPLIER"


class MemberRoleEnum(StrEnum):
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    OPERATOR = "OPERATOR"


def _normalize_state(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip().upper()
    if v and (len(v) != 2 or not v.isalpha()):
        raise ValueError("State must be a two-letter UF code.")
    return v


class CreateCompanyDTO(BaseModel):
    """Immutable DTO for company creation requests.

    ``document`` accepts the formatted or raw CNPJ and is stored as digits.
    """

    model_config = ConfigDict(frozen=True)

    type: CompanyTypeEnum
    legal_name: str
    trade_name: str = ""
    document: str
    email: EmailStr
    phone: str = ""
    city: str = ""
    state: str = ""

    @field_validator("legal_name")
    @classmethod
    def legal_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Legal name must not be blank.")
        return v

    @field_validator("document")
    @classmethod
    def validate_document(cls, v: str) -> str:
        """Checksum plus a cross-check with *validate-docbr*; stored as digits."""
        if not is_valid_cnpj(v):
            raise ValueError(INVALID_CNPJ_MESSAGE)
        digits = strip_cnpj(v)
        if not CNPJ().validate(digits):
            raise ValueError(INVALID_CNPJ_MESSAGE)
        return digits

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str) -> str:
        return _normalize_state(v) or ""


class UpdateCompanyDTO(BaseModel):
    """Immutable DTO for company update requests.

    All fields are optional: only supplied fields will be updated.
    """

    model_config = ConfigDict(frozen=True)

    legal_name: str | None = None
    trade_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    city: str | None = None
    state: str | None = None
    is_active: bool | None = None

    @field_validator("state")
    @classmethod
    def validate_state(cls, v: str | None) -> str | None:
        return _normalize_state(v)


class AddMemberDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    role: MemberRoleEnum = MemberRoleEnum.OPERATOR
