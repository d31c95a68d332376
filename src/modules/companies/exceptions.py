"""Company domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class CompanyNotFound(Exception):
    """The requested company does not exist or has been soft-deleted."""


class CompanyAlreadyExists(Exception):
    """A company with the same CNPJ is already registered."""


class CompanyPermissionDenied(Exception):
    """The user is not an owner/manager of the company."""


class MembershipAlreadyExists(Exception):
    """The user is already a member of the company."""


class UserNotFound(Exception):
    """The user referenced by a membership does not exist."""
