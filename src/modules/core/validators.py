"""CNPJ (Brazilian company registry number) validation helpers.

A CNPJ has 14 digits: a 12-digit base followed by two check digits,
each computed with a modulo-11 weighted sum over the preceding digits.

- ``is_valid_cnpj``: pure boolean check, never raises.
- ``validate_cnpj``: Django-style field validator.  Empty values pass so
  the validator composes with optional fields; presence is enforced by
  ``blank=False`` / ``required=True`` on the field itself.
"""

from __future__ import annotations

import re
from typing import Any

from django.core.exceptions import ValidationError

CNPJ_LENGTH = 14

FIRST_DIGIT_WEIGHTS = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
SECOND_DIGIT_WEIGHTS = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)

INVALID_CNPJ_MESSAGE = "CNPJ inválido. Verifique o número informado."

_NON_DIGITS = re.compile(r"\D")


def strip_cnpj(value: str) -> str:
    """Strip all non-digit characters from a CNPJ string."""
    return _NON_DIGITS.sub("", value)


def _check_digit(digits: str, weights: tuple[int, ...]) -> int:
    total = sum(int(digit) * weight for digit, weight in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def compute_check_digits(base: str) -> str:
    """Return the two check digits for a 12-digit CNPJ base."""
    if len(base) != 12 or not base.isdigit():
        raise ValueError("CNPJ base must have exactly 12 digits.")
    first = _check_digit(base, FIRST_DIGIT_WEIGHTS)
    second = _check_digit(f"{base}{first}", SECOND_DIGIT_WEIGHTS)
    return f"{first}{second}"


def is_valid_cnpj(value: Any) -> bool:
    """Return ``True`` when *value* is a structurally valid CNPJ.

    Accepts raw digits or the ``XX.XXX.XXX/XXXX-XX`` mask.
    """
    if not isinstance(value, str):
        return False

    digits = strip_cnpj(value)
    if len(digits) != CNPJ_LENGTH:
        return False

    # Placeholder numbers such as 00000000000000 satisfy the checksum.
    if len(set(digits)) == 1:
        return False

    if int(digits[12]) != _check_digit(digits[:12], FIRST_DIGIT_WEIGHTS):
        return False
    return int(digits[13]) == _check_digit(digits[:13], SECOND_DIGIT_WEIGHTS)


def format_cnpj(value: str) -> str:
    """Format up to 14 digits progressively as ``XX.XXX.XXX/XXXX-XX``."""
    digits = strip_cnpj(value)[:CNPJ_LENGTH]
    if len(digits) <= 2:
        return digits
    if len(digits) <= 5:
        return f"{digits[:2]}.{digits[2:]}"
    if len(digits) <= 8:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:]}"
    if len(digits) <= 12:
        return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:]}"
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def validate_cnpj(value: Any) -> None:
    """Field validator: raise ``ValidationError`` for a present, invalid CNPJ."""
    if not value:
        return
    if not is_valid_cnpj(value):
        raise ValidationError(INVALID_CNPJ_MESSAGE, code="invalid_cnpj")
