"""Order domain exceptions.

Raised by the Service Layer (and the transition policy) when business
rules are violated.  Views translate them into HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist or is not visible to the user."""


class OrderAccessDenied(Exception):
    """The user belongs to neither party of the order."""


class InvalidOrderStatus(Exception):
    """No transition edge exists between the two statuses."""


class TransitionNotAllowed(Exception):
    """The edge exists but the acting party may not take it."""


class ConfirmationRequired(Exception):
    """The transition must be explicitly confirmed by the user."""


class NotesRequired(Exception):
    """The transition requires a non-blank justification."""


class ReviewRequired(Exception):
    """The transition is only taken by submitting a quality review."""


class InvalidReviewQuantities(Exception):
    """Approved + rejected + second-quality pieces do not add up."""


class OrderNotReworkable(Exception):
    """Rework is only derived from rejected or partially approved orders."""


class BrandRequired(Exception):
    """The action is reserved to members of the order's brand."""


class InvalidCounterparty(Exception):
    """The referenced brand/supplier is missing, inactive or of the wrong type."""


class DisplayIdCollision(Exception):
    """Could not allocate a unique display id after the configured retries."""
