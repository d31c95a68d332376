"""Rating domain exceptions."""

from __future__ import annotations


class RatingNotAllowed(Exception):
    """The order is not finalized or has no counterparty to rate."""


class RatingAlreadyExists(Exception):
    """This side of the order has already rated it."""
