"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderCreated(DomainEvent):
    """Raised when a brand launches an order."""

    display_id: str
    brand_id: UUID
    supplier_id: Optional[UUID] = None


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised on every status transition."""

    display_id: str
    old_status: str
    new_status: str
    actor_role: str


@dataclass(frozen=True, kw_only=True)
class OrderFinalized(DomainEvent):
    """Raised when an order reaches FINALIZADO (ratings become possible)."""

    display_id: str
    brand_id: UUID
    supplier_id: Optional[UUID] = None


@dataclass(frozen=True, kw_only=True)
class OrderReviewed(DomainEvent):
    """Raised when the brand submits a quality review."""

    display_id: str
    result: str
    approved_quantity: int
    rejected_quantity: int
    second_quality_quantity: int


@dataclass(frozen=True, kw_only=True)
class ReworkOrderCreated(DomainEvent):
    """Raised when a rework child order is derived; ``aggregate_id`` is the child."""

    display_id: str
    parent_id: UUID
    revision_number: int
