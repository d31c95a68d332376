"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation by a brand.
- ``UpdateOrderStatusDTO``: input for a status transition.
- ``CreateReviewDTO``: quality review with rejected / second-quality items.
- ``CreateChildOrderDTO``: rework child order derived from a rejected order.
- ``AvailableTransitionDTO`` / ``TransitionResponseDTO``: transition policy
  results, serialized in camelCase for the front-end.
- ``ReviewStatsDTO``: aggregated review metrics.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from modules.orders.constants import ReviewType

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    ``supplier_id`` is optional: an order without a supplier is launched
    to the marketplace and may be accepted by any active supplier.
    """

    model_config = ConfigDict(frozen=True)

    brand_id: UUID
    supplier_id: Optional[UUID] = None
    product_type: str
    product_name: str
    description: str = ""
    quantity: int
    price_per_unit: Decimal
    delivery_deadline: date
    materials_provided: bool = False
    observations: str = ""

    @field_validator("product_name", "product_type")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("price_per_unit")
    @classmethod
    def price_must_not_be_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Price per unit must not be negative.")
        return v


class UpdateOrderStatusDTO(BaseModel):
    """Immutable DTO for a status transition request.

    ``confirmed`` carries the user's explicit confirmation for transitions
    flagged ``requires_confirmation``.
    """

    model_config = ConfigDict(frozen=True)

    status: str
    notes: str = ""
    confirmed: bool = False

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v: str) -> str:
        return v.strip()


class RejectedItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str
    quantity: int = Field(ge=1)
    defect_description: str = ""
    requires_rework: bool = True


class SecondQualityItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    quantity: int = Field(ge=1)
    defect_type: str
    defect_description: str = ""
    discount_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)


class CreateReviewDTO(BaseModel):
    """Immutable DTO for a quality review submitted by the brand.

    Quantities must be non-negative; the service checks that
    approved + rejected + second quality equals ``total_quantity``.
    """

    model_config = ConfigDict(frozen=True)

    review_type: ReviewType = ReviewType.QUALITY_CHECK
    total_quantity: int = Field(ge=1)
    approved_quantity: int = Field(ge=0)
    rejected_quantity: int = Field(default=0, ge=0)
    second_quality_quantity: int = Field(default=0, ge=0)
    notes: str = ""
    rejected_items: List[RejectedItemDTO] = Field(default_factory=list)
    second_quality_items: List[SecondQualityItemDTO] = Field(default_factory=list)


class CreateChildOrderDTO(BaseModel):
    """Immutable DTO for deriving a rework order from a rejected one."""

    model_config = ConfigDict(frozen=True)

    quantity: int = Field(ge=1)
    description: str = ""
    observations: str = ""
    delivery_deadline: Optional[date] = None


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class _CamelOutput(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AvailableTransitionDTO(_CamelOutput):
    next_status: str
    label: str
    description: str
    requires_confirmation: bool
    requires_notes: bool
    requires_review: bool


class TransitionResponseDTO(_CamelOutput):
    """What the viewer may do with an order right now.

    Recomputed on every request and never persisted.
    """

    can_advance: bool
    waiting_for: Optional[str]
    waiting_label: str
    transitions: List[AvailableTransitionDTO]


class ReviewStatsDTO(_CamelOutput):
    total_orders: int
    reviewed_orders: int
    orders_with_rework: int
    second_quality_pieces: int
    first_time_approval_rate: float
    rework_rate: float
