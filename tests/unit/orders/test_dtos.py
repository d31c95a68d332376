"""Unit tests for Order DTOs."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import ReviewType
from modules.orders.dtos import (
    AvailableTransitionDTO,
    CreateChildOrderDTO,
    CreateOrderDTO,
    CreateReviewDTO,
    ReviewStatsDTO,
    SecondQualityItemDTO,
    UpdateOrderStatusDTO,
)

pytestmark = pytest.mark.unit


def _order_payload(**overrides):
    payload = {
        "brand_id": uuid4(),
        "product_type": "Calça",
        "product_name": "Calça Jeans Slim",
        "quantity": 50,
        "price_per_unit": Decimal("35.00"),
        "delivery_deadline": date(2026, 11, 30),
    }
    payload.update(overrides)
    return payload


class TestCreateOrderDTO:
    def test_defaults(self):
        dto = CreateOrderDTO(**_order_payload())
        assert dto.supplier_id is None
        assert dto.materials_provided is False
        assert dto.description == ""

    def test_strips_product_name(self):
        dto = CreateOrderDTO(**_order_payload(product_name="  Calça Jeans  "))
        assert dto.product_name == "Calça Jeans"

    def test_blank_product_name_raises(self):
        with pytest.raises(ValidationError, match="Field must not be blank"):
            CreateOrderDTO(**_order_payload(product_name="   "))

    def test_zero_quantity_raises(self):
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            CreateOrderDTO(**_order_payload(quantity=0))

    def test_negative_price_raises(self):
        with pytest.raises(ValidationError, match="must not be negative"):
            CreateOrderDTO(**_order_payload(price_per_unit=Decimal("-1")))

    def test_is_immutable(self):
        dto = CreateOrderDTO(**_order_payload())
        with pytest.raises(ValidationError):
            dto.quantity = 10


class TestUpdateOrderStatusDTO:
    def test_notes_are_stripped(self):
        dto = UpdateOrderStatusDTO(status="PRONTO", notes="  enviado  ")
        assert dto.notes == "enviado"

    def test_not_confirmed_by_default(self):
        assert UpdateOrderStatusDTO(status="PRONTO").confirmed is False


class TestCreateReviewDTO:
    def test_defaults(self):
        dto = CreateReviewDTO(total_quantity=10, approved_quantity=10)
        assert dto.review_type == ReviewType.QUALITY_CHECK
        assert dto.rejected_quantity == 0
        assert dto.rejected_items == []

    def test_negative_quantity_raises(self):
        with pytest.raises(ValidationError):
            CreateReviewDTO(total_quantity=10, approved_quantity=-1)

    def test_discount_above_hundred_raises(self):
        with pytest.raises(ValidationError):
            SecondQualityItemDTO(
                quantity=1, defect_type="Mancha", discount_percentage=Decimal("101")
            )


class TestCreateChildOrderDTO:
    def test_deadline_is_optional(self):
        assert CreateChildOrderDTO(quantity=5).delivery_deadline is None

    def test_zero_quantity_raises(self):
        with pytest.raises(ValidationError):
            CreateChildOrderDTO(quantity=0)


class TestCamelCaseOutputs:
    def test_transition_dto_dumps_camel_case(self):
        dto = AvailableTransitionDTO(
            next_status="PRONTO",
            label="Produção Concluída",
            description="Marcar a produção como concluída",
            requires_confirmation=True,
            requires_notes=False,
            requires_review=False,
        )
        data = dto.to_json_dict()
        assert data["nextStatus"] == "PRONTO"
        assert data["requiresConfirmation"] is True

    def test_stats_dto_accepts_python_names(self):
        dto = ReviewStatsDTO(
            total_orders=4,
            reviewed_orders=2,
            orders_with_rework=1,
            second_quality_pieces=3,
            first_time_approval_rate=50.0,
            rework_rate=50.0,
        )
        assert dto.to_json_dict()["firstTimeApprovalRate"] == 50.0
