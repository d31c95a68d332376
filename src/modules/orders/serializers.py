"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.companies.serializers import CompanySummarySerializer
from modules.orders.constants import OrderStatus, Party, ReviewType
from modules.orders.models import (
    Order,
    OrderReview,
    OrderStatusHistory,
    RejectedItem,
    SecondQualityItem,
)

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    brand_id = serializers.UUIDField()
    supplier_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    product_type = serializers.CharField(max_length=100)
    product_name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)
    price_per_unit = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0
    )
    delivery_deadline = serializers.DateField()
    materials_provided = serializers.BooleanField(required=False, default=False)
    observations = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    confirmed = serializers.BooleanField(required=False, default=False)


class RejectedItemInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    defect_description = serializers.CharField(
        required=False, default="", allow_blank=True
    )
    requires_rework = serializers.BooleanField(required=False, default=True)


class SecondQualityItemInputSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    defect_type = serializers.CharField(max_length=100)
    defect_description = serializers.CharField(
        required=False, default="", allow_blank=True
    )
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, default=0
    )


class CreateReviewSerializer(serializers.Serializer):
    review_type = serializers.ChoiceField(
        choices=ReviewType.choices, required=False, default=ReviewType.QUALITY_CHECK
    )
    total_quantity = serializers.IntegerField(min_value=1)
    approved_quantity = serializers.IntegerField(min_value=0)
    rejected_quantity = serializers.IntegerField(min_value=0, default=0)
    second_quality_quantity = serializers.IntegerField(min_value=0, default=0)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    rejected_items = RejectedItemInputSerializer(many=True, required=False, default=list)
    second_quality_items = SecondQualityItemInputSerializer(
        many=True, required=False, default=list
    )


class CreateChildOrderSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    observations = serializers.CharField(required=False, default="", allow_blank=True)
    delivery_deadline = serializers.DateField(required=False, allow_null=True)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "user_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with parties and history.

    With ``context["role"] == "SUPPLIER"`` the technical sheet
    (description and observations) is withheld until the order is accepted.
    """

    brand = CompanySummarySerializer(read_only=True)
    supplier = CompanySummarySerializer(read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)
    technical_sheet_protected = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "display_id",
            "brand",
            "supplier",
            "status",
            "status_label",
            "product_type",
            "product_name",
            "description",
            "quantity",
            "price_per_unit",
            "total_value",
            "delivery_deadline",
            "materials_provided",
            "observations",
            "rejection_reason",
            "parent_order_id",
            "revision_number",
            "origin",
            "total_review_count",
            "approval_count",
            "rejection_count",
            "second_quality_count",
            "technical_sheet_protected",
            "created_at",
            "updated_at",
            "status_history",
        ]
        read_only_fields = fields

    def _is_protected(self, obj: Order) -> bool:
        return self.context.get("role") == Party.SUPPLIER and obj.protects_technical_sheet

    def get_technical_sheet_protected(self, obj: Order) -> bool:
        return self._is_protected(obj)

    def to_representation(self, instance: Order) -> dict:
        data = super().to_representation(instance)
        if self._is_protected(instance):
            data["description"] = ""
            data["observations"] = ""
        return data


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no history)."""

    brand = CompanySummarySerializer(read_only=True)
    supplier = CompanySummarySerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "display_id",
            "brand",
            "supplier",
            "status",
            "product_name",
            "quantity",
            "total_value",
            "delivery_deadline",
            "revision_number",
            "origin",
            "created_at",
        ]
        read_only_fields = fields


class RejectedItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = RejectedItem
        fields = ["id", "reason", "quantity", "defect_description", "requires_rework"]
        read_only_fields = fields


class SecondQualityItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SecondQualityItem
        fields = [
            "id",
            "quantity",
            "defect_type",
            "defect_description",
            "original_unit_value",
            "discount_percentage",
            "discounted_unit_value",
        ]
        read_only_fields = fields


class OrderReviewSerializer(serializers.ModelSerializer):
    rejected_items = RejectedItemSerializer(many=True, read_only=True)
    second_quality_items = SecondQualityItemSerializer(many=True, read_only=True)

    class Meta:
        model = OrderReview
        fields = [
            "id",
            "order_id",
            "reviewer_id",
            "review_type",
            "result",
            "total_quantity",
            "approved_quantity",
            "rejected_quantity",
            "second_quality_quantity",
            "notes",
            "rejected_items",
            "second_quality_items",
            "created_at",
        ]
        read_only_fields = fields
