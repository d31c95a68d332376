"""Company DRF serializers for API input/output.

Input serializers validate the HTTP payload (the CNPJ field runs the
shared ``validate_cnpj`` validator so the user-facing message lands in the
field error).  Business rules live in the Service Layer.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.companies.models import Company, CompanyType, CompanyUser, MemberRole
from modules.core.validators import format_cnpj, validate_cnpj

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateCompanySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=CompanyType.choices)
    legal_name = serializers.CharField(max_length=255)
    trade_name = serializers.CharField(
        max_length=255, required=False, default="", allow_blank=True
    )
    document = serializers.CharField(max_length=18, validators=[validate_cnpj])
    email = serializers.EmailField()
    phone = serializers.CharField(
        max_length=20, required=False, default="", allow_blank=True
    )
    city = serializers.CharField(
        max_length=120, required=False, default="", allow_blank=True
    )
    state = serializers.CharField(
        max_length=2, required=False, default="", allow_blank=True
    )


class UpdateCompanySerializer(serializers.Serializer):
    legal_name = serializers.CharField(max_length=255, required=False)
    trade_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    city = serializers.CharField(max_length=120, required=False, allow_blank=True)
    state = serializers.CharField(max_length=2, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)


class AddMemberSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    role = serializers.ChoiceField(
        choices=MemberRole.choices, required=False, default=MemberRole.OPERATOR
    )


# ---------------------------------------------------------------------------
# Output Serializers
# ---------------------------------------------------------------------------


class CompanySerializer(serializers.ModelSerializer):
    document_formatted = serializers.SerializerMethodField()

    class Meta:
        model = Company
        fields = [
            "id",
            "type",
            "legal_name",
            "trade_name",
            "document",
            "document_formatted",
            "email",
            "phone",
            "city",
            "state",
            "is_active",
            "average_rating",
            "rating_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_document_formatted(self, obj: Company) -> str:
        return format_cnpj(obj.document)


class CompanySummarySerializer(serializers.ModelSerializer):
    """Compact representation embedded in orders and memberships."""

    class Meta:
        model = Company
        fields = ["id", "type", "legal_name", "trade_name", "average_rating"]
        read_only_fields = fields


class CompanyMembershipSerializer(serializers.ModelSerializer):
    company = CompanySummarySerializer(read_only=True)

    class Meta:
        model = CompanyUser
        fields = ["id", "user_id", "company", "role", "created_at"]
        read_only_fields = fields
