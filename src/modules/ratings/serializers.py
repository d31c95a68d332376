"""Rating DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.ratings.models import MAX_SCORE, MIN_SCORE, Rating


class CreateRatingSerializer(serializers.Serializer):
    score = serializers.IntegerField(min_value=MIN_SCORE, max_value=MAX_SCORE)
    comment = serializers.CharField(required=False, default="", allow_blank=True)


class RatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rating
        fields = [
            "id",
            "order_id",
            "from_company_id",
            "to_company_id",
            "score",
            "comment",
            "created_at",
        ]
        read_only_fields = fields
