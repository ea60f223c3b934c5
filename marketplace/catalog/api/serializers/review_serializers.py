from rest_framework import serializers

from marketplace.catalog.domain.models.catalog import ProductReview


class ProductReviewSerializer(serializers.ModelSerializer):
    reviewer_name = serializers.CharField(source="reviewer.full_name", read_only=True)

    class Meta:
        model = ProductReview
        fields = [
            "id",
            "reviewer_name",
            "rating",
            "title",
            "comment",
            "is_verified_purchase",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
