from rest_framework import serializers

from marketplace.catalog.domain.models.catalog import Category


class MinimalCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug"]
        read_only_fields = ["id", "slug"]


class CategorySerializer(serializers.ModelSerializer):
    """Category with its visible children and the number of products a shopper can buy."""

    parent_slug = serializers.SlugRelatedField(source="parent", slug_field="slug", read_only=True)
    subcategories = serializers.SerializerMethodField()
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "parent_slug",
            "subcategories",
            "product_count",
        ]
        read_only_fields = fields

    def get_subcategories(self, obj):
        children = obj.subcategories.filter(is_active=True).order_by("name")
        return MinimalCategorySerializer(children, many=True).data

    def get_product_count(self, obj):
        # Annotated by the listing query when available
        annotated = getattr(obj, "product_count", None)
        if annotated is not None:
            return annotated
        return obj.products.filter(is_active=True, vendor__status="active").count()
