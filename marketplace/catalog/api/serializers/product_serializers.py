from decimal import ROUND_HALF_UP, Decimal

from rest_framework import serializers

from marketplace.catalog.domain.models.catalog import Product

from .category_serializers import MinimalCategorySerializer


class ProductVendorSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    business_name = serializers.CharField(read_only=True)


class ProductListSerializer(serializers.ModelSerializer):
    """Minimal product serializer for list/search - just the essentials for product cards"""

    primary_image = serializers.CharField(read_only=True)
    is_on_sale = serializers.BooleanField(read_only=True)
    in_stock = serializers.BooleanField(read_only=True)
    discount_percentage = serializers.SerializerMethodField()
    category = MinimalCategorySerializer(read_only=True)
    vendor = ProductVendorSerializer(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "slug",
            "price",
            "compare_at_price",
            "discount_percentage",
            "is_on_sale",
            "in_stock",
            "stock_quantity",
            "brand",
            "primary_image",
            "rating",
            "review_count",
            "is_featured",
            "category",
            "vendor",
            "created_at",
        ]
        read_only_fields = fields

    def get_discount_percentage(self, obj):
        if not obj.is_on_sale:
            return 0
        ratio = (obj.compare_at_price - obj.price) / obj.compare_at_price * 100
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ProductDetailSerializer(ProductListSerializer):
    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + [
            "description",
            "sku",
            "images",
            "tags",
            "view_count",
            "is_active",
            "updated_at",
        ]
        read_only_fields = fields


class ProductWriteSerializer(serializers.ModelSerializer):
    """Vendor input for creating/updating products."""

    category = serializers.CharField(required=False, allow_null=True, help_text="Category slug or id")
    images = serializers.ListField(child=serializers.URLField(), required=False)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Product
        fields = [
            "name",
            "description",
            "sku",
            "brand",
            "price",
            "compare_at_price",
            "stock_quantity",
            "images",
            "tags",
            "category",
            "is_featured",
            "is_active",
        ]

    def validate(self, attrs):
        price = attrs.get("price", getattr(self.instance, "price", None))
        compare_at = attrs.get("compare_at_price")
        if compare_at is not None and price is not None and compare_at < price:
            raise serializers.ValidationError({"compare_at_price": "Must be greater than or equal to price"})
        return attrs


class SearchQuerySerializer(serializers.Serializer):
    """Query parameters of the storefront search."""

    q = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.CharField(required=False, allow_blank=True, default="")
    brand = serializers.CharField(required=False, allow_blank=True, default="")
    min_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, default=0)
    max_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, default=10000)
    rating = serializers.DecimalField(max_digits=3, decimal_places=2, min_value=0, max_value=5, required=False, default=0)
    in_stock = serializers.BooleanField(required=False, default=False)
    on_sale = serializers.BooleanField(required=False, default=False)
    sort_by = serializers.ChoiceField(
        choices=["relevance", "price_asc", "price_desc", "rating", "newest", "popular"],
        required=False,
        default="relevance",
    )
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    per_page = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)

    def to_search_filters(self):
        data = dict(self.validated_data)
        data["query"] = data.pop("q")
        page = data.pop("page")
        per_page = data.pop("per_page")
        return data, page, per_page
