"""
Response Serializers for Marketplace API Documentation

These serializers define the structure of API requests and responses for
OpenAPI schema generation. Request serializers also validate input.
"""

from rest_framework import serializers

# ===== Common Response Serializers =====


class ErrorResponseSerializer(serializers.Serializer):
    """Standard error response"""

    detail = serializers.CharField(help_text="Human-readable error message")
    code = serializers.CharField(help_text="Error code identifier", required=False)


class SuccessResponseSerializer(serializers.Serializer):
    """Generic success response"""

    message = serializers.CharField(help_text="Success message")


# ===== Product Response Serializers =====


class ProductListResponseSerializer(serializers.Serializer):
    """Paginated product list response"""

    count = serializers.IntegerField(help_text="Total number of products")
    page = serializers.IntegerField(help_text="Current page number")
    page_size = serializers.IntegerField(help_text="Items per page")
    num_pages = serializers.IntegerField(help_text="Total number of pages")
    has_next = serializers.BooleanField(help_text="Whether there is a next page")
    has_previous = serializers.BooleanField(help_text="Whether there is a previous page")
    results = serializers.ListField(
        child=serializers.DictField(), help_text="List of products (see ProductListSerializer schema)"
    )


class SearchResponseSerializer(serializers.Serializer):
    """Paginated search response"""

    results = serializers.ListField(child=serializers.DictField(), help_text="Matching products")
    total = serializers.IntegerField(help_text="Total number of matches")
    page = serializers.IntegerField(help_text="Current page number")
    per_page = serializers.IntegerField(help_text="Items per page")
    total_pages = serializers.IntegerField(help_text="Total number of pages")
    active_filters = serializers.IntegerField(help_text="Number of filters applied")


class SuggestionsResponseSerializer(serializers.Serializer):
    suggestions = serializers.ListField(child=serializers.CharField())


class FiltersResponseSerializer(serializers.Serializer):
    categories = serializers.ListField(child=serializers.DictField())
    brands = serializers.ListField(child=serializers.CharField())
    price_range = serializers.DictField()
    sort_options = serializers.ListField(child=serializers.CharField())


# ===== Cart Request/Response Serializers =====


class AddToCartRequestSerializer(serializers.Serializer):
    """Request body for adding item to cart"""

    product_id = serializers.UUIDField(help_text="Product UUID to add")
    quantity = serializers.IntegerField(min_value=1, default=1, help_text="Quantity to add (default: 1)")


class UpdateCartRequestSerializer(serializers.Serializer):
    """Request body for updating cart item"""

    product_id = serializers.UUIDField(help_text="Product UUID to update")
    quantity = serializers.IntegerField(help_text="New quantity (0 or less removes the item)")


class CartProductRequestSerializer(serializers.Serializer):
    """Request body naming a single cart product"""

    product_id = serializers.UUIDField(help_text="Product UUID")


class ApplyCouponRequestSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50, help_text="Discount code")


class CartValidationResponseSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    issues = serializers.ListField(child=serializers.DictField())
    items = serializers.ListField(child=serializers.DictField())


# ===== Order Request Serializers =====


class CreateOrderRequestSerializer(serializers.Serializer):
    """Checkout request: the cart is used unless ``items`` is given."""

    shipping_address = serializers.DictField(help_text="Shipping address (name, street, city, postal_code, country)")
    billing_address = serializers.DictField(required=False, help_text="Billing address (defaults to shipping)")
    payment_method = serializers.CharField(max_length=50, default="card")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = serializers.ListField(
        child=serializers.DictField(), required=False, help_text="Explicit [{product_id, quantity}] instead of the cart"
    )
    coupon_code = serializers.CharField(required=False, allow_blank=True, help_text="Only used with explicit items")

    def validate_shipping_address(self, value):
        missing = [field for field in ("street", "city", "country") if not value.get(field)]
        if missing:
            raise serializers.ValidationError(f"Missing address fields: {', '.join(missing)}")
        return value


class UpdateOrderStatusRequestSerializer(serializers.Serializer):
    status = serializers.CharField(help_text="Target status")
    notes = serializers.CharField(required=False, allow_blank=True)


class TrackingRequestSerializer(serializers.Serializer):
    tracking_number = serializers.CharField(max_length=100)
    carrier = serializers.CharField(max_length=100, required=False, allow_blank=True)


class CancelOrderRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class OrderSummaryResponseSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    total_spent = serializers.DecimalField(max_digits=12, decimal_places=2)


# ===== Review Request Serializers =====


class CreateReviewRequestSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    comment = serializers.CharField(required=False, allow_blank=True, default="")
