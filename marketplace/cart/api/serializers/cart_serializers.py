from rest_framework import serializers

from marketplace.catalog.api.serializers.product_serializers import ProductListSerializer


class CartItemServiceOutputSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    product = ProductListSerializer(read_only=True)
    quantity = serializers.IntegerField()
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    added_at = serializers.DateTimeField(read_only=True)


class CartTotalsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=4)
    shipping = serializers.DecimalField(max_digits=12, decimal_places=2)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    savings = serializers.DecimalField(max_digits=12, decimal_places=2)
    item_count = serializers.IntegerField()
    free_shipping_threshold = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()


class CartServiceOutputSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    items = CartItemServiceOutputSerializer(many=True, read_only=True)
    items_count = serializers.IntegerField(read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    is_empty = serializers.BooleanField(read_only=True)
    coupon_code = serializers.CharField(read_only=True, allow_null=True)
    coupon_error = serializers.CharField(read_only=True, allow_null=True)
    totals = CartTotalsSerializer(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
