from rest_framework import serializers

from marketplace.ordering.domain.models.order import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(read_only=True, allow_null=True)
    vendor_id = serializers.UUIDField(read_only=True, allow_null=True)
    vendor_name = serializers.CharField(source="vendor.business_name", read_only=True, default=None)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "product_image",
            "category_name",
            "vendor_id",
            "vendor_name",
            "quantity",
            "unit_price",
            "total_price",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    buyer_email = serializers.EmailField(source="buyer.email", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    can_cancel = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_email",
            "status",
            "payment_status",
            "payment_method",
            "currency",
            "subtotal",
            "shipping_cost",
            "tax_amount",
            "discount_amount",
            "total_amount",
            "coupon_code",
            "shipping_address",
            "billing_address",
            "tracking_number",
            "shipping_carrier",
            "notes",
            "cancellation_reason",
            "items",
            "item_count",
            "can_cancel",
            "created_at",
            "updated_at",
            "shipped_at",
            "delivered_at",
            "cancelled_at",
        ]
        read_only_fields = fields

    def get_can_cancel(self, obj):
        return obj.status in Order.BUYER_CANCELLABLE_STATUSES
