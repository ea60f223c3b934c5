from rest_framework import serializers

from marketplace.promotions.domain.models.coupon import Coupon, CouponUsage


class CouponSerializer(serializers.ModelSerializer):
    """Admin view of a coupon; also validates create/update input."""

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "type",
            "value",
            "description",
            "minimum_order_amount",
            "maximum_discount_amount",
            "usage_limit",
            "usage_count",
            "user_usage_limit",
            "valid_from",
            "valid_to",
            "categories",
            "products",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "usage_count", "created_at", "updated_at"]
        # Uniqueness is reported by the service as coupon_already_exists
        extra_kwargs = {"code": {"validators": []}}

    def validate_value(self, value):
        if value < 0:
            raise serializers.ValidationError("Value cannot be negative")
        return value

    def validate(self, attrs):
        if attrs.get("type", getattr(self.instance, "type", None)) == "percentage" and attrs.get("value", 0) > 100:
            raise serializers.ValidationError({"value": "Percentage discounts cannot exceed 100"})
        return attrs


class PublicCouponSerializer(serializers.ModelSerializer):
    class Meta:
        model = Coupon
        fields = ["code", "type", "value", "description", "minimum_order_amount", "valid_to"]
        read_only_fields = fields


class CouponUsageSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)
    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = CouponUsage
        fields = ["id", "user_email", "order_number", "discount_amount", "used_at"]
        read_only_fields = fields


class ValidateCouponRequestSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
