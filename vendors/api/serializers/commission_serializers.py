from rest_framework import serializers

from vendors.models import CommissionRule, Vendor, VendorCommission


class VendorCommissionSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    product_name = serializers.CharField(source="order_item.product_name", read_only=True, default="")
    category_name = serializers.CharField(source="order_item.category_name", read_only=True, default="")

    class Meta:
        model = VendorCommission
        fields = [
            "id",
            "vendor",
            "order",
            "order_number",
            "product",
            "product_name",
            "category_name",
            "commission_type",
            "commission_rate",
            "commission_amount",
            "base_amount",
            "fees_amount",
            "net_payout",
            "status",
            "dispute_reason",
            "applied_rules",
            "payout",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CommissionRuleSerializer(serializers.ModelSerializer):
    vendor = serializers.PrimaryKeyRelatedField(queryset=Vendor.objects.all(), required=False, allow_null=True)
    tiered_rates = serializers.ListField(child=serializers.DictField(), required=False)

    class Meta:
        model = CommissionRule
        fields = [
            "id",
            "vendor",
            "product_category",
            "commission_type",
            "commission_rate",
            "min_amount",
            "max_amount",
            "tiered_rates",
            "effective_date",
            "expiry_date",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class DisputeCommissionRequestSerializer(serializers.Serializer):
    reason = serializers.CharField()


class CommissionListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False, help_text="Comma separated statuses")
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    vendor = serializers.UUIDField(required=False, help_text="Admins only")

    def statuses(self):
        raw = self.validated_data.get("status") or ""
        return [value.strip() for value in raw.split(",") if value.strip()]


class CalculateCommissionRequestSerializer(serializers.Serializer):
    base_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1, default=1)
    product_category = serializers.CharField(required=False, allow_blank=True, default="")
    vendor_id = serializers.UUIDField(required=False, help_text="Admins only; vendors calculate for themselves")


class CommissionFeesSerializer(serializers.Serializer):
    payment_processing = serializers.DecimalField(max_digits=10, decimal_places=2)
    platform_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    transaction_fee = serializers.DecimalField(max_digits=10, decimal_places=2)


class CommissionBreakdownSerializer(serializers.Serializer):
    base_commission = serializers.DecimalField(max_digits=10, decimal_places=2)
    performance_bonus = serializers.DecimalField(max_digits=10, decimal_places=2)
    volume_discount = serializers.DecimalField(max_digits=10, decimal_places=2)
    fees = CommissionFeesSerializer()


class CommissionCalculationSerializer(serializers.Serializer):
    commission_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    commission_rate = serializers.DecimalField(max_digits=10, decimal_places=4)
    commission_type = serializers.CharField()
    base_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    net_payout = serializers.DecimalField(max_digits=10, decimal_places=2)
    breakdown = CommissionBreakdownSerializer()
    applied_rules = serializers.ListField(child=serializers.CharField())
