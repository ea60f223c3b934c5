from rest_framework import serializers

from vendors.models import VendorPayout

from .commission_serializers import VendorCommissionSerializer


class VendorPayoutSerializer(serializers.ModelSerializer):
    business_name = serializers.CharField(source="vendor.business_name", read_only=True)

    class Meta:
        model = VendorPayout
        fields = [
            "id",
            "vendor",
            "business_name",
            "payout_period_start",
            "payout_period_end",
            "total_sales",
            "total_commission",
            "total_fees",
            "net_payout",
            "orders_count",
            "status",
            "payment_method",
            "payment_reference",
            "processed_at",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PayoutSummarySerializer(serializers.Serializer):
    total_sales = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_orders = serializers.IntegerField()
    total_commission = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_fees = serializers.DecimalField(max_digits=12, decimal_places=2)
    net_payout = serializers.DecimalField(max_digits=12, decimal_places=2)


class PayoutCalculationSerializer(serializers.Serializer):
    payout = VendorPayoutSerializer()
    commission_details = VendorCommissionSerializer(many=True)
    summary = PayoutSummarySerializer()


class CalculatePayoutRequestSerializer(serializers.Serializer):
    vendor_id = serializers.UUIDField()
    period_start = serializers.DateTimeField()
    period_end = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs["period_end"] < attrs["period_start"]:
            raise serializers.ValidationError({"period_end": "Must not be before period_start"})
        return attrs


class CompletePayoutRequestSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class PayoutReasonRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
