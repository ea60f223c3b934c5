from rest_framework import serializers

from utils.logging_utils import mask_value
from vendors.models import Vendor


class VendorSerializer(serializers.ModelSerializer):
    """Vendor profile as the vendor and admins see it. Bank details are masked."""

    user_email = serializers.EmailField(source="user.email", read_only=True)
    bank_account_number = serializers.SerializerMethodField()
    tax_id = serializers.SerializerMethodField()

    class Meta:
        model = Vendor
        fields = [
            "id",
            "user_email",
            "business_name",
            "business_type",
            "description",
            "contact_email",
            "contact_phone",
            "website",
            "business_address",
            "business_categories",
            "tax_id",
            "bank_account_holder",
            "bank_name",
            "bank_account_number",
            "commission_rate",
            "status",
            "verification_status",
            "performance_tier",
            "admin_notes",
            "approved_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_bank_account_number(self, obj):
        return mask_value(obj.bank_account_number) if obj.bank_account_number else ""

    def get_tax_id(self, obj):
        return mask_value(obj.tax_id) if obj.tax_id else ""


class PublicVendorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = ["id", "business_name", "business_type", "description", "website", "business_categories"]
        read_only_fields = fields


class VendorRegistrationSerializer(serializers.Serializer):
    business_name = serializers.CharField(max_length=200)
    business_type = serializers.ChoiceField(choices=Vendor.BUSINESS_TYPE_CHOICES, default="individual")
    description = serializers.CharField(required=False, allow_blank=True)
    contact_email = serializers.EmailField(required=False)
    contact_phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    website = serializers.URLField(required=False, allow_blank=True)
    business_address = serializers.DictField(required=False)
    business_categories = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    tax_id = serializers.CharField(max_length=50, required=False, allow_blank=True)
    bank_account_holder = serializers.CharField(max_length=200, required=False, allow_blank=True)
    bank_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    bank_account_number = serializers.CharField(max_length=50, required=False, allow_blank=True)


class VendorUpdateSerializer(VendorRegistrationSerializer):
    """Partial profile update; the admin-only fields are rejected by the service for vendors."""

    business_name = serializers.CharField(max_length=200, required=False)
    business_type = serializers.ChoiceField(choices=Vendor.BUSINESS_TYPE_CHOICES, required=False)
    status = serializers.ChoiceField(choices=Vendor.STATUS_CHOICES, required=False)
    verification_status = serializers.ChoiceField(choices=Vendor.VERIFICATION_STATUS_CHOICES, required=False)
    performance_tier = serializers.ChoiceField(choices=Vendor.PERFORMANCE_TIER_CHOICES, required=False)
    commission_rate = serializers.DecimalField(
        max_digits=5, decimal_places=4, min_value=0, max_value=1, required=False, allow_null=True
    )
    admin_notes = serializers.CharField(required=False, allow_blank=True)


class VendorListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.CharField(required=False, help_text="Comma separated statuses")
    verification_status = serializers.CharField(required=False, help_text="Comma separated statuses")
    business_type = serializers.ChoiceField(choices=Vendor.BUSINESS_TYPE_CHOICES, required=False)
    sort_by = serializers.ChoiceField(
        choices=["created_at", "updated_at", "business_name", "status", "performance_tier"],
        required=False,
        default="created_at",
    )
    sort_direction = serializers.ChoiceField(choices=["asc", "desc"], required=False, default="desc")
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False, default=20)
    offset = serializers.IntegerField(min_value=0, required=False, default=0)

    def to_service_kwargs(self):
        data = dict(self.validated_data)
        data["query"] = data.pop("q")
        for key in ("status", "verification_status"):
            if data.get(key):
                data[key] = [value.strip() for value in data[key].split(",") if value.strip()]
        return data


class VendorListResponseSerializer(serializers.Serializer):
    vendors = VendorSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    limit = serializers.IntegerField()


class ApproveVendorRequestSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class SuspendVendorRequestSerializer(serializers.Serializer):
    reason = serializers.CharField()


class VendorStatsSerializer(serializers.Serializer):
    total_products = serializers.IntegerField()
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    average_rating = serializers.DecimalField(max_digits=3, decimal_places=1)


class VendorOrderUpdateRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=["confirmed", "processing", "shipped", "delivered", "cancelled"], required=False
    )
    tracking_number = serializers.CharField(max_length=100, required=False)
    shipping_carrier = serializers.CharField(max_length=100, required=False)

    def validate(self, attrs):
        if not attrs.get("status") and not attrs.get("tracking_number"):
            raise serializers.ValidationError("Provide a status or a tracking number")
        return attrs


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
