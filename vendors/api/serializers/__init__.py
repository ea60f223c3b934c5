from .commission_serializers import (
    CalculateCommissionRequestSerializer,
    CommissionCalculationSerializer,
    CommissionListQuerySerializer,
    CommissionRuleSerializer,
    DisputeCommissionRequestSerializer,
    VendorCommissionSerializer,
)
from .payout_serializers import (
    CalculatePayoutRequestSerializer,
    CompletePayoutRequestSerializer,
    PayoutCalculationSerializer,
    PayoutReasonRequestSerializer,
    VendorPayoutSerializer,
)
from .vendor_serializers import (
    ApproveVendorRequestSerializer,
    DateRangeQuerySerializer,
    PublicVendorSerializer,
    SuspendVendorRequestSerializer,
    VendorListQuerySerializer,
    VendorListResponseSerializer,
    VendorOrderUpdateRequestSerializer,
    VendorRegistrationSerializer,
    VendorSerializer,
    VendorStatsSerializer,
    VendorUpdateSerializer,
)

__all__ = [
    "ApproveVendorRequestSerializer",
    "CalculateCommissionRequestSerializer",
    "CalculatePayoutRequestSerializer",
    "CommissionCalculationSerializer",
    "CommissionListQuerySerializer",
    "CommissionRuleSerializer",
    "CompletePayoutRequestSerializer",
    "DateRangeQuerySerializer",
    "DisputeCommissionRequestSerializer",
    "PayoutCalculationSerializer",
    "PayoutReasonRequestSerializer",
    "PublicVendorSerializer",
    "SuspendVendorRequestSerializer",
    "VendorCommissionSerializer",
    "VendorListQuerySerializer",
    "VendorListResponseSerializer",
    "VendorOrderUpdateRequestSerializer",
    "VendorPayoutSerializer",
    "VendorRegistrationSerializer",
    "VendorSerializer",
    "VendorStatsSerializer",
    "VendorUpdateSerializer",
]
