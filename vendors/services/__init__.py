from .analytics_service import VendorAnalyticsService
from .commission_service import CommissionInput, CommissionService
from .payout_service import PayoutService
from .vendor_service import VendorService


__all__ = [
    "CommissionInput",
    "CommissionService",
    "PayoutService",
    "VendorAnalyticsService",
    "VendorService",
]
