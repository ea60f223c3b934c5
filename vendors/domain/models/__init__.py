from .commission import CommissionRule, VendorCommission
from .payout import VendorPayout
from .vendor import Vendor


__all__ = [
    "Vendor",
    "CommissionRule",
    "VendorCommission",
    "VendorPayout",
]
