from vendors.domain.models import CommissionRule, Vendor, VendorCommission, VendorPayout


__all__ = ["Vendor", "CommissionRule", "VendorCommission", "VendorPayout"]
