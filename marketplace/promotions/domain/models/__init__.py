from .coupon import Coupon, CouponUsage

__all__ = ["Coupon", "CouponUsage"]
