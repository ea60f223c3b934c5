"""
CouponService - Discount codes

Looks up discount codes, checks their validity window and usage limits, and
computes the discount for a set of cart items.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from marketplace.infra.observability.metrics import coupon_redemptions_total, coupon_rejections_total
from marketplace.models import Coupon, CouponUsage

from .base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok

ZERO = Decimal("0.00")

COUPON_FIELDS = {
    "code",
    "type",
    "value",
    "description",
    "minimum_order_amount",
    "maximum_discount_amount",
    "usage_limit",
    "user_usage_limit",
    "valid_from",
    "valid_to",
    "categories",
    "products",
    "is_active",
}


class CouponService(BaseService):
    """
    Discount code lookup and discount arithmetic.

    Items passed to validate/calculate are dicts with 'product' and 'quantity',
    the same shape PricingService takes.
    """

    def get_available_coupons(self) -> ServiceResult[List[Coupon]]:
        """Active coupons inside their validity window with uses left."""
        try:
            now = timezone.now()
            coupons = (
                Coupon.objects.filter(is_active=True, valid_from__lte=now, valid_to__gte=now)
                .filter(Q(usage_limit__isnull=True) | Q(usage_count__lt=F("usage_limit")))
                .order_by("valid_to")
            )
            return service_ok(list(coupons))
        except Exception as e:
            self.logger.error(f"Error listing available coupons: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def eligible_items(self, coupon: Coupon, items: List[Dict]) -> List[Dict]:
        eligible = items
        if coupon.categories:
            slugs = set(coupon.categories)
            eligible = [
                item for item in eligible if item["product"].category and item["product"].category.slug in slugs
            ]
        if coupon.products:
            product_ids = {str(product_id) for product_id in coupon.products}
            eligible = [item for item in eligible if str(item["product"].id) in product_ids]
        return eligible

    def calculate_discount(self, coupon: Coupon, items: List[Dict]) -> Decimal:
        """
        Discount a coupon grants on ``items``.

        percentage: eligible total x value/100, capped by maximum_discount_amount
        fixed: value, never more than the eligible total
        free_shipping: no item discount (pricing waives shipping instead)
        """
        eligible = self.eligible_items(coupon, items)
        eligible_total = sum((money(item["product"].price) * item["quantity"] for item in eligible), ZERO)

        if coupon.type == "percentage":
            discount = eligible_total * money(coupon.value) / Decimal("100")
            if coupon.maximum_discount_amount is not None:
                discount = min(discount, money(coupon.maximum_discount_amount))
        elif coupon.type == "fixed":
            discount = min(money(coupon.value), eligible_total)
        else:
            discount = ZERO

        return money(max(ZERO, discount))

    @BaseService.log_performance
    def validate_coupon(self, code: str, items: List[Dict], user=None) -> ServiceResult[Dict]:
        """
        Check a code against the given cart items.

        Returns ok with {"valid": bool, ...}; invalid codes are not service
        errors, they carry an ``error_message`` for the shopper.

        Example:
            >>> result = coupon_service.validate_coupon("SAVE10", items, user)
            >>> if result.ok and result.value["valid"]:
            ...     discount = result.value["discount_amount"]
        """
        try:
            coupon = Coupon.objects.filter(code__iexact=(code or "").strip()).first()
            error_message = self._rejection_reason(coupon, items, user)

            if error_message:
                coupon_rejections_total.inc()
                self.logger.info(f"Coupon '{code}' rejected: {error_message}")
                return service_ok(
                    {
                        "valid": False,
                        "discount_amount": ZERO,
                        "free_shipping": False,
                        "error_message": error_message,
                        "coupon": coupon,
                    }
                )

            return service_ok(
                {
                    "valid": True,
                    "discount_amount": self.calculate_discount(coupon, items),
                    "free_shipping": coupon.type == "free_shipping",
                    "error_message": None,
                    "coupon": coupon,
                }
            )

        except Exception as e:
            self.logger.error(f"Error validating coupon '{code}': {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _rejection_reason(self, coupon: Optional[Coupon], items: List[Dict], user) -> Optional[str]:
        if coupon is None:
            return "Invalid coupon code"
        if not coupon.is_active:
            return "This coupon is no longer active"

        now = timezone.now()
        if now < coupon.valid_from:
            return "This coupon is not valid yet"
        if now > coupon.valid_to:
            return "This coupon has expired"
        if coupon.is_exhausted:
            return "This coupon has reached its usage limit"

        if user is not None and coupon.user_usage_limit is not None:
            used = CouponUsage.objects.filter(coupon=coupon, user=user).count()
            if used >= coupon.user_usage_limit:
                return "You have already used this coupon"

        subtotal = sum((money(item["product"].price) * item["quantity"] for item in items), ZERO)
        if coupon.minimum_order_amount is not None and subtotal < coupon.minimum_order_amount:
            return f"Minimum order amount of ${money(coupon.minimum_order_amount)} required"

        if (coupon.categories or coupon.products) and not self.eligible_items(coupon, items):
            return "This coupon does not apply to any items in your cart"

        return None

    @transaction.atomic
    def record_usage(self, coupon: Coupon, user, order, discount_amount: Decimal) -> ServiceResult[CouponUsage]:
        """Log a redemption and bump the coupon's usage counter."""
        try:
            usage = CouponUsage.objects.create(
                coupon=coupon, user=user, order=order, discount_amount=money(discount_amount)
            )
            Coupon.objects.filter(pk=coupon.pk).update(usage_count=F("usage_count") + 1)
            coupon_redemptions_total.labels(type=coupon.type).inc()
            self.logger.info(f"Coupon {coupon.code} redeemed on order {order.order_number}: -${discount_amount}")
            return service_ok(usage)
        except Exception as e:
            self.logger.error(f"Error recording usage of coupon {coupon.code}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Admin management

    def list_coupons(self, is_active: Optional[bool] = None) -> ServiceResult[List[Coupon]]:
        queryset = Coupon.objects.all()
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        return service_ok(list(queryset))

    @BaseService.log_performance
    def create_coupon(self, data: Dict) -> ServiceResult[Coupon]:
        unknown = set(data) - COUPON_FIELDS
        if unknown:
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown coupon fields: {sorted(unknown)}")
        if data.get("valid_from") and data.get("valid_to") and data["valid_to"] < data["valid_from"]:
            return service_err(ErrorCodes.VALIDATION_ERROR, "valid_to must be after valid_from")

        try:
            with transaction.atomic():
                coupon = Coupon.objects.create(**data)
            self.logger.info(f"Created coupon {coupon.code} ({coupon.type} {coupon.value})")
            return service_ok(coupon)
        except IntegrityError:
            return service_err(ErrorCodes.COUPON_ALREADY_EXISTS, f"Coupon {data.get('code')} already exists")
        except Exception as e:
            self.logger.error(f"Error creating coupon: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def update_coupon(self, coupon_id: str, data: Dict) -> ServiceResult[Coupon]:
        unknown = set(data) - COUPON_FIELDS
        if unknown:
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown coupon fields: {sorted(unknown)}")

        try:
            coupon = Coupon.objects.get(id=coupon_id)
        except Coupon.DoesNotExist:
            return service_err(ErrorCodes.COUPON_NOT_FOUND, f"Coupon {coupon_id} not found")

        try:
            for field, value in data.items():
                setattr(coupon, field, value)
            if coupon.valid_to < coupon.valid_from:
                return service_err(ErrorCodes.VALIDATION_ERROR, "valid_to must be after valid_from")
            coupon.save()
            return service_ok(coupon)
        except Exception as e:
            self.logger.error(f"Error updating coupon {coupon_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def delete_coupon(self, coupon_id: str) -> ServiceResult[bool]:
        deleted, _ = Coupon.objects.filter(id=coupon_id).delete()
        if not deleted:
            return service_err(ErrorCodes.COUPON_NOT_FOUND, f"Coupon {coupon_id} not found")
        self.logger.info(f"Deleted coupon {coupon_id}")
        return service_ok(True)

    def get_coupon_usage(self, coupon_id: str) -> ServiceResult[List[CouponUsage]]:
        if not Coupon.objects.filter(id=coupon_id).exists():
            return service_err(ErrorCodes.COUPON_NOT_FOUND, f"Coupon {coupon_id} not found")
        usages = CouponUsage.objects.filter(coupon_id=coupon_id).select_related("user", "order")
        return service_ok(list(usages))
