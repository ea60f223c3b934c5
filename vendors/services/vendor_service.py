"""
VendorService - Vendor accounts

Registration, admin review (approve/suspend), profile updates, and the
vendor-side views of products, orders and headline stats.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Avg, DecimalField, F, Q, Sum
from django.utils import timezone

from marketplace.models import Order, OrderItem, Product, ProductReview
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok
from utils.logging_utils import mask_value
from vendors.infra.observability.metrics import vendor_registrations_total, vendor_status_changes_total
from vendors.models import Vendor

VENDOR_FIELDS = {
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
}

# Only admins may change these
ADMIN_VENDOR_FIELDS = {
    "status",
    "verification_status",
    "performance_tier",
    "commission_rate",
    "admin_notes",
}

VENDOR_SORT_FIELDS = {"created_at", "updated_at", "business_name", "status", "performance_tier"}


def one_decimal(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class VendorService(BaseService):
    """
    Vendor lifecycle:

        pending -> active -> suspended
           |         |
           +---------+--> inactive (soft delete, products hidden)
    """

    def __init__(self, order_service=None):
        super().__init__()
        self._order_service = order_service

    @property
    def order_service(self):
        if self._order_service is None:
            from marketplace.services import OrderService

            self._order_service = OrderService()
        return self._order_service

    # Lookups

    def get_vendors(
        self,
        query: str = "",
        status=None,
        verification_status=None,
        business_type: Optional[str] = None,
        sort_by: str = "created_at",
        sort_direction: str = "desc",
        limit: int = 20,
        offset: int = 0,
    ) -> ServiceResult[Dict]:
        """
        Filtered, sorted page of vendors.

        status and verification_status accept a single value or a list.
        page is derived from offset: offset // limit + 1.
        """
        if sort_by not in VENDOR_SORT_FIELDS:
            return service_err(ErrorCodes.INVALID_INPUT, f"Cannot sort vendors by '{sort_by}'")
        if limit < 1 or offset < 0:
            return service_err(ErrorCodes.INVALID_INPUT, "limit must be positive and offset non-negative")

        try:
            vendors = Vendor.objects.select_related("user")
            if query:
                vendors = vendors.filter(Q(business_name__icontains=query) | Q(description__icontains=query))
            if status:
                vendors = vendors.filter(status__in=[status] if isinstance(status, str) else status)
            if verification_status:
                vendors = vendors.filter(
                    verification_status__in=(
                        [verification_status] if isinstance(verification_status, str) else verification_status
                    )
                )
            if business_type:
                vendors = vendors.filter(business_type=business_type)

            prefix = "" if sort_direction == "asc" else "-"
            vendors = vendors.order_by(f"{prefix}{sort_by}", "-pk")

            total = vendors.count()
            return service_ok(
                {
                    "vendors": list(vendors[offset : offset + limit]),
                    "total": total,
                    "page": offset // limit + 1,
                    "limit": limit,
                }
            )
        except Exception as e:
            self.logger.error(f"Error listing vendors: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_vendor_by_id(self, vendor_id) -> ServiceResult[Vendor]:
        try:
            return service_ok(Vendor.objects.select_related("user").get(id=vendor_id))
        except (Vendor.DoesNotExist, ValidationError, ValueError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} not found")

    def get_vendor_by_user(self, user) -> ServiceResult[Vendor]:
        vendor = Vendor.objects.filter(user=user).first()
        if vendor is None:
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, "You do not have a vendor account")
        return service_ok(vendor)

    # Registration and profile

    @BaseService.log_performance
    def create_vendor(self, user, data: Dict[str, Any]) -> ServiceResult[Vendor]:
        """
        Register the user as a vendor. The account waits for admin review.

        Example:
            >>> result = vendor_service.create_vendor(
            ...     user, {"business_name": "Oak & Iron", "contact_email": "shop@oak.example"}
            ... )
            >>> result.value.status
            'pending'
        """
        if not data.get("business_name"):
            return service_err(ErrorCodes.INVALID_INPUT, "business_name is required")
        if Vendor.objects.filter(user=user).exists():
            return service_err(ErrorCodes.VENDOR_ALREADY_EXISTS, "This account is already registered as a vendor")

        try:
            fields = {field: data[field] for field in VENDOR_FIELDS if field in data}
            fields.setdefault("contact_email", user.email)
            vendor = Vendor.objects.create(
                user=user, status="pending", verification_status="pending", **fields
            )
        except IntegrityError:
            return service_err(ErrorCodes.VENDOR_ALREADY_EXISTS, "This account is already registered as a vendor")
        except Exception as e:
            self.logger.error(f"Error registering vendor for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        vendor_registrations_total.inc()
        self.logger.info(
            f"Vendor registered: {vendor.business_name} (id={vendor.id}, contact={mask_value(vendor.contact_email)})"
        )
        return service_ok(vendor)

    @BaseService.log_performance
    def update_vendor(
        self, vendor_id, data: Dict[str, Any], allow_admin_fields: bool = False
    ) -> ServiceResult[Vendor]:
        allowed = VENDOR_FIELDS | ADMIN_VENDOR_FIELDS if allow_admin_fields else VENDOR_FIELDS
        forbidden = (set(data) & ADMIN_VENDOR_FIELDS) - allowed
        if forbidden:
            return service_err(ErrorCodes.PERMISSION_DENIED, f"Only admins can change {', '.join(sorted(forbidden))}")

        result = self.get_vendor_by_id(vendor_id)
        if not result.ok:
            return result
        vendor = result.value

        try:
            changed = [field for field in allowed if field in data]
            for field in changed:
                setattr(vendor, field, data[field])
            if changed:
                vendor.save(update_fields=changed + ["updated_at"])
            self.logger.info(f"Updated vendor {vendor.id}, fields={sorted(changed)}")
            return service_ok(vendor)
        except Exception as e:
            self.logger.error(f"Error updating vendor {vendor_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def delete_vendor(self, vendor_id) -> ServiceResult[Vendor]:
        """Soft delete: the vendor becomes inactive and its products are hidden."""
        result = self.get_vendor_by_id(vendor_id)
        if not result.ok:
            return result
        vendor = result.value

        try:
            with transaction.atomic():
                vendor.status = "inactive"
                vendor.save(update_fields=["status", "updated_at"])
                hidden = Product.objects.filter(vendor=vendor, is_active=True).update(
                    is_active=False, updated_at=timezone.now()
                )
            self._invalidate_catalog()
            vendor_status_changes_total.labels(status="inactive").inc()
            self.logger.info(f"Vendor {vendor.id} deactivated, {hidden} products hidden")
            return service_ok(vendor)
        except Exception as e:
            self.logger.error(f"Error deactivating vendor {vendor_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _invalidate_catalog(self) -> None:
        from infrastructure.container import container

        container.catalog_service().invalidate_product_cache()

    # Review workflow

    @BaseService.log_performance
    def approve_vendor(self, vendor_id, notes: str = "") -> ServiceResult[Vendor]:
        """Activate and verify the vendor, and give its user the vendor role."""
        result = self.get_vendor_by_id(vendor_id)
        if not result.ok:
            return result
        vendor = result.value

        try:
            with transaction.atomic():
                vendor.status = "active"
                vendor.verification_status = "verified"
                vendor.approved_at = timezone.now()
                if notes:
                    vendor.admin_notes = notes
                vendor.save(update_fields=["status", "verification_status", "approved_at", "admin_notes", "updated_at"])

                user = vendor.user
                if user.role == "user":
                    user.role = "vendor"
                    user.save(update_fields=["role"])

            vendor_status_changes_total.labels(status="active").inc()
            self.logger.info(f"Vendor {vendor.id} approved")
            return service_ok(vendor)
        except Exception as e:
            self.logger.error(f"Error approving vendor {vendor_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def suspend_vendor(self, vendor_id, reason: str) -> ServiceResult[Vendor]:
        if not reason:
            return service_err(ErrorCodes.INVALID_INPUT, "A suspension reason is required")

        result = self.get_vendor_by_id(vendor_id)
        if not result.ok:
            return result
        vendor = result.value

        try:
            vendor.status = "suspended"
            vendor.admin_notes = reason
            vendor.save(update_fields=["status", "admin_notes", "updated_at"])
            vendor_status_changes_total.labels(status="suspended").inc()
            self.logger.warning(f"Vendor {vendor.id} suspended: {reason}")
            return service_ok(vendor)
        except Exception as e:
            self.logger.error(f"Error suspending vendor {vendor_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Vendor dashboard

    def get_vendor_products(self, vendor: Vendor) -> ServiceResult[List[Product]]:
        products = Product.objects.filter(vendor=vendor, is_active=True).select_related("category")
        return service_ok(list(products.order_by("-created_at")))

    def get_vendor_orders(self, vendor: Vendor, status: Optional[str] = None) -> ServiceResult[List[Order]]:
        """Orders containing at least one of the vendor's items, newest first."""
        return self.order_service.get_orders({"vendor": vendor, "status": status})

    @BaseService.log_performance
    def update_vendor_order(
        self,
        vendor: Vendor,
        order_id,
        status: Optional[str] = None,
        tracking_number: Optional[str] = None,
        shipping_carrier: Optional[str] = None,
    ) -> ServiceResult[Order]:
        """
        Fulfilment updates from the vendor side. A tracking number ships the
        order; a status change goes through the normal transition rules.
        """
        try:
            order = Order.objects.get(id=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if not order.items.filter(vendor=vendor).exists():
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "This order has none of your items")
        if not status and not tracking_number:
            return service_err(ErrorCodes.INVALID_INPUT, "Provide a status or a tracking number")

        result = ServiceResult(ok=True, value=order)
        if tracking_number:
            result = self.order_service.add_tracking_number(order.id, tracking_number, shipping_carrier)
            if not result.ok:
                return result
        if status and status != result.value.status:
            result = self.order_service.update_order_status(
                order.id, status, notes=f"Updated by vendor {vendor.business_name}", actor=vendor.user
            )
        return result

    @BaseService.log_performance
    def get_vendor_stats(self, vendor: Vendor) -> ServiceResult[Dict]:
        """
        Headline numbers for the vendor dashboard.

        Orders and revenue only count delivered orders; average_rating is the
        mean review rating over the vendor's products.
        """
        try:
            delivered_items = OrderItem.objects.filter(vendor=vendor, order__status="delivered")
            revenue = delivered_items.aggregate(
                total=Sum(F("quantity") * F("unit_price"), output_field=DecimalField(max_digits=12, decimal_places=2))
            )["total"]
            rating = ProductReview.objects.filter(product__vendor=vendor, is_active=True).aggregate(
                avg=Avg("rating")
            )["avg"]

            return service_ok(
                {
                    "total_products": Product.objects.filter(vendor=vendor, is_active=True).count(),
                    "total_orders": delivered_items.values("order_id").distinct().count(),
                    "total_revenue": money(revenue),
                    "average_rating": one_decimal(rating) if rating else Decimal("0.0"),
                }
            )
        except Exception as e:
            self.logger.error(f"Error computing stats for vendor {vendor.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
