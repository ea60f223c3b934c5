"""
OrderService - Order Lifecycle Management

Checkout (cart -> order), order lookups for buyers, vendors and admins, and
status transitions with their side effects on stock and vendor commissions.

State Machine:
    pending -> confirmed -> processing -> shipped -> delivered -> refunded
       |           |            |
       +-----------+------------+--> cancelled (releases inventory)
"""

import time
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from marketplace.infra.observability.metrics import order_status_changes_total, order_value, orders_placed_total
from marketplace.models import Order, OrderItem, Product

from .base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok
from .cart_service import CartService
from .coupon_service import CouponService
from .inventory_service import InventoryService
from .pricing_service import ZERO, PricingService

User = get_user_model()


def generate_order_number() -> str:
    """ORD-<epoch millis>-<4 hex>; the suffix keeps same-millisecond checkouts distinct."""
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4].upper()}"


class OrderService(BaseService):
    """
    Service for managing order lifecycle.

    Dependencies:
    - CartService: cart contents and validation at checkout
    - InventoryService: reserve/release stock
    - PricingService: order totals
    - CouponService: discount codes
    - CommissionService (vendors): commission records on status changes
    """

    def __init__(
        self,
        cart_service: CartService = None,
        inventory_service: InventoryService = None,
        pricing_service: PricingService = None,
        coupon_service: CouponService = None,
        commission_service=None,
    ):
        super().__init__()
        self.inventory_service = inventory_service or InventoryService()
        self.pricing_service = pricing_service or PricingService()
        self.coupon_service = coupon_service or CouponService()
        self.cart_service = cart_service or CartService(
            inventory_service=self.inventory_service,
            pricing_service=self.pricing_service,
            coupon_service=self.coupon_service,
        )
        self._commission_service = commission_service

    @property
    def commission_service(self):
        if self._commission_service is None:
            from vendors.services import CommissionService

            self._commission_service = CommissionService()
        return self._commission_service

    # Checkout

    @BaseService.log_performance
    def create_order(
        self,
        user: User,
        shipping_address: Dict,
        billing_address: Optional[Dict] = None,
        payment_method: str = "card",
        notes: str = "",
        shipping_cost: Optional[Decimal] = None,
    ) -> ServiceResult[Order]:
        """
        Create an order from the user's cart.

        Workflow:
        1. Validate cart (not empty, active products, stock)
        2. Reserve inventory for every line
        3. Price the order, including the applied coupon
        4. Create order + item snapshots, record coupon usage
        5. Clear the cart

        Reservations are released if any later step fails.

        Example:
            >>> result = order_service.create_order(
            ...     user=user,
            ...     shipping_address={"name": "Jane Doe", "street": "1 Main St", "city": "Austin", "country": "US"},
            ... )
        """
        try:
            cart_result = self.cart_service.get_cart(user)
            if not cart_result.ok:
                return cart_result

            cart_data = cart_result.value
            if cart_data["is_empty"]:
                return service_err(ErrorCodes.CART_EMPTY, "Cannot create order from empty cart")

            validation_result = self.cart_service.validate_cart(user)
            if not validation_result.ok:
                return validation_result
            validation = validation_result.value
            if not validation["valid"]:
                return service_err(
                    ErrorCodes.CART_INVALID,
                    "; ".join(issue["message"] for issue in validation["issues"]),
                )

            items = [{"product": item["product"], "quantity": item["quantity"]} for item in cart_data["items"]]
            result = self._place_order(
                user,
                items,
                shipping_address=shipping_address,
                billing_address=billing_address,
                payment_method=payment_method,
                notes=notes,
                shipping_cost=shipping_cost,
                coupon_code=cart_data["coupon_code"],
            )
            if not result.ok:
                return result

            clear_result = self.cart_service.clear_cart(user)
            if not clear_result.ok:
                self.logger.warning(f"Failed to clear cart after order creation for user {user.id}: {clear_result.error}")

            return result

        except Exception as e:
            self.logger.error(f"Error creating order for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def create_order_from_items(
        self,
        user: User,
        items: List[Dict],
        shipping_address: Dict,
        billing_address: Optional[Dict] = None,
        payment_method: str = "card",
        notes: str = "",
        shipping_cost: Optional[Decimal] = None,
        coupon_code: Optional[str] = None,
    ) -> ServiceResult[Order]:
        """
        Create an order from an explicit list of {"product_id", "quantity"}.

        Prices are always read from the product, never from the caller.
        """
        if not items:
            return service_err(ErrorCodes.INVALID_INPUT, "Order must contain at least one item")

        try:
            priced_items = []
            for item in items:
                quantity = int(item.get("quantity", 1))
                if quantity <= 0:
                    return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")
                try:
                    product = Product.objects.select_related("category", "vendor").get(
                        id=item["product_id"], is_active=True
                    )
                except (Product.DoesNotExist, ValidationError, KeyError):
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {item.get('product_id')} not found")
                priced_items.append({"product": product, "quantity": quantity})

            return self._place_order(
                user,
                priced_items,
                shipping_address=shipping_address,
                billing_address=billing_address,
                payment_method=payment_method,
                notes=notes,
                shipping_cost=shipping_cost,
                coupon_code=coupon_code,
            )

        except Exception as e:
            self.logger.error(f"Error creating order from items for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _place_order(
        self,
        user: User,
        items: List[Dict],
        shipping_address: Dict,
        billing_address: Optional[Dict],
        payment_method: str,
        notes: str,
        shipping_cost: Optional[Decimal],
        coupon_code: Optional[str],
    ) -> ServiceResult[Order]:
        coupon = None
        discount = ZERO
        free_shipping = False
        if coupon_code:
            coupon_result = self.coupon_service.validate_coupon(coupon_code, items, user)
            if not coupon_result.ok:
                return coupon_result
            if not coupon_result.value["valid"]:
                return service_err(ErrorCodes.COUPON_INVALID, coupon_result.value["error_message"])
            coupon = coupon_result.value["coupon"]
            discount = coupon_result.value["discount_amount"]
            free_shipping = coupon_result.value["free_shipping"]

        totals_result = self.pricing_service.calculate_order_total(
            items, shipping_cost=shipping_cost, discount_amount=discount, free_shipping=free_shipping
        )
        if not totals_result.ok:
            return totals_result
        totals = totals_result.value

        reservations = []
        for item in items:
            product = item["product"]
            reserve_result = self.inventory_service.reserve_stock(str(product.id), item["quantity"])
            if not reserve_result.ok:
                self._rollback_reservations(reservations)
                return service_err(
                    reserve_result.error,
                    f"Failed to reserve stock for {product.name}: {reserve_result.error_detail}",
                )
            reservations.append({"product_id": str(product.id), "quantity": item["quantity"]})

        try:
            with transaction.atomic():
                order = Order.objects.create(
                    order_number=generate_order_number(),
                    buyer=user,
                    status="pending",
                    payment_status="pending",
                    payment_method=payment_method,
                    currency=totals["currency"],
                    subtotal=totals["subtotal"],
                    shipping_cost=totals["shipping"],
                    tax_amount=totals["tax"],
                    discount_amount=totals["discount"],
                    total_amount=totals["total"],
                    coupon_code=coupon.code if coupon else "",
                    shipping_address=shipping_address,
                    billing_address=billing_address or shipping_address,
                    notes=notes,
                )

                OrderItem.objects.bulk_create(
                    [
                        OrderItem(
                            order=order,
                            product=item["product"],
                            vendor=item["product"].vendor,
                            quantity=item["quantity"],
                            unit_price=money(item["product"].price),
                            total_price=money(item["product"].price) * item["quantity"],
                            product_name=item["product"].name,
                            product_sku=item["product"].sku,
                            product_image=item["product"].primary_image or "",
                            category_name=item["product"].category.name if item["product"].category else "",
                        )
                        for item in items
                    ]
                )

                if coupon:
                    usage_result = self.coupon_service.record_usage(coupon, user, order, discount)
                    if not usage_result.ok:
                        raise RuntimeError(usage_result.error_detail)

        except Exception:
            self._rollback_reservations(reservations)
            raise

        orders_placed_total.labels(status="pending").inc()
        order_value.observe(float(order.total_amount))
        self.logger.info(
            f"Created order {order.order_number} for user {user.id}: {len(items)} lines, total ${order.total_amount}"
        )
        return service_ok(order)

    def _rollback_reservations(self, reservations: List[Dict]) -> None:
        if reservations:
            self.logger.warning(f"Rolling back {len(reservations)} inventory reservations")

        for reservation in reservations:
            release_result = self.inventory_service.release_stock(
                product_id=reservation["product_id"],
                quantity=reservation["quantity"],
                reason="order_creation_rollback",
            )
            if not release_result.ok:
                self.logger.error(
                    f"Failed to release stock during rollback: product={reservation['product_id']}, "
                    f"quantity={reservation['quantity']}, error={release_result.error}"
                )

    # Lookups

    def _order_queryset(self):
        return Order.objects.select_related("buyer").prefetch_related("items__product", "items__vendor")

    def filter_orders(self, queryset, filters: Optional[Dict] = None):
        """
        Apply order filters.

        Supported keys: buyer, vendor, status (str or list), payment_status,
        date_from, date_to.
        """
        filters = filters or {}
        if filters.get("buyer") is not None:
            queryset = queryset.filter(buyer=filters["buyer"])
        if filters.get("vendor") is not None:
            queryset = queryset.filter(items__vendor=filters["vendor"]).distinct()

        status = filters.get("status")
        if status:
            if isinstance(status, (list, tuple)):
                queryset = queryset.filter(status__in=status)
            elif status != "all":
                queryset = queryset.filter(status=status)

        if filters.get("payment_status"):
            queryset = queryset.filter(payment_status=filters["payment_status"])
        if filters.get("date_from"):
            queryset = queryset.filter(created_at__gte=filters["date_from"])
        if filters.get("date_to"):
            queryset = queryset.filter(created_at__lte=filters["date_to"])
        return queryset.order_by("-created_at")

    @BaseService.log_performance
    def get_orders(self, filters: Optional[Dict] = None) -> ServiceResult[List[Order]]:
        try:
            return service_ok(list(self.filter_orders(self._order_queryset(), filters)))
        except Exception as e:
            self.logger.error(f"Error listing orders with filters {filters}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def can_view_order(self, order: Order, user: User) -> bool:
        if order.buyer_id == user.id or user.is_admin():
            return True
        vendor = getattr(user, "vendor_profile", None)
        return vendor is not None and order.items.filter(vendor=vendor).exists()

    @BaseService.log_performance
    def get_order(self, order_id: str, user: User) -> ServiceResult[Order]:
        """Order details for its buyer, a vendor with lines in it, or an admin."""
        try:
            order = self._order_queryset().get(id=order_id)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")
        except Exception as e:
            self.logger.error(f"Error getting order {order_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

        if not self.can_view_order(order, user):
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not have access to this order")
        return service_ok(order)

    def get_orders_by_status(self, user: User, status: str) -> ServiceResult[List[Order]]:
        return self.get_orders({"buyer": user, "status": status})

    def get_recent_orders(self, user: User, limit: int = 5) -> ServiceResult[List[Order]]:
        result = self.get_orders({"buyer": user})
        return result.map(lambda orders: orders[:limit]) if result.ok else result

    def get_order_summary(self, user: User) -> ServiceResult[Dict]:
        """Order count per status and total spent (cancelled/refunded excluded)."""
        try:
            orders = Order.objects.filter(buyer=user)
            by_status = {row["status"]: row["count"] for row in orders.values("status").annotate(count=Count("id"))}
            spent = orders.exclude(status__in=["cancelled", "refunded"]).aggregate(total=Sum("total_amount"))["total"]
            return service_ok(
                {
                    "total_orders": sum(by_status.values()),
                    "by_status": {status: by_status.get(status, 0) for status, _ in Order.STATUS_CHOICES},
                    "total_spent": money(spent or 0),
                }
            )
        except Exception as e:
            self.logger.error(f"Error building order summary for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Status changes

    @BaseService.log_performance
    def update_order_status(
        self, order_id: str, new_status: str, notes: Optional[str] = None, actor: Optional[User] = None
    ) -> ServiceResult[Order]:
        """
        Move an order along the state machine.

        Side effects:
        - shipped/delivered/cancelled stamp their timestamp
        - cancelled releases stock
        - confirmed records vendor commissions, delivered confirms them,
          cancelled/refunded cancels them
        """
        if new_status not in dict(Order.STATUS_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown order status '{new_status}'")

        try:
            with transaction.atomic():
                try:
                    order = Order.objects.select_for_update().get(id=order_id)
                except Order.DoesNotExist:
                    return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

                old_status = order.status
                if not order.can_transition_to(new_status):
                    return service_err(
                        ErrorCodes.INVALID_STATUS_TRANSITION,
                        f"Cannot change order status from '{old_status}' to '{new_status}'",
                    )

                now = timezone.now()
                order.status = new_status
                update_fields = ["status", "updated_at"]

                if new_status == "shipped":
                    order.shipped_at = order.shipped_at or now
                    update_fields.append("shipped_at")
                elif new_status == "delivered":
                    order.delivered_at = now
                    update_fields.append("delivered_at")
                elif new_status == "cancelled":
                    order.cancelled_at = now
                    order.cancellation_reason = notes or ""
                    update_fields += ["cancelled_at", "cancellation_reason"]
                    self._release_order_stock(order)
                elif new_status == "refunded":
                    order.payment_status = "refunded"
                    update_fields.append("payment_status")

                if notes and new_status != "cancelled":
                    order.admin_notes = f"{order.admin_notes}\n{notes}".strip()
                    update_fields.append("admin_notes")

                order.save(update_fields=update_fields)
                self._apply_commission_effects(order, new_status)

            order_status_changes_total.labels(from_status=old_status, to_status=new_status).inc()
            self.logger.info(
                f"Order {order.order_number} status {old_status} -> {new_status}"
                f" by {getattr(actor, 'id', 'system')}"
            )
            return service_ok(order)

        except Exception as e:
            self.logger.error(f"Error updating status of order {order_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _release_order_stock(self, order: Order) -> None:
        for item in order.items.all():
            if item.product_id is None:
                continue
            release_result = self.inventory_service.release_stock(
                product_id=str(item.product_id), quantity=item.quantity, reason=f"order_cancelled_{order.id}"
            )
            if not release_result.ok:
                self.logger.error(
                    f"Failed to release stock for product {item.product_id} "
                    f"when cancelling order {order.order_number}: {release_result.error}"
                )

    def _apply_commission_effects(self, order: Order, new_status: str) -> None:
        if new_status == "confirmed":
            result = self.commission_service.process_order_commission(order)
        elif new_status == "delivered":
            result = self.commission_service.confirm_commissions([order.id])
        elif new_status in ("cancelled", "refunded"):
            result = self.commission_service.cancel_commissions([order.id])
        else:
            return
        if not result.ok:
            raise RuntimeError(f"Commission update failed for order {order.order_number}: {result.error_detail}")

    def update_payment_status(self, order_id: str, payment_status: str) -> ServiceResult[Order]:
        """Record a payment outcome. A paid pending order is confirmed."""
        if payment_status not in dict(Order.PAYMENT_STATUS_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown payment status '{payment_status}'")

        updated = Order.objects.filter(id=order_id).update(payment_status=payment_status, updated_at=timezone.now())
        if not updated:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        order = Order.objects.get(id=order_id)
        if payment_status == "paid" and order.status == "pending":
            return self.update_order_status(order_id, "confirmed", notes="Payment received")
        return service_ok(order)

    @BaseService.log_performance
    def add_tracking_number(
        self, order_id: str, tracking_number: str, carrier: Optional[str] = None
    ) -> ServiceResult[Order]:
        """Attach tracking data and mark the order shipped."""
        if not tracking_number:
            return service_err(ErrorCodes.INVALID_INPUT, "tracking_number is required")

        try:
            order = Order.objects.get(id=order_id)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if order.status not in ("confirmed", "processing", "shipped"):
            return service_err(
                ErrorCodes.INVALID_ORDER_STATE, f"Cannot add tracking to an order in status '{order.status}'"
            )

        if order.status == "confirmed":
            result = self.update_order_status(order_id, "processing")
            if not result.ok:
                return result

        Order.objects.filter(id=order_id).update(
            tracking_number=tracking_number, shipping_carrier=carrier or order.shipping_carrier
        )
        if order.status == "shipped":
            return service_ok(Order.objects.get(id=order_id))
        return self.update_order_status(order_id, "shipped", notes=f"Tracking {tracking_number}")

    @BaseService.log_performance
    def cancel_order(self, order_id: str, user: User, reason: str = "") -> ServiceResult[Order]:
        """Buyer-initiated cancellation while the order is pending or confirmed."""
        try:
            order = Order.objects.get(id=order_id)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if order.buyer_id != user.id and not user.is_admin():
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not own this order")

        if order.status not in Order.BUYER_CANCELLABLE_STATUSES:
            return service_err(ErrorCodes.ORDER_CANNOT_CANCEL, f"Cannot cancel order in status '{order.status}'")

        return self.update_order_status(order_id, "cancelled", notes=reason or "Cancelled by buyer", actor=user)

    def cancel_expired_orders(self, older_than_days: int) -> ServiceResult[Dict]:
        """Cancel unpaid pending orders older than the payment window."""
        cutoff = timezone.now() - timedelta(days=older_than_days)
        expired_ids = list(
            Order.objects.filter(status="pending", created_at__lt=cutoff)
            .filter(~Q(payment_status="paid"))
            .values_list("id", flat=True)
        )

        cancelled, failed = [], []
        for order_id in expired_ids:
            result = self.update_order_status(order_id, "cancelled", notes="Payment window expired")
            (cancelled if result.ok else failed).append(str(order_id))

        if expired_ids:
            self.logger.info(f"Expired order sweep: cancelled={len(cancelled)}, failed={len(failed)}")
        return service_ok({"cancelled": cancelled, "failed": failed})
