"""
CartService - Shopping Cart Operations

Add, remove, update and clear cart lines, apply discount codes, and compute
totals through PricingService. Stock is checked with InventoryService on
every quantity change.
"""

from typing import Dict

from django.contrib.auth import get_user_model
from django.db import transaction

from marketplace.infra.observability.metrics import cart_validation_duration
from marketplace.models import Cart, CartItem, Product

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .coupon_service import CouponService
from .inventory_service import InventoryService
from .pricing_service import ZERO, PricingService

User = get_user_model()


class CartService(BaseService):
    """
    Service for managing shopping cart operations.

    Dependencies:
    - InventoryService: Check stock availability
    - PricingService: Calculate cart totals
    - CouponService: Validate the applied discount code
    """

    def __init__(
        self,
        inventory_service: InventoryService = None,
        pricing_service: PricingService = None,
        coupon_service: CouponService = None,
    ):
        super().__init__()
        self.inventory_service = inventory_service or InventoryService()
        self.pricing_service = pricing_service or PricingService()
        self.coupon_service = coupon_service or CouponService()

    @BaseService.log_performance
    def get_cart(self, user: User) -> ServiceResult[Dict]:
        """
        User's cart with lines, discount and totals.

        Example:
            >>> result = cart_service.get_cart(user)
            >>> result.value["totals"]["total"], result.value["item_count"]
        """
        try:
            cart, _ = Cart.objects.get_or_create(user=user)
            cart_items, pricing_items = cart.pricing_lines()

            discount = ZERO
            free_shipping = False
            coupon_error = None
            if cart.coupon_code and pricing_items:
                coupon_result = self.coupon_service.validate_coupon(cart.coupon_code, pricing_items, user)
                if not coupon_result.ok:
                    return coupon_result
                if coupon_result.value["valid"]:
                    discount = coupon_result.value["discount_amount"]
                    free_shipping = coupon_result.value["free_shipping"]
                else:
                    coupon_error = coupon_result.value["error_message"]

            totals_result = self.pricing_service.calculate_cart_total(
                pricing_items, discount=discount, free_shipping=free_shipping
            )
            if not totals_result.ok:
                return totals_result

            items_data = [
                {
                    "id": cart_item.id,
                    "product": cart_item.product,
                    "quantity": cart_item.quantity,
                    "line_total": cart_item.line_total,
                    "added_at": cart_item.added_at,
                }
                for cart_item in cart_items
            ]

            return service_ok(
                {
                    "id": cart.id,
                    "user_id": user.id,
                    "items": items_data,
                    "items_count": len(items_data),
                    "item_count": sum(item["quantity"] for item in items_data),
                    "is_empty": not items_data,
                    "coupon_code": cart.coupon_code or None,
                    "coupon_error": coupon_error,
                    "totals": totals_result.value,
                    "created_at": cart.created_at,
                    "updated_at": cart.updated_at,
                }
            )

        except Exception as e:
            self.logger.error(f"Error getting cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def add_to_cart(self, user: User, product_id: str, quantity: int = 1) -> ServiceResult[Dict]:
        """Add a product; an existing line has its quantity increased."""
        try:
            if quantity <= 0:
                return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")

            cart, _ = Cart.objects.get_or_create(user=user)

            try:
                product = Product.objects.get(id=product_id, is_active=True)
            except Product.DoesNotExist:
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found or inactive")

            cart_item = CartItem.objects.filter(cart=cart, product=product).first()
            current = cart_item.quantity if cart_item else 0
            new_quantity = current + quantity

            stock_check = self.inventory_service.check_availability(product_id, new_quantity)
            if not stock_check.ok:
                return stock_check
            if not stock_check.value:
                return service_err(
                    ErrorCodes.INSUFFICIENT_STOCK,
                    f"Insufficient stock for {product.name}. Available: {product.stock_quantity}, in cart: {current}",
                )

            if cart_item:
                cart_item.quantity = new_quantity
                cart_item.save(update_fields=["quantity"])
                self.logger.info(f"Updated cart item for user {user.id}: {product.name} {current} -> {new_quantity}")
            else:
                CartItem.objects.create(cart=cart, product=product, quantity=quantity)
                self.logger.info(f"Added to cart for user {user.id}: {quantity}x {product.name}")

            return self.get_cart(user)

        except Exception as e:
            self.logger.error(f"Error adding to cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def remove_from_cart(self, user: User, product_id: str) -> ServiceResult[Dict]:
        try:
            try:
                cart = Cart.objects.get(user=user)
            except Cart.DoesNotExist:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found")

            deleted, _ = CartItem.objects.filter(cart=cart, product_id=product_id).delete()
            if not deleted:
                return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")

            self.logger.info(f"Removed product {product_id} from cart for user {user.id}")
            return self.get_cart(user)

        except Exception as e:
            self.logger.error(f"Error removing from cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def update_quantity(self, user: User, product_id: str, quantity: int) -> ServiceResult[Dict]:
        """Set a line's quantity. Zero or less removes the line."""
        try:
            try:
                cart = Cart.objects.get(user=user)
            except Cart.DoesNotExist:
                return service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found")

            try:
                cart_item = CartItem.objects.select_related("product").get(cart=cart, product_id=product_id)
            except CartItem.DoesNotExist:
                return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")

            if quantity <= 0:
                cart_item.delete()
                self.logger.info(f"Removed {cart_item.product.name} from cart for user {user.id} (quantity {quantity})")
                return self.get_cart(user)

            stock_check = self.inventory_service.check_availability(product_id, quantity)
            if not stock_check.ok:
                return stock_check
            if not stock_check.value:
                return service_err(
                    ErrorCodes.INSUFFICIENT_STOCK,
                    f"Insufficient stock. Requested: {quantity}, Available: {cart_item.product.stock_quantity}",
                )

            old_quantity = cart_item.quantity
            cart_item.quantity = quantity
            cart_item.save(update_fields=["quantity"])

            self.logger.info(
                f"Updated cart quantity for user {user.id}: {cart_item.product.name} {old_quantity} -> {quantity}"
            )
            return self.get_cart(user)

        except Exception as e:
            self.logger.error(f"Error updating cart quantity for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def increase_quantity(self, user: User, product_id: str) -> ServiceResult[Dict]:
        current = self.get_item_quantity(user, product_id)
        if not current.ok:
            return current
        if current.value == 0:
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")
        return self.update_quantity(user, product_id, current.value + 1)

    def decrease_quantity(self, user: User, product_id: str) -> ServiceResult[Dict]:
        """Decrement by one; a line at quantity 1 is removed."""
        current = self.get_item_quantity(user, product_id)
        if not current.ok:
            return current
        if current.value == 0:
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, f"Product {product_id} not in cart")
        return self.update_quantity(user, product_id, current.value - 1)

    def is_in_cart(self, user: User, product_id: str) -> ServiceResult[bool]:
        try:
            return service_ok(CartItem.objects.filter(cart__user=user, product_id=product_id).exists())
        except Exception as e:
            self.logger.error(f"Error checking cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_item_quantity(self, user: User, product_id: str) -> ServiceResult[int]:
        """Quantity of a product in the cart, 0 when absent."""
        try:
            quantity = (
                CartItem.objects.filter(cart__user=user, product_id=product_id)
                .values_list("quantity", flat=True)
                .first()
            )
            return service_ok(quantity or 0)
        except Exception as e:
            self.logger.error(f"Error reading cart quantity for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def clear_cart(self, user: User) -> ServiceResult[bool]:
        """Drop every line and the applied coupon."""
        try:
            try:
                cart = Cart.objects.get(user=user)
            except Cart.DoesNotExist:
                return service_ok(True)

            items_count = cart.items.count()
            cart.items.all().delete()
            if cart.coupon_code:
                cart.coupon_code = ""
                cart.save(update_fields=["coupon_code", "updated_at"])

            self.logger.info(f"Cleared cart for user {user.id}: {items_count} items removed")
            return service_ok(True)

        except Exception as e:
            self.logger.error(f"Error clearing cart for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def apply_coupon(self, user: User, code: str) -> ServiceResult[Dict]:
        """Validate ``code`` against the current cart and store it on success."""
        try:
            cart, _ = Cart.objects.get_or_create(user=user)
            _, pricing_items = cart.pricing_lines()
            if not pricing_items:
                return service_err(ErrorCodes.CART_EMPTY, "Add items to your cart before applying a coupon")

            validation = self.coupon_service.validate_coupon(code, pricing_items, user)
            if not validation.ok:
                return validation
            if not validation.value["valid"]:
                return service_err(ErrorCodes.COUPON_INVALID, validation.value["error_message"])

            cart.coupon_code = validation.value["coupon"].code
            cart.save(update_fields=["coupon_code", "updated_at"])
            self.logger.info(f"Applied coupon {cart.coupon_code} to cart of user {user.id}")
            return self.get_cart(user)

        except Exception as e:
            self.logger.error(f"Error applying coupon for user {user.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def remove_coupon(self, user: User) -> ServiceResult[Dict]:
        Cart.objects.filter(user=user).update(coupon_code="")
        return self.get_cart(user)

    @BaseService.log_performance
    def validate_cart(self, user: User) -> ServiceResult[Dict]:
        """
        Check every line is still purchasable.

        Returns ok with {"valid": bool, "issues": [...], "items": [...]}.
        """
        with cart_validation_duration.time():
            try:
                cart, _ = Cart.objects.get_or_create(user=user)
                cart_items, _ = cart.pricing_lines()

                issues = []
                validation_items = []
                for cart_item in cart_items:
                    product = cart_item.product
                    item_issues = []

                    if not product.is_active:
                        issues.append(
                            {
                                "product_id": str(product.id),
                                "product_name": product.name,
                                "issue": "product_inactive",
                                "message": f"{product.name} is no longer available",
                            }
                        )
                        item_issues.append("Product inactive")
                    elif product.stock_quantity < cart_item.quantity:
                        issues.append(
                            {
                                "product_id": str(product.id),
                                "product_name": product.name,
                                "issue": "insufficient_stock",
                                "message": (
                                    f"{product.name}: requested {cart_item.quantity}, "
                                    f"available {product.stock_quantity}"
                                ),
                                "requested": cart_item.quantity,
                                "available": product.stock_quantity,
                            }
                        )
                        item_issues.append(
                            f"Insufficient stock. Requested: {cart_item.quantity}, "
                            f"available {product.stock_quantity}"
                        )

                    validation_items.append(
                        {
                            "product_id": str(product.id),
                            "product_name": product.name,
                            "quantity": cart_item.quantity,
                            "available": product.stock_quantity,
                            "issues": item_issues,
                        }
                    )

                valid = not issues
                self.logger.info(f"Validated cart for user {user.id}: valid={valid}, issues={len(issues)}")
                return service_ok(
                    {
                        "valid": valid,
                        "issues": issues,
                        "items": validation_items,
                        "items_count": len(validation_items),
                    }
                )

            except Exception as e:
                self.logger.error(f"Error validating cart for user {user.id}: {e}", exc_info=True)
                return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
