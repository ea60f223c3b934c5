"""
InventoryService - Stock Management

Tracks product stock, reserves it for orders and releases it on cancellation.
Row locks (SELECT FOR UPDATE) keep concurrent checkouts from overselling.
"""

from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from marketplace.infra.observability.metrics import stock_low_alert, stock_reservation_failures
from marketplace.models import Product

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


class InventoryService(BaseService):
    """
    Service for managing product inventory and stock reservations.
    """

    def __init__(self):
        super().__init__()
        self.low_stock_threshold = getattr(settings, "INVENTORY_LOW_STOCK_THRESHOLD", 5)

    @BaseService.log_performance
    def check_availability(self, product_id: str, quantity: int = 1) -> ServiceResult[bool]:
        """
        Check if a product has sufficient stock available.

        Returns:
            ServiceResult with True if available, False otherwise
        """
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")

        try:
            product = Product.objects.get(id=product_id, is_active=True)
            available = product.stock_quantity >= quantity

            self.logger.info(
                f"Availability check for product {product_id}: "
                f"requested={quantity}, available={product.stock_quantity}, result={available}"
            )

            return service_ok(available)

        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            self.logger.error(f"Error checking availability for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def is_in_stock(self, product_id: str) -> ServiceResult[bool]:
        try:
            product = Product.objects.get(id=product_id, is_active=True)
            return service_ok(product.stock_quantity > 0)
        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            self.logger.error(f"Error checking stock for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def reserve_stock(self, product_id: str, quantity: int, order_id: Optional[str] = None) -> ServiceResult[Dict]:
        """
        Deduct stock for an order line under a row lock.

        Returns:
            ServiceResult with quantity_reserved, old_stock, new_stock
        """
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")

        try:
            product = Product.objects.select_for_update().get(id=product_id, is_active=True)

            if product.stock_quantity < quantity:
                stock_reservation_failures.inc()
                return service_err(
                    ErrorCodes.INSUFFICIENT_STOCK,
                    f"Insufficient stock for product {product.name}. "
                    f"Available: {product.stock_quantity}, Requested: {quantity}",
                )

            old_quantity = product.stock_quantity
            product.stock_quantity -= quantity
            product.save(update_fields=["stock_quantity"])

            self.logger.info(
                f"Stock reserved: product={product.name}, quantity={quantity}, order={order_id}, "
                f"stock: {old_quantity} -> {product.stock_quantity}"
            )

            return service_ok(
                {
                    "product_id": str(product_id),
                    "product_name": product.name,
                    "quantity_reserved": quantity,
                    "old_stock": old_quantity,
                    "new_stock": product.stock_quantity,
                    "order_id": order_id,
                    "reserved_at": timezone.now().isoformat(),
                }
            )

        except Product.DoesNotExist:
            stock_reservation_failures.inc()
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            stock_reservation_failures.inc()
            self.logger.error(f"Error reserving stock for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.RESERVATION_FAILED, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def release_stock(self, product_id: str, quantity: int, reason: str = "order_cancelled") -> ServiceResult[Dict]:
        """Return stock to inventory when an order is cancelled or a checkout rolls back."""
        if quantity <= 0:
            return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity must be positive")

        try:
            # Inactive products still get their stock back
            product = Product.objects.select_for_update().get(id=product_id)

            old_quantity = product.stock_quantity
            product.stock_quantity += quantity
            product.save(update_fields=["stock_quantity"])

            self.logger.info(
                f"Stock released: product={product.name}, quantity={quantity}, reason={reason}, "
                f"stock: {old_quantity} -> {product.stock_quantity}"
            )

            return service_ok(
                {
                    "product_id": str(product_id),
                    "product_name": product.name,
                    "quantity_released": quantity,
                    "old_stock": old_quantity,
                    "new_stock": product.stock_quantity,
                    "reason": reason,
                    "released_at": timezone.now().isoformat(),
                }
            )

        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            self.logger.error(f"Error releasing stock for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def update_stock(self, product_id: str, quantity: int, operation: str = "set") -> ServiceResult[Dict]:
        """
        Update product stock quantity (vendor/admin operation).

        Args:
            product_id: UUID of the product
            quantity: Quantity value
            operation: 'set', 'add', or 'subtract'
        """
        if operation not in ["set", "add", "subtract"]:
            return service_err(ErrorCodes.INVALID_INPUT, "Operation must be 'set', 'add', or 'subtract'")

        try:
            product = Product.objects.select_for_update().get(id=product_id)
            old_quantity = product.stock_quantity

            if operation == "set":
                if quantity < 0:
                    return service_err(ErrorCodes.INVALID_QUANTITY, "Stock quantity cannot be negative")
                product.stock_quantity = quantity
            elif operation == "add":
                if quantity <= 0:
                    return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity to add must be positive")
                product.stock_quantity += quantity
            else:
                if quantity <= 0:
                    return service_err(ErrorCodes.INVALID_QUANTITY, "Quantity to subtract must be positive")
                if product.stock_quantity < quantity:
                    return service_err(
                        ErrorCodes.INSUFFICIENT_STOCK,
                        f"Cannot subtract {quantity} from stock of {product.stock_quantity}",
                    )
                product.stock_quantity -= quantity

            product.save(update_fields=["stock_quantity"])

            self.logger.info(
                f"Stock updated: product={product.name}, operation={operation}, quantity={quantity}, "
                f"stock: {old_quantity} -> {product.stock_quantity}"
            )

            return service_ok(
                {
                    "product_id": str(product_id),
                    "product_name": product.name,
                    "operation": operation,
                    "quantity": quantity,
                    "old_stock": old_quantity,
                    "new_stock": product.stock_quantity,
                    "updated_at": timezone.now().isoformat(),
                }
            )

        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            self.logger.error(f"Error updating stock for product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_low_stock_products(self, vendor=None) -> ServiceResult[List[Product]]:
        """Active products at or below the low-stock threshold, lowest stock first."""
        try:
            queryset = Product.objects.filter(is_active=True, stock_quantity__lte=self.low_stock_threshold)
            if vendor is not None:
                queryset = queryset.filter(vendor=vendor)
            products = list(queryset.order_by("stock_quantity", "name"))
            if vendor is None:
                stock_low_alert.set(len(products))
            return service_ok(products)
        except Exception as e:
            self.logger.error(f"Error listing low stock products: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
