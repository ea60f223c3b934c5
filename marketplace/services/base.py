"""
Base classes and utilities for the service layer.

Provides the ServiceResult pattern and the BaseService class shared by the
marketplace and vendor services.
"""

import logging
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import wraps
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Coerce a number to a Decimal rounded half-up to cents."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Expected failures (not found, out of stock, invalid coupon...) come back as
    an error code instead of an exception, so views can map them to HTTP
    statuses without try/except.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = cart_service.add_to_cart(user, product_id, 2)
        >>> if not result.ok:
        ...     return Response({"detail": result.error_detail}, 400)
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None

    def map(self, func: Callable[[T], Any]) -> "ServiceResult":
        """Transform the success value if ok=True, otherwise pass through the error."""
        if self.ok and self.value is not None:
            try:
                return service_ok(func(self.value))
            except Exception as e:
                return service_err("transformation_error", str(e))
        return self

    def flat_map(self, func: Callable[[T], "ServiceResult"]) -> "ServiceResult":
        """Chain service operations that return ServiceResult."""
        if self.ok and self.value is not None:
            return func(self.value)
        return self

    def to_dict(self) -> dict:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with 'success' and either 'data' or 'error'
        """
        if self.ok:
            return {"success": True, "data": self.value}
        return {
            "success": False,
            "error": {"code": self.error, "message": self.error_detail},
        }


def service_ok(value: T) -> ServiceResult[T]:
    """Create a successful ServiceResult."""
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "product_not_found", "invalid_quantity")
        error_detail: Human-readable error message

    Example:
        >>> return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {vendor_id} does not exist")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for all services.

    Provides a logger named after the concrete service class and a
    performance timing decorator.

    Usage:
        class CouponService(BaseService):
            @BaseService.log_performance
            def validate_coupon(self, code, items):
                self.logger.info(f"Validating coupon {code}")
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator logging execution time and outcome of service methods.

        ServiceResult failures are logged as warnings; raised exceptions are
        logged with traceback and re-raised.
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across marketplace and vendor services."""

    # Product errors
    PRODUCT_NOT_FOUND = "product_not_found"
    PRODUCT_INACTIVE = "product_inactive"
    INVALID_PRODUCT_DATA = "invalid_product_data"
    CATEGORY_NOT_FOUND = "category_not_found"

    # Review errors
    REVIEW_ALREADY_EXISTS = "review_already_exists"
    INVALID_RATING = "invalid_rating"

    # Cart errors
    CART_NOT_FOUND = "cart_not_found"
    CART_EMPTY = "cart_empty"
    CART_INVALID = "cart_invalid"
    INVALID_QUANTITY = "invalid_quantity"
    ITEM_NOT_IN_CART = "item_not_in_cart"

    # Coupon errors
    COUPON_NOT_FOUND = "coupon_not_found"
    COUPON_INVALID = "coupon_invalid"
    COUPON_ALREADY_EXISTS = "coupon_already_exists"

    # Order errors
    ORDER_NOT_FOUND = "order_not_found"
    ORDER_CANNOT_CANCEL = "order_cannot_cancel"
    INVALID_ORDER_STATE = "invalid_order_state"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"

    # Inventory errors
    INSUFFICIENT_STOCK = "insufficient_stock"
    RESERVATION_FAILED = "reservation_failed"

    # Vendor errors
    VENDOR_NOT_FOUND = "vendor_not_found"
    VENDOR_ALREADY_EXISTS = "vendor_already_exists"
    VENDOR_NOT_ACTIVE = "vendor_not_active"

    # Commission / payout errors
    COMMISSION_NOT_FOUND = "commission_not_found"
    COMMISSION_RULE_NOT_FOUND = "commission_rule_not_found"
    PAYOUT_NOT_FOUND = "payout_not_found"
    PAYOUT_ALREADY_EXISTS = "payout_already_exists"
    INVALID_PAYOUT_STATE = "invalid_payout_state"
    INVALID_PERIOD = "invalid_period"
    NO_PAYABLE_COMMISSIONS = "no_payable_commissions"

    # Permission errors
    PERMISSION_DENIED = "permission_denied"
    NOT_PRODUCT_OWNER = "not_product_owner"
    NOT_ORDER_OWNER = "not_order_owner"

    # Validation errors
    VALIDATION_ERROR = "validation_error"
    INVALID_INPUT = "invalid_input"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
    DATABASE_ERROR = "database_error"
