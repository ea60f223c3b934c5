"""
Marketplace Service Layer

This package contains all business logic for the marketplace app, organized
into domain services.

Services:
- CatalogService: Product browsing and vendor product CRUD
- ReviewService: Product reviews and rating aggregates
- SearchService: Product search, suggestions and filter options
- CartService: Shopping cart operations
- CouponService: Discount code validation and management
- OrderService: Order lifecycle management
- InventoryService: Stock tracking and reservation
- PricingService: Price calculations
- QueryService: Cached product queries over the ORM
- TTLCache: In-process expiring cache used by the query and search services

Usage:
    from infrastructure.container import container

    result = container.catalog_service().list_products(filters={"category": "lighting"})

    if result.ok:
        products = result.value["results"]
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok
from .cache import TTLCache, get_query_cache, reset_query_cache
from .cart_service import CartService
from .catalog_service import CatalogService
from .coupon_service import CouponService
from .inventory_service import InventoryService
from .order_service import OrderService
from .pricing_service import PricingService
from .query_service import QueryService
from .review_service import ReviewService
from .search_service import SearchService

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    # Helper functions
    "service_ok",
    "service_err",
    "money",
    # Error codes
    "ErrorCodes",
    # Cache
    "TTLCache",
    "get_query_cache",
    "reset_query_cache",
    # Services
    "CatalogService",
    "CartService",
    "CouponService",
    "InventoryService",
    "OrderService",
    "PricingService",
    "QueryService",
    "ReviewService",
    "SearchService",
]
