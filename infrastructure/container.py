"""
Dependency Injection Container
================================

Simple service locator for the marketplace and vendor domain services.
Services are created lazily, cached, and wired to their collaborators here so
views and tasks never construct them directly.

Usage:
    from infrastructure.container import container

    cart = container.cart_service()
    payouts = container.payout_service()
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for domain services.

    Implements lazy initialization and caching of service instances.
    Singleton pattern.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._clear()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear(self):
        # Marketplace
        self._query_cache = None
        self._query_service = None
        self._inventory_service = None
        self._pricing_service = None
        self._coupon_service = None
        self._cart_service = None
        self._catalog_service = None
        self._review_service = None
        self._search_service = None
        self._order_service = None

        # Vendors
        self._vendor_service = None
        self._commission_service = None
        self._payout_service = None
        self._analytics_service = None

    def query_cache(self):
        """Get the process-wide TTLCache."""
        if self._query_cache is None:
            from marketplace.services import get_query_cache

            self._query_cache = get_query_cache()
        return self._query_cache

    def query_service(self):
        """Get QueryService instance."""
        if self._query_service is None:
            from marketplace.services import QueryService

            self._query_service = QueryService(cache=self.query_cache())
            logger.debug("Created QueryService")
        return self._query_service

    def inventory_service(self):
        """Get InventoryService instance."""
        if self._inventory_service is None:
            from marketplace.services import InventoryService

            self._inventory_service = InventoryService()
            logger.debug("Created InventoryService")
        return self._inventory_service

    def pricing_service(self):
        """Get PricingService instance."""
        if self._pricing_service is None:
            from marketplace.services import PricingService

            self._pricing_service = PricingService()
            logger.debug("Created PricingService")
        return self._pricing_service

    def coupon_service(self):
        """Get CouponService instance."""
        if self._coupon_service is None:
            from marketplace.services import CouponService

            self._coupon_service = CouponService()
            logger.debug("Created CouponService")
        return self._coupon_service

    def cart_service(self):
        """Get CartService instance."""
        if self._cart_service is None:
            from marketplace.services import CartService

            # CartService depends on InventoryService, PricingService and CouponService
            self._cart_service = CartService(
                inventory_service=self.inventory_service(),
                pricing_service=self.pricing_service(),
                coupon_service=self.coupon_service(),
            )
            logger.debug("Created CartService")
        return self._cart_service

    def catalog_service(self):
        """Get CatalogService instance."""
        if self._catalog_service is None:
            from marketplace.services import CatalogService

            self._catalog_service = CatalogService(cache=self.query_cache())
            logger.debug("Created CatalogService")
        return self._catalog_service

    def review_service(self):
        """Get ReviewService instance."""
        if self._review_service is None:
            from marketplace.services import ReviewService

            self._review_service = ReviewService()
            logger.debug("Created ReviewService")
        return self._review_service

    def search_service(self):
        """Get SearchService instance."""
        if self._search_service is None:
            from marketplace.services import SearchService

            self._search_service = SearchService(cache=self.query_cache())
            logger.debug("Created SearchService")
        return self._search_service

    def order_service(self):
        """Get OrderService instance."""
        if self._order_service is None:
            from marketplace.services import OrderService

            self._order_service = OrderService(
                cart_service=self.cart_service(),
                inventory_service=self.inventory_service(),
                pricing_service=self.pricing_service(),
                coupon_service=self.coupon_service(),
                commission_service=self.commission_service(),
            )
            logger.debug("Created OrderService")
        return self._order_service

    def commission_service(self):
        """Get CommissionService instance."""
        if self._commission_service is None:
            from vendors.services import CommissionService

            self._commission_service = CommissionService(payout_service=self.payout_service())
            logger.debug("Created CommissionService")
        return self._commission_service

    def vendor_service(self):
        """Get VendorService instance."""
        if self._vendor_service is None:
            from vendors.services import VendorService

            self._vendor_service = VendorService(order_service=self.order_service())
            logger.debug("Created VendorService")
        return self._vendor_service

    def payout_service(self):
        """Get PayoutService instance."""
        if self._payout_service is None:
            from vendors.services import PayoutService

            self._payout_service = PayoutService()
            logger.debug("Created PayoutService")
        return self._payout_service

    def analytics_service(self):
        """Get VendorAnalyticsService instance."""
        if self._analytics_service is None:
            from vendors.services import VendorAnalyticsService

            self._analytics_service = VendorAnalyticsService(commission_service=self.commission_service())
            logger.debug("Created VendorAnalyticsService")
        return self._analytics_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._clear()
        logger.info("Service container reset")


# Global singleton instance
container = ServiceContainer()
