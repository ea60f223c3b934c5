from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import prometheus_metrics
from .cart.api.views.cart_views import CartViewSet
from .catalog.api.views.category_views import CategoryViewSet
from .catalog.api.views.product_views import ProductViewSet
from .catalog.api.views.search_views import SearchViewSet
from .ordering.api.views.order_views import OrderViewSet
from .promotions.api.views.coupon_views import CouponViewSet

# Create the main router
router = DefaultRouter()
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"products", ProductViewSet, basename="product")
router.register(r"cart", CartViewSet, basename="cart")
router.register(r"orders", OrderViewSet, basename="order")
router.register(r"coupons", CouponViewSet, basename="coupon")

app_name = "marketplace"

urlpatterns = [
    # Search endpoints (before the product detail route)
    path("products/search/", SearchViewSet.as_view({"get": "search"}), name="product-search"),
    path("products/suggestions/", SearchViewSet.as_view({"get": "suggestions"}), name="product-suggestions"),
    path("products/filters/", SearchViewSet.as_view({"get": "filters"}), name="product-filters"),
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.metrics_export, name="marketplace-metrics"),
    # Main API routes
    path("", include(router.urls)),
]
