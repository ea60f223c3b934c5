from prometheus_client import Counter, Gauge, Histogram


# Order Metrics
orders_placed_total = Counter("marketplace_orders_placed_total", "Total orders placed", ["status"])
order_status_changes_total = Counter(
    "marketplace_order_status_changes_total", "Order status transitions", ["from_status", "to_status"]
)
order_value = Histogram(
    "marketplace_order_value",
    "Order value distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)

# Stock Metrics
stock_reservation_failures = Counter("marketplace_stock_reservation_failure", "Stock reservation failures")
stock_low_alert = Gauge("marketplace_stock_low_alert", "Products with low stock")

# Coupon Metrics
coupon_redemptions_total = Counter("marketplace_coupon_redemptions_total", "Coupons redeemed", ["type"])
coupon_rejections_total = Counter("marketplace_coupon_rejections_total", "Coupon validation failures")

# Query cache Metrics
query_cache_hits_total = Counter("marketplace_query_cache_hits_total", "Query cache hits")
query_cache_misses_total = Counter("marketplace_query_cache_misses_total", "Query cache misses")
query_cache_size = Gauge("marketplace_query_cache_size", "Entries held by the query cache")

# Performance Metrics
cart_validation_duration = Histogram("marketplace_cart_validation_seconds", "Cart validation time")
search_duration = Histogram("marketplace_search_seconds", "Product search time")
