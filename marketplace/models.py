from marketplace.cart.domain.models import Cart, CartItem
from marketplace.catalog.domain.models import Category, Product, ProductReview
from marketplace.ordering.domain.models import Order, OrderItem
from marketplace.promotions.domain.models import Coupon, CouponUsage


__all__ = [
    "Category",
    "Product",
    "ProductReview",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "Coupon",
    "CouponUsage",
]
