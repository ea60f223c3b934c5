"""
PricingService - Price Calculations

Sale prices, shipping, tax and cart/order totals. All arithmetic is done in
Decimal and rounded half-up to cents.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings

from marketplace.models import Product

from .base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok

ZERO = Decimal("0.00")


class PricingService(BaseService):
    """
    Stateless price calculations.

    Cart items are dicts with 'product' (Product) and 'quantity' (int).
    """

    def __init__(self):
        super().__init__()
        self.tax_rates = getattr(settings, "TAX_RATES", {"default": Decimal("0.08")})
        self.shipping_flat_rate = money(getattr(settings, "SHIPPING_FLAT_RATE", "9.99"))
        self.free_shipping_threshold = money(getattr(settings, "FREE_SHIPPING_THRESHOLD", "50.00"))
        self.currency = getattr(settings, "DEFAULT_CURRENCY", "USD")

    def tax_rate(self, region: str = "default") -> Decimal:
        return Decimal(str(self.tax_rates.get(region, self.tax_rates["default"])))

    def calculate_product_price(self, product: Product) -> ServiceResult[Dict]:
        """
        Pricing details for a product page.

        Example:
            >>> result = pricing_service.calculate_product_price(product)
            >>> result.value["is_on_sale"], result.value["discount_percentage"]
        """
        try:
            price = money(product.price)
            compare_at = money(product.compare_at_price) if product.compare_at_price else None

            is_on_sale = compare_at is not None and compare_at > price
            discount_amount = compare_at - price if is_on_sale else ZERO
            discount_percentage = money(discount_amount / compare_at * 100) if is_on_sale else ZERO

            return service_ok(
                {
                    "price": price,
                    "compare_at_price": compare_at,
                    "is_on_sale": is_on_sale,
                    "discount_amount": discount_amount,
                    "discount_percentage": discount_percentage,
                    "currency": self.currency,
                }
            )
        except Exception as e:
            self.logger.error(f"Error calculating price for product {product.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def calculate_shipping(self, subtotal: Decimal) -> Decimal:
        """Flat rate below the free-shipping threshold; nothing to ship costs nothing."""
        subtotal = money(subtotal)
        if subtotal <= ZERO or subtotal >= self.free_shipping_threshold:
            return ZERO
        return self.shipping_flat_rate

    def calculate_subtotal(self, items: List[Dict]) -> ServiceResult[Dict]:
        subtotal = ZERO
        compare_subtotal = ZERO
        item_count = 0

        for item in items:
            product = item.get("product")
            quantity = item.get("quantity", 1)

            if not product:
                return service_err(ErrorCodes.INVALID_INPUT, "Cart item missing product")
            if quantity <= 0:
                return service_err(ErrorCodes.INVALID_QUANTITY, f"Invalid quantity: {quantity}")

            line_total = money(product.price) * quantity
            subtotal += line_total
            item_count += quantity

            if product.compare_at_price and product.compare_at_price > product.price:
                compare_subtotal += money(product.compare_at_price) * quantity
            else:
                compare_subtotal += line_total

        return service_ok(
            {
                "subtotal": money(subtotal),
                "savings": money(compare_subtotal - subtotal),
                "item_count": item_count,
                "line_count": len(items),
            }
        )

    @BaseService.log_performance
    def calculate_cart_total(
        self,
        items: List[Dict],
        discount: Decimal = ZERO,
        free_shipping: bool = False,
        region: str = "default",
    ) -> ServiceResult[Dict]:
        """
        Cart summary: subtotal, tax, shipping, discount and total.

        total = max(0, subtotal + tax + shipping - discount)

        Example:
            >>> result = pricing_service.calculate_cart_total([{"product": p, "quantity": 2}])
            >>> result.value["total"]
        """
        try:
            subtotal_result = self.calculate_subtotal(items)
            if not subtotal_result.ok:
                return subtotal_result
            summary = subtotal_result.value

            subtotal = summary["subtotal"]
            tax_rate = self.tax_rate(region)
            tax = money(subtotal * tax_rate)
            shipping = ZERO if free_shipping else self.calculate_shipping(subtotal)
            discount = money(discount)
            total = max(ZERO, subtotal + tax + shipping - discount)

            return service_ok(
                {
                    "subtotal": subtotal,
                    "tax": tax,
                    "tax_rate": tax_rate,
                    "shipping": shipping,
                    "discount": discount,
                    "total": money(total),
                    "item_count": summary["item_count"],
                    "line_count": summary["line_count"],
                    "savings": summary["savings"],
                    "free_shipping_threshold": self.free_shipping_threshold,
                    "currency": self.currency,
                }
            )

        except Exception as e:
            self.logger.error(f"Error calculating cart total: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def calculate_order_total(
        self,
        items: List[Dict],
        shipping_cost: Optional[Decimal] = None,
        tax_amount: Optional[Decimal] = None,
        discount_amount: Decimal = ZERO,
        free_shipping: bool = False,
        region: str = "default",
    ) -> ServiceResult[Dict]:
        """
        Order totals at checkout.

        Tax defaults to the regional rate on the subtotal and shipping to the
        cart shipping rule; either can be supplied explicitly.
        """
        try:
            subtotal_result = self.calculate_subtotal(items)
            if not subtotal_result.ok:
                return subtotal_result

            subtotal = subtotal_result.value["subtotal"]
            tax = money(tax_amount) if tax_amount is not None else money(subtotal * self.tax_rate(region))

            if free_shipping:
                shipping = ZERO
            elif shipping_cost is not None:
                shipping = money(shipping_cost)
            else:
                shipping = self.calculate_shipping(subtotal)

            discount = money(discount_amount)
            total = max(ZERO, subtotal + shipping + tax - discount)

            self.logger.info(f"Order total calculated: subtotal=${subtotal}, shipping=${shipping}, total=${total}")

            return service_ok(
                {
                    "subtotal": subtotal,
                    "shipping": shipping,
                    "tax": tax,
                    "discount": discount,
                    "total": money(total),
                    "item_count": subtotal_result.value["item_count"],
                    "currency": self.currency,
                }
            )

        except Exception as e:
            self.logger.error(f"Error calculating order total: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
