from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator
from django.db import models

from marketplace.catalog.domain.models.catalog import Product


User = get_user_model()


class Cart(models.Model):
    """One persistent cart per shopper; the applied coupon is re-validated on every read."""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="cart")
    coupon_code = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "marketplace"

    def pricing_lines(self):
        """Cart lines with products loaded, paired with the {"product", "quantity"} dicts pricing expects."""
        lines = list(self.items.select_related("product", "product__category", "product__vendor"))
        return lines, [{"product": line.product, "quantity": line.quantity} for line in lines]

    def __str__(self):
        return f"Cart of {self.user.email}"


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="cart_lines")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "marketplace"
        ordering = ["added_at"]
        constraints = [models.UniqueConstraint(fields=["cart", "product"], name="unique_cart_product")]

    @property
    def line_total(self):
        # Current catalog price; the order snapshots it at checkout
        return self.product.price * self.quantity

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"
