import uuid

from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()


class Coupon(models.Model):
    TYPE_CHOICES = [
        ("percentage", "Percentage"),
        ("fixed", "Fixed amount"),
        ("free_shipping", "Free shipping"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=50, unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default="percentage")
    value = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    description = models.CharField(max_length=255, blank=True)

    # Limits
    minimum_order_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    maximum_discount_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)
    user_usage_limit = models.PositiveIntegerField(null=True, blank=True)

    # Validity window
    valid_from = models.DateTimeField()
    valid_to = models.DateTimeField()

    # Eligibility (empty list = every item)
    categories = models.JSONField(default=list, blank=True, help_text="Eligible category slugs")
    products = models.JSONField(default=list, blank=True, help_text="Eligible product ids")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def __str__(self):
        return self.code


class CouponUsage(models.Model):
    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name="usages")
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="coupon_usages")
    order = models.ForeignKey("marketplace.Order", on_delete=models.CASCADE, related_name="coupon_usages")
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    used_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-used_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.coupon.code} used on {self.order_id}"
