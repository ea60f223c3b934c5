from decimal import Decimal

from django.db import models
from django.utils import timezone

from marketplace.models import Order, OrderItem, Product

from .vendor import Vendor


class CommissionRule(models.Model):
    """
    How much the platform keeps from a vendor's sale.

    A rule without vendor applies to every vendor; a rule without
    product_category applies to every category. tiered_rates is a list of
    {"min_sales", "max_sales", "rate"} dicts, max_sales may be null.
    """

    COMMISSION_TYPE_CHOICES = [
        ("percentage", "Percentage"),
        ("flat_fee", "Flat Fee"),
        ("tiered", "Tiered"),
    ]

    vendor = models.ForeignKey(
        Vendor, on_delete=models.CASCADE, null=True, blank=True, related_name="commission_rules"
    )
    product_category = models.CharField(max_length=100, blank=True, help_text="Category name; blank = all")
    commission_type = models.CharField(max_length=20, choices=COMMISSION_TYPE_CHOICES, default="percentage")
    commission_rate = models.DecimalField(
        max_digits=10, decimal_places=4, help_text="Rate for percentage/tiered rules, amount for flat_fee"
    )
    min_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    max_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    tiered_rates = models.JSONField(default=list, blank=True)
    effective_date = models.DateTimeField(default=timezone.now)
    expiry_date = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "vendors"
        ordering = ["-created_at"]

    @property
    def specificity(self):
        return (2 if self.vendor_id else 0) + (1 if self.product_category else 0)

    def __str__(self):
        scope = self.vendor.business_name if self.vendor_id else "all vendors"
        return f"{self.get_commission_type_display()} {self.commission_rate} ({scope})"


class VendorCommission(models.Model):
    """Commission recorded for one vendor order line."""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("confirmed", "Confirmed"),
        ("paid", "Paid"),
        ("disputed", "Disputed"),
        ("cancelled", "Cancelled"),
    ]

    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name="commissions")
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="vendor_commissions")
    order_item = models.OneToOneField(
        OrderItem, on_delete=models.CASCADE, null=True, blank=True, related_name="commission"
    )
    product = models.ForeignKey(
        Product, on_delete=models.SET_NULL, null=True, blank=True, related_name="vendor_commissions"
    )

    commission_type = models.CharField(
        max_length=20, choices=CommissionRule.COMMISSION_TYPE_CHOICES, default="percentage"
    )
    commission_rate = models.DecimalField(max_digits=10, decimal_places=4)
    commission_amount = models.DecimalField(max_digits=10, decimal_places=2)
    base_amount = models.DecimalField(max_digits=10, decimal_places=2)
    fees_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    net_payout = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    dispute_reason = models.TextField(blank=True)
    applied_rules = models.JSONField(default=list, blank=True)
    payout = models.ForeignKey(
        "vendors.VendorPayout", on_delete=models.SET_NULL, null=True, blank=True, related_name="commissions"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "vendors"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["vendor", "status"]),
            models.Index(fields=["vendor", "-created_at"]),
        ]

    def __str__(self):
        return f"Commission {self.commission_amount} on {self.order.order_number} ({self.status})"
