import uuid
from decimal import Decimal

from django.db import models

from .vendor import Vendor


class VendorPayout(models.Model):
    """
    Money owed to a vendor for one period. Groups the vendor's commissions
    for that period; completing the payout marks them paid.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("failed", "Failed"),
        ("cancelled", "Cancelled"),
    ]

    PAYMENT_METHOD_CHOICES = [
        ("bank_transfer", "Bank Transfer"),
        ("paypal", "PayPal"),
        ("stripe", "Stripe"),
        ("check", "Check"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name="payouts")

    payout_period_start = models.DateTimeField()
    payout_period_end = models.DateTimeField()

    # Summary
    total_sales = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_commission = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_fees = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    net_payout = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    orders_count = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default="bank_transfer")
    payment_reference = models.CharField(max_length=255, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "vendors"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["vendor", "-created_at"]),
            models.Index(fields=["status", "-created_at"]),
        ]

    def __str__(self):
        return f"Payout {self.net_payout} to {self.vendor} ({self.status})"
