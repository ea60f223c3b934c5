import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

User = get_user_model()


class Vendor(models.Model):
    """Seller account attached to a user; products and order items point here."""

    BUSINESS_TYPE_CHOICES = [
        ("individual", "Individual"),
        ("company", "Company"),
        ("corporation", "Corporation"),
        ("partnership", "Partnership"),
    ]

    STATUS_CHOICES = [
        ("pending", "Pending Review"),
        ("under_review", "Under Review"),
        ("active", "Active"),
        ("suspended", "Suspended"),
        ("banned", "Banned"),
        ("inactive", "Inactive"),
    ]

    VERIFICATION_STATUS_CHOICES = [
        ("unverified", "Unverified"),
        ("pending", "Pending"),
        ("verified", "Verified"),
        ("rejected", "Rejected"),
    ]

    PERFORMANCE_TIER_CHOICES = [
        ("bronze", "Bronze"),
        ("silver", "Silver"),
        ("gold", "Gold"),
        ("platinum", "Platinum"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="vendor_profile")

    # Business information
    business_name = models.CharField(max_length=200)
    business_type = models.CharField(max_length=20, choices=BUSINESS_TYPE_CHOICES, default="individual")
    description = models.TextField(blank=True)
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=30, blank=True)
    website = models.URLField(blank=True)
    business_address = models.JSONField(default=dict, blank=True)
    business_categories = models.JSONField(default=list, blank=True, help_text="Category names the vendor sells in")

    # Payout details
    tax_id = models.CharField(max_length=50, blank=True)
    bank_account_holder = models.CharField(max_length=200, blank=True)
    bank_name = models.CharField(max_length=100, blank=True)
    bank_account_number = models.CharField(max_length=50, blank=True)

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
        help_text="Overrides the commission rules when set (0.12 = 12%)",
    )

    # Review workflow
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    verification_status = models.CharField(max_length=20, choices=VERIFICATION_STATUS_CHOICES, default="unverified")
    performance_tier = models.CharField(max_length=20, choices=PERFORMANCE_TIER_CHOICES, default="bronze")
    admin_notes = models.TextField(blank=True, help_text="Admin notes for review")
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "vendors"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "-created_at"]),
            models.Index(fields=["business_name"]),
        ]

    @property
    def is_active(self):
        return self.status == "active"

    def __str__(self):
        return self.business_name
