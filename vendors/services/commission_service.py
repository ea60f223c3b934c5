"""
CommissionService - Platform commission on vendor sales

Picks the commission rule for an order line, adjusts it for the vendor's
performance tier and volume, and records one VendorCommission per vendor
order line. Commission status follows the order:

    order confirmed  -> commission pending
    order delivered  -> commission confirmed
    order cancelled  -> commission cancelled
    payout completed -> commission paid
"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, F, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from marketplace.models import Order, OrderItem, ProductReview
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok
from vendors.infra.observability.metrics import (
    commission_amount,
    commission_status_changes_total,
    commissions_recorded_total,
)
from vendors.models import CommissionRule, Vendor, VendorCommission

ZERO = Decimal("0.00")
RATE_PLACES = Decimal("0.0001")
PAYABLE_STATUSES = ("pending", "confirmed")

PERFORMANCE_WINDOW_DAYS = 30
SHIPPING_SLA = timedelta(days=2)

# Used when no stored rule matches an order line
DEFAULT_COMMISSION_RULES = [
    {
        "id": "default-percentage",
        "vendor_id": None,
        "product_category": "",
        "commission_type": "percentage",
        "commission_rate": Decimal("0.15"),
    },
    {
        "id": "electronics-special",
        "vendor_id": None,
        "product_category": "Electronics",
        "commission_type": "percentage",
        "commission_rate": Decimal("0.08"),
    },
    {
        "id": "fashion-premium",
        "vendor_id": None,
        "product_category": "Clothing & Fashion",
        "commission_type": "percentage",
        "commission_rate": Decimal("0.20"),
    },
]

RULE_FIELDS = {
    "vendor",
    "product_category",
    "commission_type",
    "commission_rate",
    "min_amount",
    "max_amount",
    "tiered_rates",
    "effective_date",
    "expiry_date",
    "is_active",
}


@dataclass
class CommissionInput:
    vendor_id: Any
    base_amount: Decimal
    quantity: int = 1
    product_category: str = ""
    product_id: Optional[Any] = None
    order_id: Optional[Any] = None


def rule_to_dict(rule: CommissionRule) -> Dict[str, Any]:
    return {
        "id": str(rule.pk),
        "vendor_id": rule.vendor_id,
        "product_category": rule.product_category,
        "commission_type": rule.commission_type,
        "commission_rate": rule.commission_rate,
        "min_amount": rule.min_amount,
        "max_amount": rule.max_amount,
        "tiered_rates": rule.tiered_rates or [],
        "effective_date": rule.effective_date,
        "expiry_date": rule.expiry_date,
        "is_active": rule.is_active,
    }


def rule_matches(rule: Dict[str, Any], calculation: CommissionInput, now) -> bool:
    if not rule.get("is_active", True):
        return False
    if rule.get("vendor_id") and str(rule["vendor_id"]) != str(calculation.vendor_id):
        return False
    if rule.get("product_category") and rule["product_category"] != calculation.product_category:
        return False

    base = calculation.base_amount
    if rule.get("min_amount") is not None and base < rule["min_amount"]:
        return False
    if rule.get("max_amount") is not None and base > rule["max_amount"]:
        return False

    if rule.get("effective_date") and rule["effective_date"] > now:
        return False
    if rule.get("expiry_date") and rule["expiry_date"] < now:
        return False
    return True


def rule_specificity(rule: Dict[str, Any]) -> int:
    return (2 if rule.get("vendor_id") else 0) + (1 if rule.get("product_category") else 0)


def select_rule(rules: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Most specific rule; on a tie the earlier one wins."""
    best = rules[0]
    for rule in rules[1:]:
        if rule_specificity(rule) > rule_specificity(best):
            best = rule
    return best


def base_commission_for(rule: Dict[str, Any], base_amount: Decimal) -> Decimal:
    rate = Decimal(str(rule["commission_rate"]))
    commission_type = rule["commission_type"]

    if commission_type == "flat_fee":
        return rate
    if commission_type == "tiered":
        for tier in rule.get("tiered_rates") or []:
            min_sales = Decimal(str(tier.get("min_sales", 0)))
            max_sales = tier.get("max_sales")
            if base_amount >= min_sales and (max_sales is None or base_amount <= Decimal(str(max_sales))):
                return base_amount * Decimal(str(tier["rate"]))
    return base_amount * rate


class CommissionService(BaseService):
    """
    Commission rules, calculation and the vendor commission ledger.

    Monetary results are Decimals rounded half-up to cents; rates keep four
    places.
    """

    def __init__(self, payout_service=None):
        super().__init__()
        self._payout_service = payout_service
        config = getattr(settings, "COMMISSION", {})
        self.processing_rate = Decimal(str(config.get("PAYMENT_PROCESSING_RATE", "0.029")))
        self.platform_fee_rate = Decimal(str(config.get("PLATFORM_FEE_RATE", "0.01")))
        self.platform_fee_cap = Decimal(str(config.get("PLATFORM_FEE_CAP", "5.00")))
        self.transaction_fee = Decimal(str(config.get("TRANSACTION_FEE", "0.30")))
        self.tier_bonuses = {
            tier: Decimal(str(bonus))
            for tier, bonus in config.get(
                "PERFORMANCE_TIER_BONUS", {"bronze": 0, "silver": "0.01", "gold": "0.02", "platinum": "0.03"}
            ).items()
        }
        self.volume_discount_tiers = sorted(
            config.get("VOLUME_DISCOUNT_TIERS", []), key=lambda tier: Decimal(str(tier["min_sales"]))
        )

    # Rules

    def find_applicable_rules(self, calculation: CommissionInput, vendor: Optional[Vendor] = None) -> List[Dict]:
        """
        Rules matching vendor, category, amount and date.

        Stored rules come first (newest first); the built-in defaults are only
        consulted when no stored rule matches, and default-percentage is the
        last resort. A vendor's commission_rate override counts as a
        vendor-specific percentage rule.
        """
        now = timezone.now()
        stored = [
            rule_to_dict(rule)
            for rule in CommissionRule.objects.filter(is_active=True)
            .filter(Q(vendor__isnull=True) | Q(vendor_id=calculation.vendor_id))
            .order_by("-created_at", "-pk")
        ]
        rules = [rule for rule in stored if rule_matches(rule, calculation, now)]

        if vendor is not None and vendor.commission_rate is not None:
            rules.append(
                {
                    "id": f"vendor-rate-{vendor.id}",
                    "vendor_id": vendor.id,
                    "product_category": "",
                    "commission_type": "percentage",
                    "commission_rate": vendor.commission_rate,
                }
            )

        if not rules:
            rules = [rule for rule in DEFAULT_COMMISSION_RULES if rule_matches(rule, calculation, now)]
        return rules or [DEFAULT_COMMISSION_RULES[0]]

    def get_commission_rules(self, vendor: Optional[Vendor] = None) -> ServiceResult[List[CommissionRule]]:
        """Stored rules; with a vendor, only global rules and that vendor's own."""
        try:
            rules = CommissionRule.objects.select_related("vendor")
            if vendor is not None:
                rules = rules.filter(Q(vendor__isnull=True) | Q(vendor=vendor))
            return service_ok(list(rules))
        except Exception as e:
            self.logger.error(f"Error listing commission rules: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _validate_rule(self, rule: CommissionRule) -> Optional[str]:
        if rule.commission_type not in dict(CommissionRule.COMMISSION_TYPE_CHOICES):
            return f"Unknown commission type '{rule.commission_type}'"
        if rule.commission_rate is None or Decimal(str(rule.commission_rate)) < 0:
            return "commission_rate must be zero or positive"
        if rule.commission_type != "flat_fee" and Decimal(str(rule.commission_rate)) > 1:
            return "commission_rate must be a fraction between 0 and 1"
        if rule.min_amount is not None and rule.max_amount is not None and rule.min_amount > rule.max_amount:
            return "min_amount cannot exceed max_amount"
        if rule.expiry_date and rule.effective_date and rule.expiry_date < rule.effective_date:
            return "expiry_date cannot be before effective_date"
        for tier in rule.tiered_rates or []:
            if "rate" not in tier or "min_sales" not in tier:
                return "Each tier needs min_sales and rate"
        return None

    @BaseService.log_performance
    def create_commission_rule(self, data: Dict[str, Any]) -> ServiceResult[CommissionRule]:
        try:
            rule = CommissionRule(**{field: data[field] for field in RULE_FIELDS if field in data})
            error = self._validate_rule(rule)
            if error:
                return service_err(ErrorCodes.VALIDATION_ERROR, error)
            rule.save()
            self.logger.info(f"Created commission rule {rule.pk} ({rule.commission_type} {rule.commission_rate})")
            return service_ok(rule)
        except Exception as e:
            self.logger.error(f"Error creating commission rule: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def update_commission_rule(self, rule_id, updates: Dict[str, Any]) -> ServiceResult[CommissionRule]:
        try:
            rule = CommissionRule.objects.get(pk=rule_id)
        except (CommissionRule.DoesNotExist, ValueError):
            return service_err(ErrorCodes.COMMISSION_RULE_NOT_FOUND, f"Commission rule {rule_id} not found")

        try:
            for field in RULE_FIELDS:
                if field in updates:
                    setattr(rule, field, updates[field])
            error = self._validate_rule(rule)
            if error:
                return service_err(ErrorCodes.VALIDATION_ERROR, error)
            rule.save()
            return service_ok(rule)
        except Exception as e:
            self.logger.error(f"Error updating commission rule {rule_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Calculation

    def calculate_performance_bonus(self, base_commission: Decimal, performance: Dict[str, Any]) -> Decimal:
        bonus_rate = self.tier_bonuses.get(performance["performance_tier"], ZERO)
        metrics = performance["metrics"]
        if metrics["customer_rating"] >= Decimal("4.8"):
            bonus_rate += Decimal("0.005")
        if metrics["on_time_shipping_rate"] >= Decimal("0.98"):
            bonus_rate += Decimal("0.005")
        if metrics["return_rate"] <= Decimal("0.02"):
            bonus_rate += Decimal("0.003")
        return base_commission * bonus_rate

    def calculate_volume_discount(self, base_commission: Decimal, trailing_sales: Decimal) -> Decimal:
        """Highest configured tier the vendor's trailing sales reach; no tiers means no discount."""
        discount_rate = ZERO
        for tier in self.volume_discount_tiers:
            if trailing_sales >= Decimal(str(tier["min_sales"])):
                discount_rate = Decimal(str(tier["discount_rate"]))
        return base_commission * discount_rate

    def calculate_platform_fees(self, base_amount: Decimal) -> Dict[str, Decimal]:
        return {
            "payment_processing": money(base_amount * self.processing_rate),
            "platform_fee": money(min(base_amount * self.platform_fee_rate, self.platform_fee_cap)),
            "transaction_fee": money(self.transaction_fee),
        }

    def _calculate(self, calculation: CommissionInput, vendor: Optional[Vendor], performance: Dict) -> Dict:
        base_amount = money(calculation.base_amount)
        calculation.base_amount = base_amount

        rule = select_rule(self.find_applicable_rules(calculation, vendor))
        base_commission = base_commission_for(rule, base_amount)
        performance_bonus = self.calculate_performance_bonus(base_commission, performance)
        volume_discount = self.calculate_volume_discount(base_commission, performance["metrics"]["total_sales"])
        fees = self.calculate_platform_fees(base_amount)

        total_commission = money(base_commission + performance_bonus - volume_discount)
        total_fees = sum(fees.values(), ZERO)
        net_payout = max(ZERO, base_amount - total_commission - total_fees)

        return {
            "commission_amount": total_commission,
            "commission_rate": Decimal(str(rule["commission_rate"])).quantize(RATE_PLACES, rounding=ROUND_HALF_UP),
            "commission_type": rule["commission_type"],
            "base_amount": base_amount,
            "net_payout": money(net_payout),
            "breakdown": {
                "base_commission": money(base_commission),
                "performance_bonus": money(performance_bonus),
                "volume_discount": money(volume_discount),
                "fees": fees,
            },
            "applied_rules": [rule["id"]],
        }

    @BaseService.log_performance
    def calculate_commission(self, calculation: CommissionInput) -> ServiceResult[Dict]:
        """
        Commission for one order line.

        Example:
            >>> result = commission_service.calculate_commission(
            ...     CommissionInput(vendor_id=vendor.id, base_amount=Decimal("100.00"), product_category="Electronics")
            ... )
            >>> result.value["commission_amount"]
            Decimal('8.00')
        """
        if calculation.base_amount is None or Decimal(str(calculation.base_amount)) < 0:
            return service_err(ErrorCodes.INVALID_INPUT, "base_amount must be zero or positive")

        try:
            vendor = Vendor.objects.get(id=calculation.vendor_id)
        except (Vendor.DoesNotExist, ValidationError, ValueError):
            return service_err(ErrorCodes.VENDOR_NOT_FOUND, f"Vendor {calculation.vendor_id} not found")

        try:
            performance = self._performance_for(vendor)
            return service_ok(self._calculate(calculation, vendor, performance))
        except Exception as e:
            self.logger.error(f"Error calculating commission for vendor {calculation.vendor_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Performance

    def _performance_for(self, vendor: Vendor) -> Dict[str, Any]:
        end = timezone.now()
        start = end - timedelta(days=PERFORMANCE_WINDOW_DAYS)

        orders = Order.objects.filter(items__vendor=vendor, created_at__gte=start, created_at__lte=end).distinct()
        total_orders = orders.count()
        counts = {
            row["status"]: row["count"]
            for row in Order.objects.filter(id__in=orders.values("id")).values("status").annotate(count=Count("id"))
        }

        sales_items = OrderItem.objects.filter(
            vendor=vendor, order__created_at__gte=start, order__created_at__lte=end
        ).exclude(order__status__in=["cancelled", "refunded"])
        total_sales = money(sales_items.aggregate(total=Sum("total_price"))["total"])
        sold_orders = sales_items.values("order_id").distinct().count()

        shipped = Order.objects.filter(id__in=orders.values("id"), shipped_at__isnull=False)
        shipped_count = shipped.count()
        on_time = shipped.filter(shipped_at__lte=F("created_at") + SHIPPING_SLA).count()

        rating = ProductReview.objects.filter(product__vendor=vendor, is_active=True).aggregate(avg=Avg("rating"))[
            "avg"
        ]

        def ratio(part, whole):
            if not whole:
                return ZERO
            return (Decimal(part) / Decimal(whole)).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)

        return {
            "vendor_id": str(vendor.id),
            "period": {"start_date": start, "end_date": end},
            "metrics": {
                "total_sales": total_sales,
                "total_orders": total_orders,
                "average_order_value": money(total_sales / sold_orders) if sold_orders else ZERO,
                "customer_rating": money(rating) if rating else ZERO,
                "return_rate": ratio(counts.get("refunded", 0), total_orders),
                "cancellation_rate": ratio(counts.get("cancelled", 0), total_orders),
                "on_time_shipping_rate": ratio(on_time, shipped_count),
            },
            "performance_tier": vendor.performance_tier,
        }

    def get_vendor_performance(self, vendor: Vendor) -> ServiceResult[Dict]:
        """Trailing 30-day sales, rating, return/cancellation and shipping rates."""
        try:
            return service_ok(self._performance_for(vendor))
        except Exception as e:
            self.logger.error(f"Error computing performance for vendor {vendor.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Ledger

    @BaseService.log_performance
    def process_order_commission(self, order: Order) -> ServiceResult[List[VendorCommission]]:
        """
        Record a pending commission for each vendor line of the order.

        Lines that already carry a commission are skipped, so confirming the
        same order twice does not double count.
        """
        try:
            created = []
            with transaction.atomic():
                items = (
                    order.items.filter(vendor__isnull=False, commission__isnull=True)
                    .select_related("vendor", "product")
                    .order_by("id")
                )
                performance_cache = {}
                for item in items:
                    vendor = item.vendor
                    if vendor.id not in performance_cache:
                        performance_cache[vendor.id] = self._performance_for(vendor)

                    calculation = self._calculate(
                        CommissionInput(
                            vendor_id=vendor.id,
                            base_amount=item.total_price,
                            quantity=item.quantity,
                            product_category=item.category_name,
                            product_id=item.product_id,
                            order_id=order.id,
                        ),
                        vendor,
                        performance_cache[vendor.id],
                    )
                    fees_amount = sum(calculation["breakdown"]["fees"].values(), ZERO)
                    created.append(
                        VendorCommission.objects.create(
                            vendor=vendor,
                            order=order,
                            order_item=item,
                            product_id=item.product_id,
                            commission_type=calculation["commission_type"],
                            commission_rate=calculation["commission_rate"],
                            commission_amount=calculation["commission_amount"],
                            base_amount=calculation["base_amount"],
                            fees_amount=fees_amount,
                            net_payout=calculation["net_payout"],
                            applied_rules=calculation["applied_rules"],
                            status="pending",
                        )
                    )

            for commission in created:
                commissions_recorded_total.labels(commission_type=commission.commission_type).inc()
                commission_amount.observe(float(commission.commission_amount))
            if created:
                self.logger.info(f"Recorded {len(created)} commissions for order {order.order_number}")
            return service_ok(created)

        except Exception as e:
            self.logger.error(f"Error recording commissions for order {order.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @property
    def payout_service(self):
        if self._payout_service is None:
            from vendors.services.payout_service import PayoutService

            self._payout_service = PayoutService()
        return self._payout_service

    def _transition(self, order_ids, from_statuses: List[str], to_status: str) -> ServiceResult[int]:
        try:
            with transaction.atomic():
                commissions = VendorCommission.objects.select_for_update().filter(
                    order_id__in=order_ids, status__in=from_statuses
                )
                commission_ids = list(commissions.values_list("id", flat=True))
                updated = VendorCommission.objects.filter(id__in=commission_ids).update(
                    status=to_status, updated_at=timezone.now()
                )
                if to_status not in PAYABLE_STATUSES:
                    self.payout_service.release_commissions(commission_ids)
            if updated:
                commission_status_changes_total.labels(status=to_status).inc(updated)
                self.logger.info(f"Marked {updated} commissions {to_status} for orders {list(order_ids)}")
            return service_ok(updated)
        except Exception as e:
            self.logger.error(f"Error marking commissions {to_status}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def confirm_commissions(self, order_ids) -> ServiceResult[int]:
        """Pending commissions of delivered orders become confirmed."""
        return self._transition(order_ids, ["pending"], "confirmed")

    def cancel_commissions(self, order_ids) -> ServiceResult[int]:
        """Unpaid commissions of cancelled or refunded orders are voided."""
        return self._transition(order_ids, ["pending", "confirmed", "disputed"], "cancelled")

    @BaseService.log_performance
    def dispute_commission(
        self, commission_id, reason: str, vendor: Optional[Vendor] = None
    ) -> ServiceResult[VendorCommission]:
        if not reason:
            return service_err(ErrorCodes.INVALID_INPUT, "A dispute reason is required")

        try:
            with transaction.atomic():
                try:
                    commission = VendorCommission.objects.select_for_update().get(pk=commission_id)
                except (VendorCommission.DoesNotExist, ValueError):
                    return service_err(ErrorCodes.COMMISSION_NOT_FOUND, f"Commission {commission_id} not found")

                if vendor is not None and commission.vendor_id != vendor.id:
                    return service_err(ErrorCodes.PERMISSION_DENIED, "This commission belongs to another vendor")
                if commission.status not in ("pending", "confirmed"):
                    return service_err(
                        ErrorCodes.VALIDATION_ERROR, f"Cannot dispute a commission in status '{commission.status}'"
                    )

                commission.status = "disputed"
                commission.dispute_reason = reason
                commission.save(update_fields=["status", "dispute_reason", "updated_at"])
                self.payout_service.release_commissions([commission.id])

            commission_status_changes_total.labels(status="disputed").inc()
            self.logger.warning(f"Commission {commission_id} disputed by vendor {commission.vendor_id}: {reason}")
            return service_ok(commission)
        except Exception as e:
            self.logger.error(f"Error disputing commission {commission_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _commission_queryset(self, vendor=None, statuses=None, start_date=None, end_date=None):
        commissions = VendorCommission.objects.select_related("order", "order_item", "vendor")
        if vendor is not None:
            commissions = commissions.filter(vendor=vendor)
        if statuses:
            commissions = commissions.filter(status__in=[statuses] if isinstance(statuses, str) else statuses)
        if start_date:
            commissions = commissions.filter(created_at__gte=start_date)
        if end_date:
            commissions = commissions.filter(created_at__lte=end_date)
        return commissions

    def get_vendor_commissions(
        self, vendor: Optional[Vendor] = None, statuses=None, start_date=None, end_date=None
    ) -> ServiceResult[List[VendorCommission]]:
        """Commission lines newest first; all vendors when vendor is None."""
        try:
            commissions = self._commission_queryset(vendor, statuses, start_date, end_date).order_by("-created_at")
            return service_ok(list(commissions))
        except Exception as e:
            self.logger.error(f"Error listing commissions: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    # Analytics

    @BaseService.log_performance
    def get_commission_analytics(self, vendor: Optional[Vendor] = None, start_date=None, end_date=None):
        """Totals, top vendors, daily trend and per-category breakdown of non-cancelled commissions."""
        try:
            commissions = self._commission_queryset(vendor, None, start_date, end_date).exclude(status="cancelled")
            totals = commissions.aggregate(
                total_commission=Sum("commission_amount"),
                total_sales=Sum("base_amount"),
                count=Count("id"),
            )
            total_commission = money(totals["total_commission"])
            total_sales = money(totals["total_sales"])

            def rate(commission, sales):
                if not sales:
                    return ZERO
                return (Decimal(commission) / Decimal(sales)).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)

            top_vendors = [
                {
                    "vendor_id": str(row["vendor_id"]),
                    "business_name": row["vendor__business_name"],
                    "total_commission": money(row["total_commission"]),
                    "sales_volume": money(row["sales_volume"]),
                    "commission_rate": rate(row["total_commission"], row["sales_volume"]),
                }
                for row in commissions.values("vendor_id", "vendor__business_name")
                .annotate(total_commission=Sum("commission_amount"), sales_volume=Sum("base_amount"))
                .order_by("-total_commission")[:5]
            ]

            trends = [
                {
                    "date": row["date"],
                    "total_commission": money(row["total_commission"]),
                    "order_count": row["order_count"],
                }
                for row in commissions.annotate(date=TruncDate("created_at"))
                .values("date")
                .annotate(total_commission=Sum("commission_amount"), order_count=Count("order", distinct=True))
                .order_by("date")
            ]

            categories = [
                {
                    "category": row["order_item__category_name"] or "Uncategorized",
                    "commission_amount": money(row["commission_amount"]),
                    "order_count": row["order_count"],
                    "average_rate": rate(row["commission_amount"], row["sales"]),
                }
                for row in commissions.values("order_item__category_name")
                .annotate(
                    commission_amount=Sum("commission_amount"),
                    sales=Sum("base_amount"),
                    order_count=Count("order", distinct=True),
                )
                .order_by("-commission_amount")
            ]

            return service_ok(
                {
                    "total_commissions": total_commission,
                    "total_sales": total_sales,
                    "commission_count": totals["count"],
                    "average_commission_rate": rate(total_commission, total_sales),
                    "top_performing_vendors": top_vendors,
                    "commission_trends": trends,
                    "category_breakdown": categories,
                }
            )
        except Exception as e:
            self.logger.error(f"Error building commission analytics: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
