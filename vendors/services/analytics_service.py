"""
VendorAnalyticsService - Vendor dashboard report

Builds the analytics report for one vendor and date range from order lines,
products and the commission ledger.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from django.db.models import Count, Min, Sum
from django.db.models.functions import TruncDate

from marketplace.models import OrderItem, Product
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok
from vendors.models import Vendor, VendorCommission

ZERO = Decimal("0.00")
RATE_PLACES = Decimal("0.0001")

EXCLUDED_ORDER_STATUSES = ["cancelled", "refunded"]


def ratio(part, whole) -> Decimal:
    if not whole:
        return Decimal("0.0000")
    return (Decimal(part) / Decimal(whole)).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def growth(current, previous) -> Decimal:
    """Relative change; zero when there is nothing to compare with."""
    if not previous:
        return Decimal("0.0000")
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous)
    return change.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


class VendorAnalyticsService(BaseService):
    def __init__(self, commission_service=None):
        super().__init__()
        self._commission_service = commission_service

    @property
    def commission_service(self):
        if self._commission_service is None:
            from vendors.services.commission_service import CommissionService

            self._commission_service = CommissionService()
        return self._commission_service

    def _sold_items(self, vendor: Vendor, start_date, end_date, include_end: bool = True):
        end_lookup = "order__created_at__lte" if include_end else "order__created_at__lt"
        return OrderItem.objects.filter(
            vendor=vendor, order__created_at__gte=start_date, **{end_lookup: end_date}
        ).exclude(order__status__in=EXCLUDED_ORDER_STATUSES)

    def _sales_totals(self, items) -> Dict:
        totals = items.aggregate(revenue=Sum("total_price"), units=Sum("quantity"))
        return {
            "revenue": money(totals["revenue"]),
            "units": totals["units"] or 0,
            "orders": items.values("order_id").distinct().count(),
        }

    @BaseService.log_performance
    def generate_vendor_analytics(self, vendor: Vendor, start_date, end_date) -> ServiceResult[Dict]:
        """
        Sales, product, customer, commission and financial sections for the
        period, plus a daily revenue trend.

        Growth rates compare against the equally long period right before
        start_date.
        """
        if end_date < start_date:
            return service_err(ErrorCodes.INVALID_PERIOD, "end_date must not be before start_date")

        try:
            items = self._sold_items(vendor, start_date, end_date)
            current = self._sales_totals(items)
            previous_start = start_date - (end_date - start_date)
            # Half-open so an order stamped at start_date is only counted in the current period
            previous = self._sales_totals(self._sold_items(vendor, previous_start, start_date, include_end=False))

            sales_metrics = {
                "total_revenue": current["revenue"],
                "total_orders": current["orders"],
                "average_order_value": money(current["revenue"] / current["orders"]) if current["orders"] else ZERO,
                "total_units_sold": current["units"],
                "revenue_growth_rate": growth(current["revenue"], previous["revenue"]),
                "order_growth_rate": growth(current["orders"], previous["orders"]),
            }

            products = Product.objects.filter(vendor=vendor)
            top_sellers = (
                items.filter(product__isnull=False)
                .values("product_id", "product_name", "product__view_count")
                .annotate(units_sold=Sum("quantity"), revenue=Sum("total_price"))
                .order_by("-revenue")[:5]
            )
            product_performance = {
                "total_products": products.count(),
                "active_products": products.filter(is_active=True).count(),
                "top_selling_products": [
                    {
                        "product_id": str(row["product_id"]),
                        "product_name": row["product_name"],
                        "units_sold": row["units_sold"],
                        "revenue": money(row["revenue"]),
                        "views": row["product__view_count"],
                        "conversion_rate": ratio(row["units_sold"], row["product__view_count"]),
                    }
                    for row in top_sellers
                ],
            }

            buyer_ids = set(items.values_list("order__buyer_id", flat=True).distinct())
            first_orders = (
                OrderItem.objects.filter(vendor=vendor, order__buyer_id__in=buyer_ids)
                .exclude(order__status__in=EXCLUDED_ORDER_STATUSES)
                .values("order__buyer_id")
                .annotate(first_order=Min("order__created_at"))
            )
            new_customers = sum(1 for row in first_orders if row["first_order"] >= start_date)
            customer_analytics = {
                "total_customers": len(buyer_ids),
                "new_customers": new_customers,
                "returning_customers": len(buyer_ids) - new_customers,
                "customer_retention_rate": ratio(len(buyer_ids) - new_customers, len(buyer_ids)),
            }

            commission_result = self.commission_service.get_commission_analytics(vendor, start_date, end_date)
            if not commission_result.ok:
                return commission_result
            commissions = commission_result.value
            commission_analytics = {
                "total_commissions": commissions["total_commissions"],
                "average_commission_rate": commissions["average_commission_rate"],
                "commission_by_category": commissions["category_breakdown"],
            }

            fees = VendorCommission.objects.filter(
                vendor=vendor, created_at__gte=start_date, created_at__lte=end_date
            ).exclude(status="cancelled").aggregate(total=Sum("fees_amount"))["total"]
            platform_fees = money(fees)
            payout_amount = current["revenue"] - commissions["total_commissions"] - platform_fees
            financial_summary = {
                "gross_revenue": current["revenue"],
                "commission_fees": commissions["total_commissions"],
                "platform_fees": platform_fees,
                "payout_amount": payout_amount,
                "profit_margin": ratio(payout_amount, current["revenue"]),
            }

            revenue_trend = [
                {"date": row["date"], "revenue": money(row["revenue"]), "orders": row["orders"]}
                for row in items.annotate(date=TruncDate("order__created_at"))
                .values("date")
                .annotate(revenue=Sum("total_price"), orders=Count("order", distinct=True))
                .order_by("date")
            ]

            return service_ok(
                {
                    "vendor_id": str(vendor.id),
                    "period": {"start_date": start_date, "end_date": end_date},
                    "sales_metrics": sales_metrics,
                    "product_performance": product_performance,
                    "customer_analytics": customer_analytics,
                    "commission_analytics": commission_analytics,
                    "financial_summary": financial_summary,
                    "trends": {"revenue_trend": revenue_trend},
                }
            )
        except Exception as e:
            self.logger.error(f"Error generating analytics for vendor {vendor.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
