"""
PayoutService - Vendor payouts

A payout gathers a vendor's unpaid commissions for a period, totals them and
moves through pending -> processing -> completed. Failed or cancelled payouts
release their commissions so the next run can pick them up again.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, money, service_err, service_ok
from vendors.infra.observability.metrics import payout_volume_total, payouts_generated_total, pending_payouts_value
from vendors.models import Vendor, VendorCommission, VendorPayout

ZERO = Decimal("0.00")

PAYABLE_COMMISSION_STATUSES = ["pending", "confirmed"]
OPEN_PAYOUT_STATUSES = ["pending", "processing"]


class PayoutService(BaseService):
    def __init__(self):
        super().__init__()
        config = getattr(settings, "COMMISSION", {})
        self.payout_fee_rate = Decimal(str(config.get("PAYOUT_FEE_RATE", "0.039")))

    def _get_payout(self, payout_id, lock: bool = False) -> Optional[VendorPayout]:
        payouts = VendorPayout.objects.select_related("vendor")
        if lock:
            payouts = payouts.select_for_update()
        try:
            return payouts.get(id=payout_id)
        except (VendorPayout.DoesNotExist, ValidationError, ValueError):
            return None

    def _totals(self, commissions) -> Dict:
        total_sales = money(sum((c.base_amount for c in commissions), ZERO))
        total_commission = money(sum((c.commission_amount for c in commissions), ZERO))
        total_fees = money(total_sales * self.payout_fee_rate)
        return {
            "total_sales": total_sales,
            "total_commission": total_commission,
            "total_fees": total_fees,
            "net_payout": total_sales - total_commission - total_fees,
            "orders_count": len({c.order_id for c in commissions}),
        }

    def _update_pending_gauge(self) -> None:
        total = VendorPayout.objects.filter(status__in=OPEN_PAYOUT_STATUSES).aggregate(total=Sum("net_payout"))
        pending_payouts_value.set(float(total["total"] or 0))

    @BaseService.log_performance
    def calculate_vendor_payout(self, vendor: Vendor, period_start, period_end) -> ServiceResult[Dict]:
        """
        Create a pending payout for the vendor's unpaid commissions in the period.

        total_fees is a flat share of sales; net_payout is what is left after
        commission and fees.

        Returns:
            {"payout": VendorPayout, "commission_details": [...], "summary": {...}}
        """
        if period_end < period_start:
            return service_err(ErrorCodes.INVALID_PERIOD, "period_end must not be before period_start")

        try:
            with transaction.atomic():
                duplicate = (
                    VendorPayout.objects.filter(
                        vendor=vendor, payout_period_start=period_start, payout_period_end=period_end
                    )
                    .exclude(status__in=["failed", "cancelled"])
                    .exists()
                )
                if duplicate:
                    return service_err(
                        ErrorCodes.PAYOUT_ALREADY_EXISTS,
                        f"A payout for {vendor.business_name} already covers this period",
                    )

                commissions = list(
                    VendorCommission.objects.select_for_update()
                    .filter(
                        vendor=vendor,
                        payout__isnull=True,
                        status__in=PAYABLE_COMMISSION_STATUSES,
                        created_at__gte=period_start,
                        created_at__lte=period_end,
                    )
                    .order_by("created_at")
                )
                if not commissions:
                    return service_err(
                        ErrorCodes.NO_PAYABLE_COMMISSIONS, f"No unpaid commissions for {vendor.business_name}"
                    )

                totals = self._totals(commissions)
                total_sales, total_commission = totals["total_sales"], totals["total_commission"]
                total_fees, net_payout = totals["total_fees"], totals["net_payout"]
                orders_count = totals["orders_count"]

                payout = VendorPayout.objects.create(
                    vendor=vendor,
                    payout_period_start=period_start,
                    payout_period_end=period_end,
                    **totals,
                    status="pending",
                    payment_method="bank_transfer",
                )
                VendorCommission.objects.filter(id__in=[c.id for c in commissions]).update(payout=payout)

            payouts_generated_total.labels(status="pending").inc()
            self._update_pending_gauge()
            self.logger.info(
                f"Payout {payout.id} for vendor {vendor.id}: sales={total_sales}, "
                f"commission={total_commission}, net={net_payout}"
            )

            return service_ok(
                {
                    "payout": payout,
                    "commission_details": commissions,
                    "summary": {
                        "total_sales": total_sales,
                        "total_orders": orders_count,
                        "total_commission": total_commission,
                        "total_fees": total_fees,
                        "net_payout": net_payout,
                    },
                }
            )
        except Exception as e:
            self.logger.error(f"Error calculating payout for vendor {vendor.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _change_status(self, payout_id, allowed: List[str], apply) -> ServiceResult[VendorPayout]:
        try:
            with transaction.atomic():
                payout = self._get_payout(payout_id, lock=True)
                if payout is None:
                    return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} not found")
                if payout.status not in allowed:
                    return service_err(
                        ErrorCodes.INVALID_PAYOUT_STATE, f"Payout {payout_id} is '{payout.status}'"
                    )
                apply(payout)
                payout.save()

            payout_volume_total.labels(currency="USD", status=payout.status).inc(float(payout.net_payout))
            self._update_pending_gauge()
            self.logger.info(f"Payout {payout.id} for vendor {payout.vendor_id} is now {payout.status}")
            return service_ok(payout)
        except Exception as e:
            self.logger.error(f"Error updating payout {payout_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def release_commissions(self, commission_ids) -> int:
        """
        Detach commissions from payouts that have not been sent yet and re-total those payouts.

        Called when a claimed commission is cancelled or disputed. A payout left
        with nothing to pay is cancelled. Must run inside the caller's transaction.
        Returns the number of payouts touched.
        """
        payout_ids = set(
            VendorCommission.objects.filter(id__in=list(commission_ids), payout__status__in=OPEN_PAYOUT_STATUSES)
            .values_list("payout_id", flat=True)
        )
        if not payout_ids:
            return 0

        VendorCommission.objects.filter(id__in=list(commission_ids), payout_id__in=payout_ids).update(payout=None)
        for payout in VendorPayout.objects.select_for_update().filter(id__in=payout_ids):
            remaining = list(payout.commissions.filter(status__in=PAYABLE_COMMISSION_STATUSES))
            for field, value in self._totals(remaining).items():
                setattr(payout, field, value)
            if not remaining:
                payout.status = "cancelled"
                payout.notes = "All commissions were cancelled or disputed"
            payout.save()
            self.logger.info(f"Payout {payout.id} re-totalled after releasing commissions: net={payout.net_payout}")

        self._update_pending_gauge()
        return len(payout_ids)

    @BaseService.log_performance
    def process_payout(self, payout_id) -> ServiceResult[VendorPayout]:
        def apply(payout):
            payout.status = "processing"

        return self._change_status(payout_id, ["pending"], apply)

    @BaseService.log_performance
    def complete_payout(self, payout_id, reference: str = "") -> ServiceResult[VendorPayout]:
        """Mark the payout sent; its commissions become paid."""

        def apply(payout):
            payout.status = "completed"
            payout.payment_reference = reference
            payout.processed_at = timezone.now()
            payout.commissions.filter(status__in=PAYABLE_COMMISSION_STATUSES).update(
                status="paid", updated_at=timezone.now()
            )

        return self._change_status(payout_id, ["pending", "processing"], apply)

    @BaseService.log_performance
    def fail_payout(self, payout_id, reason: str = "") -> ServiceResult[VendorPayout]:
        def apply(payout):
            payout.status = "failed"
            payout.notes = reason
            payout.commissions.update(payout=None)

        return self._change_status(payout_id, ["pending", "processing"], apply)

    @BaseService.log_performance
    def cancel_payout(self, payout_id, reason: str = "") -> ServiceResult[VendorPayout]:
        def apply(payout):
            payout.status = "cancelled"
            payout.notes = reason
            payout.commissions.update(payout=None)

        return self._change_status(payout_id, ["pending"], apply)

    def get_payout(self, payout_id, vendor: Optional[Vendor] = None) -> ServiceResult[VendorPayout]:
        payout = self._get_payout(payout_id)
        if payout is None or (vendor is not None and payout.vendor_id != vendor.id):
            return service_err(ErrorCodes.PAYOUT_NOT_FOUND, f"Payout {payout_id} not found")
        return service_ok(payout)

    def list_payouts(self, vendor: Optional[Vendor] = None, status: Optional[str] = None):
        try:
            payouts = VendorPayout.objects.select_related("vendor")
            if vendor is not None:
                payouts = payouts.filter(vendor=vendor)
            if status:
                payouts = payouts.filter(status=status)
            return service_ok(list(payouts))
        except Exception as e:
            self.logger.error(f"Error listing payouts: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
