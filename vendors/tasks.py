"""
Vendor Celery Tasks

- Generate monthly payouts for every active vendor
"""

import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from marketplace.services.base import ErrorCodes

logger = logging.getLogger(__name__)


def previous_month_bounds(now=None):
    """First instant of last month and the last instant before this month."""
    now = now or timezone.now()
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    period_end = this_month - timedelta(microseconds=1)
    period_start = period_end.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return period_start, period_end


@shared_task(name="vendors.tasks.generate_vendor_payouts_task", queue="vendor_tasks")
def generate_vendor_payouts_task():
    """Create a pending payout per active vendor for the previous calendar month."""
    from infrastructure.container import container
    from vendors.models import Vendor

    period_start, period_end = previous_month_bounds()
    logger.info(f"Generating vendor payouts for {period_start:%Y-%m-%d} - {period_end:%Y-%m-%d}...")

    payout_service = container.payout_service()
    created, skipped, failed = [], 0, []
    try:
        for vendor in Vendor.objects.filter(status="active"):
            result = payout_service.calculate_vendor_payout(vendor, period_start, period_end)
            if result.ok:
                created.append(str(result.value["payout"].id))
            elif result.error in (ErrorCodes.NO_PAYABLE_COMMISSIONS, ErrorCodes.PAYOUT_ALREADY_EXISTS):
                skipped += 1
            else:
                logger.error(f"Payout generation failed for vendor {vendor.id}: {result.error_detail}")
                failed.append(str(vendor.id))

        logger.info(f"Vendor payouts: {len(created)} created, {skipped} skipped, {len(failed)} failed")
        return {"created": created, "skipped": skipped, "failed": failed}

    except Exception as e:
        logger.error(f"Error in generate_vendor_payouts_task: {e}", exc_info=True)
        raise
