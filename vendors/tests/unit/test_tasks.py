from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from django.utils import timezone

from marketplace.services.base import ErrorCodes, service_err, service_ok
from marketplace.tests.factories import OrderItemFactory, ProductFactory
from vendors.models import VendorCommission, VendorPayout
from vendors.tasks import generate_vendor_payouts_task, previous_month_bounds
from vendors.tests.factories import PendingVendorFactory, VendorCommissionFactory, VendorFactory


@pytest.mark.unit
class TestPreviousMonthBounds:
    def test_mid_month(self):
        start, end = previous_month_bounds(datetime(2024, 3, 15, 10, 30, tzinfo=dt_timezone.utc))

        assert start == datetime(2024, 2, 1, tzinfo=dt_timezone.utc)
        assert end == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=dt_timezone.utc)

    def test_january_rolls_back_a_year(self):
        start, end = previous_month_bounds(datetime(2024, 1, 1, tzinfo=dt_timezone.utc))

        assert start == datetime(2023, 12, 1, tzinfo=dt_timezone.utc)
        assert end.date() == datetime(2023, 12, 31).date()


@pytest.mark.unit
@pytest.mark.django_db
class TestGenerateVendorPayoutsTask:
    def test_creates_payouts_for_active_vendors_with_commissions(self):
        paid_vendor = VendorFactory()
        VendorFactory()  # nothing to pay
        PendingVendorFactory()
        commission = VendorCommissionFactory(
            order_item=OrderItemFactory(product=ProductFactory(vendor=paid_vendor, price=Decimal("40.00")), quantity=1),
            status="confirmed",
        )
        start, _ = previous_month_bounds()
        VendorCommission.objects.filter(pk=commission.pk).update(created_at=start + timedelta(days=2))

        result = generate_vendor_payouts_task()

        assert len(result["created"]) == 1
        assert result["skipped"] == 1
        assert result["failed"] == []
        payout = VendorPayout.objects.get(vendor=paid_vendor)
        assert payout.total_sales == Decimal("40.00")

    def test_second_run_skips_existing_payouts(self):
        vendor = VendorFactory()
        commission = VendorCommissionFactory(
            order_item=OrderItemFactory(product=ProductFactory(vendor=vendor), quantity=1)
        )
        start, _ = previous_month_bounds()
        VendorCommission.objects.filter(pk=commission.pk).update(created_at=start + timedelta(hours=1))

        generate_vendor_payouts_task()
        result = generate_vendor_payouts_task()

        assert result["created"] == []
        assert result["skipped"] == 1
        assert VendorPayout.objects.filter(vendor=vendor).count() == 1

    @patch("infrastructure.container.container.payout_service")
    def test_reports_failures(self, mock_payout_service):
        vendor = VendorFactory()
        service = Mock()
        service.calculate_vendor_payout.return_value = service_err(ErrorCodes.INTERNAL_ERROR, "boom")
        mock_payout_service.return_value = service

        result = generate_vendor_payouts_task()

        assert result["failed"] == [str(vendor.id)]

    @patch("infrastructure.container.container.payout_service")
    def test_unexpected_errors_propagate(self, mock_payout_service):
        VendorFactory()
        service = Mock()
        service.calculate_vendor_payout.side_effect = RuntimeError("database gone")
        mock_payout_service.return_value = service

        with pytest.raises(RuntimeError):
            generate_vendor_payouts_task()

    @patch("infrastructure.container.container.payout_service")
    def test_uses_previous_month(self, mock_payout_service):
        VendorFactory()
        service = Mock()
        service.calculate_vendor_payout.return_value = service_ok({"payout": Mock(id="p-1")})
        mock_payout_service.return_value = service

        generate_vendor_payouts_task()

        _, period_start, period_end = service.calculate_vendor_payout.call_args.args
        assert period_end < timezone.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        assert period_start.day == 1
