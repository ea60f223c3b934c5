import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    CategoryFactory,
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ProductReviewFactory,
)
from vendors.models import VendorCommission
from vendors.services.commission_service import (
    CommissionInput,
    CommissionService,
    base_commission_for,
    select_rule,
)
from vendors.tests.factories import CommissionRuleFactory, VendorCommissionFactory, VendorFactory

HUNDRED = Decimal("100.00")


@pytest.mark.unit
class TestRuleHelpers:
    def test_select_rule_prefers_specific(self):
        rules = [
            {"id": "global", "vendor_id": None, "product_category": ""},
            {"id": "category", "vendor_id": None, "product_category": "Lamps"},
            {"id": "vendor", "vendor_id": "v1", "product_category": ""},
        ]
        assert select_rule(rules)["id"] == "vendor"

    def test_select_rule_tie_keeps_first(self):
        rules = [
            {"id": "newer", "vendor_id": None, "product_category": "Lamps"},
            {"id": "older", "vendor_id": None, "product_category": "Lamps"},
        ]
        assert select_rule(rules)["id"] == "newer"

    def test_base_commission_types(self):
        assert base_commission_for({"commission_type": "percentage", "commission_rate": "0.10"}, HUNDRED) == Decimal(
            "10.00"
        )
        assert base_commission_for({"commission_type": "flat_fee", "commission_rate": "2.50"}, HUNDRED) == Decimal(
            "2.50"
        )

        tiered = {
            "commission_type": "tiered",
            "commission_rate": "0.15",
            "tiered_rates": [
                {"min_sales": 0, "max_sales": 50, "rate": "0.10"},
                {"min_sales": 50, "max_sales": None, "rate": "0.05"},
            ],
        }
        assert base_commission_for(tiered, Decimal("40.00")) == Decimal("4.00")
        assert base_commission_for(tiered, HUNDRED) == Decimal("5.00")


@pytest.mark.unit
@pytest.mark.django_db
class TestCommissionCalculation:
    """A vendor without refunds earns the 0.3% low-return bonus on top of its tier bonus."""

    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = CommissionService()
        self.vendor = VendorFactory(performance_tier="bronze")

    def calculate(self, base_amount=HUNDRED, category="", vendor=None):
        return self.service.calculate_commission(
            CommissionInput(vendor_id=(vendor or self.vendor).id, base_amount=base_amount, product_category=category)
        )

    def test_default_rate(self):
        result = self.calculate()

        assert result.ok
        value = result.value
        assert value["applied_rules"] == ["default-percentage"]
        assert value["commission_rate"] == Decimal("0.1500")
        assert value["breakdown"]["base_commission"] == Decimal("15.00")
        # 15.00 * 0.003 = 0.045
        assert value["breakdown"]["performance_bonus"] == Decimal("0.05")
        assert value["commission_amount"] == Decimal("15.05")
        assert value["breakdown"]["fees"] == {
            "payment_processing": Decimal("2.90"),
            "platform_fee": Decimal("1.00"),
            "transaction_fee": Decimal("0.30"),
        }
        # 100 - 15.05 - 4.20
        assert value["net_payout"] == Decimal("80.75")

    def test_category_default_rule(self):
        result = self.calculate(category="Electronics")
        assert result.value["applied_rules"] == ["electronics-special"]
        # 8.00 + 0.024
        assert result.value["commission_amount"] == Decimal("8.02")

    def test_stored_rule_takes_precedence_over_defaults(self):
        rule = CommissionRuleFactory(commission_rate=Decimal("0.10"))

        result = self.calculate(category="Electronics")

        assert result.value["applied_rules"] == [str(rule.pk)]
        assert result.value["commission_amount"] == Decimal("10.03")

    def test_vendor_rule_beats_category_rule(self):
        CommissionRuleFactory(product_category="Lamps", commission_rate=Decimal("0.12"))
        vendor_rule = CommissionRuleFactory(vendor=self.vendor, commission_rate=Decimal("0.06"))

        result = self.calculate(category="Lamps")

        assert result.value["applied_rules"] == [str(vendor_rule.pk)]

    def test_other_vendors_rule_is_ignored(self):
        CommissionRuleFactory(vendor=VendorFactory(), commission_rate=Decimal("0.01"))
        assert self.calculate().value["applied_rules"] == ["default-percentage"]

    def test_expired_and_amount_bounded_rules_are_ignored(self):
        CommissionRuleFactory(commission_rate=Decimal("0.01"), expiry_date=timezone.now() - timedelta(days=1))
        CommissionRuleFactory(commission_rate=Decimal("0.02"), min_amount=Decimal("500.00"))

        assert self.calculate().value["applied_rules"] == ["default-percentage"]

    def test_vendor_commission_rate_override(self):
        self.vendor.commission_rate = Decimal("0.05")
        self.vendor.save()

        result = self.calculate()

        assert result.value["applied_rules"] == [f"vendor-rate-{self.vendor.id}"]
        # 5.00 + 0.015
        assert result.value["commission_amount"] == Decimal("5.02")

    def test_flat_fee_rule(self):
        CommissionRuleFactory(commission_type="flat_fee", commission_rate=Decimal("2.50"))
        result = self.calculate()
        assert result.value["commission_type"] == "flat_fee"
        assert result.value["commission_amount"] == Decimal("2.51")

    def test_tier_bonus(self):
        gold = VendorFactory(performance_tier="gold")
        # 15.00 * (0.02 + 0.003) = 0.345
        assert self.calculate(vendor=gold).value["commission_amount"] == Decimal("15.35")

    def test_rating_bonus(self):
        product = ProductFactory(vendor=self.vendor)
        ProductReviewFactory(product=product, rating=5)

        # 15.00 * (0.005 + 0.003) = 0.12
        assert self.calculate().value["commission_amount"] == Decimal("15.12")

    def test_platform_fee_is_capped(self):
        fees = self.calculate(base_amount=Decimal("1000.00")).value["breakdown"]["fees"]
        assert fees["platform_fee"] == Decimal("5.00")

    def test_zero_amount(self):
        result = self.calculate(base_amount=Decimal("0"))
        assert result.ok
        assert result.value["commission_amount"] == Decimal("0.00")
        assert result.value["net_payout"] == Decimal("0.00")

    def test_negative_amount(self):
        assert self.calculate(base_amount=Decimal("-1")).error == ErrorCodes.INVALID_INPUT

    def test_unknown_vendor(self):
        result = self.service.calculate_commission(CommissionInput(vendor_id=uuid.uuid4(), base_amount=HUNDRED))
        assert result.error == ErrorCodes.VENDOR_NOT_FOUND

    def test_volume_discount_tiers(self, settings):
        settings.COMMISSION = {
            **settings.COMMISSION,
            "VOLUME_DISCOUNT_TIERS": [
                {"min_sales": Decimal("10000"), "discount_rate": Decimal("0.10")},
                {"min_sales": Decimal("1000"), "discount_rate": Decimal("0.05")},
            ],
        }
        service = CommissionService()

        assert service.calculate_volume_discount(Decimal("10.00"), Decimal("500")) == Decimal("0")
        assert service.calculate_volume_discount(Decimal("10.00"), Decimal("1000")) == Decimal("0.50")
        assert service.calculate_volume_discount(Decimal("10.00"), Decimal("20000")) == Decimal("1.00")


@pytest.mark.unit
@pytest.mark.django_db
class TestCommissionRules:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = CommissionService()

    def test_create_rule(self):
        result = self.service.create_commission_rule(
            {"product_category": "Lamps", "commission_type": "percentage", "commission_rate": Decimal("0.12")}
        )
        assert result.ok
        assert result.value.pk is not None

    @pytest.mark.parametrize(
        "data",
        [
            {"commission_type": "percentage", "commission_rate": Decimal("1.5")},
            {"commission_type": "percentage", "commission_rate": Decimal("-0.1")},
            {"commission_type": "bogus", "commission_rate": Decimal("0.1")},
            {"commission_rate": Decimal("0.1"), "min_amount": Decimal("10"), "max_amount": Decimal("5")},
            {"commission_type": "tiered", "commission_rate": Decimal("0.1"), "tiered_rates": [{"rate": "0.1"}]},
        ],
    )
    def test_invalid_rules(self, data):
        assert self.service.create_commission_rule(data).error == ErrorCodes.VALIDATION_ERROR

    def test_update_rule(self):
        rule = CommissionRuleFactory()

        result = self.service.update_commission_rule(rule.pk, {"commission_rate": Decimal("0.2"), "is_active": False})

        assert result.ok
        rule.refresh_from_db()
        assert rule.commission_rate == Decimal("0.2000")
        assert rule.is_active is False

    def test_update_missing_rule(self):
        assert self.service.update_commission_rule(999999, {}).error == ErrorCodes.COMMISSION_RULE_NOT_FOUND

    def test_rules_for_vendor(self):
        vendor = VendorFactory()
        global_rule = CommissionRuleFactory()
        own_rule = CommissionRuleFactory(vendor=vendor)
        CommissionRuleFactory(vendor=VendorFactory())

        result = self.service.get_commission_rules(vendor)

        assert {rule.pk for rule in result.value} == {global_rule.pk, own_rule.pk}


@pytest.mark.unit
@pytest.mark.django_db
class TestCommissionLedger:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = CommissionService()
        self.vendor = VendorFactory()
        self.category = CategoryFactory(name="Lamps")
        self.order = OrderFactory(status="confirmed")
        self.items = [
            OrderItemFactory(
                order=self.order,
                product=ProductFactory(vendor=self.vendor, category=self.category, price=Decimal("50.00")),
                quantity=2,
            ),
            OrderItemFactory(
                order=self.order,
                product=ProductFactory(vendor=self.vendor, price=Decimal("20.00")),
                quantity=1,
            ),
        ]

    def test_process_order_commission(self):
        result = self.service.process_order_commission(self.order)

        assert result.ok
        assert len(result.value) == 2
        commissions = VendorCommission.objects.filter(order=self.order)
        assert commissions.count() == 2
        assert all(commission.status == "pending" for commission in commissions)
        assert commissions.get(order_item=self.items[0]).base_amount == Decimal("100.00")

    def test_process_order_commission_is_idempotent(self):
        self.service.process_order_commission(self.order)
        second = self.service.process_order_commission(self.order)

        assert second.ok
        assert second.value == []
        assert VendorCommission.objects.filter(order=self.order).count() == 2

    def test_lines_without_vendor_are_skipped(self):
        OrderItemFactory(order=self.order, vendor=None)
        result = self.service.process_order_commission(self.order)
        assert len(result.value) == 2

    def test_confirm_then_cancel(self):
        self.service.process_order_commission(self.order)

        assert self.service.confirm_commissions([self.order.id]).value == 2
        assert set(VendorCommission.objects.values_list("status", flat=True)) == {"confirmed"}

        assert self.service.cancel_commissions([self.order.id]).value == 2
        assert set(VendorCommission.objects.values_list("status", flat=True)) == {"cancelled"}

    def test_paid_commissions_are_not_cancelled(self):
        VendorCommissionFactory(order_item=self.items[0], status="paid")
        assert self.service.cancel_commissions([self.order.id]).value == 0

    def test_dispute_own_commission(self):
        commission = VendorCommissionFactory(order_item=self.items[0])

        result = self.service.dispute_commission(commission.pk, "Wrong rate", vendor=self.vendor)

        assert result.ok
        commission.refresh_from_db()
        assert commission.status == "disputed"
        assert commission.dispute_reason == "Wrong rate"

    def test_dispute_other_vendors_commission(self):
        commission = VendorCommissionFactory(order_item=self.items[0])
        result = self.service.dispute_commission(commission.pk, "Mine?", vendor=VendorFactory())
        assert result.error == ErrorCodes.PERMISSION_DENIED

    def test_dispute_paid_commission(self):
        commission = VendorCommissionFactory(order_item=self.items[0], status="paid")
        result = self.service.dispute_commission(commission.pk, "Too late", vendor=self.vendor)
        assert result.error == ErrorCodes.VALIDATION_ERROR

    def test_dispute_requires_reason_and_existing_commission(self):
        assert self.service.dispute_commission(1, "").error == ErrorCodes.INVALID_INPUT
        assert self.service.dispute_commission(999999, "Missing").error == ErrorCodes.COMMISSION_NOT_FOUND

    def test_vendor_commissions_filtered_by_status(self):
        VendorCommissionFactory(order_item=self.items[0], status="pending")
        VendorCommissionFactory(order_item=self.items[1], status="paid")

        result = self.service.get_vendor_commissions(self.vendor, ["paid"])

        assert [commission.status for commission in result.value] == ["paid"]

    def test_commission_analytics(self):
        VendorCommissionFactory(order_item=self.items[0])  # 100.00 base, 15.00 commission
        VendorCommissionFactory(order_item=self.items[1])  # 20.00 base, 3.00 commission
        VendorCommissionFactory(status="cancelled")

        result = self.service.get_commission_analytics(self.vendor)

        assert result.ok
        value = result.value
        assert value["total_commissions"] == Decimal("18.00")
        assert value["total_sales"] == Decimal("120.00")
        assert value["commission_count"] == 2
        assert value["average_commission_rate"] == Decimal("0.1500")
        assert value["top_performing_vendors"][0]["vendor_id"] == str(self.vendor.id)
        categories = {row["category"] for row in value["category_breakdown"]}
        assert categories == {"Lamps", self.items[1].category_name or "Uncategorized"}


@pytest.mark.unit
@pytest.mark.django_db
class TestVendorPerformance:
    def test_metrics_from_orders_and_reviews(self):
        service = CommissionService()
        vendor = VendorFactory(performance_tier="silver")
        product = ProductFactory(vendor=vendor, price=Decimal("30.00"))

        delivered = OrderFactory(status="delivered")
        OrderItemFactory(order=delivered, product=product, quantity=2)
        delivered.shipped_at = timezone.now()
        delivered.save()

        refunded = OrderFactory(status="refunded")
        OrderItemFactory(order=refunded, product=product, quantity=1)

        ProductReviewFactory(product=product, rating=4)
        ProductReviewFactory(product=product, rating=5)

        result = service.get_vendor_performance(vendor)

        assert result.ok
        metrics = result.value["metrics"]
        assert metrics["total_orders"] == 2
        assert metrics["total_sales"] == Decimal("60.00")
        assert metrics["average_order_value"] == Decimal("60.00")
        assert metrics["return_rate"] == Decimal("0.5000")
        assert metrics["cancellation_rate"] == Decimal("0.0000")
        assert metrics["on_time_shipping_rate"] == Decimal("1.0000")
        assert metrics["customer_rating"] == Decimal("4.50")
        assert result.value["performance_tier"] == "silver"
