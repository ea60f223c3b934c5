import uuid
from decimal import Decimal

import pytest

from marketplace.models import Product
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    OrderFactory,
    OrderItemFactory,
    ProductFactory,
    ProductReviewFactory,
    UserFactory,
)
from vendors.models import Vendor
from vendors.services.vendor_service import VendorService, one_decimal
from vendors.tests.factories import PendingVendorFactory, VendorFactory


@pytest.mark.unit
def test_one_decimal_rounds_half_up():
    assert one_decimal(4.25) == Decimal("4.3")
    assert one_decimal(Decimal("3.35")) == Decimal("3.4")


@pytest.mark.unit
@pytest.mark.django_db
class TestVendorRegistration:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = VendorService()
        self.user = UserFactory()

    def test_create_vendor_waits_for_review(self):
        result = self.service.create_vendor(self.user, {"business_name": "Oak & Iron", "description": "Furniture"})

        assert result.ok
        vendor = result.value
        assert vendor.status == "pending"
        assert vendor.verification_status == "pending"
        assert vendor.contact_email == self.user.email

    def test_admin_fields_are_ignored_on_registration(self):
        result = self.service.create_vendor(self.user, {"business_name": "Oak", "status": "active"})
        assert result.value.status == "pending"

    def test_business_name_required(self):
        assert self.service.create_vendor(self.user, {}).error == ErrorCodes.INVALID_INPUT

    def test_one_vendor_per_user(self):
        self.service.create_vendor(self.user, {"business_name": "First"})
        result = self.service.create_vendor(self.user, {"business_name": "Second"})
        assert result.error == ErrorCodes.VENDOR_ALREADY_EXISTS

    def test_get_vendor_by_user(self):
        assert self.service.get_vendor_by_user(self.user).error == ErrorCodes.VENDOR_NOT_FOUND
        vendor = VendorFactory(user=self.user)
        assert self.service.get_vendor_by_user(self.user).value == vendor

    def test_get_vendor_by_id_rejects_garbage(self):
        assert self.service.get_vendor_by_id("nope").error == ErrorCodes.VENDOR_NOT_FOUND
        assert self.service.get_vendor_by_id(uuid.uuid4()).error == ErrorCodes.VENDOR_NOT_FOUND


@pytest.mark.unit
@pytest.mark.django_db
class TestVendorManagement:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = VendorService()
        self.vendor = VendorFactory()

    def test_update_profile(self):
        result = self.service.update_vendor(self.vendor.id, {"description": "Hand made lamps"})

        assert result.ok
        self.vendor.refresh_from_db()
        assert self.vendor.description == "Hand made lamps"

    def test_vendor_cannot_change_admin_fields(self):
        result = self.service.update_vendor(self.vendor.id, {"commission_rate": Decimal("0.01")})
        assert result.error == ErrorCodes.PERMISSION_DENIED

    def test_admin_can_change_admin_fields(self):
        result = self.service.update_vendor(
            self.vendor.id, {"performance_tier": "gold", "commission_rate": Decimal("0.1")}, allow_admin_fields=True
        )

        assert result.ok
        self.vendor.refresh_from_db()
        assert self.vendor.performance_tier == "gold"
        assert self.vendor.commission_rate == Decimal("0.1000")

    def test_delete_vendor_hides_products(self):
        product = ProductFactory(vendor=self.vendor)

        result = self.service.delete_vendor(self.vendor.id)

        assert result.ok
        assert result.value.status == "inactive"
        assert Product.objects.get(id=product.id).is_active is False
        assert Vendor.objects.filter(id=self.vendor.id).exists()

    def test_approve_vendor(self):
        pending = PendingVendorFactory(user=UserFactory(role="user"))

        result = self.service.approve_vendor(pending.id, notes="Documents checked")

        assert result.ok
        pending.refresh_from_db()
        assert pending.status == "active"
        assert pending.verification_status == "verified"
        assert pending.approved_at is not None
        assert pending.admin_notes == "Documents checked"
        assert pending.user.role == "vendor"

    def test_suspend_vendor(self):
        assert self.service.suspend_vendor(self.vendor.id, "").error == ErrorCodes.INVALID_INPUT

        result = self.service.suspend_vendor(self.vendor.id, "Counterfeit goods")

        assert result.value.status == "suspended"
        assert result.value.admin_notes == "Counterfeit goods"

    def test_unknown_vendor(self):
        missing = uuid.uuid4()
        assert self.service.approve_vendor(missing).error == ErrorCodes.VENDOR_NOT_FOUND
        assert self.service.suspend_vendor(missing, "reason").error == ErrorCodes.VENDOR_NOT_FOUND
        assert self.service.delete_vendor(missing).error == ErrorCodes.VENDOR_NOT_FOUND


@pytest.mark.unit
@pytest.mark.django_db
class TestVendorListing:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = VendorService()
        self.active = [VendorFactory(business_name=f"Lamp Studio {n}") for n in range(3)]
        self.pending = PendingVendorFactory(business_name="Rug House")

    def test_filter_by_status(self):
        result = self.service.get_vendors(status="active")
        assert result.value["total"] == 3

        result = self.service.get_vendors(status=["active", "pending"])
        assert result.value["total"] == 4

    def test_search(self):
        result = self.service.get_vendors(query="rug")
        assert [vendor.id for vendor in result.value["vendors"]] == [self.pending.id]

    def test_sort_and_paginate(self):
        result = self.service.get_vendors(sort_by="business_name", sort_direction="asc", limit=2, offset=2)

        assert result.value["page"] == 2
        assert result.value["limit"] == 2
        assert [vendor.business_name for vendor in result.value["vendors"]] == ["Lamp Studio 2", "Rug House"]

    def test_invalid_sort_field(self):
        assert self.service.get_vendors(sort_by="password").error == ErrorCodes.INVALID_INPUT

    def test_invalid_page(self):
        assert self.service.get_vendors(limit=0).error == ErrorCodes.INVALID_INPUT


@pytest.mark.unit
@pytest.mark.django_db
class TestVendorDashboard:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.service = VendorService()
        self.vendor = VendorFactory()
        self.product = ProductFactory(vendor=self.vendor, price=Decimal("25.00"))

    def test_vendor_products_exclude_inactive(self):
        ProductFactory(vendor=self.vendor, is_active=False)
        ProductFactory()

        result = self.service.get_vendor_products(self.vendor)

        assert [product.id for product in result.value] == [self.product.id]

    def test_vendor_orders(self):
        order = OrderFactory()
        OrderItemFactory(order=order, product=self.product)
        OrderItemFactory(order=order, product=self.product)
        OrderItemFactory()

        result = self.service.get_vendor_orders(self.vendor)

        assert [o.id for o in result.value] == [order.id]

    def test_stats(self):
        delivered = OrderFactory(status="delivered")
        OrderItemFactory(order=delivered, product=self.product, quantity=2)
        OrderItemFactory(order=OrderFactory(status="confirmed"), product=self.product, quantity=5)
        ProductReviewFactory(product=self.product, rating=4)
        ProductReviewFactory(product=self.product, rating=5)

        result = self.service.get_vendor_stats(self.vendor)

        assert result.ok
        assert result.value == {
            "total_products": 1,
            "total_orders": 1,
            "total_revenue": Decimal("50.00"),
            "average_rating": Decimal("4.5"),
        }

    def test_update_order_requires_own_items(self):
        order = OrderFactory()
        OrderItemFactory(order=order)

        result = self.service.update_vendor_order(self.vendor, order.id, status="processing")

        assert result.error == ErrorCodes.NOT_ORDER_OWNER

    def test_update_order_requires_a_change(self):
        order = OrderFactory()
        OrderItemFactory(order=order, product=self.product)

        assert self.service.update_vendor_order(self.vendor, order.id).error == ErrorCodes.INVALID_INPUT

    def test_tracking_number_ships_order(self):
        order = OrderFactory(status="confirmed")
        OrderItemFactory(order=order, product=self.product)

        result = self.service.update_vendor_order(
            self.vendor, order.id, tracking_number="1Z999", shipping_carrier="UPS"
        )

        assert result.ok
        order.refresh_from_db()
        assert order.status == "shipped"
        assert order.tracking_number == "1Z999"
        assert order.shipping_carrier == "UPS"
        assert order.shipped_at is not None

    def test_invalid_status_transition(self):
        order = OrderFactory(status="confirmed")
        OrderItemFactory(order=order, product=self.product)

        result = self.service.update_vendor_order(self.vendor, order.id, status="delivered")

        assert result.error == ErrorCodes.INVALID_STATUS_TRANSITION
