import uuid
from decimal import Decimal

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.models import CartItem, Order, Product
from marketplace.tests.factories import (
    AdminFactory,
    CartFactory,
    CartItemFactory,
    OrderFactory,
    ProductFactory,
    UserFactory,
)
from vendors.models import VendorCommission

SHIPPING_ADDRESS = {"name": "Jane Doe", "street": "1 Main St", "city": "Austin", "postal_code": "73301", "country": "US"}


@override_settings(
    TAX_RATES={"default": Decimal("0")},
    SHIPPING_FLAT_RATE="5.00",
    FREE_SHIPPING_THRESHOLD="50.00",
)
class OrderViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.buyer = UserFactory()
        self.other = UserFactory()
        self.admin = AdminFactory()

        self.lamp = ProductFactory(price=Decimal("15.00"), stock_quantity=10)
        self.rug = ProductFactory(price=Decimal("40.00"), stock_quantity=3)

        self.list_url = reverse("marketplace:order-list")
        self.summary_url = reverse("marketplace:order-summary")

    def detail_url(self, order, name="order-detail"):
        return reverse(f"marketplace:{name}", kwargs={"pk": str(order.id)})

    def checkout(self, payload=None):
        data = {"shipping_address": SHIPPING_ADDRESS, "payment_method": "card"}
        data.update(payload or {})
        return self.client.post(self.list_url, data, format="json")

    def test_checkout_from_cart(self):
        cart = CartFactory(user=self.buyer)
        CartItemFactory(cart=cart, product=self.lamp, quantity=2)
        self.client.force_authenticate(user=self.buyer)

        response = self.checkout()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["status"], "pending")
        self.assertRegex(response.data["order_number"], r"^ORD-\d{13}-[0-9A-F]{4}$")
        self.assertEqual(Decimal(response.data["subtotal"]), Decimal("30.00"))
        self.assertEqual(Decimal(response.data["shipping_cost"]), Decimal("5.00"))
        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("35.00"))
        self.assertEqual(response.data["items"][0]["quantity"], 2)
        self.assertTrue(response.data["can_cancel"])

        self.lamp.refresh_from_db()
        self.assertEqual(self.lamp.stock_quantity, 8)
        self.assertFalse(CartItem.objects.filter(cart=cart).exists())

    def test_checkout_with_explicit_items(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.checkout({"items": [{"product_id": str(self.rug.id), "quantity": 2}]})

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("80.00"))
        self.assertEqual(Product.objects.get(id=self.rug.id).stock_quantity, 1)

    def test_checkout_empty_cart(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.checkout()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "cart_empty")
        self.assertFalse(Order.objects.exists())

    def test_checkout_insufficient_stock(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.checkout({"items": [{"product_id": str(self.rug.id), "quantity": 4}]})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Product.objects.get(id=self.rug.id).stock_quantity, 3)

    def test_checkout_requires_shipping_address(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post(self.list_url, {"payment_method": "card"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("shipping_address", response.data)

    def test_list_only_own_orders(self):
        own = OrderFactory(buyer=self.buyer)
        OrderFactory(buyer=self.other)
        self.client.force_authenticate(user=self.buyer)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([order["id"] for order in response.data], [str(own.id)])

    def test_list_filters_by_status(self):
        OrderFactory(buyer=self.buyer, status="pending")
        shipped = OrderFactory(buyer=self.buyer, status="shipped")
        self.client.force_authenticate(user=self.buyer)

        response = self.client.get(self.list_url, {"status": "shipped"})

        self.assertEqual([order["id"] for order in response.data], [str(shipped.id)])

    def test_admin_lists_all_orders(self):
        OrderFactory(buyer=self.buyer)
        OrderFactory(buyer=self.other)
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(self.list_url, {"all": "true"})

        self.assertEqual(len(response.data), 2)

    def test_retrieve_order(self):
        order = OrderFactory(buyer=self.buyer)
        self.client.force_authenticate(user=self.buyer)

        response = self.client.get(self.detail_url(order))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["order_number"], order.order_number)

    def test_retrieve_someone_elses_order(self):
        order = OrderFactory(buyer=self.other)
        self.client.force_authenticate(user=self.buyer)

        response = self.client.get(self.detail_url(order))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "not_order_owner")

    def test_retrieve_unknown_order(self):
        self.client.force_authenticate(user=self.buyer)

        response = self.client.get(reverse("marketplace:order-detail", kwargs={"pk": str(uuid.uuid4())}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_summary(self):
        OrderFactory(buyer=self.buyer, status="delivered", subtotal=Decimal("100.00"))
        OrderFactory(buyer=self.buyer, status="pending", subtotal=Decimal("50.00"))
        self.client.force_authenticate(user=self.buyer)

        response = self.client.get(self.summary_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_orders"], 2)

    def test_buyer_cancels_pending_order(self):
        self.client.force_authenticate(user=self.buyer)
        order_id = self.checkout({"items": [{"product_id": str(self.lamp.id), "quantity": 3}]}).data["id"]

        response = self.client.post(
            reverse("marketplace:order-cancel", kwargs={"pk": order_id}), {"reason": "Changed my mind"}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["cancellation_reason"], "Changed my mind")
        self.assertEqual(Product.objects.get(id=self.lamp.id).stock_quantity, 10)

    def test_cannot_cancel_shipped_order(self):
        order = OrderFactory(buyer=self.buyer, status="shipped")
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post(self.detail_url(order, "order-cancel"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "order_cannot_cancel")

    def test_update_status_requires_admin(self):
        order = OrderFactory(buyer=self.buyer, status="pending")
        self.client.force_authenticate(user=self.buyer)

        response = self.client.post(self.detail_url(order, "order-update-status"), {"status": "confirmed"})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_confirms_order_and_records_commissions(self):
        self.client.force_authenticate(user=self.buyer)
        order_id = self.checkout({"items": [{"product_id": str(self.lamp.id), "quantity": 2}]}).data["id"]

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            reverse("marketplace:order-update-status", kwargs={"pk": order_id}), {"status": "confirmed"}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "confirmed")
        commission = VendorCommission.objects.get(order_id=order_id)
        self.assertEqual(commission.vendor, self.lamp.vendor)
        self.assertEqual(commission.status, "pending")

    def test_invalid_transition(self):
        order = OrderFactory(buyer=self.buyer, status="pending")
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(self.detail_url(order, "order-update-status"), {"status": "delivered"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_status_transition")

    def test_admin_adds_tracking(self):
        order = OrderFactory(buyer=self.buyer, status="processing")
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(
            self.detail_url(order, "order-tracking"), {"tracking_number": "1Z999", "carrier": "UPS"}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["tracking_number"], "1Z999")
        self.assertEqual(response.data["shipping_carrier"], "UPS")
