from decimal import Decimal

from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.models import Cart, CartItem
from marketplace.tests.factories import CategoryFactory, CouponFactory, ProductFactory, UserFactory


@override_settings(
    TAX_RATES={"default": Decimal("0")},
    SHIPPING_FLAT_RATE="5.00",
    FREE_SHIPPING_THRESHOLD="100.00",
)
class CartViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.user1 = UserFactory(username="user1", email="user1@example.com")
        self.user2 = UserFactory(username="user2", email="user2@example.com")

        self.category = CategoryFactory()
        self.product1 = ProductFactory(category=self.category, stock_quantity=10, price=Decimal("10.00"))
        self.product2 = ProductFactory(category=self.category, stock_quantity=5, price=Decimal("20.00"))

        self.cart_list_url = reverse("marketplace:cart-list")
        self.cart_add_item_url = reverse("marketplace:cart-add-item")
        self.cart_update_item_url = reverse("marketplace:cart-update-item")
        self.cart_remove_item_url = reverse("marketplace:cart-remove-item")
        self.cart_increase_url = reverse("marketplace:cart-increase")
        self.cart_decrease_url = reverse("marketplace:cart-decrease")
        self.cart_clear_url = reverse("marketplace:cart-clear")
        self.cart_apply_coupon_url = reverse("marketplace:cart-apply-coupon")
        self.cart_remove_coupon_url = reverse("marketplace:cart-remove-coupon")
        self.cart_validate_url = reverse("marketplace:cart-validate")

    def add(self, product, quantity=1):
        return self.client.post(self.cart_add_item_url, {"product_id": str(product.id), "quantity": quantity})

    def test_requires_authentication(self):
        response = self.client.get(self.cart_list_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_empty_cart(self):
        self.client.force_authenticate(user=self.user1)
        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 0)
        self.assertTrue(response.data["is_empty"])
        self.assertEqual(Decimal(response.data["totals"]["total"]), Decimal("0.00"))
        self.assertEqual(Decimal(response.data["totals"]["shipping"]), Decimal("0.00"))

    def test_add_item_to_cart(self):
        self.client.force_authenticate(user=self.user1)
        response = self.add(self.product1, 2)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 1)
        self.assertEqual(response.data["item_count"], 2)
        self.assertEqual(response.data["items"][0]["product"]["id"], str(self.product1.id))
        self.assertEqual(Decimal(response.data["items"][0]["line_total"]), Decimal("20.00"))
        self.assertEqual(Decimal(response.data["totals"]["subtotal"]), Decimal("20.00"))
        self.assertEqual(Decimal(response.data["totals"]["shipping"]), Decimal("5.00"))
        self.assertEqual(Decimal(response.data["totals"]["total"]), Decimal("25.00"))

    def test_add_same_product_accumulates(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 2)
        response = self.add(self.product1, 3)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 1)
        self.assertEqual(CartItem.objects.get(cart__user=self.user1).quantity, 5)

    def test_add_item_insufficient_stock(self):
        self.client.force_authenticate(user=self.user1)
        response = self.add(self.product2, 6)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "insufficient_stock")
        self.assertFalse(CartItem.objects.filter(cart__user=self.user1).exists())

    def test_add_inactive_product(self):
        hidden = ProductFactory(is_active=False)
        self.client.force_authenticate(user=self.user1)
        response = self.add(hidden)

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "product_not_found")

    def test_add_item_invalid_payload(self):
        self.client.force_authenticate(user=self.user1)
        response = self.client.post(self.cart_add_item_url, {"product_id": "not-a-uuid", "quantity": 0})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("product_id", response.data)
        self.assertIn("quantity", response.data)

    def test_update_item_quantity(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)

        response = self.client.patch(self.cart_update_item_url, {"product_id": str(self.product1.id), "quantity": 4})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["item_count"], 4)

    def test_update_item_to_zero_removes_line(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)

        response = self.client.patch(self.cart_update_item_url, {"product_id": str(self.product1.id), "quantity": 0})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_empty"])

    def test_update_item_not_in_cart(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)

        response = self.client.patch(self.cart_update_item_url, {"product_id": str(self.product2.id), "quantity": 2})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "item_not_in_cart")

    def test_remove_item(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)
        self.add(self.product2, 1)

        response = self.client.delete(self.cart_remove_item_url, {"product_id": str(self.product1.id)}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["product"]["id"] for item in response.data["items"]], [str(self.product2.id)])

    def test_increase_and_decrease(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)
        payload = {"product_id": str(self.product1.id)}

        response = self.client.post(self.cart_increase_url, payload)
        self.assertEqual(response.data["item_count"], 2)

        self.client.post(self.cart_decrease_url, payload)
        response = self.client.post(self.cart_decrease_url, payload)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_empty"])

    def test_clear_cart(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 2)
        self.add(self.product2, 1)

        response = self.client.delete(self.cart_clear_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["items_count"], 0)
        self.assertFalse(CartItem.objects.filter(cart__user=self.user1).exists())

    def test_carts_are_isolated_per_user(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 2)

        self.client.force_authenticate(user=self.user2)
        response = self.client.get(self.cart_list_url)

        self.assertEqual(response.data["items_count"], 0)
        self.assertEqual(Cart.objects.get(user=self.user1).items.count(), 1)

    def test_apply_and_remove_coupon(self):
        CouponFactory(code="HALF", type="percentage", value=Decimal("50.00"))
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 2)

        response = self.client.post(self.cart_apply_coupon_url, {"code": "HALF"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["coupon_code"], "HALF")
        self.assertEqual(Decimal(response.data["totals"]["discount"]), Decimal("10.00"))

        response = self.client.post(self.cart_remove_coupon_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["coupon_code"])
        self.assertEqual(Decimal(response.data["totals"]["discount"]), Decimal("0.00"))

    def test_apply_unknown_coupon(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)

        response = self.client.post(self.cart_apply_coupon_url, {"code": "NOPE"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "coupon_invalid")
        self.assertEqual(Cart.objects.get(user=self.user1).coupon_code, "")

    def test_apply_coupon_to_empty_cart(self):
        CouponFactory(code="HALF")
        self.client.force_authenticate(user=self.user1)

        response = self.client.post(self.cart_apply_coupon_url, {"code": "HALF"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "cart_empty")

    def test_validate_reports_stock_issues(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product2, 5)
        self.product2.stock_quantity = 2
        self.product2.save()

        response = self.client.get(self.cart_validate_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["valid"])
        self.assertEqual(response.data["issues"][0]["issue"], "insufficient_stock")
        self.assertEqual(response.data["issues"][0]["available"], 2)

    def test_validate_clean_cart(self):
        self.client.force_authenticate(user=self.user1)
        self.add(self.product1, 1)

        response = self.client.get(self.cart_validate_url)

        self.assertTrue(response.data["valid"])
        self.assertEqual(response.data["issues"], [])
