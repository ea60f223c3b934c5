import uuid
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.models import Product, ProductReview
from marketplace.tests.factories import (
    AdminFactory,
    CategoryFactory,
    ProductFactory,
    ProductReviewFactory,
    UserFactory,
)
from vendors.tests.factories import PendingVendorFactory, VendorFactory


class ProductViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.vendor = VendorFactory()
        self.other_vendor = VendorFactory()
        self.lighting = CategoryFactory(name="Lighting", slug="lighting")

        self.lamp = ProductFactory(
            name="Desk Lamp", vendor=self.vendor, category=self.lighting, price=Decimal("40.00"), view_count=0
        )
        self.bulb = ProductFactory(name="Bulb", vendor=self.vendor, category=self.lighting, price=Decimal("5.00"))
        self.rug = ProductFactory(name="Wool Rug", vendor=self.other_vendor, price=Decimal("80.00"), is_featured=True)

        self.list_url = reverse("marketplace:product-list")

    def detail_url(self, product, name="product-detail"):
        return reverse(f"marketplace:{name}", kwargs={"pk": str(product.id)})

    def test_list_products_is_public(self):
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 3)
        self.assertEqual(response.data["page"], 1)

    def test_list_products_with_filters(self):
        response = self.client.get(self.list_url, {"category": "lighting", "ordering": "price"})

        self.assertEqual([item["name"] for item in response.data["results"]], ["Bulb", "Desk Lamp"])
        self.assertEqual(response.data["results"][0]["vendor"]["business_name"], self.vendor.business_name)

    def test_list_products_bad_paging(self):
        response = self.client.get(self.list_url, {"page": "first"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_retrieve_by_id_and_slug(self):
        by_id = self.client.get(self.detail_url(self.lamp))
        by_slug = self.client.get(reverse("marketplace:product-detail", kwargs={"pk": self.lamp.slug}))

        self.assertEqual(by_id.status_code, status.HTTP_200_OK)
        self.assertEqual(by_slug.data["id"], str(self.lamp.id))
        self.assertIn("description", by_slug.data)
        self.assertEqual(Product.objects.get(id=self.lamp.id).view_count, 2)

    def test_retrieve_inactive_product(self):
        hidden = ProductFactory(is_active=False)

        response = self.client.get(self.detail_url(hidden))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "product_not_found")

    def test_featured_and_related(self):
        featured = self.client.get(reverse("marketplace:product-featured"))
        related = self.client.get(self.detail_url(self.lamp, "product-related"))

        self.assertEqual([item["id"] for item in featured.data], [str(self.rug.id)])
        self.assertEqual([item["id"] for item in related.data], [str(self.bulb.id)])

    def test_vendor_creates_product(self):
        self.client.force_authenticate(user=self.vendor.user)

        response = self.client.post(
            self.list_url,
            {"name": "Floor Lamp", "price": "120.00", "stock_quantity": 4, "category": "lighting", "tags": ["oak"]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["vendor"]["id"], str(self.vendor.id))
        self.assertEqual(response.data["category"]["slug"], "lighting")
        self.assertTrue(Product.objects.filter(name="Floor Lamp", vendor=self.vendor).exists())

    def test_create_rejects_compare_price_below_price(self):
        self.client.force_authenticate(user=self.vendor.user)

        response = self.client.post(
            self.list_url, {"name": "Lamp", "price": "20.00", "compare_at_price": "10.00"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("compare_at_price", response.data)

    def test_plain_user_cannot_create(self):
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post(self.list_url, {"name": "Lamp", "price": "20.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pending_vendor_cannot_create(self):
        pending = PendingVendorFactory()
        self.client.force_authenticate(user=pending.user)

        response = self.client.post(self.list_url, {"name": "Lamp", "price": "20.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "vendor_not_active")

    def test_owner_updates_product(self):
        self.client.force_authenticate(user=self.vendor.user)

        response = self.client.patch(self.detail_url(self.lamp), {"price": "35.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data["price"]), Decimal("35.00"))

    def test_other_vendor_cannot_update(self):
        self.client.force_authenticate(user=self.other_vendor.user)

        response = self.client.patch(self.detail_url(self.lamp), {"price": "1.00"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "not_product_owner")

    def test_admin_deactivates_any_product(self):
        self.client.force_authenticate(user=AdminFactory())

        response = self.client.delete(self.detail_url(self.rug))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.get(id=self.rug.id).is_active)
        self.assertEqual(self.client.get(self.detail_url(self.rug)).status_code, status.HTTP_404_NOT_FOUND)


class ProductReviewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = UserFactory()
        self.product = ProductFactory()
        self.url = reverse("marketplace:product-reviews", kwargs={"pk": str(self.product.id)})

    def test_list_reviews(self):
        ProductReviewFactory(product=self.product, rating=4)
        ProductReviewFactory(product=self.product, is_active=False)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_post_review_requires_authentication(self):
        response = self.client.post(self.url, {"rating": 5})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_post_review(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.url, {"rating": 5, "title": "Lovely", "comment": "Bright and warm"})

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["rating"], 5)
        self.product.refresh_from_db()
        self.assertEqual(self.product.review_count, 1)
        self.assertEqual(self.product.rating, Decimal("5.00"))

    def test_second_review_conflicts(self):
        ProductReviewFactory(product=self.product, reviewer=self.user)
        self.client.force_authenticate(user=self.user)

        response = self.client.post(self.url, {"rating": 3})

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(ProductReview.objects.filter(product=self.product).count(), 1)

    def test_invalid_rating(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post(self.url, {"rating": 7})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reviews_of_unknown_product(self):
        url = reverse("marketplace:product-reviews", kwargs={"pk": str(uuid.uuid4())})
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)


class CategoryViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.lighting = CategoryFactory(name="Lighting", slug="lighting")
        self.lamps = CategoryFactory(name="Lamps", slug="lamps", parent=self.lighting)
        CategoryFactory(name="Archived", slug="archived", is_active=False)
        ProductFactory(category=self.lighting, name="Desk Lamp")
        ProductFactory(category=self.lighting, is_active=False)

    def test_list_active_categories(self):
        response = self.client.get(reverse("marketplace:category-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn("archived", [category["slug"] for category in response.data])

    def test_retrieve_by_slug(self):
        response = self.client.get(reverse("marketplace:category-detail", kwargs={"slug": "lighting"}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["product_count"], 1)
        self.assertEqual([sub["slug"] for sub in response.data["subcategories"]], ["lamps"])

    def test_retrieve_inactive_category(self):
        response = self.client.get(reverse("marketplace:category-detail", kwargs={"slug": "archived"}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_category_products(self):
        response = self.client.get(reverse("marketplace:category-products", kwargs={"slug": "lighting"}))

        self.assertEqual([item["name"] for item in response.data], ["Desk Lamp"])
