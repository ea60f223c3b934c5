from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.tests.factories import CategoryFactory, ProductFactory


class SearchViewIntegrationTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        lighting = CategoryFactory(name="Lighting", slug="lighting")
        self.desk_lamp = ProductFactory(
            name="Desk Lamp", description="Adjustable arm", brand="Lumen", price=Decimal("40.00"), category=lighting
        )
        self.floor_lamp = ProductFactory(
            name="Floor Lamp",
            description="Tall",
            brand="Lumen",
            price=Decimal("120.00"),
            compare_at_price=Decimal("150.00"),
            category=lighting,
        )
        self.rug = ProductFactory(name="Wool Rug", description="Hand woven", brand="Weft", price=Decimal("80.00"))

        self.search_url = reverse("marketplace:product-search")
        self.suggestions_url = reverse("marketplace:product-suggestions")
        self.filters_url = reverse("marketplace:product-filters")

    def test_search_by_text(self):
        response = self.client.get(self.search_url, {"q": "lamp", "sort_by": "price_asc"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 2)
        self.assertEqual([item["name"] for item in response.data["results"]], ["Desk Lamp", "Floor Lamp"])
        self.assertEqual(response.data["active_filters"], 0)

    def test_search_with_filters(self):
        response = self.client.get(self.search_url, {"category": "lighting", "on_sale": "true"})

        self.assertEqual([item["id"] for item in response.data["results"]], [str(self.floor_lamp.id)])
        self.assertEqual(response.data["results"][0]["discount_percentage"], 20)
        self.assertEqual(response.data["active_filters"], 2)

    def test_search_pagination(self):
        response = self.client.get(self.search_url, {"sort_by": "price_desc", "page": 2, "per_page": 2})

        self.assertEqual(response.data["total_pages"], 2)
        self.assertEqual([item["name"] for item in response.data["results"]], ["Desk Lamp"])

    def test_invalid_parameters(self):
        response = self.client.get(self.search_url, {"sort_by": "random", "per_page": 500})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sort_by", response.data)
        self.assertIn("per_page", response.data)

    def test_suggestions(self):
        response = self.client.get(self.suggestions_url, {"q": "lamp"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["suggestions"], ["Desk Lamp", "Floor Lamp"])

    def test_suggestions_bad_limit(self):
        response = self.client.get(self.suggestions_url, {"q": "lamp", "limit": "many"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_options(self):
        response = self.client.get(self.filters_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["brands"], ["Lumen", "Weft"])
        self.assertIn("relevance", response.data["sort_options"])
