import uuid
from decimal import Decimal
from unittest.mock import Mock

import pytest

from marketplace.models import Product
from marketplace.services.base import ErrorCodes
from marketplace.services.cache import TTLCache
from marketplace.services.catalog_service import CatalogService
from marketplace.tests.factories import CategoryFactory, ProductFactory
from vendors.tests.factories import PendingVendorFactory, VendorFactory


@pytest.mark.unit
class TestCatalogServiceUnit:
    def setup_method(self):
        self.cache = Mock(spec=TTLCache)
        self.cache.clear_by_pattern.return_value = 1
        self.service = CatalogService(cache=self.cache)

    def test_invalidate_product_cache_clears_every_product_pattern(self):
        assert self.service.invalidate_product_cache() == 4
        patterns = [call.args[0] for call in self.cache.clear_by_pattern.call_args_list]
        assert patterns == ["products:", "search:", "brands:", "categories:"]


@pytest.mark.unit
@pytest.mark.django_db
class TestCatalogServiceDb:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.cache = TTLCache()
        self.service = CatalogService(cache=self.cache)
        self.vendor = VendorFactory()
        self.lighting = CategoryFactory(name="Lighting", slug="lighting")

    def test_list_products_filters_and_paginates(self):
        for price in ("10.00", "20.00", "30.00"):
            ProductFactory(category=self.lighting, price=Decimal(price))
        ProductFactory(category=self.lighting, is_active=False)
        ProductFactory()

        result = self.service.list_products(
            filters={"category": "lighting", "ordering": "-price"}, page=1, page_size=2
        )

        assert result.ok
        assert result.value["count"] == 3
        assert result.value["num_pages"] == 2
        assert result.value["has_next"] is True
        assert [p.price for p in result.value["results"]] == [Decimal("30.00"), Decimal("20.00")]

    def test_list_products_by_vendor_and_stock(self):
        own = ProductFactory(vendor=self.vendor, stock_quantity=3)
        ProductFactory(vendor=self.vendor, stock_quantity=0)
        ProductFactory()

        result = self.service.list_products(filters={"vendor": str(self.vendor.id), "in_stock": "true"})

        assert [p.id for p in result.value["results"]] == [own.id]

    def test_list_products_rejects_bad_filter_value(self):
        result = self.service.list_products(filters={"min_price": "cheap"})
        assert result.error == ErrorCodes.INVALID_INPUT

    def test_get_product_by_slug_or_id_counts_views(self):
        product = ProductFactory(view_count=0)

        by_slug = self.service.get_product(product.slug)
        by_id = self.service.get_product(str(product.id))

        assert by_slug.value.id == product.id
        assert by_id.value.view_count == 2
        assert self.service.get_product(str(product.id), track_view=False).value.view_count == 2

    def test_get_product_inactive_or_unknown(self):
        hidden = ProductFactory(is_active=False)

        assert self.service.get_product(str(hidden.id)).error == ErrorCodes.PRODUCT_NOT_FOUND
        assert self.service.get_product(str(uuid.uuid4())).error == ErrorCodes.PRODUCT_NOT_FOUND
        assert self.service.get_product("no-such-slug").error == ErrorCodes.PRODUCT_NOT_FOUND

    def test_featured_and_related(self):
        featured = ProductFactory(is_featured=True, category=self.lighting, rating=Decimal("4.00"))
        related = ProductFactory(category=self.lighting, rating=Decimal("5.00"))
        ProductFactory()

        assert [p.id for p in self.service.get_featured_products().value] == [featured.id]
        assert [p.id for p in self.service.get_related_products(featured).value] == [related.id]

    def test_create_product(self):
        self.cache.set("products:{}", ["stale"])

        result = self.service.create_product(
            self.vendor,
            {"name": "Desk Lamp", "price": Decimal("39.90"), "stock_quantity": 12, "category": "lighting"},
        )

        assert result.ok
        product = result.value
        assert product.vendor == self.vendor
        assert product.category == self.lighting
        assert product.slug.startswith("desk-lamp-")
        assert self.cache.get("products:{}") is None

    def test_create_product_unknown_category(self):
        result = self.service.create_product(self.vendor, {"name": "Lamp", "price": 5, "category": "garden"})
        assert result.error == ErrorCodes.CATEGORY_NOT_FOUND

    def test_create_product_requires_name_and_price(self):
        result = self.service.create_product(self.vendor, {"name": "Lamp"})
        assert result.error == ErrorCodes.INVALID_INPUT

    def test_pending_vendor_cannot_create(self):
        result = self.service.create_product(PendingVendorFactory(), {"name": "Lamp", "price": 5})
        assert result.error == ErrorCodes.VENDOR_NOT_ACTIVE

    def test_update_product(self):
        product = ProductFactory(vendor=self.vendor)

        result = self.service.update_product(
            self.vendor, str(product.id), {"price": Decimal("15.00"), "category_id": self.lighting.id}
        )

        assert result.ok
        product.refresh_from_db()
        assert product.price == Decimal("15.00")
        assert product.category == self.lighting

    def test_only_owner_or_admin_updates(self):
        product = ProductFactory()

        result = self.service.update_product(self.vendor, str(product.id), {"price": Decimal("1.00")})
        assert result.error == ErrorCodes.NOT_PRODUCT_OWNER

        assert self.service.update_product(None, str(product.id), {"price": Decimal("1.00")}).ok

    def test_deactivate_product(self):
        product = ProductFactory(vendor=self.vendor)

        assert self.service.deactivate_product(self.vendor, str(product.id)).value is True
        assert Product.objects.get(id=product.id).is_active is False
        assert self.service.deactivate_product(self.vendor, str(uuid.uuid4())).error == ErrorCodes.PRODUCT_NOT_FOUND

    def test_categories(self):
        CategoryFactory(name="Archived", is_active=False)
        assert [c.name for c in self.service.get_categories().value] == ["Lighting"]

    def test_empty_injected_cache_is_kept(self):
        empty = TTLCache()
        assert CatalogService(cache=empty).cache is empty
