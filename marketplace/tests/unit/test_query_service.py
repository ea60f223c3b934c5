from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from marketplace.models import Category
from marketplace.services.base import ErrorCodes
from marketplace.services.cache import TTLCache
from marketplace.services.query_service import QueryService, apply_filters, like_lookup
from marketplace.tests.factories import CategoryFactory, ProductFactory


@pytest.mark.unit
class TestQueryHelpers:
    @pytest.mark.parametrize(
        "pattern,lookup",
        [
            ("%lamp%", {"name__icontains": "lamp"}),
            ("lamp%", {"name__istartswith": "lamp"}),
            ("%lamp", {"name__iendswith": "lamp"}),
            ("lamp", {"name__iexact": "lamp"}),
            ("desk%lamp", {"name__iregex": r"^desk.*lamp$"}),
            ("%a_c%", {"name__iregex": r"^.*a.c.*$"}),
            ("%1.5%W%", {"name__iregex": r"^.*1\.5.*W.*$"}),
        ],
    )
    def test_like_lookup(self, pattern, lookup):
        assert like_lookup("name", pattern) == lookup

    def test_apply_filters_translates_values(self):
        queryset = MagicMock()
        queryset.filter.return_value = queryset

        apply_filters(
            queryset,
            {"brand": ["Lumen", "Weft"], "price": {"gte": 10, "lte": 50}, "is_featured": True, "sku": None},
        )

        calls = [call.kwargs for call in queryset.filter.call_args_list]
        assert calls == [
            {"brand__in": ["Lumen", "Weft"]},
            {"price__gte": 10},
            {"price__lte": 50},
            {"is_featured": True},
        ]

    def test_unknown_column(self):
        with pytest.raises(ValueError):
            apply_filters(MagicMock(), {"password": "x"})


@pytest.mark.unit
@pytest.mark.django_db
class TestQueryService:
    @pytest.fixture(autouse=True)
    def prepare(self, db):
        self.cache = TTLCache()
        self.service = QueryService(cache=self.cache)
        lighting = CategoryFactory(name="Lighting", slug="lighting")
        self.cheap = ProductFactory(name="Desk Lamp", brand="Lumen", price=Decimal("15.00"), category=lighting)
        self.dear = ProductFactory(name="Floor Lamp", brand="Lumen", price=Decimal("90.00"), category=lighting)
        self.rug = ProductFactory(name="Wool Rug", brand="Weft", price=Decimal("60.00"), stock_quantity=0)
        ProductFactory(name="Old Lamp", brand="Gone", is_active=False)

    def test_get_products_with_filters_ordering_and_range(self):
        result = self.service.get_products(
            {
                "select": ["id", "price"],
                "filters": {"name": {"like": "%lamp%"}},
                "ordering": [{"column": "price", "ascending": False}],
                "range": {"from": 0, "to": 0},
            }
        )

        assert result.ok
        assert result.value == [{"id": self.dear.id, "price": Decimal("90.00")}]

    def test_get_products_is_cached(self):
        config = {"filters": {"brand": "Weft"}}
        assert len(self.service.get_products(config).value) == 1

        self.rug.brand = "Other"
        self.rug.save()

        assert len(self.service.get_products(config).value) == 1
        self.service.invalidate("products:")
        assert self.service.get_products(config).value == []

    def test_get_products_rejects_unknown_columns(self):
        assert self.service.get_products({"filters": {"secret": 1}}).error == ErrorCodes.INVALID_INPUT
        assert self.service.get_products({"ordering": [{"column": "secret"}]}).error == ErrorCodes.INVALID_INPUT

    def test_search_products(self):
        result = self.service.search_products("lamp", price_range={"min": 20}, limit=5)

        assert result.value["count"] == 1
        assert result.value["data"][0]["id"] == self.dear.id

    def test_search_products_paging_keeps_total(self):
        result = self.service.search_products(brand="lumen", limit=1, offset=1)
        assert result.value["count"] == 2
        assert len(result.value["data"]) == 1

    def test_search_in_stock(self):
        result = self.service.search_products(in_stock=True)
        assert self.rug.id not in [row["id"] for row in result.value["data"]]

    def test_categories_and_brands(self):
        assert self.service.get_categories().value == sorted({"Lighting", self.rug.category.name})
        assert self.service.get_brands().value == ["Lumen", "Weft"]

    def test_batch_insert(self):
        records = [{"name": f"Batch {n}", "slug": f"batch-{n}"} for n in range(5)]

        result = self.service.batch_insert(Category, records, batch_size=2)

        assert result.value == 5
        assert Category.objects.filter(name__startswith="Batch").count() == 5

    def test_batch_insert_invalid_size(self):
        assert self.service.batch_insert(Category, [], batch_size=0).error == ErrorCodes.INVALID_INPUT

    def test_preload_critical_data(self):
        self.service.preload_critical_data()

        assert self.cache.get("categories:all") is not None
        assert self.cache.get("brands:all") == ["Lumen", "Weft"]

    def test_inner_wildcard_pattern(self):
        result = self.service.get_products({"select": ["id"], "filters": {"name": {"like": "%desk%lamp"}}})

        assert result.value == [{"id": self.cheap.id}]

    def test_empty_injected_cache_is_used(self):
        assert len(self.cache) == 0
        assert self.service.cache is self.cache
