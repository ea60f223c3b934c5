"""
QueryService - cached query building over the product catalog.

Translates declarative query configs (filters, ordering, range) into ORM
querysets and memoizes the results in the process TTL cache.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import Q, QuerySet

from marketplace.models import Product

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .cache import TTLCache, canonical_json, cache_config, get_query_cache

# Columns a client config may filter or order on
PRODUCT_COLUMNS = {
    "id",
    "name",
    "slug",
    "description",
    "sku",
    "brand",
    "price",
    "compare_at_price",
    "stock_quantity",
    "rating",
    "review_count",
    "view_count",
    "is_active",
    "is_featured",
    "created_at",
    "updated_at",
    "vendor_id",
    "category_id",
    "category__slug",
    "category__name",
}

DEFAULT_SELECT = [
    "id",
    "name",
    "slug",
    "brand",
    "price",
    "compare_at_price",
    "stock_quantity",
    "rating",
    "review_count",
    "images",
    "is_featured",
    "created_at",
    "vendor_id",
    "category__name",
    "category__slug",
]


def like_to_regex(pattern: str) -> str:
    """Anchored regex equivalent of a LIKE pattern; every other character matches literally."""
    translated = "".join(
        ".*" if char == "%" else "." if char == "_" else re.escape(char) for char in pattern
    )
    return f"^{translated}$"


def like_lookup(column: str, pattern: str) -> Dict[str, str]:
    """Map a SQL LIKE pattern (% and _ wildcards) to a case-insensitive lookup."""
    starts = pattern.startswith("%")
    ends = pattern.endswith("%")
    term = pattern.strip("%")
    if "%" in term or "_" in term:
        return {f"{column}__iregex": like_to_regex(pattern)}
    if starts and ends:
        return {f"{column}__icontains": term}
    if ends:
        return {f"{column}__istartswith": term}
    if starts:
        return {f"{column}__iendswith": term}
    return {f"{column}__iexact": term}


def apply_filters(queryset: QuerySet, filters: Dict[str, Any]) -> QuerySet:
    """
    Apply declarative filters to a queryset.

    Values map as: list -> IN, {"gte": v} -> >=, {"lte": v} -> <=,
    {"like": pattern} -> case-insensitive LIKE, scalar -> equality,
    None -> skipped.
    """
    for column, value in (filters or {}).items():
        if value is None:
            continue
        if column not in PRODUCT_COLUMNS:
            raise ValueError(f"Unknown filter column: {column}")

        if isinstance(value, (list, tuple)):
            queryset = queryset.filter(**{f"{column}__in": list(value)})
        elif isinstance(value, dict):
            if "gte" in value:
                queryset = queryset.filter(**{f"{column}__gte": value["gte"]})
            if "lte" in value:
                queryset = queryset.filter(**{f"{column}__lte": value["lte"]})
            if "like" in value:
                queryset = queryset.filter(**like_lookup(column, value["like"]))
        else:
            queryset = queryset.filter(**{column: value})
    return queryset


def apply_ordering(queryset: QuerySet, ordering: Optional[Iterable[Dict[str, Any]]]) -> QuerySet:
    order_by = []
    for clause in ordering or []:
        column = clause["column"]
        if column not in PRODUCT_COLUMNS:
            raise ValueError(f"Unknown ordering column: {column}")
        order_by.append(column if clause.get("ascending", False) else f"-{column}")
    return queryset.order_by(*order_by) if order_by else queryset


class QueryService(BaseService):
    """
    Cached read access to products, categories and brands.

    Config shape for get_products:
        {
            "select": ["id", "name", "price"],          # optional
            "filters": {"brand": ["Acme"], "price": {"gte": 10}},
            "ordering": [{"column": "price", "ascending": True}],
            "range": {"from": 0, "to": 19},              # inclusive
            "cache_ttl": 300,                            # seconds, optional
        }
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        super().__init__()
        self.cache = cache if cache is not None else get_query_cache()
        config = cache_config()
        self.search_ttl = config["SEARCH_TTL"]
        self.catalog_ttl = config["CATALOG_TTL"]

    def base_queryset(self) -> QuerySet:
        return Product.objects.filter(is_active=True).select_related("category")

    @BaseService.log_performance
    def get_products(self, config: Optional[Dict[str, Any]] = None) -> ServiceResult[List[Dict]]:
        config = config or {}
        cache_key = f"products:{canonical_json(config)}"

        cached = self.cache.get(cache_key)
        if cached is not None:
            return service_ok(cached)

        try:
            queryset = apply_filters(self.base_queryset(), config.get("filters"))
            queryset = apply_ordering(queryset, config.get("ordering"))

            bounds = config.get("range")
            if bounds:
                queryset = queryset[bounds["from"] : bounds["to"] + 1]

            rows = list(queryset.values(*(config.get("select") or DEFAULT_SELECT)))
            self.cache.set(cache_key, rows, config.get("cache_ttl"))
            return service_ok(rows)

        except ValueError as e:
            return service_err(ErrorCodes.INVALID_INPUT, str(e))
        except Exception as e:
            self.logger.error(f"Error querying products with config {config}: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    @BaseService.log_performance
    def search_products(
        self,
        query: str = "",
        category: Optional[str] = None,
        brand: Optional[str] = None,
        price_range: Optional[Dict[str, Any]] = None,
        in_stock: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> ServiceResult[Dict]:
        """
        Text search over name/description with the common storefront filters.

        Returns {"data": [...], "count": total matches before paging}.
        """
        filters = {
            "category": category,
            "brand": brand,
            "price_range": price_range,
            "in_stock": in_stock,
            "limit": limit,
            "offset": offset,
        }
        cached = self.cache.get_search_results(query or "", filters)
        if cached is not None:
            return service_ok({"data": cached["results"], "count": cached["total"]})

        try:
            queryset = self.base_queryset()
            if query:
                queryset = queryset.filter(Q(name__icontains=query) | Q(description__icontains=query))
            if category:
                queryset = queryset.filter(Q(category__slug=category) | Q(category__name__iexact=category))
            if brand:
                queryset = queryset.filter(brand__iexact=brand)
            if price_range:
                if price_range.get("min"):
                    queryset = queryset.filter(price__gte=price_range["min"])
                if price_range.get("max") is not None:
                    queryset = queryset.filter(price__lte=price_range["max"])
            if in_stock:
                queryset = queryset.filter(stock_quantity__gt=0)

            queryset = queryset.order_by("-created_at")
            total = queryset.count()

            start = offset or 0
            if limit:
                queryset = queryset[start : start + limit]
            elif start:
                queryset = queryset[start:]

            rows = list(queryset.values(*DEFAULT_SELECT))
            self.cache.set_search_results(query or "", filters, rows, total)
            return service_ok({"data": rows, "count": total})

        except Exception as e:
            self.logger.error(f"Error searching products for '{query}': {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    def get_categories(self) -> ServiceResult[List[str]]:
        cached = self.cache.get("categories:all")
        if cached is not None:
            return service_ok(cached)

        try:
            names = (
                self.base_queryset()
                .filter(category__isnull=False)
                .values_list("category__name", flat=True)
                .distinct()
            )
            categories = sorted(set(names))
            self.cache.set("categories:all", categories, self.catalog_ttl)
            return service_ok(categories)
        except Exception as e:
            self.logger.error(f"Error loading categories: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    def get_brands(self) -> ServiceResult[List[str]]:
        cached = self.cache.get("brands:all")
        if cached is not None:
            return service_ok(cached)

        try:
            names = self.base_queryset().exclude(brand="").values_list("brand", flat=True).distinct()
            brands = sorted(set(names))
            self.cache.set("brands:all", brands, self.catalog_ttl)
            return service_ok(brands)
        except Exception as e:
            self.logger.error(f"Error loading brands: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    @BaseService.log_performance
    def batch_insert(self, model, records: List[Dict[str, Any]], batch_size: int = 100) -> ServiceResult[int]:
        """Bulk create ``records`` in batches, then drop cached reads for that table."""
        if batch_size <= 0:
            return service_err(ErrorCodes.INVALID_INPUT, "batch_size must be positive")

        try:
            created = 0
            with transaction.atomic():
                for start in range(0, len(records), batch_size):
                    batch = [model(**record) for record in records[start : start + batch_size]]
                    model.objects.bulk_create(batch)
                    created += len(batch)

            self.invalidate(str(model._meta.verbose_name_plural).lower())
            self.logger.info(f"Batch inserted {created} {model.__name__} rows")
            return service_ok(created)

        except Exception as e:
            self.logger.error(f"Error batch inserting {model.__name__}: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    def invalidate(self, *patterns: str) -> None:
        """Drop cached entries for the given key fragments plus search results."""
        for pattern in patterns:
            self.cache.clear_by_pattern(pattern)
        self.cache.clear_by_pattern("search:")

    def preload_critical_data(self) -> None:
        """Warm the cache with categories, brands and the newest products."""
        results = [
            self.get_categories(),
            self.get_brands(),
            self.get_products(
                {"ordering": [{"column": "created_at", "ascending": False}], "range": {"from": 0, "to": 19}}
            ),
        ]
        failed = [result.error_detail for result in results if not result.ok]
        if failed:
            self.logger.warning(f"Critical data preload incomplete: {failed}")
        else:
            self.logger.info("Critical catalog data preloaded")
