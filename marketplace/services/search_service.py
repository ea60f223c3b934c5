"""
SearchService - Product Search & Filtering

Storefront search: text query plus category/brand/price/rating/stock/sale
filters, sorting and pagination. Result pages are cached in the query cache
for SEARCH_TTL seconds.
"""

import math
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db.models import F, Max, Min, Q

from marketplace.infra.observability.metrics import search_duration
from marketplace.models import Category, Product

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .cache import TTLCache, get_query_cache

# Filter values meaning "not set"
DEFAULT_SEARCH_FILTERS = {
    "query": "",
    "category": "",
    "brand": "",
    "min_price": 0,
    "max_price": 10000,
    "rating": 0,
    "in_stock": False,
    "on_sale": False,
    "sort_by": "relevance",
}

SORT_ORDERINGS = {
    "relevance": ["-created_at"],
    "newest": ["-created_at"],
    "price_asc": ["price", "-created_at"],
    "price_desc": ["-price", "-created_at"],
    "rating": ["-rating", "-review_count"],
    "popular": ["-view_count", "-created_at"],
}

MIN_SUGGESTION_LENGTH = 2


def normalize_filters(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    normalized = dict(DEFAULT_SEARCH_FILTERS)
    for key, value in (filters or {}).items():
        if key in normalized and value is not None:
            normalized[key] = value
    normalized["query"] = str(normalized["query"]).strip()
    return normalized


def active_filter_count(filters: Optional[Dict[str, Any]]) -> int:
    """Filters differing from their unset value; query and sort order excluded."""
    normalized = normalize_filters(filters)
    return sum(
        1
        for key, default in DEFAULT_SEARCH_FILTERS.items()
        if key not in ("query", "sort_by") and normalized[key] != default
    )


def has_active_filters(filters: Optional[Dict[str, Any]]) -> bool:
    return active_filter_count(filters) > 0


class SearchService(BaseService):
    """
    Service for product search.

    Responsibilities:
    - Filtered, sorted, paginated search
    - Query suggestions (autocomplete)
    - Filter options (categories, brands, price bounds)
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        super().__init__()
        self.cache = cache if cache is not None else get_query_cache()

    def active_filter_count(self, filters: Optional[Dict[str, Any]]) -> int:
        return active_filter_count(filters)

    def has_active_filters(self, filters: Optional[Dict[str, Any]]) -> bool:
        return has_active_filters(filters)

    def build_queryset(self, filters: Dict[str, Any]):
        queryset = Product.objects.filter(is_active=True).select_related("vendor", "category")

        query = filters["query"]
        if query:
            queryset = queryset.filter(
                Q(name__icontains=query)
                | Q(description__icontains=query)
                | Q(brand__icontains=query)
                | Q(tags__icontains=query)
            )

        if filters["category"]:
            queryset = queryset.filter(
                Q(category__slug=filters["category"]) | Q(category__name__iexact=filters["category"])
            )
        if filters["brand"]:
            queryset = queryset.filter(brand__iexact=filters["brand"])

        min_price = Decimal(str(filters["min_price"]))
        max_price = Decimal(str(filters["max_price"]))
        if min_price > 0:
            queryset = queryset.filter(price__gte=min_price)
        if max_price != DEFAULT_SEARCH_FILTERS["max_price"]:
            queryset = queryset.filter(price__lte=max_price)

        if Decimal(str(filters["rating"])) > 0:
            queryset = queryset.filter(rating__gte=filters["rating"])
        if filters["in_stock"]:
            queryset = queryset.filter(stock_quantity__gt=0)
        if filters["on_sale"]:
            queryset = queryset.filter(compare_at_price__isnull=False, compare_at_price__gt=F("price"))

        ordering = SORT_ORDERINGS.get(filters["sort_by"], SORT_ORDERINGS["relevance"])
        return queryset.order_by(*ordering)

    @BaseService.log_performance
    def search(self, filters: Optional[Dict[str, Any]] = None, page: int = 1, per_page: int = 20) -> ServiceResult[Dict]:
        """
        Search active products.

        Example:
            >>> result = search_service.search({"query": "lamp", "sort_by": "price_asc"}, page=1)
            >>> result.value["total"], result.value["total_pages"]
        """
        if page < 1 or per_page < 1:
            return service_err(ErrorCodes.INVALID_INPUT, "page and per_page must be positive")
        if filters and filters.get("sort_by") and filters["sort_by"] not in SORT_ORDERINGS:
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown sort option '{filters['sort_by']}'")

        try:
            normalized = normalize_filters(filters)
            cache_filters = {**normalized, "page": page, "per_page": per_page}

            cached = self.cache.get_search_results(normalized["query"], cache_filters)
            if cached is None:
                with search_duration.time():
                    queryset = self.build_queryset(normalized)
                    total = queryset.count()
                    offset = (page - 1) * per_page
                    results = list(queryset[offset : offset + per_page])
                self.cache.set_search_results(normalized["query"], cache_filters, results, total)
            else:
                results, total = cached["results"], cached["total"]

            self.logger.info(f"Search: query='{normalized['query']}', total={total}, page={page}")

            return service_ok(
                {
                    "results": results,
                    "total": total,
                    "page": page,
                    "per_page": per_page,
                    "total_pages": math.ceil(total / per_page) if total else 0,
                }
            )

        except Exception as e:
            self.logger.error(f"Error searching products: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def suggestions(self, query: str, limit: int = 5) -> ServiceResult[List[str]]:
        """Product names and brands matching the query, prefix matches first."""
        query = (query or "").strip()
        if len(query) < MIN_SUGGESTION_LENGTH:
            return service_ok([])

        try:
            active = Product.objects.filter(is_active=True)
            candidates = list(
                active.filter(name__istartswith=query).order_by("-view_count").values_list("name", flat=True)[:limit]
            )
            candidates += list(
                active.filter(brand__istartswith=query).order_by("brand").values_list("brand", flat=True).distinct()
            )
            candidates += list(
                active.filter(name__icontains=query).order_by("-view_count").values_list("name", flat=True)[:limit]
            )

            seen = set()
            suggestions = []
            for candidate in candidates:
                if candidate and candidate.lower() not in seen:
                    seen.add(candidate.lower())
                    suggestions.append(candidate)
            return service_ok(suggestions[:limit])

        except Exception as e:
            self.logger.error(f"Error building suggestions for '{query}': {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def filter_options(self) -> ServiceResult[Dict]:
        try:
            active = Product.objects.filter(is_active=True)
            bounds = active.aggregate(min_price=Min("price"), max_price=Max("price"))
            return service_ok(
                {
                    "categories": list(
                        Category.objects.filter(is_active=True).order_by("name").values("name", "slug")
                    ),
                    "brands": sorted(set(active.exclude(brand="").values_list("brand", flat=True))),
                    "price_range": {
                        "min": bounds["min_price"] or Decimal("0.00"),
                        "max": bounds["max_price"] or Decimal("0.00"),
                    },
                    "sort_options": list(SORT_ORDERINGS),
                }
            )
        except Exception as e:
            self.logger.error(f"Error building filter options: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
