"""
CatalogService - Product Browsing & Vendor Product CRUD

Handles product listing/detail pages, featured and related products, and the
vendor-side create/update/deactivate operations. Product mutations invalidate
the cached product, search, brand and category queries.
"""

from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import F

from marketplace.filters import ProductFilter
from marketplace.models import Category, Product

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from .cache import TTLCache, get_query_cache

PRODUCT_FIELDS = [
    "name",
    "description",
    "sku",
    "brand",
    "price",
    "compare_at_price",
    "stock_quantity",
    "images",
    "tags",
    "is_featured",
    "is_active",
]

# Cache key fragments holding product data
PRODUCT_CACHE_PATTERNS = ("products:", "search:", "brands:", "categories:")


class CatalogService(BaseService):
    """
    Service for managing product catalog operations.

    Responsibilities:
    - List products with filtering and pagination
    - Get product details (by id or slug) and record views
    - Featured and related products
    - Create/update/deactivate products (owning vendor or admin)

    A ``vendor`` argument of None on a mutation means an admin is acting.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        super().__init__()
        self.cache = cache if cache is not None else get_query_cache()

    def _base_queryset(self):
        return Product.objects.select_related("vendor", "category")

    @BaseService.log_performance
    def list_products(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        List active products with filtering and pagination.

        Filters are the ProductFilter parameters (category, brand, min_price,
        max_price, in_stock, on_sale, featured, vendor, search, ordering...).

        Example:
            >>> result = catalog_service.list_products(filters={"category": "electronics"}, page=1)
            >>> if result.ok:
            ...     products = result.value["results"]
            ...     total = result.value["count"]
        """
        try:
            product_filter = ProductFilter(filters or {}, queryset=self._base_queryset().filter(is_active=True))
            if not product_filter.is_valid():
                return service_err(ErrorCodes.INVALID_INPUT, str(dict(product_filter.errors)))

            paginator = Paginator(product_filter.qs, page_size)
            page_obj = paginator.get_page(page)

            result_data = {
                "results": list(page_obj.object_list),
                "count": paginator.count,
                "page": page_obj.number,
                "page_size": page_size,
                "num_pages": paginator.num_pages,
                "has_next": page_obj.has_next(),
                "has_previous": page_obj.has_previous(),
            }

            self.logger.info(f"Listed products: count={paginator.count}, page={page_obj.number}/{paginator.num_pages}")

            return service_ok(result_data)

        except Exception as e:
            self.logger.error(f"Error listing products: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def get_product(self, product_id_or_slug: str, track_view: bool = True) -> ServiceResult[Product]:
        """
        Get an active product by UUID or slug.

        Example:
            >>> result = catalog_service.get_product("wireless-mouse-1a2b3c4d")
        """
        try:
            queryset = self._base_queryset().filter(is_active=True)
            product = queryset.filter(slug=product_id_or_slug).first()
            if product is None:
                try:
                    product = queryset.get(id=product_id_or_slug)
                except (ValidationError, ValueError):
                    raise Product.DoesNotExist

            if track_view:
                Product.objects.filter(pk=product.pk).update(view_count=F("view_count") + 1)
                product.view_count += 1

            return service_ok(product)

        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id_or_slug} not found or inactive")
        except Exception as e:
            self.logger.error(f"Error getting product {product_id_or_slug}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_featured_products(self, limit: int = 8) -> ServiceResult[List[Product]]:
        try:
            products = self._base_queryset().filter(is_active=True, is_featured=True).order_by("-created_at")
            return service_ok(list(products[:limit]))
        except Exception as e:
            self.logger.error(f"Error getting featured products: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_related_products(self, product: Product, limit: int = 4) -> ServiceResult[List[Product]]:
        """Same category (or brand when uncategorised), best rated first."""
        try:
            queryset = self._base_queryset().filter(is_active=True).exclude(pk=product.pk)
            if product.category_id:
                queryset = queryset.filter(category_id=product.category_id)
            elif product.brand:
                queryset = queryset.filter(brand=product.brand)
            else:
                return service_ok([])
            return service_ok(list(queryset.order_by("-rating", "-view_count")[:limit]))
        except Exception as e:
            self.logger.error(f"Error getting related products for {product.id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def get_categories(self) -> ServiceResult[List[Category]]:
        return service_ok(list(Category.objects.filter(is_active=True).order_by("name")))

    def _resolve_category(self, data: Dict[str, Any]) -> ServiceResult[Optional[Category]]:
        category_ref = data.get("category_id") or data.get("category")
        if not category_ref:
            return service_ok(None)
        categories = Category.objects.filter(is_active=True)
        if str(category_ref).isdigit():
            category = categories.filter(pk=int(category_ref)).first()
        else:
            category = categories.filter(slug=category_ref).first()
        if category is None:
            return service_err(ErrorCodes.CATEGORY_NOT_FOUND, f"Category {category_ref} not found")
        return service_ok(category)

    def invalidate_product_cache(self) -> int:
        removed = sum(self.cache.clear_by_pattern(pattern) for pattern in PRODUCT_CACHE_PATTERNS)
        self.logger.debug(f"Invalidated {removed} cached product queries")
        return removed

    @BaseService.log_performance
    @transaction.atomic
    def create_product(self, vendor, data: Dict[str, Any]) -> ServiceResult[Product]:
        """
        Create a product for an active vendor.

        Example:
            >>> result = catalog_service.create_product(
            ...     vendor,
            ...     {"name": "Desk Lamp", "price": "39.90", "stock_quantity": 12, "category": "home"},
            ... )
        """
        if vendor is None or vendor.status != "active":
            return service_err(ErrorCodes.VENDOR_NOT_ACTIVE, "Only active vendors can create products")
        if not data.get("name") or data.get("price") is None:
            return service_err(ErrorCodes.INVALID_INPUT, "name and price are required")

        try:
            category_result = self._resolve_category(data)
            if not category_result.ok:
                return category_result

            product = Product.objects.create(
                vendor=vendor,
                category=category_result.value,
                **{field: data[field] for field in PRODUCT_FIELDS if field in data},
            )

            self.invalidate_product_cache()
            self.logger.info(f"Created product: {product.name} (id={product.id}) by vendor {vendor.id}")

            return service_ok(product)

        except Exception as e:
            self.logger.error(f"Error creating product: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def update_product(self, vendor, product_id: str, data: Dict[str, Any]) -> ServiceResult[Product]:
        """Update an existing product (owning vendor or admin)."""
        try:
            product = Product.objects.select_for_update().get(id=product_id)

            if vendor is not None and product.vendor_id != vendor.id:
                return service_err(ErrorCodes.NOT_PRODUCT_OWNER, "You do not own this product")

            updated_fields = []
            for field in PRODUCT_FIELDS:
                if field in data:
                    setattr(product, field, data[field])
                    updated_fields.append(field)

            if "category_id" in data or "category" in data:
                category_result = self._resolve_category(data)
                if not category_result.ok:
                    return category_result
                product.category = category_result.value
                updated_fields.append("category")

            if updated_fields:
                product.save(update_fields=updated_fields + ["updated_at"])
                self.invalidate_product_cache()

            self.logger.info(f"Updated product: {product.name} (id={product_id}), fields={updated_fields}")

            return service_ok(product)

        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            self.logger.error(f"Error updating product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def deactivate_product(self, vendor, product_id: str) -> ServiceResult[bool]:
        """Soft delete: the product stays referenced by past orders."""
        try:
            product = Product.objects.select_for_update().get(id=product_id)

            if vendor is not None and product.vendor_id != vendor.id:
                return service_err(ErrorCodes.NOT_PRODUCT_OWNER, "You do not own this product")

            product.is_active = False
            product.save(update_fields=["is_active", "updated_at"])
            self.invalidate_product_cache()

            self.logger.info(f"Deactivated product: {product.name} (id={product_id})")
            return service_ok(True)

        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except Exception as e:
            self.logger.error(f"Error deactivating product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))
