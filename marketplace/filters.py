import django_filters
from django.db.models import F, Q

from .models import Category, Product


class ProductFilter(django_filters.FilterSet):
    """
    Filter for products with various filtering options
    """

    # Price range filters
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")

    # Category filters
    category = django_filters.CharFilter(field_name="category__slug", lookup_expr="exact")
    category_id = django_filters.ModelChoiceFilter(
        field_name="category", queryset=Category.objects.filter(is_active=True)
    )

    # Brand filter
    brand = django_filters.CharFilter(lookup_expr="icontains")
    brands = django_filters.CharFilter(method="filter_brands")

    # Boolean filters
    featured = django_filters.BooleanFilter(field_name="is_featured")
    on_sale = django_filters.BooleanFilter(method="filter_on_sale")
    in_stock = django_filters.BooleanFilter(method="filter_in_stock")

    # Vendor filter
    vendor = django_filters.UUIDFilter(field_name="vendor__id")

    min_rating = django_filters.NumberFilter(field_name="rating", lookup_expr="gte")

    # Search in multiple fields
    search = django_filters.CharFilter(method="filter_search")

    # Tags filter
    tags = django_filters.CharFilter(method="filter_tags")

    # Sorting options
    ordering = django_filters.OrderingFilter(
        fields=(
            ("created_at", "created_at"),
            ("price", "price"),
            ("view_count", "popularity"),
            ("rating", "rating"),
            ("name", "name"),
        ),
    )

    class Meta:
        model = Product
        fields = ["category", "brand", "vendor"]

    def filter_brands(self, queryset, name, value):
        """Filter by multiple brands separated by comma"""
        if value:
            brand_list = [brand.strip() for brand in value.split(",")]
            return queryset.filter(brand__in=brand_list)
        return queryset

    def filter_on_sale(self, queryset, name, value):
        if value:
            return queryset.filter(compare_at_price__isnull=False, compare_at_price__gt=F("price"))
        elif value is False:
            return queryset.filter(Q(compare_at_price__isnull=True) | Q(compare_at_price__lte=F("price")))
        return queryset

    def filter_in_stock(self, queryset, name, value):
        if value:
            return queryset.filter(stock_quantity__gt=0)
        elif value is False:
            return queryset.filter(stock_quantity=0)
        return queryset

    def filter_search(self, queryset, name, value):
        """Search across multiple fields"""
        if value:
            return queryset.filter(
                Q(name__icontains=value)
                | Q(description__icontains=value)
                | Q(brand__icontains=value)
                | Q(tags__icontains=value)
            )
        return queryset

    def filter_tags(self, queryset, name, value):
        """Filter by tags (comma-separated)"""
        if value:
            tag_list = [tag.strip() for tag in value.split(",")]
            query = Q()
            for tag in tag_list:
                query |= Q(tags__icontains=tag)
            return queryset.filter(query)
        return queryset
