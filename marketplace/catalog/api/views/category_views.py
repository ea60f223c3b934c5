from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.catalog.api.serializers.category_serializers import CategorySerializer
from marketplace.catalog.api.serializers.product_serializers import ProductListSerializer
from marketplace.catalog.domain.models.catalog import Category
from marketplace.services import CatalogService


@extend_schema_view(
    list=extend_schema(
        summary="List all categories",
        description="Retrieve a list of all active product categories.",
        responses={200: CategorySerializer(many=True)},
        tags=["Marketplace - Categories"],
    ),
    retrieve=extend_schema(
        summary="Get category details",
        description="Retrieve details of a specific category by slug.",
        responses={200: CategorySerializer},
        tags=["Marketplace - Categories"],
    ),
)
class CategoryViewSet(viewsets.ViewSet):
    """
    ViewSet for categories - read-only operations using Service Layer
    """

    permission_classes = [AllowAny]
    lookup_field = "slug"

    def get_service(self) -> CatalogService:
        return container.catalog_service()

    def list(self, request):
        result = self.get_service().get_categories()
        if not result.ok:
            return error_response(result)
        return Response(CategorySerializer(result.value, many=True).data)

    def retrieve(self, request, slug=None):
        category = Category.objects.filter(slug=slug, is_active=True).first()
        if category is None:
            return Response({"detail": f"Category {slug} not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(CategorySerializer(category).data)

    @extend_schema(
        summary="Get products from category",
        description="Retrieve a page of active products within the specified category.",
        responses={200: ProductListSerializer(many=True)},
        tags=["Marketplace - Categories"],
    )
    @action(detail=True, methods=["get"])
    def products(self, request, slug=None):
        result = self.get_service().list_products({"category": slug}, int(request.query_params.get("page", 1)))
        if not result.ok:
            return error_response(result)
        return Response(ProductListSerializer(result.value["results"], many=True).data)
