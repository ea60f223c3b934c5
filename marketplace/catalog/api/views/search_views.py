from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import (
    ErrorResponseSerializer,
    FiltersResponseSerializer,
    SearchResponseSerializer,
    SuggestionsResponseSerializer,
)
from marketplace.catalog.api.serializers.product_serializers import ProductListSerializer, SearchQuerySerializer
from marketplace.services import SearchService


class SearchViewSet(viewsets.ViewSet):
    """
    ViewSet for search, suggestions and filter options.
    Delegates logic to SearchService.
    """

    permission_classes = [AllowAny]

    def get_service(self) -> SearchService:
        return container.search_service()

    @extend_schema(
        operation_id="products_search",
        summary="Search products",
        description="""
        **What it receives:**
        - `q`: text matched against name, description, brand and tags
        - `category`, `brand`, `min_price`, `max_price`, `rating`, `in_stock`, `on_sale`
        - `sort_by`: relevance | price_asc | price_desc | rating | newest | popular
        - `page`, `per_page`

        **What it returns:**
        - Matching products with pagination data
        """,
        parameters=[SearchQuerySerializer],
        responses={
            200: OpenApiResponse(response=SearchResponseSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid parameters"),
        },
        tags=["Marketplace - Search"],
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        params = SearchQuerySerializer(data=request.query_params)
        if not params.is_valid():
            return Response(params.errors, status=status.HTTP_400_BAD_REQUEST)

        service = self.get_service()
        filters, page, per_page = params.to_search_filters()
        result = service.search(filters, page=page, per_page=per_page)
        if not result.ok:
            return error_response(result)

        response_data = dict(result.value)
        response_data["results"] = ProductListSerializer(result.value["results"], many=True).data
        response_data["active_filters"] = service.active_filter_count(filters)
        return Response(response_data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="products_suggestions",
        summary="Search suggestions",
        responses={200: OpenApiResponse(response=SuggestionsResponseSerializer)},
        tags=["Marketplace - Search"],
    )
    @action(detail=False, methods=["get"])
    def suggestions(self, request):
        try:
            limit = min(int(request.query_params.get("limit", 5)), 20)
        except ValueError:
            return Response({"detail": "limit must be an integer"}, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().suggestions(request.query_params.get("q", ""), limit)
        if not result.ok:
            return error_response(result)
        return Response({"suggestions": result.value}, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="products_filter_options",
        summary="Available search filters",
        responses={200: OpenApiResponse(response=FiltersResponseSerializer)},
        tags=["Marketplace - Search"],
    )
    @action(detail=False, methods=["get"])
    def filters(self, request):
        result = self.get_service().filter_options()
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)
