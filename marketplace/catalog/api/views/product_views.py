import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import VendorRequired
from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import (
    CreateReviewRequestSerializer,
    ErrorResponseSerializer,
    ProductListResponseSerializer,
)
from marketplace.catalog.api.serializers.product_serializers import (
    ProductDetailSerializer,
    ProductListSerializer,
    ProductWriteSerializer,
)
from marketplace.catalog.api.serializers.review_serializers import ProductReviewSerializer
from marketplace.services import CatalogService
from utils.rbac import is_admin

logger = logging.getLogger(__name__)

FILTER_PARAMS = (
    "category",
    "brand",
    "brands",
    "min_price",
    "max_price",
    "in_stock",
    "on_sale",
    "featured",
    "vendor",
    "min_rating",
    "search",
    "tags",
    "ordering",
)


def acting_vendor(user):
    """The vendor a product mutation acts as; None for admins."""
    if is_admin(user):
        return None
    return getattr(user, "vendor_profile", None)


class ProductViewSet(viewsets.ViewSet):
    """
    ViewSet for products using the Service Layer.

    Products are looked up by UUID or slug.
    """

    permission_classes = [AllowAny]
    lookup_value_regex = "[^/]+"

    def get_service(self) -> CatalogService:
        return container.catalog_service()

    def get_permissions(self):
        if self.action in ["create", "partial_update", "destroy"]:
            return [IsAuthenticated(), VendorRequired()]
        if self.action == "reviews" and self.request.method == "POST":
            return [IsAuthenticated()]
        return super().get_permissions()

    @extend_schema(
        operation_id="products_list",
        summary="List products",
        parameters=[OpenApiParameter(name, str, required=False) for name in FILTER_PARAMS]
        + [OpenApiParameter("page", int, required=False), OpenApiParameter("page_size", int, required=False)],
        responses={200: OpenApiResponse(response=ProductListResponseSerializer)},
        tags=["Marketplace - Products"],
    )
    def list(self, request):
        service = self.get_service()
        filters = {name: request.query_params[name] for name in FILTER_PARAMS if name in request.query_params}

        try:
            page = int(request.query_params.get("page", 1))
            page_size = min(int(request.query_params.get("page_size", 20)), 100)
        except ValueError:
            return Response({"detail": "page and page_size must be integers"}, status=status.HTTP_400_BAD_REQUEST)

        result = service.list_products(filters, page, page_size)
        if not result.ok:
            return error_response(result)

        data = dict(result.value)
        data["results"] = ProductListSerializer(result.value["results"], many=True).data
        return Response(data)

    @extend_schema(
        operation_id="products_retrieve",
        summary="Get product details",
        responses={
            200: ProductDetailSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
        },
        tags=["Marketplace - Products"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_product(pk, track_view=True)
        if not result.ok:
            return error_response(result)
        return Response(ProductDetailSerializer(result.value).data)

    @extend_schema(
        operation_id="products_create",
        summary="Create a product (vendor)",
        request=ProductWriteSerializer,
        responses={
            201: ProductDetailSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Vendor not active"),
        },
        tags=["Marketplace - Products"],
    )
    def create(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        vendor = getattr(request.user, "vendor_profile", None)
        result = self.get_service().create_product(vendor, serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return Response(ProductDetailSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="products_partial_update",
        summary="Update a product (owning vendor or admin)",
        request=ProductWriteSerializer,
        responses={200: ProductDetailSerializer, 403: OpenApiResponse(response=ErrorResponseSerializer)},
        tags=["Marketplace - Products"],
    )
    def partial_update(self, request, pk=None):
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().update_product(acting_vendor(request.user), pk, serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return Response(ProductDetailSerializer(result.value).data)

    @extend_schema(
        operation_id="products_deactivate",
        summary="Deactivate a product (owning vendor or admin)",
        responses={204: None, 403: OpenApiResponse(response=ErrorResponseSerializer)},
        tags=["Marketplace - Products"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().deactivate_product(acting_vendor(request.user), pk)
        if not result.ok:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Featured products",
        responses={200: ProductListSerializer(many=True)},
        tags=["Marketplace - Products"],
    )
    @action(detail=False, methods=["get"])
    def featured(self, request):
        try:
            limit = int(request.query_params.get("limit", 8))
        except ValueError:
            limit = 8
        result = self.get_service().get_featured_products(limit=limit)
        if not result.ok:
            return error_response(result)
        return Response(ProductListSerializer(result.value, many=True).data)

    @extend_schema(
        summary="Related products",
        responses={200: ProductListSerializer(many=True)},
        tags=["Marketplace - Products"],
    )
    @action(detail=True, methods=["get"])
    def related(self, request, pk=None):
        service = self.get_service()
        product_result = service.get_product(pk, track_view=False)
        if not product_result.ok:
            return error_response(product_result)

        result = service.get_related_products(product_result.value)
        if not result.ok:
            return error_response(result)
        return Response(ProductListSerializer(result.value, many=True).data)

    @extend_schema(
        methods=["GET"],
        summary="List product reviews",
        responses={200: ProductReviewSerializer(many=True)},
        tags=["Marketplace - Reviews"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Review a product",
        request=CreateReviewRequestSerializer,
        responses={
            201: ProductReviewSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already reviewed"),
        },
        tags=["Marketplace - Reviews"],
    )
    @action(detail=True, methods=["get", "post"])
    def reviews(self, request, pk=None):
        product_result = self.get_service().get_product(pk, track_view=False)
        if not product_result.ok:
            return error_response(product_result)
        product = product_result.value
        review_service = container.review_service()

        if request.method == "GET":
            result = review_service.list_reviews(str(product.id))
            if not result.ok:
                return error_response(result)
            return Response(ProductReviewSerializer(result.value, many=True).data)

        serializer = CreateReviewRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = review_service.add_review(request.user, str(product.id), **serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return Response(ProductReviewSerializer(result.value).data, status=status.HTTP_201_CREATED)
