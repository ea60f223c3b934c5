from datetime import timedelta

from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import AdminRequired, VendorRequired
from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.catalog.api.serializers.product_serializers import ProductListSerializer
from marketplace.ordering.api.serializers.order_serializers import OrderSerializer
from utils.rbac import is_admin
from vendors.api.serializers import (
    ApproveVendorRequestSerializer,
    DateRangeQuerySerializer,
    PublicVendorSerializer,
    SuspendVendorRequestSerializer,
    VendorListQuerySerializer,
    VendorListResponseSerializer,
    VendorOrderUpdateRequestSerializer,
    VendorRegistrationSerializer,
    VendorSerializer,
    VendorStatsSerializer,
    VendorUpdateSerializer,
)
from vendors.services import VendorService

from .scope import resolve_vendor_scope

VENDOR_TAGS = ["Vendors"]
DASHBOARD_TAGS = ["Vendors - Dashboard"]

DEFAULT_ANALYTICS_DAYS = 30


class VendorViewSet(viewsets.ViewSet):
    """
    Vendor registration, admin review and the vendor dashboard.

    Dashboard actions (stats, analytics, products, orders) act on the caller's
    own vendor account; admins pick a vendor with ``?vendor=<id>``.
    """

    permission_classes = [IsAuthenticated, AdminRequired]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_service(self) -> VendorService:
        return container.vendor_service()

    def get_permissions(self):
        if self.action == "retrieve":
            return [AllowAny()]
        if self.action in ["create", "me"]:
            return [IsAuthenticated()]
        if self.action in ["stats", "analytics", "products", "orders", "update_order"]:
            return [IsAuthenticated(), VendorRequired()]
        return super().get_permissions()

    def vendor_response(self, result, success_status=status.HTTP_200_OK):
        if not result.ok:
            return error_response(result)
        return Response(VendorSerializer(result.value).data, status=success_status)

    def _dashboard_vendor(self, request):
        return resolve_vendor_scope(request, allow_all=False)

    @extend_schema(
        operation_id="vendors_list",
        summary="Search vendors (admin)",
        parameters=[VendorListQuerySerializer],
        responses={200: VendorListResponseSerializer},
        tags=VENDOR_TAGS,
    )
    def list(self, request):
        query = VendorListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().get_vendors(**query.to_service_kwargs())
        if not result.ok:
            return error_response(result)
        return Response(VendorListResponseSerializer(result.value).data)

    @extend_schema(
        operation_id="vendors_register",
        summary="Register as a vendor",
        description="""
        **What it receives:**
        - `business_name` and optional business, contact and payout details

        **What it returns:**
        - The vendor profile with status `pending` until an admin approves it
        """,
        request=VendorRegistrationSerializer,
        responses={
            201: VendorSerializer,
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Already registered"),
        },
        tags=VENDOR_TAGS,
    )
    def create(self, request):
        serializer = VendorRegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        result = self.get_service().create_vendor(request.user, dict(serializer.validated_data))
        return self.vendor_response(result, success_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="vendors_retrieve",
        summary="Vendor profile",
        description="Public storefront fields; the vendor itself and admins get the full profile.",
        responses={200: VendorSerializer, 404: OpenApiResponse(response=ErrorResponseSerializer)},
        tags=VENDOR_TAGS,
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_vendor_by_id(pk)
        if not result.ok:
            return error_response(result)

        vendor = result.value
        user = request.user
        if user.is_authenticated and (vendor.user_id == user.id or is_admin(user)):
            return Response(VendorSerializer(vendor).data)
        if vendor.status != "active":
            return Response(
                {"detail": f"Vendor {pk} not found", "code": "vendor_not_found"}, status=status.HTTP_404_NOT_FOUND
            )
        return Response(PublicVendorSerializer(vendor).data)

    @extend_schema(
        operation_id="vendors_update",
        summary="Update a vendor (admin)",
        request=VendorUpdateSerializer,
        responses={200: VendorSerializer},
        tags=VENDOR_TAGS,
    )
    def partial_update(self, request, pk=None):
        serializer = VendorUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.vendor_response(
            self.get_service().update_vendor(pk, dict(serializer.validated_data), allow_admin_fields=True)
        )

    @extend_schema(
        operation_id="vendors_deactivate",
        summary="Deactivate a vendor (admin)",
        description="Soft delete: status becomes `inactive` and the vendor's products are hidden.",
        responses={200: VendorSerializer},
        tags=VENDOR_TAGS,
    )
    def destroy(self, request, pk=None):
        return self.vendor_response(self.get_service().delete_vendor(pk))

    @extend_schema(
        operation_id="vendors_approve",
        summary="Approve a vendor (admin)",
        request=ApproveVendorRequestSerializer,
        responses={200: VendorSerializer},
        tags=VENDOR_TAGS,
    )
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        serializer = ApproveVendorRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.vendor_response(self.get_service().approve_vendor(pk, serializer.validated_data["notes"]))

    @extend_schema(
        operation_id="vendors_suspend",
        summary="Suspend a vendor (admin)",
        request=SuspendVendorRequestSerializer,
        responses={200: VendorSerializer},
        tags=VENDOR_TAGS,
    )
    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):
        serializer = SuspendVendorRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.vendor_response(self.get_service().suspend_vendor(pk, serializer.validated_data["reason"]))

    @extend_schema(
        operation_id="vendors_me",
        summary="Own vendor profile",
        request=VendorUpdateSerializer,
        responses={
            200: VendorSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Admin-only field"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Not a vendor"),
        },
        tags=VENDOR_TAGS,
    )
    @action(detail=False, methods=["get", "patch"])
    def me(self, request):
        service = self.get_service()
        result = service.get_vendor_by_user(request.user)
        if not result.ok or request.method == "GET":
            return self.vendor_response(result)

        serializer = VendorUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.vendor_response(service.update_vendor(result.value.id, dict(serializer.validated_data)))

    @extend_schema(
        operation_id="vendors_stats",
        summary="Dashboard headline numbers",
        parameters=[OpenApiParameter(name="vendor", type=str, description="Admins only: vendor id")],
        responses={200: VendorStatsSerializer},
        tags=DASHBOARD_TAGS,
    )
    @action(detail=False, methods=["get"])
    def stats(self, request):
        vendor, error = self._dashboard_vendor(request)
        if error:
            return error
        result = self.get_service().get_vendor_stats(vendor)
        if not result.ok:
            return error_response(result)
        return Response(VendorStatsSerializer(result.value).data)

    @extend_schema(
        operation_id="vendors_analytics",
        summary="Analytics report for a date range",
        description="Defaults to the last 30 days.",
        parameters=[
            DateRangeQuerySerializer,
            OpenApiParameter(name="vendor", type=str, description="Admins only: vendor id"),
        ],
        responses={200: OpenApiResponse(description="Sales, product, customer, commission and financial sections")},
        tags=DASHBOARD_TAGS,
    )
    @action(detail=False, methods=["get"])
    def analytics(self, request):
        vendor, error = self._dashboard_vendor(request)
        if error:
            return error

        query = DateRangeQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)
        end_date = query.validated_data.get("end_date") or timezone.now()
        start_date = query.validated_data.get("start_date") or end_date - timedelta(days=DEFAULT_ANALYTICS_DAYS)

        result = container.analytics_service().generate_vendor_analytics(vendor, start_date, end_date)
        if not result.ok:
            return error_response(result)
        return Response(result.value)

    @extend_schema(
        operation_id="vendors_products",
        summary="Vendor's active products",
        responses={200: ProductListSerializer(many=True)},
        tags=DASHBOARD_TAGS,
    )
    @action(detail=False, methods=["get"])
    def products(self, request):
        vendor, error = self._dashboard_vendor(request)
        if error:
            return error
        result = self.get_service().get_vendor_products(vendor)
        if not result.ok:
            return error_response(result)
        return Response(ProductListSerializer(result.value, many=True).data)

    @extend_schema(
        operation_id="vendors_orders",
        summary="Orders containing the vendor's items",
        parameters=[OpenApiParameter(name="status", type=str, description="Filter by order status")],
        responses={200: OrderSerializer(many=True)},
        tags=DASHBOARD_TAGS,
    )
    @action(detail=False, methods=["get"])
    def orders(self, request):
        vendor, error = self._dashboard_vendor(request)
        if error:
            return error
        result = self.get_service().get_vendor_orders(vendor, request.query_params.get("status"))
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value, many=True).data)

    @extend_schema(
        operation_id="vendors_update_order",
        summary="Fulfil an order (status or tracking)",
        request=VendorOrderUpdateRequestSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Transition not allowed"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="None of your items"),
        },
        tags=DASHBOARD_TAGS,
    )
    @action(detail=False, methods=["patch"], url_path=r"orders/(?P<order_id>[0-9a-fA-F-]{36})")
    def update_order(self, request, order_id=None):
        vendor, error = self._dashboard_vendor(request)
        if error:
            return error

        serializer = VendorOrderUpdateRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().update_vendor_order(vendor, order_id, **serializer.validated_data)
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value).data)
