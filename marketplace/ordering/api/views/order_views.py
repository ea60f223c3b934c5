from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import AdminRequired
from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import (
    CancelOrderRequestSerializer,
    CreateOrderRequestSerializer,
    ErrorResponseSerializer,
    OrderSummaryResponseSerializer,
    TrackingRequestSerializer,
    UpdateOrderStatusRequestSerializer,
)
from marketplace.ordering.api.serializers.order_serializers import OrderSerializer
from marketplace.services import OrderService
from utils.rbac import is_admin

ORDER_TAGS = ["Marketplace - Orders"]


class OrderViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_service(self) -> OrderService:
        return container.order_service()

    def get_permissions(self):
        if self.action in ["update_status", "tracking"]:
            return [IsAuthenticated(), AdminRequired()]
        return super().get_permissions()

    def order_response(self, result, success_status=status.HTTP_200_OK):
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value).data, status=success_status)

    @extend_schema(
        operation_id="orders_list",
        summary="List user's orders (as buyer)",
        description="""
        **What it receives:**
        - Optional `status`, `payment_status`, `date_from`, `date_to` filters
        - Admins may pass `all=true` to list every buyer's orders

        **What it returns:**
        - Orders, newest first
        """,
        parameters=[
            OpenApiParameter(name="status", type=str, description="Filter by order status"),
            OpenApiParameter(name="payment_status", type=str, description="Filter by payment status"),
            OpenApiParameter(name="date_from", type=str, description="ISO datetime lower bound"),
            OpenApiParameter(name="date_to", type=str, description="ISO datetime upper bound"),
            OpenApiParameter(name="all", type=bool, description="Admins only: every buyer's orders"),
        ],
        responses={200: OrderSerializer(many=True)},
        tags=ORDER_TAGS,
    )
    def list(self, request):
        params = request.query_params
        filters = {key: params.get(key) for key in ("status", "payment_status", "date_from", "date_to")}
        if not (params.get("all", "").lower() == "true" and is_admin(request.user)):
            filters["buyer"] = request.user

        result = self.get_service().get_orders(filters)
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_create",
        summary="Checkout",
        description="""
        **What it receives:**
        - `shipping_address`, optional `billing_address`, `payment_method`, `notes`
        - Optional `items` ([{product_id, quantity}]) and `coupon_code` to order
          without the cart

        **What it returns:**
        - The created order (status `pending`)
        """,
        request=CreateOrderRequestSerializer,
        responses={
            201: OrderSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Empty/invalid cart or stock"),
        },
        tags=ORDER_TAGS,
    )
    def create(self, request):
        serializer = CreateOrderRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        service = self.get_service()
        common = {
            "shipping_address": data["shipping_address"],
            "billing_address": data.get("billing_address"),
            "payment_method": data["payment_method"],
            "notes": data.get("notes", ""),
        }
        if data.get("items"):
            result = service.create_order_from_items(
                request.user, data["items"], coupon_code=data.get("coupon_code") or None, **common
            )
        else:
            result = service.create_order(request.user, **common)
        return self.order_response(result, success_status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Get order details",
        responses={
            200: OrderSerializer,
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not your order"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=ORDER_TAGS,
    )
    def retrieve(self, request, pk=None):
        return self.order_response(self.get_service().get_order(pk, request.user))

    @extend_schema(
        operation_id="orders_summary",
        summary="Order counts per status and total spent",
        responses={200: OpenApiResponse(response=OrderSummaryResponseSerializer)},
        tags=ORDER_TAGS,
    )
    @action(detail=False, methods=["get"])
    def summary(self, request):
        result = self.get_service().get_order_summary(request.user)
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_cancel",
        summary="Cancel an order (buyer)",
        description="Allowed while the order is pending or confirmed. Reserved stock is released.",
        request=CancelOrderRequestSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Order can no longer be cancelled"),
        },
        tags=ORDER_TAGS,
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = CancelOrderRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.order_response(self.get_service().cancel_order(pk, request.user, serializer.validated_data["reason"]))

    @extend_schema(
        operation_id="orders_update_status",
        summary="Change order status (admin)",
        request=UpdateOrderStatusRequestSerializer,
        responses={
            200: OrderSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Transition not allowed"),
        },
        tags=ORDER_TAGS,
    )
    @action(detail=True, methods=["post"])
    def update_status(self, request, pk=None):
        serializer = UpdateOrderStatusRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().update_order_status(
            pk, serializer.validated_data["status"], notes=serializer.validated_data.get("notes"), actor=request.user
        )
        return self.order_response(result)

    @extend_schema(
        operation_id="orders_tracking",
        summary="Add tracking number (admin)",
        request=TrackingRequestSerializer,
        responses={200: OrderSerializer},
        tags=ORDER_TAGS,
    )
    @action(detail=True, methods=["post"])
    def tracking(self, request, pk=None):
        serializer = TrackingRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().add_tracking_number(
            pk, serializer.validated_data["tracking_number"], serializer.validated_data.get("carrier")
        )
        return self.order_response(result)
