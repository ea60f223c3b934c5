from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container  # For DI
from marketplace.api.errors import error_response
from marketplace.api.serializers import (
    AddToCartRequestSerializer,
    ApplyCouponRequestSerializer,
    CartProductRequestSerializer,
    CartValidationResponseSerializer,
    ErrorResponseSerializer,
    UpdateCartRequestSerializer,
)
from marketplace.cart.api.serializers.cart_serializers import CartServiceOutputSerializer
from marketplace.services import CartService

CART_TAGS = ["Marketplace - Cart"]


def cart_responses(description, extra=None):
    responses = {
        200: OpenApiResponse(response=CartServiceOutputSerializer, description=description),
        500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
    }
    responses.update(extra or {})
    return responses


class CartViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CartService:
        # Inject CartService via DI container
        return container.cart_service()

    def cart_response(self, result):
        if not result.ok:
            return error_response(result)
        return Response(CartServiceOutputSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="cart_get",
        summary="Get user's shopping cart",
        description="""
        **What it receives:**
        - Authentication token (header)

        **What it returns:**
        - Cart items with product details
        - Totals (subtotal, tax, shipping, discount, total)
        - Item count and applied coupon
        """,
        responses=cart_responses("Cart retrieved successfully"),
        tags=CART_TAGS,
    )
    def list(self, request):
        return self.cart_response(self.get_service().get_cart(request.user))

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add item to cart",
        description="""
        **What it receives:**
        - `product_id` (UUID): Product to add
        - `quantity` (integer, optional): Quantity to add (default: 1)

        **What it returns:**
        - Updated cart with all items
        """,
        request=AddToCartRequestSerializer,
        responses=cart_responses(
            "Item added successfully",
            {
                400: OpenApiResponse(response=ErrorResponseSerializer, description="Insufficient stock"),
                404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            },
        ),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["post"])
    def add_item(self, request):
        serializer = AddToCartRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().add_to_cart(
            request.user, str(serializer.validated_data["product_id"]), serializer.validated_data["quantity"]
        )
        return self.cart_response(result)

    @extend_schema(
        operation_id="cart_update_item",
        summary="Update item quantity in cart",
        description="""
        **What it receives:**
        - `product_id` (UUID): Product to update
        - `quantity` (integer): New quantity (0 or less removes the item)
        """,
        request=UpdateCartRequestSerializer,
        responses=cart_responses(
            "Item updated successfully",
            {404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart")},
        ),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["patch"])
    def update_item(self, request):
        serializer = UpdateCartRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().update_quantity(
            request.user, str(serializer.validated_data["product_id"]), serializer.validated_data["quantity"]
        )
        return self.cart_response(result)

    def _product_action(self, request, operation):
        serializer = CartProductRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.cart_response(operation(request.user, str(serializer.validated_data["product_id"])))

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove item from cart",
        request=CartProductRequestSerializer,
        responses=cart_responses(
            "Item removed successfully",
            {404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart")},
        ),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["delete"])
    def remove_item(self, request):
        return self._product_action(request, self.get_service().remove_from_cart)

    @extend_schema(
        operation_id="cart_increase_item",
        summary="Increase item quantity by one",
        request=CartProductRequestSerializer,
        responses=cart_responses("Quantity increased"),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["post"])
    def increase(self, request):
        return self._product_action(request, self.get_service().increase_quantity)

    @extend_schema(
        operation_id="cart_decrease_item",
        summary="Decrease item quantity by one (removes the line at 1)",
        request=CartProductRequestSerializer,
        responses=cart_responses("Quantity decreased"),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["post"])
    def decrease(self, request):
        return self._product_action(request, self.get_service().decrease_quantity)

    @extend_schema(
        operation_id="cart_clear",
        summary="Clear all items from cart",
        responses=cart_responses("Cart cleared"),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["delete"])
    def clear(self, request):
        service = self.get_service()
        result = service.clear_cart(request.user)
        if not result.ok:
            return error_response(result)
        return self.cart_response(service.get_cart(request.user))

    @extend_schema(
        operation_id="cart_apply_coupon",
        summary="Apply a discount code",
        request=ApplyCouponRequestSerializer,
        responses=cart_responses(
            "Coupon applied",
            {400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid coupon or empty cart")},
        ),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["post"])
    def apply_coupon(self, request):
        serializer = ApplyCouponRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.cart_response(self.get_service().apply_coupon(request.user, serializer.validated_data["code"]))

    @extend_schema(
        operation_id="cart_remove_coupon",
        summary="Remove the applied discount code",
        request=None,
        responses=cart_responses("Coupon removed"),
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["post"])
    def remove_coupon(self, request):
        return self.cart_response(self.get_service().remove_coupon(request.user))

    @extend_schema(
        operation_id="cart_validate",
        summary="Validate cart before checkout",
        description="""
        **What it returns:**
        - `valid`: whether every line can be purchased
        - `issues`: inactive products and stock shortages
        """,
        responses={200: OpenApiResponse(response=CartValidationResponseSerializer)},
        tags=CART_TAGS,
    )
    @action(detail=False, methods=["get"])
    def validate(self, request):
        result = self.get_service().validate_cart(request.user)
        if not result.ok:
            return error_response(result)
        return Response(result.value, status=status.HTTP_200_OK)
