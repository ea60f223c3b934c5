from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import AdminRequired
from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.models import Coupon
from marketplace.promotions.api.serializers.coupon_serializers import (
    CouponSerializer,
    CouponUsageSerializer,
    PublicCouponSerializer,
    ValidateCouponRequestSerializer,
)
from marketplace.services import CouponService

COUPON_TAGS = ["Marketplace - Coupons"]


@extend_schema_view(
    list=extend_schema(summary="List coupons (admin)", responses={200: CouponSerializer(many=True)}, tags=COUPON_TAGS),
    create=extend_schema(summary="Create coupon (admin)", request=CouponSerializer, tags=COUPON_TAGS),
    retrieve=extend_schema(summary="Get coupon (admin)", responses={200: CouponSerializer}, tags=COUPON_TAGS),
    partial_update=extend_schema(summary="Update coupon (admin)", request=CouponSerializer, tags=COUPON_TAGS),
    destroy=extend_schema(summary="Delete coupon (admin)", responses={204: None}, tags=COUPON_TAGS),
)
class CouponViewSet(viewsets.ViewSet):
    """
    Discount codes: public lookup/validation plus admin management.
    """

    permission_classes = [IsAuthenticated, AdminRequired]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_service(self) -> CouponService:
        return container.coupon_service()

    def get_permissions(self):
        if self.action == "available":
            return [AllowAny()]
        if self.action == "validate":
            return [IsAuthenticated()]
        return super().get_permissions()

    def list(self, request):
        is_active = request.query_params.get("is_active")
        result = self.get_service().list_coupons(None if is_active is None else is_active.lower() == "true")
        if not result.ok:
            return error_response(result)
        return Response(CouponSerializer(result.value, many=True).data)

    def create(self, request):
        serializer = CouponSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().create_coupon(dict(serializer.validated_data))
        if not result.ok:
            return error_response(result)
        return Response(CouponSerializer(result.value).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        coupon = Coupon.objects.filter(pk=pk).first()
        if coupon is None:
            return Response({"detail": f"Coupon {pk} not found", "code": "coupon_not_found"}, status=404)
        return Response(CouponSerializer(coupon).data)

    def partial_update(self, request, pk=None):
        serializer = CouponSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().update_coupon(pk, dict(serializer.validated_data))
        if not result.ok:
            return error_response(result)
        return Response(CouponSerializer(result.value).data)

    def destroy(self, request, pk=None):
        result = self.get_service().delete_coupon(pk)
        if not result.ok:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(summary="Coupon redemptions (admin)", responses={200: CouponUsageSerializer(many=True)}, tags=COUPON_TAGS)
    @action(detail=True, methods=["get"])
    def usage(self, request, pk=None):
        result = self.get_service().get_coupon_usage(pk)
        if not result.ok:
            return error_response(result)
        return Response(CouponUsageSerializer(result.value, many=True).data)

    @extend_schema(
        summary="Coupons currently available",
        responses={200: PublicCouponSerializer(many=True)},
        tags=COUPON_TAGS,
    )
    @action(detail=False, methods=["get"])
    def available(self, request):
        result = self.get_service().get_available_coupons()
        if not result.ok:
            return error_response(result)
        return Response(PublicCouponSerializer(result.value, many=True).data)

    @extend_schema(
        summary="Check a code against the current cart",
        request=ValidateCouponRequestSerializer,
        responses={
            200: OpenApiResponse(description="{valid, discount_amount, free_shipping, error_message}"),
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
        tags=COUPON_TAGS,
    )
    @action(detail=False, methods=["post"])
    def validate(self, request):
        serializer = ValidateCouponRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        cart_result = container.cart_service().get_cart(request.user)
        if not cart_result.ok:
            return error_response(cart_result)
        items = [{"product": item["product"], "quantity": item["quantity"]} for item in cart_result.value["items"]]

        result = self.get_service().validate_coupon(serializer.validated_data["code"], items, request.user)
        if not result.ok:
            return error_response(result)

        validation = result.value
        return Response(
            {
                "valid": validation["valid"],
                "code": validation["coupon"].code if validation["coupon"] else serializer.validated_data["code"],
                "discount_amount": validation["discount_amount"],
                "free_shipping": validation["free_shipping"],
                "error_message": validation["error_message"],
            }
        )
