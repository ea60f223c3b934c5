from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import AdminRequired, VendorRequired
from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from utils.rbac import is_admin
from vendors.api.serializers import (
    CalculateCommissionRequestSerializer,
    CommissionCalculationSerializer,
    CommissionListQuerySerializer,
    CommissionRuleSerializer,
    DateRangeQuerySerializer,
    DisputeCommissionRequestSerializer,
    VendorCommissionSerializer,
)
from vendors.services import CommissionInput, CommissionService

from .scope import resolve_vendor_scope

COMMISSION_TAGS = ["Vendors - Commissions"]


class CommissionViewSet(viewsets.ViewSet):
    """Commission ledger. Vendors see their own lines, admins see everything."""

    permission_classes = [IsAuthenticated, VendorRequired]
    lookup_value_regex = "[0-9]+"

    def get_service(self) -> CommissionService:
        return container.commission_service()

    @extend_schema(
        operation_id="commissions_list",
        summary="List commissions",
        parameters=[CommissionListQuerySerializer],
        responses={200: VendorCommissionSerializer(many=True)},
        tags=COMMISSION_TAGS,
    )
    def list(self, request):
        query = CommissionListQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        vendor, error = resolve_vendor_scope(request)
        if error:
            return error

        result = self.get_service().get_vendor_commissions(
            vendor, query.statuses(), query.validated_data.get("start_date"), query.validated_data.get("end_date")
        )
        if not result.ok:
            return error_response(result)
        return Response(VendorCommissionSerializer(result.value, many=True).data)

    @extend_schema(
        operation_id="commissions_dispute",
        summary="Dispute a commission",
        request=DisputeCommissionRequestSerializer,
        responses={
            200: VendorCommissionSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Commission cannot be disputed"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Another vendor's commission"),
        },
        tags=COMMISSION_TAGS,
    )
    @action(detail=True, methods=["post"])
    def dispute(self, request, pk=None):
        serializer = DisputeCommissionRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        vendor = None if is_admin(request.user) else getattr(request.user, "vendor_profile", None)
        if vendor is None and not is_admin(request.user):
            return Response(
                {"detail": "You do not have a vendor account", "code": "vendor_not_found"},
                status=status.HTTP_404_NOT_FOUND,
            )

        result = self.get_service().dispute_commission(pk, serializer.validated_data["reason"], vendor=vendor)
        if not result.ok:
            return error_response(result)
        return Response(VendorCommissionSerializer(result.value).data)

    @extend_schema(
        operation_id="commissions_calculate",
        summary="Preview the commission for a sale",
        description="""
        **What it receives:**
        - `base_amount`, optional `quantity` and `product_category`
        - Admins pass `vendor_id`; vendors always calculate for themselves

        **What it returns:**
        - Commission amount, rate, net payout, breakdown and applied rule ids
        """,
        request=CalculateCommissionRequestSerializer,
        responses={200: CommissionCalculationSerializer},
        tags=COMMISSION_TAGS,
    )
    @action(detail=False, methods=["post"])
    def calculate(self, request):
        serializer = CalculateCommissionRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        vendor, error = resolve_vendor_scope(request, vendor_id=data.get("vendor_id"), allow_all=False)
        if error:
            return error

        result = self.get_service().calculate_commission(
            CommissionInput(
                vendor_id=vendor.id,
                base_amount=data["base_amount"],
                quantity=data["quantity"],
                product_category=data["product_category"],
            )
        )
        if not result.ok:
            return error_response(result)
        return Response(CommissionCalculationSerializer(result.value).data)

    @extend_schema(
        operation_id="commissions_analytics",
        summary="Commission totals, trends and category breakdown",
        parameters=[
            DateRangeQuerySerializer,
            OpenApiParameter(name="vendor", type=str, description="Admins only: vendor id (default all)"),
        ],
        responses={200: OpenApiResponse(description="Commission analytics")},
        tags=COMMISSION_TAGS,
    )
    @action(detail=False, methods=["get"])
    def analytics(self, request):
        query = DateRangeQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        vendor, error = resolve_vendor_scope(request)
        if error:
            return error

        result = self.get_service().get_commission_analytics(
            vendor, query.validated_data.get("start_date"), query.validated_data.get("end_date")
        )
        if not result.ok:
            return error_response(result)
        return Response(result.value)

    @extend_schema(
        operation_id="commissions_performance",
        summary="Trailing 30-day performance used for commission bonuses",
        parameters=[OpenApiParameter(name="vendor", type=str, description="Admins only: vendor id")],
        responses={200: OpenApiResponse(description="Performance metrics and tier")},
        tags=COMMISSION_TAGS,
    )
    @action(detail=False, methods=["get"])
    def performance(self, request):
        vendor, error = resolve_vendor_scope(request, allow_all=False)
        if error:
            return error
        result = self.get_service().get_vendor_performance(vendor)
        if not result.ok:
            return error_response(result)
        return Response(result.value)


@extend_schema_view(
    list=extend_schema(
        summary="List commission rules (admin)",
        parameters=[OpenApiParameter(name="vendor", type=str, description="Global rules plus this vendor's")],
        responses={200: CommissionRuleSerializer(many=True)},
        tags=COMMISSION_TAGS,
    ),
    create=extend_schema(summary="Create commission rule (admin)", request=CommissionRuleSerializer, tags=COMMISSION_TAGS),
    partial_update=extend_schema(
        summary="Update commission rule (admin)", request=CommissionRuleSerializer, tags=COMMISSION_TAGS
    ),
)
class CommissionRuleViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, AdminRequired]
    lookup_value_regex = "[0-9]+"

    def get_service(self) -> CommissionService:
        return container.commission_service()

    def list(self, request):
        vendor = None
        vendor_id = request.query_params.get("vendor")
        if vendor_id:
            result = container.vendor_service().get_vendor_by_id(vendor_id)
            if not result.ok:
                return error_response(result)
            vendor = result.value

        result = self.get_service().get_commission_rules(vendor)
        if not result.ok:
            return error_response(result)
        return Response(CommissionRuleSerializer(result.value, many=True).data)

    def create(self, request):
        serializer = CommissionRuleSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().create_commission_rule(dict(serializer.validated_data))
        if not result.ok:
            return error_response(result)
        return Response(CommissionRuleSerializer(result.value).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = CommissionRuleSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_service().update_commission_rule(pk, dict(serializer.validated_data))
        if not result.ok:
            return error_response(result)
        return Response(CommissionRuleSerializer(result.value).data)
