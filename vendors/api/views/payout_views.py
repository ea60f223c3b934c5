from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import AdminRequired, VendorRequired
from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from vendors.api.serializers import (
    CalculatePayoutRequestSerializer,
    CompletePayoutRequestSerializer,
    PayoutCalculationSerializer,
    PayoutReasonRequestSerializer,
    VendorPayoutSerializer,
)
from vendors.services import PayoutService

from .scope import resolve_vendor_scope

PAYOUT_TAGS = ["Vendors - Payouts"]


class PayoutViewSet(viewsets.ViewSet):
    """
    Vendor payouts.

    Vendors can read their own payouts. Generating a payout and moving it
    through processing, completion, failure or cancellation is admin only.
    """

    permission_classes = [IsAuthenticated, AdminRequired]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_service(self) -> PayoutService:
        return container.payout_service()

    def get_permissions(self):
        if self.action in ["list", "retrieve"]:
            return [IsAuthenticated(), VendorRequired()]
        return super().get_permissions()

    def payout_response(self, result):
        if not result.ok:
            return error_response(result)
        return Response(VendorPayoutSerializer(result.value).data)

    @extend_schema(
        operation_id="payouts_list",
        summary="List payouts",
        parameters=[
            OpenApiParameter(name="status", type=str, description="Filter by payout status"),
            OpenApiParameter(name="vendor", type=str, description="Admins only: vendor id (default all)"),
        ],
        responses={200: VendorPayoutSerializer(many=True)},
        tags=PAYOUT_TAGS,
    )
    def list(self, request):
        vendor, error = resolve_vendor_scope(request)
        if error:
            return error
        result = self.get_service().list_payouts(vendor, request.query_params.get("status"))
        if not result.ok:
            return error_response(result)
        return Response(VendorPayoutSerializer(result.value, many=True).data)

    @extend_schema(
        operation_id="payouts_retrieve",
        summary="Payout detail",
        responses={200: VendorPayoutSerializer, 404: OpenApiResponse(response=ErrorResponseSerializer)},
        tags=PAYOUT_TAGS,
    )
    def retrieve(self, request, pk=None):
        vendor, error = resolve_vendor_scope(request)
        if error:
            return error
        return self.payout_response(self.get_service().get_payout(pk, vendor=vendor))

    @extend_schema(
        operation_id="payouts_calculate",
        summary="Generate a payout for a vendor and period (admin)",
        description="""
        **What it receives:**
        - `vendor_id`, `period_start`, `period_end`

        **What it does:**
        - Collects the vendor's unpaid commissions created in the period
        - Creates a pending payout and links the commissions to it

        **What it returns:**
        - The payout, the commission lines it covers and a summary
        """,
        request=CalculatePayoutRequestSerializer,
        responses={
            201: PayoutCalculationSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Nothing to pay out"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Payout exists for this period"),
        },
        tags=PAYOUT_TAGS,
    )
    @action(detail=False, methods=["post"])
    def calculate(self, request):
        serializer = CalculatePayoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        vendor_result = container.vendor_service().get_vendor_by_id(data["vendor_id"])
        if not vendor_result.ok:
            return error_response(vendor_result)

        result = self.get_service().calculate_vendor_payout(
            vendor_result.value, data["period_start"], data["period_end"]
        )
        if not result.ok:
            return error_response(result)
        return Response(PayoutCalculationSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="payouts_process",
        summary="Mark a payout as processing (admin)",
        request=None,
        responses={200: VendorPayoutSerializer},
        tags=PAYOUT_TAGS,
    )
    @action(detail=True, methods=["post"])
    def process(self, request, pk=None):
        return self.payout_response(self.get_service().process_payout(pk))

    @extend_schema(
        operation_id="payouts_complete",
        summary="Mark a payout as paid (admin)",
        description="Commissions covered by the payout become `paid`.",
        request=CompletePayoutRequestSerializer,
        responses={200: VendorPayoutSerializer},
        tags=PAYOUT_TAGS,
    )
    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        serializer = CompletePayoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.payout_response(self.get_service().complete_payout(pk, serializer.validated_data["reference"]))

    @extend_schema(
        operation_id="payouts_fail",
        summary="Mark a payout as failed (admin)",
        description="The payout's commissions are released for a later payout.",
        request=PayoutReasonRequestSerializer,
        responses={200: VendorPayoutSerializer},
        tags=PAYOUT_TAGS,
    )
    @action(detail=True, methods=["post"])
    def fail(self, request, pk=None):
        serializer = PayoutReasonRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.payout_response(self.get_service().fail_payout(pk, serializer.validated_data["reason"]))

    @extend_schema(
        operation_id="payouts_cancel",
        summary="Cancel a pending payout (admin)",
        request=PayoutReasonRequestSerializer,
        responses={200: VendorPayoutSerializer},
        tags=PAYOUT_TAGS,
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = PayoutReasonRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return self.payout_response(self.get_service().cancel_payout(pk, serializer.validated_data["reason"]))
