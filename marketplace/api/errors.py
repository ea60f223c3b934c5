from rest_framework import status
from rest_framework.response import Response

from marketplace.services.base import ErrorCodes, ServiceResult

PERMISSION_ERRORS = {
    ErrorCodes.PERMISSION_DENIED,
    ErrorCodes.NOT_PRODUCT_OWNER,
    ErrorCodes.NOT_ORDER_OWNER,
    ErrorCodes.VENDOR_NOT_ACTIVE,
}

SERVER_ERRORS = {ErrorCodes.INTERNAL_ERROR, ErrorCodes.DATABASE_ERROR}


def status_for_error(error: str) -> int:
    if error in SERVER_ERRORS:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    if error in PERMISSION_ERRORS:
        return status.HTTP_403_FORBIDDEN
    if error.endswith("_not_found") or error == ErrorCodes.ITEM_NOT_IN_CART:
        return status.HTTP_404_NOT_FOUND
    if error.endswith("_already_exists"):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def error_response(result: ServiceResult) -> Response:
    """Translate a failed ServiceResult into {"detail", "code"} with the matching HTTP status."""
    return Response({"detail": result.error_detail, "code": result.error}, status=status_for_error(result.error))
