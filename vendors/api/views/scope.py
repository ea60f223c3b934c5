from rest_framework import status
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from utils.rbac import is_admin


def resolve_vendor_scope(request, vendor_id=None, allow_all=True):
    """
    Vendor a dashboard request is about.

    Vendors always get their own profile. Admins get the vendor named by
    ``vendor_id`` (or the ``vendor`` query param), or None for "all vendors"
    when ``allow_all`` is set.

    Returns (vendor, None) or (None, error Response).
    """
    if is_admin(request.user):
        vendor_id = vendor_id or request.query_params.get("vendor")
        if not vendor_id:
            if allow_all:
                return None, None
            return None, Response(
                {"detail": "vendor is required", "code": "invalid_input"}, status=status.HTTP_400_BAD_REQUEST
            )
        result = container.vendor_service().get_vendor_by_id(vendor_id)
        if not result.ok:
            return None, error_response(result)
        return result.value, None

    vendor = getattr(request.user, "vendor_profile", None)
    if vendor is None:
        return None, Response(
            {"detail": "You do not have a vendor account", "code": "vendor_not_found"},
            status=status.HTTP_404_NOT_FOUND,
        )
    return vendor, None
