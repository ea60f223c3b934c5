"""Custom middleware helpers for the Motiff backend."""

from __future__ import annotations

from typing import Callable


class JWTCSRFBypassMiddleware:
    """Skip CSRF enforcement for stateless JWT authenticated requests.

    The API authenticates with ``Authorization: Bearer`` headers, so requests
    carrying one are marked exempt before ``CsrfViewMiddleware`` runs. Session
    based endpoints (the admin) keep their CSRF protection.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request):
        authorization = request.META.get("HTTP_AUTHORIZATION", "")
        if authorization.lower().startswith("bearer "):
            request._dont_enforce_csrf_checks = True  # type: ignore[attr-defined]
            request.META.setdefault("CSRF_SKIP_REASON", "jwt-bearer")
        return self.get_response(request)
