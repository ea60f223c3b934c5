from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from marketplace.infra.observability.metrics import query_cache_size
from marketplace.services import get_query_cache


@api_view(["GET"])
@permission_classes([AllowAny])
def metrics_export(request):
    """Prometheus scrape endpoint for storefront, cache and vendor metrics."""
    query_cache_size.set(len(get_query_cache()))
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
