from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views.commission_views import CommissionRuleViewSet, CommissionViewSet
from .api.views.payout_views import PayoutViewSet
from .api.views.vendor_views import VendorViewSet

router = DefaultRouter()
# Fixed prefixes first so they are not captured by the vendor detail route
router.register(r"commissions", CommissionViewSet, basename="commission")
router.register(r"commission-rules", CommissionRuleViewSet, basename="commission-rule")
router.register(r"payouts", PayoutViewSet, basename="payout")
router.register(r"", VendorViewSet, basename="vendor")

app_name = "vendors"

urlpatterns = [
    path("", include(router.urls)),
]
