# Marketplace API Serializers

# Import response serializers for API documentation
from .response_serializers import (
    AddToCartRequestSerializer,
    ApplyCouponRequestSerializer,
    CancelOrderRequestSerializer,
    CartProductRequestSerializer,
    CartValidationResponseSerializer,
    CreateOrderRequestSerializer,
    CreateReviewRequestSerializer,
    ErrorResponseSerializer,
    FiltersResponseSerializer,
    OrderSummaryResponseSerializer,
    ProductListResponseSerializer,
    SearchResponseSerializer,
    SuccessResponseSerializer,
    SuggestionsResponseSerializer,
    TrackingRequestSerializer,
    UpdateCartRequestSerializer,
    UpdateOrderStatusRequestSerializer,
)


__all__ = [
    "AddToCartRequestSerializer",
    "ApplyCouponRequestSerializer",
    "CancelOrderRequestSerializer",
    "CartProductRequestSerializer",
    "CartValidationResponseSerializer",
    "CreateOrderRequestSerializer",
    "CreateReviewRequestSerializer",
    "ErrorResponseSerializer",
    "FiltersResponseSerializer",
    "OrderSummaryResponseSerializer",
    "ProductListResponseSerializer",
    "SearchResponseSerializer",
    "SuccessResponseSerializer",
    "SuggestionsResponseSerializer",
    "TrackingRequestSerializer",
    "UpdateCartRequestSerializer",
    "UpdateOrderStatusRequestSerializer",
]
