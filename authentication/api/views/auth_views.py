import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView

from authentication.api.serializers import (
    CustomTokenObtainPairSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)
from utils.logging_utils import mask_value

logger = logging.getLogger(__name__)


class RegisterAPIView(generics.CreateAPIView):
    permission_classes = [permissions.AllowAny]
    serializer_class = UserRegistrationSerializer

    @extend_schema(
        operation_id="auth_register",
        summary="Register a new account",
        description="""
        **What it receives:**
        - `username`, `email`, `password`, `password_confirm`
        - `first_name`, `last_name` (optional)

        **What it returns:**
        - The created user and a JWT access/refresh pair
        """,
        responses={
            201: OpenApiResponse(description="Account created"),
            400: OpenApiResponse(description="Validation errors"),
        },
        tags=["Authentication"],
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        refresh = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered user {mask_value(user.email)}")

        return Response(
            {
                "user": UserSerializer(user).data,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_201_CREATED,
        )


class LoginAPIView(TokenObtainPairView):
    """Obtain a JWT pair with email and password."""

    serializer_class = CustomTokenObtainPairSerializer


class MeAPIView(generics.RetrieveUpdateAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = UserSerializer

    def get_object(self):
        return self.request.user


class LogoutAPIView(generics.GenericAPIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        operation_id="auth_logout",
        summary="Invalidate a refresh token client side",
        responses={205: OpenApiResponse(description="Logged out")},
        tags=["Authentication"],
    )
    def post(self, request):
        refresh = request.data.get("refresh")
        if not refresh:
            return Response({"detail": "refresh token is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            RefreshToken(refresh)
        except TokenError as e:
            logger.warning(f"Logout with invalid refresh token for user {request.user.id}: {e}")
            return Response({"detail": "Invalid refresh token"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_205_RESET_CONTENT)
