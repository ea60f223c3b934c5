from authentication.api.serializers.auth_serializers import UserRegistrationSerializer, UserSerializer
from authentication.api.serializers.jwt_serializers import CustomTokenObtainPairSerializer

__all__ = [
    "UserSerializer",
    "UserRegistrationSerializer",
    "CustomTokenObtainPairSerializer",
]
