from rest_framework_simplejwt.serializers import TokenObtainPairSerializer


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """JWT serializer that includes the user role in the token"""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        token["role"] = user.role
        token["is_vendor"] = user.role == "vendor"
        token["is_admin"] = user.role == "admin" or user.is_superuser

        return token
