from .auth_views import LoginAPIView, LogoutAPIView, MeAPIView, RegisterAPIView

__all__ = ["RegisterAPIView", "LoginAPIView", "MeAPIView", "LogoutAPIView"]
