from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .api import views

urlpatterns = [
    path("register/", views.RegisterAPIView.as_view(), name="register"),
    path("token/", views.LoginAPIView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("logout/", views.LogoutAPIView.as_view(), name="logout"),
    path("me/", views.MeAPIView.as_view(), name="me"),
]
