from django.urls import path

from . import views

app_name = "system_info"

urlpatterns = [
    path("health/", views.health_ready, name="health"),
    path("health/live/", views.health_live, name="health-live"),
]
