"""
URL configuration for the Mall of Cayman API.
"""
from django.contrib import admin
from django.urls import path, include

from config.health import health_view

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/health/", health_view),
    path("api/", include("api.urls")),
]
