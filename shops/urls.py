"""URL configuration for shops app."""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    AdminShopViewSet, ShopBanStatusView, ShopMeView, ShopRegisterView, ShopTokenView,
)

router = DefaultRouter()
router.register(r"admin/shops", AdminShopViewSet, basename="admin-shop")

urlpatterns = [
    path("", include(router.urls)),
    path("auth/shop-token/", ShopTokenView.as_view(), name="shop-token"),
    path("shops/register/", ShopRegisterView.as_view(), name="shop-register"),
    path("shops/me/", ShopMeView.as_view(), name="shop-me"),
    path("shops/me/ban-status/", ShopBanStatusView.as_view(), name="shop-ban-status"),
]
