from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r"delivery/districts", views.PublicDistrictViewSet, basename="district")
router.register(r"admin/districts", views.AdminDistrictViewSet, basename="admin-district")

urlpatterns = [
    path("", include(router.urls)),
    path(
        "delivery/shops/<int:shop_id>/config/",
        views.ShopDeliveryConfigView.as_view(),
        name="shop-delivery-config",
    ),
    path(
        "delivery/shops/<int:shop_id>/check/",
        views.CheckDeliveryView.as_view(),
        name="shop-delivery-check",
    ),
    path(
        "delivery/shops/<int:shop_id>/options/",
        views.DeliveryOptionsView.as_view(),
        name="shop-delivery-options",
    ),
    path("delivery/my-config/", views.MyDeliveryConfigView.as_view(), name="my-delivery-config"),
    path(
        "delivery/my-config/toggle/",
        views.ToggleDeliveryView.as_view(),
        name="my-delivery-toggle",
    ),
    path(
        "delivery/my-config/district-fees/",
        views.DistrictFeeView.as_view(),
        name="my-district-fees",
    ),
    path(
        "delivery/my-config/district-fees/bulk/",
        views.BulkDistrictFeeView.as_view(),
        name="my-district-fees-bulk",
    ),
    path(
        "delivery/my-config/district-fees/<int:district_id>/",
        views.DistrictFeeDetailView.as_view(),
        name="my-district-fee-detail",
    ),
]
