from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

admin_router = DefaultRouter()
admin_router.register(
    r"admin/store-manager-services", views.AdminServiceViewSet, basename="admin-store-manager-service"
)

urlpatterns = [
    path("store-manager/service/", views.ServiceStatusView.as_view(), name="store-manager-service"),
    path(
        "store-manager/service/purchase/",
        views.PurchaseServiceView.as_view(),
        name="store-manager-purchase",
    ),
    path("store-manager/manager/", views.ManagerAssignmentView.as_view(), name="store-manager-assign"),
    path("store-manager/history/", views.ServiceHistoryView.as_view(), name="store-manager-history"),
    path("store-manager/my-shop/", views.ManagedShopView.as_view(), name="store-manager-my-shop"),
    path("", include(admin_router.urls)),
]
