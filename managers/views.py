"""
Store manager service endpoints.

Shop owner: service status, purchase, assign/remove manager, history.
Store manager: the shop they manage.
Administrator: list, suspend, unsuspend, grant.
"""
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.authentication import SellerOrManagerAuthentication
from core.capabilities import AdminCapability, ShopCapability
from core.permissions import HasCapability, IsAdministrator, IsShopOwner, IsShopPrincipal
from core.exceptions import InsufficientCapability
from core.principals import StoreManager

from .models import ServiceAssignment
from .serializers import (
    AssignManagerSerializer,
    AssignmentHistorySerializer,
    GrantServiceSerializer,
    PurchaseSerializer,
    RemoveManagerSerializer,
    ServiceAssignmentSerializer,
    ServicePaymentSerializer,
    SuspendSerializer,
)
from . import services


class ShopOwnerServiceMixin:
    permission_classes = [IsShopOwner, HasCapability]
    required_capability = ShopCapability.STORE_MANAGER_SERVICE

    def get_shop(self):
        return self.request.auth.shop


class ServiceStatusView(ShopOwnerServiceMixin, APIView):
    """GET /api/store-manager/service/"""

    def get(self, request):
        service = services.service_status(self.get_shop())
        return Response(ServiceAssignmentSerializer(service).data)


class PurchaseServiceView(ShopOwnerServiceMixin, APIView):
    """POST /api/store-manager/service/purchase/ - validate and price a purchase."""

    def post(self, request):
        serializer = PurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = services.start_purchase(
            self.get_shop(), renewal=serializer.validated_data["renewal"]
        )
        return Response(
            {
                "amount": str(service.amount),
                "currency": service.currency,
                "renewal": serializer.validated_data["renewal"],
                "service": ServiceAssignmentSerializer(service).data,
            }
        )


class ManagerAssignmentView(ShopOwnerServiceMixin, APIView):
    """POST assigns a manager, DELETE removes the current one."""

    def post(self, request):
        serializer = AssignManagerSerializer(data=request.data, context={})
        serializer.is_valid(raise_exception=True)
        service = services.assign_manager(
            self.get_shop(),
            serializer.context["manager"],
            actor=request.user,
            expected_version=serializer.validated_data.get("version"),
        )
        return Response(ServiceAssignmentSerializer(service).data)

    def delete(self, request):
        serializer = RemoveManagerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = services.remove_manager(
            self.get_shop(),
            actor=request.user,
            reason=serializer.validated_data["reason"],
            expected_version=serializer.validated_data.get("version"),
        )
        return Response(ServiceAssignmentSerializer(service).data)


class ServiceHistoryView(ShopOwnerServiceMixin, APIView):
    """GET /api/store-manager/history/ - assignment and payment history."""

    def get(self, request):
        service = services.get_or_create_service(self.get_shop())
        history = service.history.select_related("user", "actor")
        return Response(
            {
                "assignments": AssignmentHistorySerializer(history, many=True).data,
                "payments": ServicePaymentSerializer(service.payments.all(), many=True).data,
            }
        )


class ManagedShopView(APIView):
    """GET /api/store-manager/my-shop/ - the shop a store manager acts for."""

    authentication_classes = [SellerOrManagerAuthentication]
    permission_classes = [IsShopPrincipal]

    def get(self, request):
        principal = request.auth
        if not isinstance(principal, StoreManager):
            raise InsufficientCapability("store_manager")
        shop = principal.shop
        return Response(
            {
                "shop": {
                    "id": shop.pk,
                    "name": shop.name,
                    "slug": shop.slug,
                    "approval_status": shop.approval_status,
                },
                "service": ServiceAssignmentSerializer(principal.service).data,
            }
        )


class AdminServiceViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Administrator view of all store manager services."""

    permission_classes = [IsAdministrator]
    required_capability = AdminCapability.MANAGE_STORE_MANAGER_SERVICES
    serializer_class = ServiceAssignmentSerializer
    queryset = ServiceAssignment.objects.select_related("shop", "assigned_manager").order_by("-updated_at")
    filterset_fields = ["status", "suspended_by_admin"]

    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):
        serializer = SuspendSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = services.suspend(
            self.get_object(), request.user, serializer.validated_data["reason"]
        )
        return Response(ServiceAssignmentSerializer(service).data)

    @action(detail=True, methods=["post"])
    def unsuspend(self, request, pk=None):
        service = services.unsuspend(self.get_object(), request.user)
        return Response(ServiceAssignmentSerializer(service).data)

    @action(detail=True, methods=["get"])
    def history(self, request, pk=None):
        service = self.get_object()
        history = service.history.select_related("user", "actor")
        return Response(AssignmentHistorySerializer(history, many=True).data)

    @action(detail=False, methods=["post"])
    def grant(self, request):
        serializer = GrantServiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        service = services.grant_free_service(
            data["shop"], request.user, months=data["months"], reason=data["reason"]
        )
        return Response(ServiceAssignmentSerializer(service).data, status=status.HTTP_201_CREATED)
