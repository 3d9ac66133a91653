"""Views for shops: seller self-service and administrator moderation."""
from django.conf import settings
from rest_framework import generics, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.capabilities import AdminCapability, ShopCapability
from core.credentials import credentials_from_request
from core.permissions import HasCapability, IsAdministrator, IsShopPrincipal
from core.resolver import default_resolver
from core.tokens import ShopAccessToken

from .filters import ShopFilter
from .models import Shop
from .serializers import (
    AdminShopSerializer,
    BanSerializer,
    BanStatusSerializer,
    RejectSerializer,
    ShopRegisterSerializer,
    ShopSerializer,
    ShopTokenSerializer,
)


def _token_response(shop, data, status_code=status.HTTP_200_OK):
    token = ShopAccessToken.for_shop(shop)
    response = Response({**data, "seller_token": str(token)}, status=status_code)
    response.set_cookie(
        settings.SELLER_TOKEN_COOKIE,
        str(token),
        max_age=int(settings.SHOP_TOKEN_LIFETIME.total_seconds()),
        httponly=True,
        samesite="Lax",
        secure=not settings.DEBUG,
    )
    return response


class ShopRegisterView(generics.CreateAPIView):
    """POST /api/shops/register/ - new shops start pending approval."""

    authentication_classes = []
    permission_classes = [AllowAny]
    serializer_class = ShopRegisterSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shop = serializer.save()
        return _token_response(shop, {"shop": ShopSerializer(shop).data}, status.HTTP_201_CREATED)


class ShopTokenView(APIView):
    """POST /api/auth/shop-token/ - issue a shop token to the shop"s owner."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = ShopTokenSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        shop = serializer.validated_data["shop"]
        return _token_response(shop, {"shop": ShopSerializer(shop).data})


class ShopMeView(generics.RetrieveUpdateAPIView):
    """
    GET /api/shops/me/ - readable while pending or rejected.
    PATCH /api/shops/me/ - owner only (store_settings), approved shops only.
    """

    permission_classes = [IsShopPrincipal, HasCapability]
    serializer_class = ShopSerializer
    http_method_names = ["get", "patch", "head", "options"]

    def get_required_capability(self, request):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return None
        return ShopCapability.STORE_SETTINGS

    def get_object(self):
        return self.request.auth.shop


class ShopBanStatusView(APIView):
    """GET /api/shops/me/ban-status/ - works for banned shops too."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get_authenticate_header(self, request):
        return 'Bearer realm="api"'

    def get(self, request):
        shop = default_resolver.identify_shop(credentials_from_request(request))
        return Response(BanStatusSerializer(shop).data)


class AdminShopViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Administrator moderation of shops."""

    permission_classes = [IsAdministrator]
    serializer_class = AdminShopSerializer
    queryset = Shop.objects.select_related("owner").order_by("-created_at")
    filterset_class = ShopFilter

    action_capabilities = {
        "approve": AdminCapability.APPROVE_VENDORS,
        "reject": AdminCapability.APPROVE_VENDORS,
        "ban": AdminCapability.MANAGE_VENDORS,
        "unban": AdminCapability.MANAGE_VENDORS,
    }

    def get_required_capability(self, request):
        return self.action_capabilities.get(self.action)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        shop = self.get_object()
        shop.approve(request.user)
        return Response(AdminShopSerializer(shop).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shop = self.get_object()
        shop.reject(request.user, serializer.validated_data["reason"])
        return Response(AdminShopSerializer(shop).data)

    @action(detail=True, methods=["post"])
    def ban(self, request, pk=None):
        serializer = BanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        shop = self.get_object()
        shop.ban(request.user, serializer.validated_data["reason"])
        return Response(AdminShopSerializer(shop).data)

    @action(detail=True, methods=["post"])
    def unban(self, request, pk=None):
        shop = self.get_object()
        shop.unban()
        return Response(AdminShopSerializer(shop).data)
