from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, generics, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.authentication import UserTokenAuthentication
from core.capabilities import AdminCapability
from core.permissions import IsAdministrator

from .models import User
from .serializers import (
    AdminUserSerializer,
    EmailTokenObtainPairSerializer,
    LogoutSerializer,
    RoleChangeSerializer,
    UserBanSerializer,
    UserCreateSerializer,
    UserSerializer,
)


class RegisterView(generics.CreateAPIView):
    """Register a new user account."""

    authentication_classes = []
    permission_classes = [AllowAny]
    serializer_class = UserCreateSerializer


class EmailTokenObtainPairView(TokenObtainPairView):
    """JWT token obtain view that accepts email and password."""

    authentication_classes = []
    serializer_class = EmailTokenObtainPairSerializer
    permission_classes = [AllowAny]


class RefreshView(TokenRefreshView):
    authentication_classes = []
    permission_classes = [AllowAny]


class LogoutView(APIView):
    """Blacklist the refresh token and clear token cookies."""

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            RefreshToken(serializer.validated_data["refresh"]).blacklist()
        except TokenError:
            raise ValidationError({"refresh": "Token is invalid or expired."})
        response = Response({"success": True})
        response.delete_cookie(settings.USER_TOKEN_COOKIE)
        response.delete_cookie(settings.SELLER_TOKEN_COOKIE)
        return response


class UserDetailView(generics.RetrieveUpdateAPIView):
    """Current user profile."""

    authentication_classes = [UserTokenAuthentication]
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer
    http_method_names = ["get", "patch", "head", "options"]

    def get_object(self):
        return self.request.user


class AdminUserViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Administrator user management: role changes and bans."""

    permission_classes = [IsAdministrator]
    required_capability = AdminCapability.MANAGE_USERS
    serializer_class = AdminUserSerializer
    queryset = User.objects.order_by("email")
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["role", "is_banned", "is_active"]
    search_fields = ["email", "name"]

    @action(detail=True, methods=["post"], url_path="role")
    def change_role(self, request, pk=None):
        serializer = RoleChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "You cannot change your own role."}, status=status.HTTP_400_BAD_REQUEST
            )
        user.change_role(serializer.validated_data["role"])
        return Response(AdminUserSerializer(user).data)

    @action(detail=True, methods=["post"])
    def ban(self, request, pk=None):
        serializer = UserBanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = self.get_object()
        if user.pk == request.user.pk:
            return Response(
                {"detail": "You cannot ban yourself."}, status=status.HTTP_400_BAD_REQUEST
            )
        user.ban(serializer.validated_data["reason"])
        return Response(AdminUserSerializer(user).data)

    @action(detail=True, methods=["post"])
    def unban(self, request, pk=None):
        user = self.get_object()
        user.unban()
        return Response(AdminUserSerializer(user).data)
