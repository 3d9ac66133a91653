from django.contrib.auth import authenticate
from django.contrib.auth.models import update_last_login
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.settings import api_settings

from .choices import Role
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """User profile with editable name."""

    class Meta:
        model = User
        fields = ["id", "email", "name", "role", "is_active", "is_banned", "ban_reason"]
        read_only_fields = ["id", "email", "role", "is_active", "is_banned", "ban_reason"]


class AdminUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "role",
            "role_changed_at",
            "is_active",
            "is_banned",
            "ban_reason",
            "banned_at",
            "date_joined",
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for user registration."""

    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ["id", "email", "password", "name"]
        read_only_fields = ["id"]

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class RoleChangeSerializer(serializers.Serializer):
    # store_manager is granted only through a store manager assignment.
    role = serializers.ChoiceField(
        choices=[choice for choice in Role.choices if choice[0] != Role.STORE_MANAGER]
    )


class UserBanSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token serializer that accepts email for login (email-based auth)."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields.pop("username", None)
        self.fields.pop("email", None)
        self.fields["email"] = serializers.EmailField(write_only=True, required=True)

    def validate(self, attrs):
        email = attrs.get("email", "").strip()
        password = attrs.get("password")

        if not email:
            raise serializers.ValidationError({"email": "Email is required."})

        request = self.context.get("request")
        self.user = authenticate(request=request, username=email, password=password)
        if self.user is None:
            self.user = User.objects.filter(email__iexact=email).first()
            if self.user and not self.user.check_password(password):
                self.user = None

        if not api_settings.USER_AUTHENTICATION_RULE(self.user):
            raise serializers.ValidationError(
                {"detail": "No active account found with the given credentials."}
            )
        if self.user.is_banned:
            raise serializers.ValidationError(
                {"detail": "Your account has been banned. Reason: {}".format(
                    self.user.ban_reason or "No reason provided"
                )}
            )

        refresh = self.get_token(self.user)
        data = {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
            "user": UserSerializer(self.user).data,
        }

        if api_settings.UPDATE_LAST_LOGIN:
            update_last_login(None, self.user)

        return data
