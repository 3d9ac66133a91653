"""Serializers for shop models."""
from django.contrib.auth import authenticate, get_user_model
from django.utils.text import slugify
from rest_framework import serializers

from .models import Shop

User = get_user_model()


class ShopSerializer(serializers.ModelSerializer):
    """The shop as its owner (or store manager) sees it."""

    class Meta:
        model = Shop
        fields = [
            "id", "name", "slug", "email", "address", "phone_number", "description",
            "is_active", "owner", "approval_status", "rejection_reason",
            "is_banned", "ban_reason", "created_at", "updated_at",
        ]
        read_only_fields = [
            "is_active", "owner", "approval_status", "rejection_reason",
            "is_banned", "ban_reason", "created_at", "updated_at",
        ]


class AdminShopSerializer(ShopSerializer):
    owner_email = serializers.EmailField(source="owner.email", read_only=True)

    class Meta(ShopSerializer.Meta):
        fields = ShopSerializer.Meta.fields + [
            "owner_email", "approved_at", "rejected_at", "banned_at",
        ]
        read_only_fields = fields


class BanStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shop
        fields = ["id", "name", "is_banned", "ban_reason", "banned_at", "approval_status", "rejection_reason"]
        read_only_fields = fields


class ShopRegisterSerializer(serializers.ModelSerializer):
    """
    Register a shop. The owner account is created when the email is new,
    otherwise the password must match the existing account.
    """

    owner_email = serializers.EmailField(write_only=True)
    owner_password = serializers.CharField(write_only=True, min_length=8)
    owner_name = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Shop
        fields = [
            "id", "name", "slug", "email", "address", "phone_number", "description",
            "approval_status", "owner_email", "owner_password", "owner_name",
        ]
        read_only_fields = ["id", "approval_status"]

    def validate(self, attrs):
        email = attrs["owner_email"].strip().lower()
        owner = User.objects.filter(email__iexact=email).first()
        if owner is not None and not owner.check_password(attrs["owner_password"]):
            raise serializers.ValidationError({"owner_email": "An account with this email already exists."})
        if owner is not None and owner.is_banned:
            raise serializers.ValidationError({"owner_email": "This account is banned."})
        attrs["owner_email"] = email
        attrs["_owner"] = owner
        if not attrs.get("slug"):
            attrs["slug"] = self._unique_slug(attrs["name"])
        return attrs

    def _unique_slug(self, name):
        base = slugify(name)[:90] or "shop"
        slug, n = base, 1
        while Shop.objects.filter(slug=slug).exists():
            n += 1
            slug = f"{base}-{n}"
        return slug

    def create(self, validated_data):
        owner = validated_data.pop("_owner")
        email = validated_data.pop("owner_email")
        password = validated_data.pop("owner_password")
        name = validated_data.pop("owner_name", "")
        if owner is None:
            owner = User.objects.create_user(email=email, password=password, name=name)
        return Shop.objects.create(owner=owner, **validated_data)


class ShopTokenSerializer(serializers.Serializer):
    """Owner email and password plus the shop to act for."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    shop = serializers.IntegerField()

    def validate(self, attrs):
        request = self.context.get("request")
        user = authenticate(request=request, username=attrs["email"].strip(), password=attrs["password"])
        if user is None:
            raise serializers.ValidationError({"detail": "No active account found with the given credentials."})
        shop = Shop.objects.filter(pk=attrs["shop"], owner=user, is_active=True).first()
        if shop is None:
            raise serializers.ValidationError({"shop": "You do not own an active shop with this id."})
        attrs["shop"] = shop
        return attrs


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=False, trim_whitespace=True)


class BanSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
