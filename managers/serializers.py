from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import serializers

from shops.models import Shop

from .models import AssignmentHistory, ServiceAssignment, ServicePayment
from .services import can_renew

User = get_user_model()


class ManagerSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "name"]
        read_only_fields = fields


class ServiceAssignmentSerializer(serializers.ModelSerializer):
    """Service state as seen by the shop owner and administrators."""

    assigned_manager = ManagerSummarySerializer(read_only=True)
    shop_name = serializers.CharField(source="shop.name", read_only=True)
    is_live = serializers.SerializerMethodField()
    days_remaining = serializers.SerializerMethodField()
    can_renew = serializers.SerializerMethodField()
    price = serializers.SerializerMethodField()

    class Meta:
        model = ServiceAssignment
        fields = [
            "id",
            "shop",
            "shop_name",
            "status",
            "is_live",
            "subscription_start",
            "subscription_end",
            "days_remaining",
            "can_renew",
            "auto_renew",
            "assigned_manager",
            "assigned_at",
            "suspended_by_admin",
            "suspension_reason",
            "suspended_at",
            "amount",
            "currency",
            "payment_method",
            "purchased_at",
            "price",
            "version",
        ]
        read_only_fields = fields

    def get_is_live(self, obj):
        return obj.is_live()

    def get_days_remaining(self, obj):
        return obj.days_remaining()

    def get_can_renew(self, obj):
        return can_renew(obj)

    def get_price(self, obj):
        return {
            "amount": str(settings.STORE_MANAGER_SERVICE_PRICE),
            "currency": settings.STORE_MANAGER_SERVICE_CURRENCY,
            "months": settings.STORE_MANAGER_SERVICE_MONTHS,
        }


class AssignmentHistorySerializer(serializers.ModelSerializer):
    user = ManagerSummarySerializer(read_only=True)
    actor_email = serializers.EmailField(source="actor.email", read_only=True, default=None)

    class Meta:
        model = AssignmentHistory
        fields = ["id", "user", "action", "actor_email", "reason", "created_at"]
        read_only_fields = fields


class ServicePaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServicePayment
        fields = [
            "id",
            "amount",
            "payment_method",
            "transaction_id",
            "period_start",
            "period_end",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class PurchaseSerializer(serializers.Serializer):
    renewal = serializers.BooleanField(default=False)


class AssignManagerSerializer(serializers.Serializer):
    """Manager is looked up by email."""

    email = serializers.EmailField()
    version = serializers.IntegerField(required=False, min_value=0)

    def validate_email(self, value):
        user = User.objects.filter(email__iexact=value.strip()).first()
        if user is None:
            raise serializers.ValidationError("No user with this email.")
        self.context["manager"] = user
        return value


class RemoveManagerSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    version = serializers.IntegerField(required=False, min_value=0)


class SuspendSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class GrantServiceSerializer(serializers.Serializer):
    shop = serializers.PrimaryKeyRelatedField(queryset=Shop.objects.all())
    months = serializers.IntegerField(min_value=1, max_value=12, default=1)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
