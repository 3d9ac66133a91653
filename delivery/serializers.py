from decimal import Decimal

from rest_framework import serializers

from .models import MAX_ESTIMATED_DAYS, MIN_ESTIMATED_DAYS, District, DistrictFee, VendorDeliveryConfig
from .services import parse_fee


class FeeField(serializers.Field):
    """Money amount validated by ``parse_fee``; raises ``InvalidFeeValue``."""

    def to_internal_value(self, data):
        return parse_fee(data)

    def to_representation(self, value):
        return str(value)


class PublicDistrictSerializer(serializers.ModelSerializer):
    class Meta:
        model = District
        fields = [
            "id",
            "name",
            "code",
            "description",
            "region",
            "default_fee",
            "default_estimated_days",
            "sort_order",
        ]
        read_only_fields = fields


class DistrictSerializer(serializers.ModelSerializer):
    """Administrator CRUD. Name and code must be unique ignoring case."""

    class Meta:
        model = District
        fields = [
            "id",
            "name",
            "code",
            "description",
            "region",
            "default_fee",
            "default_estimated_days",
            "is_active",
            "sort_order",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        # Checked case-insensitively in validate().
        extra_kwargs = {"name": {"validators": []}, "code": {"validators": []}}

    def validate_code(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Code is required.")
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value

    def validate(self, attrs):
        name = attrs.get("name", getattr(self.instance, "name", ""))
        code = attrs.get("code", getattr(self.instance, "code", ""))
        existing = District.objects.duplicate_of(
            name, code, exclude_pk=getattr(self.instance, "pk", None)
        )
        if existing is not None:
            raise serializers.ValidationError(
                {"detail": "District with this name or code already exists."}
            )
        return attrs


class DistrictOrderSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    sort_order = serializers.IntegerField(min_value=0)


class ReorderSerializer(serializers.Serializer):
    orders = DistrictOrderSerializer(many=True, allow_empty=False)


class BulkDistrictSerializer(serializers.Serializer):
    districts = serializers.ListField(child=serializers.DictField(), allow_empty=False)


class DistrictFeeSerializer(serializers.ModelSerializer):
    fee = FeeField(read_only=True)
    estimated_days = serializers.IntegerField(
        source="effective_estimated_days", read_only=True
    )
    district_active = serializers.BooleanField(source="district.is_active", read_only=True)

    class Meta:
        model = DistrictFee
        fields = [
            "id",
            "district",
            "district_name",
            "district_code",
            "fee",
            "is_available",
            "estimated_days",
            "district_active",
        ]
        read_only_fields = fields


class DistrictFeeInputSerializer(serializers.Serializer):
    district = serializers.IntegerField()
    fee = FeeField()
    is_available = serializers.BooleanField(default=True)
    estimated_days = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=MIN_ESTIMATED_DAYS,
        max_value=MAX_ESTIMATED_DAYS,
    )


class BulkFeeSerializer(serializers.Serializer):
    """Items are passed through unvalidated; failures are reported per item."""

    fees = serializers.ListField(child=serializers.DictField(), allow_empty=False)


class VendorDeliveryConfigSerializer(serializers.ModelSerializer):
    """Seller view of the configuration, including fees for inactive districts."""

    district_fees = DistrictFeeSerializer(many=True, read_only=True)
    shop_name = serializers.CharField(source="shop.name", read_only=True)

    class Meta:
        model = VendorDeliveryConfig
        fields = [
            "id",
            "shop",
            "shop_name",
            "delivery_enabled",
            "provider_type",
            "default_delivery_fee",
            "free_delivery_threshold",
            "pickup_enabled",
            "pickup_address",
            "pickup_instructions",
            "district_fees",
            "updated_at",
        ]
        read_only_fields = ["id", "shop", "shop_name", "district_fees", "updated_at"]


class SaveConfigSerializer(serializers.ModelSerializer):
    district_fees = serializers.ListField(
        child=serializers.DictField(), required=False, allow_empty=True
    )

    class Meta:
        model = VendorDeliveryConfig
        fields = [
            "delivery_enabled",
            "provider_type",
            "default_delivery_fee",
            "free_delivery_threshold",
            "pickup_enabled",
            "pickup_address",
            "pickup_instructions",
            "district_fees",
        ]


class ToggleSerializer(serializers.Serializer):
    enabled = serializers.BooleanField()


class QuoteQuerySerializer(serializers.Serializer):
    district = serializers.IntegerField()
    subtotal = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), default=Decimal("0")
    )


class DeliveryQuoteSerializer(serializers.Serializer):
    available = serializers.BooleanField()
    fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    original_fee = serializers.DecimalField(max_digits=10, decimal_places=2)
    free_delivery = serializers.BooleanField()
    estimated_days = serializers.IntegerField()
    district_name = serializers.CharField()
    district_id = serializers.IntegerField()
    district_code = serializers.CharField()


class UnavailableSerializer(serializers.Serializer):
    available = serializers.BooleanField()
    reason = serializers.CharField()


class DeliveryOptionsSerializer(serializers.Serializer):
    delivery_enabled = serializers.BooleanField()
    options = DeliveryQuoteSerializer(many=True)
    pickup_enabled = serializers.BooleanField()
    pickup_address = serializers.CharField()
    pickup_instructions = serializers.CharField()
    free_delivery_threshold = serializers.DecimalField(
        max_digits=10, decimal_places=2, allow_null=True
    )
