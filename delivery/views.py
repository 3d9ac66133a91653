"""
Delivery endpoints.

Public: districts, a shop's delivery config, checkout quote, all options.
Seller (owner only, ``delivery_config``): my-config, save, toggle, fees.
Administrator (``can_manage_districts``): district CRUD, bulk, seed, reorder.
"""
from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.capabilities import AdminCapability, ShopCapability
from core.permissions import HasCapability, IsAdministrator, IsShopPrincipal
from shops.models import Shop

from . import districts, services
from .models import District
from .serializers import (
    BulkDistrictSerializer,
    BulkFeeSerializer,
    DeliveryOptionsSerializer,
    DeliveryQuoteSerializer,
    DistrictFeeInputSerializer,
    DistrictFeeSerializer,
    DistrictSerializer,
    PublicDistrictSerializer,
    QuoteQuerySerializer,
    ReorderSerializer,
    SaveConfigSerializer,
    ToggleSerializer,
    UnavailableSerializer,
    VendorDeliveryConfigSerializer,
)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


class PublicDistrictViewSet(viewsets.ReadOnlyModelViewSet):
    """GET /api/delivery/districts/ - active districts by sort order."""

    authentication_classes = []
    permission_classes = [AllowAny]
    serializer_class = PublicDistrictSerializer
    pagination_class = None
    queryset = District.objects.active()


class PublicShopMixin:
    authentication_classes = []
    permission_classes = [AllowAny]

    def get_shop(self):
        return get_object_or_404(Shop, pk=self.kwargs["shop_id"], is_active=True)


class ShopDeliveryConfigView(PublicShopMixin, APIView):
    """GET /api/delivery/shops/{shop_id}/config/"""

    def get(self, request, shop_id):
        return Response(services.public_config(self.get_shop()))


class CheckDeliveryView(PublicShopMixin, APIView):
    """GET /api/delivery/shops/{shop_id}/check/?district=&subtotal="""

    def get(self, request, shop_id):
        query = QuoteQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        quote = services.quote_delivery(
            self.get_shop(),
            query.validated_data["district"],
            query.validated_data["subtotal"],
        )
        if quote.available:
            return Response(DeliveryQuoteSerializer(quote).data)
        return Response(UnavailableSerializer(quote).data)


class DeliveryOptionsView(PublicShopMixin, APIView):
    """GET /api/delivery/shops/{shop_id}/options/?subtotal="""

    def get(self, request, shop_id):
        options = services.delivery_options(
            self.get_shop(), request.query_params.get("subtotal")
        )
        return Response(DeliveryOptionsSerializer(options).data)


# ---------------------------------------------------------------------------
# Seller
# ---------------------------------------------------------------------------


class SellerDeliveryMixin:
    permission_classes = [IsShopPrincipal, HasCapability]
    required_capability = ShopCapability.DELIVERY_CONFIG

    def get_shop(self):
        return self.request.auth.shop

    def config_response(self, config, **extra):
        data = VendorDeliveryConfigSerializer(config).data
        data.update(extra)
        return Response(data)


class MyDeliveryConfigView(SellerDeliveryMixin, APIView):
    """GET (auto-creates) and PUT the caller's delivery configuration."""

    def get(self, request):
        return self.config_response(services.get_or_create_config(self.get_shop()))

    def put(self, request):
        serializer = SaveConfigSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        district_fees = data.pop("district_fees", None)
        config, skipped = services.save_config(
            self.get_shop(), district_fees=district_fees, **data
        )
        return self.config_response(
            config,
            skipped=[{"district": item.district, "reason": item.reason} for item in skipped],
        )


class ToggleDeliveryView(SellerDeliveryMixin, APIView):
    def post(self, request):
        serializer = ToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        config = services.toggle_delivery(self.get_shop(), serializer.validated_data["enabled"])
        return self.config_response(config)


class DistrictFeeView(SellerDeliveryMixin, APIView):
    """POST upserts a district fee."""

    def post(self, request):
        serializer = DistrictFeeInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        entry = services.upsert_district_fee(
            self.get_shop(),
            data["district"],
            data["fee"],
            is_available=data["is_available"],
            estimated_days=data.get("estimated_days"),
        )
        return Response(DistrictFeeSerializer(entry).data)


class DistrictFeeDetailView(SellerDeliveryMixin, APIView):
    """DELETE removes a district fee; removing a missing one succeeds."""

    def delete(self, request, district_id):
        removed = services.remove_district_fee(self.get_shop(), district_id)
        return Response({"success": True, "removed": removed})


class BulkDistrictFeeView(SellerDeliveryMixin, APIView):
    def post(self, request):
        serializer = BulkFeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = services.bulk_set_fees(self.get_shop(), serializer.validated_data["fees"])
        return Response(
            {
                "updated": DistrictFeeSerializer(result.updated, many=True).data,
                "failed": [
                    {"district": item.district, "reason": item.reason}
                    for item in result.failed
                ],
            }
        )


# ---------------------------------------------------------------------------
# Administrator
# ---------------------------------------------------------------------------


class AdminDistrictViewSet(viewsets.ModelViewSet):
    """District management. DELETE deactivates instead of deleting."""

    permission_classes = [IsAdministrator]
    required_capability = AdminCapability.MANAGE_DISTRICTS
    serializer_class = DistrictSerializer
    queryset = District.objects.all()
    filterset_fields = ["is_active", "region"]
    pagination_class = None

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user, updated_by=self.request.user)

    def perform_update(self, serializer):
        serializer.save(updated_by=self.request.user)

    def destroy(self, request, *args, **kwargs):
        district = districts.deactivate_district(self.get_object(), self.request.user)
        return Response(DistrictSerializer(district).data)

    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk_create(self, request):
        serializer = BulkDistrictSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        created, errors = districts.bulk_create_districts(
            serializer.validated_data["districts"], request.user
        )
        return Response(
            {"created": DistrictSerializer(created, many=True).data, "errors": errors},
            status=status.HTTP_201_CREATED if created else status.HTTP_400_BAD_REQUEST,
        )

    @action(detail=False, methods=["post"])
    def seed(self, request):
        created, skipped = districts.seed_cayman_districts(request.user)
        return Response(
            {"created": DistrictSerializer(created, many=True).data, "skipped": skipped},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"])
    def reorder(self, request):
        serializer = ReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        count = districts.reorder_districts(serializer.validated_data["orders"], request.user)
        return Response({"success": True, "updated": count})
