from django.contrib import admin

from .models import District, DistrictFee, VendorDeliveryConfig


@admin.register(District)
class DistrictAdmin(admin.ModelAdmin):
    list_display = ["name", "code", "default_fee", "default_estimated_days", "is_active", "sort_order"]
    list_filter = ["is_active", "region"]
    search_fields = ["name", "code"]
    ordering = ["sort_order", "name"]


class DistrictFeeInline(admin.TabularInline):
    model = DistrictFee
    extra = 0
    readonly_fields = ["district_name", "district_code"]


@admin.register(VendorDeliveryConfig)
class VendorDeliveryConfigAdmin(admin.ModelAdmin):
    list_display = ["shop", "delivery_enabled", "provider_type", "free_delivery_threshold"]
    list_filter = ["delivery_enabled", "provider_type"]
    search_fields = ["shop__name"]
    inlines = [DistrictFeeInline]
