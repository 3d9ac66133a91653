from django.contrib import admin

from .models import Shop


@admin.register(Shop)
class ShopAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "owner", "approval_status", "is_banned", "is_active", "created_at"]
    list_filter = ["approval_status", "is_banned", "is_active"]
    search_fields = ["name", "slug", "owner__email"]
    readonly_fields = ["approved_at", "approved_by", "rejected_at", "rejected_by", "banned_at", "banned_by"]
