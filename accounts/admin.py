from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils import timezone

from .models import User


@admin.register(User)
class UserAdmin(UserAdmin):
    list_display = ["email", "name", "role", "is_banned", "is_active", "date_joined"]
    list_filter = ["role", "is_banned", "is_staff", "is_active"]
    search_fields = ["email", "name"]
    ordering = ["email"]
    readonly_fields = ["role_changed_at", "banned_at"]
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Personal", {"fields": ("name",)}),
        ("Marketplace", {"fields": ("role", "role_changed_at", "is_banned", "ban_reason", "banned_at")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser")}),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (None, {"fields": ("email", "password1", "password2")}),
        ("Personal", {"fields": ("name",)}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser")}),
    )

    def save_model(self, request, obj, form, change):
        if change and "role" in form.changed_data:
            obj.role_changed_at = timezone.now()
        super().save_model(request, obj, form, change)
