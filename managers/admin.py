from django.contrib import admin

from .models import AssignmentHistory, ServiceAssignment, ServicePayment


class AssignmentHistoryInline(admin.TabularInline):
    model = AssignmentHistory
    extra = 0
    can_delete = False
    readonly_fields = ["user", "action", "actor", "reason", "created_at"]

    def has_add_permission(self, request, obj=None):
        return False


class ServicePaymentInline(admin.TabularInline):
    model = ServicePayment
    extra = 0
    can_delete = False
    readonly_fields = [
        "amount",
        "payment_method",
        "transaction_id",
        "period_start",
        "period_end",
        "status",
        "created_at",
    ]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(ServiceAssignment)
class ServiceAssignmentAdmin(admin.ModelAdmin):
    list_display = ["shop", "status", "assigned_manager", "subscription_end", "suspended_by_admin"]
    list_filter = ["status", "suspended_by_admin"]
    search_fields = ["shop__name", "assigned_manager__email"]
    readonly_fields = ["version", "created_at", "updated_at"]
    inlines = [AssignmentHistoryInline, ServicePaymentInline]
