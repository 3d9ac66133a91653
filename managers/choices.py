"""Choice enums for the store manager service."""

from django.db import models


class ServiceStatus(models.TextChoices):
    INACTIVE = "inactive", "Inactive"
    ACTIVE = "active", "Active"
    EXPIRED = "expired", "Expired"
    SUSPENDED = "suspended", "Suspended"


class PaymentMethod(models.TextChoices):
    PAYPAL = "paypal", "PayPal"
    ADMIN_ASSIGNED = "admin_assigned", "Assigned by admin"
    FREE_TRIAL = "free_trial", "Free trial"


class PaymentStatus(models.TextChoices):
    SUCCESS = "success", "Success"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class HistoryAction(models.TextChoices):
    ASSIGNED = "assigned", "Assigned"
    REMOVED = "removed", "Removed"
    SUSPENDED = "suspended", "Suspended"
    UNSUSPENDED = "unsuspended", "Unsuspended"
