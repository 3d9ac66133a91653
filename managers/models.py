"""
Store Manager service.

A shop buys the service (one month, renewable) and may then assign one user
as its store manager. The manager acts on the shop with a restricted
capability set. One service row exists per shop; the manager history and
payment history are append-only.
"""
import math
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from common.models import CreatedAtModel, TimeStampedModel
from core.querysets import ShopScopedQuerySet

from .choices import HistoryAction, PaymentMethod, PaymentStatus, ServiceStatus


class ServiceAssignmentQuerySet(ShopScopedQuerySet):
    def live(self, now=None):
        """Active, not suspended, and inside the subscription window."""
        now = now or timezone.now()
        return self.filter(
            status=ServiceStatus.ACTIVE,
            suspended_by_admin=False,
        ).filter(Q(subscription_end__isnull=True) | Q(subscription_end__gte=now))

    def for_manager(self, user):
        user_pk = getattr(user, "pk", user)
        return self.filter(assigned_manager_id=user_pk)

    def overdue(self, now=None):
        now = now or timezone.now()
        return self.filter(status=ServiceStatus.ACTIVE, subscription_end__lt=now)


class ServiceAssignment(TimeStampedModel):
    """Store Manager service of one shop and its currently assigned manager."""

    shop = models.OneToOneField(
        "shops.Shop",
        on_delete=models.CASCADE,
        related_name="manager_service",
        verbose_name=_("shop"),
    )
    status = models.CharField(
        max_length=10,
        choices=ServiceStatus.choices,
        default=ServiceStatus.INACTIVE,
        verbose_name=_("status"),
    )
    subscription_start = models.DateTimeField(null=True, blank=True)
    subscription_end = models.DateTimeField(null=True, blank=True)
    auto_renew = models.BooleanField(default=False)

    assigned_manager = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="managed_services",
        verbose_name=_("assigned manager"),
    )
    assigned_at = models.DateTimeField(null=True, blank=True)

    suspended_by_admin = models.BooleanField(default=False)
    suspension_reason = models.TextField(blank=True, default="")
    suspended_at = models.DateTimeField(null=True, blank=True)
    suspended_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    currency = models.CharField(max_length=3, default="USD")
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.PAYPAL,
    )
    transaction_id = models.CharField(max_length=255, blank=True, default="")
    pending_order_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text=_("Payment order awaiting capture."),
    )
    purchased_at = models.DateTimeField(null=True, blank=True)

    version = models.PositiveIntegerField(
        default=0,
        help_text=_("Incremented on every manager assignment change."),
    )

    objects = ServiceAssignmentQuerySet.as_manager()

    class Meta:
        verbose_name = _("store manager service")
        verbose_name_plural = _("store manager services")
        constraints = [
            models.UniqueConstraint(
                fields=["assigned_manager"],
                condition=Q(status="active"),
                name="unique_active_assignment_per_manager",
            )
        ]

    def __str__(self):
        return f"Store manager service for {self.shop}"

    def is_expired(self, now=None):
        if self.subscription_end is None:
            return False
        return (now or timezone.now()) > self.subscription_end

    def is_live(self, now=None):
        if self.suspended_by_admin or self.status != ServiceStatus.ACTIVE:
            return False
        return not self.is_expired(now)

    def days_remaining(self, now=None):
        if self.subscription_end is None:
            return 0
        seconds = (self.subscription_end - (now or timezone.now())).total_seconds()
        return max(0, math.ceil(seconds / 86400))

    @property
    def has_manager(self):
        return self.is_live() and self.assigned_manager_id is not None


class AssignmentHistory(CreatedAtModel):
    """Append-only log of manager assignment actions."""

    service = models.ForeignKey(
        ServiceAssignment,
        on_delete=models.CASCADE,
        related_name="history",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="+",
    )
    action = models.CharField(max_length=12, choices=HistoryAction.choices)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text=_("Shop owner or administrator who performed the action."),
    )
    reason = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["created_at", "pk"]
        verbose_name_plural = _("assignment history")

    def __str__(self):
        return f"{self.action} {self.user} ({self.created_at:%Y-%m-%d})"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValueError("Assignment history entries are immutable.")
        super().save(*args, **kwargs)


class ServicePayment(CreatedAtModel):
    """Append-only payment history for service purchases and renewals."""

    service = models.ForeignKey(
        ServiceAssignment,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    transaction_id = models.CharField(max_length=255, blank=True, default="")
    period_start = models.DateTimeField()
    period_end = models.DateTimeField()
    status = models.CharField(
        max_length=10,
        choices=PaymentStatus.choices,
        default=PaymentStatus.SUCCESS,
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.amount} via {self.payment_method} ({self.status})"
