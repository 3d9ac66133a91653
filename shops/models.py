"""
Shop model. A shop is owned by one user; its owner acts through a
shop-scoped token. Approval and ban state gate what the shop may do.
"""
from django.db import models
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .choices import ApprovalStatus


class Shop(models.Model):
    """Vendor storefront on the marketplace."""

    name = models.CharField(
        max_length=255,
        default="",
        verbose_name=_("name"),
        help_text=_("Display name of the shop."),
    )
    slug = models.SlugField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        verbose_name=_("slug"),
        help_text=_("URL-friendly identifier for the shop."),
    )
    email = models.EmailField(
        blank=True,
        default="",
        verbose_name=_("email"),
        help_text=_("Contact email of the shop."),
    )
    address = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name=_("address"),
    )
    phone_number = models.CharField(
        max_length=32,
        blank=True,
        default="",
        verbose_name=_("phone number"),
    )
    description = models.TextField(blank=True, default="", verbose_name=_("description"))
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("is active"),
        help_text=_("Whether the shop is active and visible."),
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="owned_shops",
        verbose_name=_("owner"),
        help_text=_("User who owns this shop."),
    )
    approval_status = models.CharField(
        max_length=10,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
        verbose_name=_("approval status"),
    )
    rejection_reason = models.TextField(blank=True, default="", verbose_name=_("rejection reason"))
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    is_banned = models.BooleanField(default=False, verbose_name=_("is banned"))
    ban_reason = models.TextField(blank=True, default="", verbose_name=_("ban reason"))
    banned_at = models.DateTimeField(null=True, blank=True)
    banned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_("created at"),
        help_text=_("Timestamp when the record was created."),
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name=_("updated at"),
        help_text=_("Timestamp when the record was last updated."),
    )

    class Meta:
        verbose_name = _("shop")
        verbose_name_plural = _("shops")
        indexes = [models.Index(fields=["approval_status"], name="shop_approval_status_idx")]

    def __str__(self):
        return self.name

    @property
    def is_approved(self):
        return self.approval_status == ApprovalStatus.APPROVED

    def approve(self, admin):
        self.approval_status = ApprovalStatus.APPROVED
        self.approved_by = admin
        self.approved_at = timezone.now()
        self.rejection_reason = ""
        self.rejected_by = None
        self.rejected_at = None
        self.save()

    def reject(self, admin, reason):
        self.approval_status = ApprovalStatus.REJECTED
        self.rejection_reason = reason
        self.rejected_by = admin
        self.rejected_at = timezone.now()
        self.approved_by = None
        self.approved_at = None
        self.save()

    def ban(self, admin, reason):
        self.is_banned = True
        self.ban_reason = reason or ""
        self.banned_by = admin
        self.banned_at = timezone.now()
        self.save()

    def unban(self):
        self.is_banned = False
        self.ban_reason = ""
        self.banned_by = None
        self.banned_at = None
        self.save()
