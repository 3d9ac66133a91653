"""
Delivery models.

District is platform reference data and is never hard-deleted; vendors
configure one fee per district in their VendorDeliveryConfig.
"""
from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from common.models import TimeStampedModel
from core.querysets import ActiveQuerySet, ShopScopedQuerySet

from .choices import ProviderType

MIN_ESTIMATED_DAYS = 1
MAX_ESTIMATED_DAYS = 30


class DistrictQuerySet(ActiveQuerySet):
    def duplicate_of(self, name, code, exclude_pk=None):
        """Existing district with the same name or code, ignoring case."""
        qs = self.filter(
            Q(name__iexact=(name or "").strip()) | Q(code__iexact=(code or "").strip())
        )
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        return qs.first()


class District(TimeStampedModel):
    """Platform-defined delivery zone."""

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name=_("name"),
    )
    code = models.CharField(
        max_length=10,
        unique=True,
        verbose_name=_("code"),
        help_text=_("Short code, stored uppercase (e.g. GT)."),
    )
    description = models.TextField(blank=True, default="")
    region = models.CharField(max_length=100, default="Cayman Islands")
    default_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        verbose_name=_("default fee"),
        help_text=_("Suggested fee shown to vendors configuring this district."),
    )
    default_estimated_days = models.PositiveSmallIntegerField(
        default=3,
        validators=[MinValueValidator(MIN_ESTIMATED_DAYS), MaxValueValidator(MAX_ESTIMATED_DAYS)],
        verbose_name=_("default estimated days"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("is active"),
        help_text=_("Inactive districts are hidden and ignored by fee lookups."),
    )
    sort_order = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    objects = DistrictQuerySet.as_manager()

    class Meta:
        ordering = ["sort_order", "name"]
        indexes = [models.Index(fields=["is_active", "sort_order"], name="district_active_order_idx")]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        self.name = (self.name or "").strip()
        super().save(*args, **kwargs)


class VendorDeliveryConfig(TimeStampedModel):
    """A shop's delivery settings."""

    shop = models.OneToOneField(
        "shops.Shop",
        on_delete=models.CASCADE,
        related_name="delivery_config",
        verbose_name=_("shop"),
    )
    delivery_enabled = models.BooleanField(default=False)
    provider_type = models.CharField(
        max_length=10,
        choices=ProviderType.choices,
        default=ProviderType.VENDOR,
    )
    default_delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
    )
    free_delivery_threshold = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        help_text=_("Orders at or above this subtotal ship free. Empty disables."),
    )
    pickup_enabled = models.BooleanField(default=True)
    pickup_address = models.CharField(max_length=255, blank=True, default="")
    pickup_instructions = models.TextField(blank=True, default="")

    objects = ShopScopedQuerySet.as_manager()

    class Meta:
        verbose_name = _("vendor delivery configuration")

    def __str__(self):
        return f"Delivery config for {self.shop}"


class DistrictFee(TimeStampedModel):
    """
    Fee a vendor charges for one district.

    ``district_name`` and ``district_code`` are copied from the district
    when the fee is written and are not updated if the district is renamed.
    """

    config = models.ForeignKey(
        VendorDeliveryConfig,
        on_delete=models.CASCADE,
        related_name="district_fees",
    )
    district = models.ForeignKey(
        District,
        on_delete=models.PROTECT,
        related_name="vendor_fees",
    )
    district_name = models.CharField(max_length=100)
    district_code = models.CharField(max_length=10)
    fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    is_available = models.BooleanField(default=True)
    estimated_days = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(MIN_ESTIMATED_DAYS), MaxValueValidator(MAX_ESTIMATED_DAYS)],
        help_text=_("Empty falls back to the district default."),
    )

    class Meta:
        ordering = ["district__sort_order", "district_name"]
        constraints = [
            models.UniqueConstraint(fields=["config", "district"], name="unique_fee_per_district"),
            models.CheckConstraint(condition=models.Q(fee__gte=0), name="district_fee_non_negative"),
        ]

    def __str__(self):
        return f"{self.district_code}: {self.fee}"

    @property
    def effective_estimated_days(self):
        if self.estimated_days is not None:
            return self.estimated_days
        return self.district.default_estimated_days
