import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("shops", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="District",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Timestamp when the record was created.", verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when the record was last updated.", verbose_name="updated at")),
                ("name", models.CharField(max_length=100, unique=True, verbose_name="name")),
                ("code", models.CharField(help_text="Short code, stored uppercase (e.g. GT).", max_length=10, unique=True, verbose_name="code")),
                ("description", models.TextField(blank=True, default="")),
                ("region", models.CharField(default="Cayman Islands", max_length=100)),
                (
                    "default_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Suggested fee shown to vendors configuring this district.",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                        verbose_name="default fee",
                    ),
                ),
                (
                    "default_estimated_days",
                    models.PositiveSmallIntegerField(
                        default=3,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(30),
                        ],
                        verbose_name="default estimated days",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Inactive districts are hidden and ignored by fee lookups.",
                        verbose_name="is active",
                    ),
                ),
                ("sort_order", models.PositiveIntegerField(default=0)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["sort_order", "name"],
                "indexes": [models.Index(fields=["is_active", "sort_order"], name="district_active_order_idx")],
            },
        ),
        migrations.CreateModel(
            name="VendorDeliveryConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Timestamp when the record was created.", verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when the record was last updated.", verbose_name="updated at")),
                ("delivery_enabled", models.BooleanField(default=False)),
                (
                    "provider_type",
                    models.CharField(
                        choices=[("VENDOR", "Vendor delivers"), ("MALL", "Mall delivers")],
                        default="VENDOR",
                        max_length=10,
                    ),
                ),
                (
                    "default_delivery_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "free_delivery_threshold",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Orders at or above this subtotal ship free. Empty disables.",
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("pickup_enabled", models.BooleanField(default=True)),
                ("pickup_address", models.CharField(blank=True, default="", max_length=255)),
                ("pickup_instructions", models.TextField(blank=True, default="")),
                (
                    "shop",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery_config",
                        to="shops.shop",
                        verbose_name="shop",
                    ),
                ),
            ],
            options={
                "verbose_name": "vendor delivery configuration",
            },
        ),
        migrations.CreateModel(
            name="DistrictFee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Timestamp when the record was created.", verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when the record was last updated.", verbose_name="updated at")),
                ("district_name", models.CharField(max_length=100)),
                ("district_code", models.CharField(max_length=10)),
                (
                    "fee",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("is_available", models.BooleanField(default=True)),
                (
                    "estimated_days",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Empty falls back to the district default.",
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(30),
                        ],
                    ),
                ),
                (
                    "config",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="district_fees",
                        to="delivery.vendordeliveryconfig",
                    ),
                ),
                (
                    "district",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="vendor_fees",
                        to="delivery.district",
                    ),
                ),
            ],
            options={
                "ordering": ["district__sort_order", "district_name"],
                "constraints": [
                    models.UniqueConstraint(fields=("config", "district"), name="unique_fee_per_district"),
                    models.CheckConstraint(condition=models.Q(("fee__gte", 0)), name="district_fee_non_negative"),
                ],
            },
        ),
    ]
