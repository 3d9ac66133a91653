import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Shop",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(default="", help_text="Display name of the shop.", max_length=255, verbose_name="name")),
                (
                    "slug",
                    models.SlugField(
                        blank=True,
                        help_text="URL-friendly identifier for the shop.",
                        max_length=100,
                        null=True,
                        unique=True,
                        verbose_name="slug",
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", help_text="Contact email of the shop.", max_length=254, verbose_name="email")),
                ("address", models.CharField(blank=True, default="", max_length=255, verbose_name="address")),
                ("phone_number", models.CharField(blank=True, default="", max_length=32, verbose_name="phone number")),
                ("description", models.TextField(blank=True, default="", verbose_name="description")),
                ("is_active", models.BooleanField(default=True, help_text="Whether the shop is active and visible.", verbose_name="is active")),
                (
                    "approval_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=10,
                        verbose_name="approval status",
                    ),
                ),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="rejection reason")),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("is_banned", models.BooleanField(default=False, verbose_name="is banned")),
                ("ban_reason", models.TextField(blank=True, default="", verbose_name="ban reason")),
                ("banned_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Timestamp when the record was created.", verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when the record was last updated.", verbose_name="updated at")),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="User who owns this shop.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="owned_shops",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="owner",
                    ),
                ),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "rejected_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "banned_by",
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
                "verbose_name": "shop",
                "verbose_name_plural": "shops",
                "indexes": [models.Index(fields=["approval_status"], name="shop_approval_status_idx")],
            },
        ),
    ]
