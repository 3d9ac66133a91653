"""Choice enums for delivery app."""

from django.db import models


class ProviderType(models.TextChoices):
    VENDOR = "VENDOR", "Vendor delivers"
    MALL = "MALL", "Mall delivers"
