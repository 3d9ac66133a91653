from django.db import models
from django.utils.translation import gettext_lazy as _


class CreatedAtModel(models.Model):
    """Abstract base for append-only records: creation timestamp only."""

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_("created at"),
        help_text=_("Timestamp when the record was created."),
    )

    class Meta:
        abstract = True


class TimeStampedModel(CreatedAtModel):
    """Abstract base model with created_at and updated_at timestamps."""

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name=_("updated at"),
        help_text=_("Timestamp when the record was last updated."),
    )

    class Meta:
        abstract = True
