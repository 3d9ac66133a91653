"""
Reusable querysets filtered by shop and activity.

Use in views to scope data:
- Shop-scoped: ServiceAssignment, VendorDeliveryConfig
- Active: District (soft-deleted rows are inactive)
"""
from django.db import models


class ShopScopedQuerySet(models.QuerySet):
    """
    Queryset for models with shop FK. Filter by shop_id/shop_pk.
    """

    def for_shop(self, shop):
        """Filter to objects belonging to the given shop (pk or instance)."""
        shop_pk = getattr(shop, "pk", shop)
        return self.filter(shop_id=shop_pk)


class ActiveQuerySet(models.QuerySet):
    """
    Queryset for soft-deletable reference data.
    """

    def active(self):
        return self.filter(is_active=True)
