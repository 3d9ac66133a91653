"""Choice enums for accounts app."""

from django.db import models


class Role(models.TextChoices):
    USER = "User", "User"
    SUPPLIER = "Supplier", "Supplier"
    STORE_MANAGER = "store_manager", "Store Manager"
    ADMIN = "Admin", "Admin"
    SUB_ADMIN = "SubAdmin", "Sub Admin"
    MANAGER = "Manager", "Manager"


# Platform staff roles. Their capabilities come from core.capabilities.ROLE_PERMISSIONS.
ADMIN_ROLES = frozenset(r.value for r in (Role.ADMIN, Role.SUB_ADMIN, Role.MANAGER))

# Roles a shop owner may promote to store manager.
ASSIGNABLE_MANAGER_ROLES = frozenset(r.value for r in (Role.USER, Role.STORE_MANAGER))
