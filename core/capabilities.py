"""
Capabilities and the capability check.

Shop capabilities gate what a shop principal may do on its own shop.
Administrator capabilities are derived from the staff role through
``ROLE_PERMISSIONS``, a read-only table built at import time.
"""
from types import MappingProxyType

from django.db import models

from accounts.choices import Role

from .principals import Administrator, ShopOwner, StoreManager


class ShopCapability(models.TextChoices):
    PRODUCTS = "products", "Products"
    INVENTORY = "inventory", "Inventory"
    ORDERS = "orders", "Orders"
    STORE_SETTINGS = "store_settings", "Store settings"
    PAYMENT_SETTINGS = "payment_settings", "Payment settings"
    REFUNDS = "refunds", "Refunds"
    STORE_INFO = "store_info", "Store info"
    WITHDRAW = "withdraw", "Withdraw"
    SUBSCRIPTION = "subscription", "Subscription"
    CATEGORIES = "categories", "Categories"
    DELIVERY_CONFIG = "delivery_config", "Delivery configuration"
    STORE_MANAGER_SERVICE = "store_manager_service", "Store manager service"


class AdminCapability(models.TextChoices):
    APPROVE_VENDORS = "can_approve_vendors", "Approve vendors"
    MANAGE_VENDORS = "can_manage_vendors", "Manage vendors"
    VIEW_ANALYTICS = "can_view_analytics", "View analytics"
    APPROVE_PRODUCTS = "can_approve_products", "Approve products"
    MANAGE_PRODUCTS = "can_manage_products", "Manage products"
    APPROVE_ADS = "can_approve_ads", "Approve ads"
    MANAGE_ADS = "can_manage_ads", "Manage ads"
    MODERATE_REVIEWS = "can_moderate_reviews", "Moderate reviews"
    MANAGE_ORDERS = "can_manage_orders", "Manage orders"
    MANAGE_COUPONS = "can_manage_coupons", "Manage coupons"
    MANAGE_CATEGORIES = "can_manage_categories", "Manage categories"
    MANAGE_USERS = "can_manage_users", "Manage users"
    MANAGE_DISTRICTS = "can_manage_districts", "Manage districts"
    MANAGE_STORE_MANAGER_SERVICES = (
        "can_manage_store_manager_services",
        "Manage store manager services",
    )
    MANAGE_SETUP = "can_manage_setup", "Manage setup"


# Everything else is denied to store managers.
STORE_MANAGER_CAPABILITIES = frozenset(
    c.value
    for c in (ShopCapability.PRODUCTS, ShopCapability.INVENTORY, ShopCapability.ORDERS)
)

# Capabilities a shop owner may never exercise. Empty: owners act on their
# own shop unrestricted, subject to the approval gate.
OWNER_EXCLUDED_CAPABILITIES = frozenset()

ROLE_PERMISSIONS = MappingProxyType(
    {
        Role.ADMIN.value: frozenset(AdminCapability.values),
        Role.SUB_ADMIN.value: frozenset(
            c.value
            for c in (
                AdminCapability.APPROVE_VENDORS,
                AdminCapability.APPROVE_PRODUCTS,
                AdminCapability.APPROVE_ADS,
                AdminCapability.MODERATE_REVIEWS,
                AdminCapability.VIEW_ANALYTICS,
            )
        ),
        Role.MANAGER.value: frozenset(
            c.value
            for c in (
                AdminCapability.MANAGE_VENDORS,
                AdminCapability.MANAGE_ORDERS,
                AdminCapability.MANAGE_PRODUCTS,
                AdminCapability.MANAGE_COUPONS,
                AdminCapability.MANAGE_CATEGORIES,
                AdminCapability.MANAGE_USERS,
                AdminCapability.VIEW_ANALYTICS,
            )
        ),
    }
)


def permissions_for_role(role, table=ROLE_PERMISSIONS):
    return table.get(str(role), frozenset())


def permits(principal, capability) -> bool:
    """Return True if ``principal`` may exercise ``capability``.

    Unknown capability strings are denied to administrators and store
    managers. Approval state is not considered here; see
    ``PrincipalResolver.authorize``.
    """
    if principal is None:
        return False
    capability = str(capability)
    if isinstance(principal, Administrator):
        return capability in principal.permissions
    if isinstance(principal, StoreManager):
        return capability in STORE_MANAGER_CAPABILITIES
    if isinstance(principal, ShopOwner):
        return capability not in OWNER_EXCLUDED_CAPABILITIES
    return False
