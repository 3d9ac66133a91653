"""Tests for capabilities and DRF permission classes."""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIRequestFactory

from accounts.choices import Role
from core.capabilities import (
    ROLE_PERMISSIONS,
    STORE_MANAGER_CAPABILITIES,
    AdminCapability,
    ShopCapability,
    permits,
)
from core.exceptions import (
    AccountNotApproved,
    InsufficientCapability,
    MissingCredential,
    PrincipalNotAssignable,
)
from core.permissions import HasCapability, IsAdministrator, IsShopOwner, IsShopPrincipal
from core.principals import Administrator, ShopOwner, StoreManager
from shops.choices import ApprovalStatus
from shops.models import Shop

User = get_user_model()

OWNER_ONLY = [
    "store_settings",
    "payment_settings",
    "refunds",
    "store_info",
    "withdraw",
    "subscription",
    "categories",
]


def admin_principal(role):
    return Administrator(user_id=1, role=role, permissions=ROLE_PERMISSIONS[role])


class PermitsTest(TestCase):
    def test_administrator_matches_role_table(self):
        everything = list(AdminCapability.values) + list(ShopCapability.values) + ["", "anything"]
        for role, granted in ROLE_PERMISSIONS.items():
            principal = admin_principal(role)
            for capability in everything:
                self.assertEqual(permits(principal, capability), capability in granted)

    def test_unknown_capability_denied_to_admin(self):
        self.assertFalse(permits(admin_principal(Role.ADMIN.value), "launch_rockets"))

    def test_admin_role_has_every_admin_capability(self):
        principal = admin_principal(Role.ADMIN.value)
        for capability in AdminCapability.values:
            self.assertTrue(permits(principal, capability))

    def test_sub_admin_cannot_manage_users(self):
        principal = admin_principal(Role.SUB_ADMIN.value)
        self.assertTrue(permits(principal, "can_approve_vendors"))
        self.assertFalse(permits(principal, "can_manage_users"))

    def test_store_manager_allow_list(self):
        manager = StoreManager(user_id=2, shop_id=1, service_id=1)
        self.assertEqual(STORE_MANAGER_CAPABILITIES, {"products", "inventory", "orders"})
        for capability in ("products", "inventory", "orders"):
            self.assertTrue(permits(manager, capability))
        for capability in OWNER_ONLY + ["delivery_config", "can_manage_users", "whatever"]:
            self.assertFalse(permits(manager, capability))

    def test_owner_permitted_everything(self):
        owner = ShopOwner(shop_id=1)
        for capability in list(ShopCapability.values) + ["whatever"]:
            self.assertTrue(permits(owner, capability))

    def test_owner_and_manager_differ_on_store_settings(self):
        owner = ShopOwner(shop_id=1)
        manager = StoreManager(user_id=2, shop_id=1, service_id=1)
        self.assertNotEqual(
            permits(owner, "store_settings"), permits(manager, "store_settings")
        )

    def test_no_principal(self):
        self.assertFalse(permits(None, "products"))

    def test_role_table_is_read_only(self):
        with self.assertRaises(TypeError):
            ROLE_PERMISSIONS["Admin"] = frozenset()


class PermissionClassesTest(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.owner = User.objects.create_user(email="owner@test.com", password="pass")
        self.shop = Shop.objects.create(
            name="Test Shop", slug="test-shop", owner=self.owner,
            approval_status=ApprovalStatus.APPROVED,
        )
        self.owner_principal = ShopOwner(shop_id=self.shop.pk, shop=self.shop)
        self.manager_principal = StoreManager(
            user_id=99, shop_id=self.shop.pk, service_id=1, shop=self.shop
        )

    def _request(self, method, principal):
        request = getattr(self.factory, method)("/")
        request.auth = principal
        return request

    def _view(self, capability=None):
        class View:
            required_capability = capability
        return View()

    def test_missing_principal(self):
        with self.assertRaises(MissingCredential):
            IsShopPrincipal().has_permission(self._request("get", None), self._view())

    def test_admin_is_not_shop_principal(self):
        request = self._request("get", admin_principal(Role.ADMIN.value))
        with self.assertRaises(PrincipalNotAssignable):
            IsShopPrincipal().has_permission(request, self._view())

    def test_is_shop_owner_rejects_manager(self):
        request = self._request("get", self.manager_principal)
        with self.assertRaises(InsufficientCapability):
            IsShopOwner().has_permission(request, self._view("store_settings"))
        self.assertTrue(
            IsShopOwner().has_permission(self._request("get", self.owner_principal), self._view())
        )

    def test_has_capability_manager_products(self):
        request = self._request("post", self.manager_principal)
        self.assertTrue(HasCapability().has_permission(request, self._view("products")))

    def test_has_capability_manager_store_settings(self):
        request = self._request("post", self.manager_principal)
        with self.assertRaises(InsufficientCapability) as ctx:
            HasCapability().has_permission(request, self._view("store_settings"))
        self.assertEqual(ctx.exception.capability, "store_settings")

    def test_pending_shop_can_read_not_write(self):
        self.shop.approval_status = ApprovalStatus.PENDING
        self.shop.save()
        view = self._view("store_settings")
        self.assertTrue(
            HasCapability().has_permission(self._request("get", self.owner_principal), view)
        )
        with self.assertRaises(AccountNotApproved) as ctx:
            HasCapability().has_permission(self._request("patch", self.owner_principal), view)
        self.assertEqual(ctx.exception.status, "pending")

    def test_is_administrator_with_capability(self):
        view = self._view("can_manage_users")
        self.assertTrue(
            IsAdministrator().has_permission(self._request("get", admin_principal(Role.MANAGER.value)), view)
        )
        with self.assertRaises(InsufficientCapability):
            IsAdministrator().has_permission(self._request("get", admin_principal(Role.SUB_ADMIN.value)), view)
        with self.assertRaises(InsufficientCapability):
            IsAdministrator().has_permission(self._request("get", self.owner_principal), view)
