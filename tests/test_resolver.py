"""Tests for principal resolution."""
from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from accounts.choices import Role
from core.capabilities import ROLE_PERMISSIONS
from core.credentials import Credentials
from core.exceptions import (
    AccountBanned,
    AccountNotApproved,
    InsufficientCapability,
    InvalidOrExpiredCredential,
    MissingCredential,
    PrincipalNotAssignable,
    StaleCredentialAfterRoleChange,
)
from core.principals import Administrator, ShopOwner, StoreManager
from core.resolver import SELLER_OR_MANAGER, PrincipalResolver, issued_before_role_change
from core.tokens import ShopAccessToken
from managers import services as manager_services
from shops.choices import ApprovalStatus
from shops.models import Shop

User = get_user_model()


def user_token(user):
    return str(AccessToken.for_user(user))


def shop_token(shop):
    return str(ShopAccessToken.for_shop(shop))


class ResolverTestCase(TestCase):
    def setUp(self):
        self.resolver = PrincipalResolver()
        self.owner = User.objects.create_user(email="owner@test.com", password="pass")
        self.shop = Shop.objects.create(
            owner=self.owner,
            name="Test Shop",
            slug="test-shop",
            approval_status=ApprovalStatus.APPROVED,
        )

    def make_manager(self, email="manager@test.com"):
        manager = User.objects.create_user(email=email, password="pass")
        manager_services.activate_service(self.shop, "tx-{}".format(email))
        # Tokens minted in the same second as the role change are stale.
        manager_services.assign_manager(
            self.shop, manager, actor=self.owner, now=timezone.now() - timedelta(seconds=2)
        )
        manager.refresh_from_db()
        return manager


class ShopOwnerResolutionTest(ResolverTestCase):
    def test_shop_token_resolves_owner(self):
        principal = self.resolver.resolve(Credentials(shop_token=shop_token(self.shop)))
        self.assertIsInstance(principal, ShopOwner)
        self.assertEqual(principal.shop_id, self.shop.pk)
        self.assertEqual(principal.acting_user, self.owner)

    def test_no_credentials(self):
        with self.assertRaises(MissingCredential):
            self.resolver.resolve(Credentials())

    def test_garbage_token(self):
        with self.assertRaises(InvalidOrExpiredCredential):
            self.resolver.resolve(Credentials(shop_token="not-a-token"))

    def test_user_token_is_not_a_shop_token(self):
        with self.assertRaises(InvalidOrExpiredCredential):
            self.resolver.resolve(Credentials(shop_token=user_token(self.owner)))

    def test_inactive_shop(self):
        token = shop_token(self.shop)
        self.shop.is_active = False
        self.shop.save()
        with self.assertRaises(InvalidOrExpiredCredential):
            self.resolver.resolve(Credentials(shop_token=token))

    def test_banned_shop(self):
        token = shop_token(self.shop)
        self.shop.ban(None, "Counterfeit goods")
        with self.assertRaises(AccountBanned) as ctx:
            self.resolver.resolve(Credentials(shop_token=token))
        self.assertEqual(ctx.exception.reason, "Counterfeit goods")
        self.assertIn("Counterfeit goods", str(ctx.exception.detail))

    def test_banned_shop_does_not_fall_back_to_user(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        token = shop_token(self.shop)
        self.shop.ban(admin, "Fraud")
        with self.assertRaises(AccountBanned):
            self.resolver.resolve(Credentials(shop_token=token, user_token=user_token(admin)))

    def test_identify_shop_skips_ban_gate(self):
        token = shop_token(self.shop)
        self.shop.ban(None, "Fraud")
        shop = self.resolver.identify_shop(Credentials(shop_token=token))
        self.assertEqual(shop.pk, self.shop.pk)
        self.assertTrue(shop.is_banned)


class UserResolutionTest(ResolverTestCase):
    def test_admin_roles(self):
        for role in (Role.ADMIN, Role.SUB_ADMIN, Role.MANAGER):
            user = User.objects.create_user(email=f"{role}@test.com", password="pass", role=role)
            principal = self.resolver.resolve(Credentials(user_token=user_token(user)))
            self.assertIsInstance(principal, Administrator)
            self.assertEqual(principal.role, role)
            self.assertEqual(principal.permissions, ROLE_PERMISSIONS[role.value])

    def test_plain_user_has_no_principal(self):
        with self.assertRaises(PrincipalNotAssignable):
            self.resolver.resolve(Credentials(user_token=user_token(self.owner)))

    def test_supplier_has_no_principal(self):
        supplier = User.objects.create_user(email="s@test.com", password="pass", role=Role.SUPPLIER)
        with self.assertRaises(PrincipalNotAssignable):
            self.resolver.resolve(Credentials(user_token=user_token(supplier)))

    def test_banned_user(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        token = user_token(admin)
        admin.ban("Abuse")
        with self.assertRaises(AccountBanned) as ctx:
            self.resolver.resolve(Credentials(user_token=token))
        self.assertEqual(ctx.exception.reason, "Abuse")

    def test_invalid_shop_token_falls_through_to_user(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        principal = self.resolver.resolve(
            Credentials(shop_token="broken", user_token=user_token(admin))
        )
        self.assertIsInstance(principal, Administrator)

    def test_first_failure_is_reported(self):
        with self.assertRaises(InvalidOrExpiredCredential):
            self.resolver.resolve(
                Credentials(shop_token="broken", user_token=user_token(self.owner))
            )

    def test_shop_token_wins_over_user_token(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        principal = self.resolver.resolve(
            Credentials(shop_token=shop_token(self.shop), user_token=user_token(admin))
        )
        self.assertIsInstance(principal, ShopOwner)


class StaleCredentialTest(ResolverTestCase):
    def test_role_change_after_issue_is_stale(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        token = AccessToken.for_user(admin)
        issued = datetime.fromtimestamp(token["iat"], tz=dt_timezone.utc)
        admin.change_role(Role.SUB_ADMIN, at=issued + timedelta(seconds=1))
        with self.assertRaises(StaleCredentialAfterRoleChange):
            self.resolver.resolve(Credentials(user_token=str(token)))

    def test_token_issued_after_role_change(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass")
        admin.change_role(Role.ADMIN, at=timezone.now() - timedelta(hours=1))
        principal = self.resolver.resolve(Credentials(user_token=user_token(admin)))
        self.assertIsInstance(principal, Administrator)

    def test_change_within_issuing_second_is_stale(self):
        issued_at = 1_700_000_000
        second = datetime.fromtimestamp(issued_at, tz=dt_timezone.utc)
        self.assertTrue(issued_before_role_change(issued_at, second.replace(microsecond=1)))
        self.assertTrue(issued_before_role_change(issued_at, second + timedelta(seconds=1)))
        self.assertFalse(issued_before_role_change(issued_at, second))
        self.assertFalse(issued_before_role_change(issued_at, second - timedelta(seconds=1)))
        self.assertFalse(issued_before_role_change(issued_at, None))

    def test_token_from_same_second_as_role_change_is_stale(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        token = AccessToken.for_user(admin)
        issued = datetime.fromtimestamp(token["iat"], tz=dt_timezone.utc)
        admin.change_role(Role.SUB_ADMIN, at=issued + timedelta(microseconds=500000))
        with self.assertRaises(StaleCredentialAfterRoleChange):
            self.resolver.resolve(Credentials(user_token=str(token)))


class StoreManagerResolutionTest(ResolverTestCase):
    def test_manager_resolves_for_shop(self):
        manager = self.make_manager()
        principal = self.resolver.resolve(Credentials(user_token=user_token(manager)))
        self.assertIsInstance(principal, StoreManager)
        self.assertEqual(principal.shop_id, self.shop.pk)
        self.assertEqual(principal.user_id, manager.pk)

    def test_suspended_service_never_resolves(self):
        manager = self.make_manager()
        token = user_token(manager)
        service = manager_services.service_status(self.shop)
        manager_services.suspend(service, None, "Chargeback")
        with self.assertRaises(PrincipalNotAssignable):
            self.resolver.resolve(Credentials(user_token=token))
        with self.assertRaises(PrincipalNotAssignable):
            self.resolver.resolve(Credentials(user_token=token), mode=SELLER_OR_MANAGER)

    def test_expired_window_does_not_resolve(self):
        manager = self.make_manager()
        later = timezone.now() + timedelta(days=90)
        resolver = PrincipalResolver(clock=lambda: later)
        with self.assertRaises(PrincipalNotAssignable):
            resolver.resolve(Credentials(user_token=user_token(manager)))

    def test_removed_manager_token_is_stale(self):
        manager = self.make_manager()
        token = AccessToken.for_user(manager)
        issued = datetime.fromtimestamp(token["iat"], tz=dt_timezone.utc)
        manager_services.remove_manager(
            self.shop, actor=self.owner, now=issued + timedelta(seconds=1)
        )
        with self.assertRaises(StaleCredentialAfterRoleChange):
            self.resolver.resolve(Credentials(user_token=str(token)))

    def test_seller_or_manager_prefers_owner(self):
        manager = self.make_manager()
        principal = self.resolver.resolve(
            Credentials(shop_token=shop_token(self.shop), user_token=user_token(manager)),
            mode=SELLER_OR_MANAGER,
        )
        self.assertIsInstance(principal, ShopOwner)

    def test_seller_or_manager_ignores_admins(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        with self.assertRaises(PrincipalNotAssignable):
            self.resolver.resolve(Credentials(user_token=user_token(admin)), mode=SELLER_OR_MANAGER)

    def test_optional_mode_never_raises(self):
        self.assertIsNone(self.resolver.resolve_optional(Credentials(shop_token="broken")))
        self.assertIsNone(self.resolver.resolve_optional(Credentials()))
        principal = self.resolver.resolve_optional(Credentials(shop_token=shop_token(self.shop)))
        self.assertIsInstance(principal, ShopOwner)


class AuthorizeTest(ResolverTestCase):
    def test_rejected_shop_reads_but_cannot_write(self):
        self.shop.reject(None, "Incomplete documents")
        principal = self.resolver.resolve(Credentials(shop_token=shop_token(self.shop)))
        self.resolver.authorize(principal, "store_settings", mutating=False)
        with self.assertRaises(AccountNotApproved) as ctx:
            self.resolver.authorize(principal, "store_settings", mutating=True)
        self.assertEqual(ctx.exception.status, "rejected")
        self.assertEqual(ctx.exception.reason, "Incomplete documents")

    def test_pending_message(self):
        self.shop.approval_status = ApprovalStatus.PENDING
        self.shop.save()
        principal = self.resolver.resolve(Credentials(shop_token=shop_token(self.shop)))
        with self.assertRaises(AccountNotApproved) as ctx:
            self.resolver.authorize(principal, "products", mutating=True)
        self.assertIn("pending admin approval", str(ctx.exception.detail))

    def test_manager_denied_owner_only(self):
        manager = self.make_manager()
        principal = self.resolver.resolve(Credentials(user_token=user_token(manager)))
        self.resolver.authorize(principal, "orders", mutating=True)
        with self.assertRaises(InsufficientCapability):
            self.resolver.authorize(principal, "payment_settings", mutating=False)

    def test_missing_principal(self):
        with self.assertRaises(MissingCredential):
            self.resolver.authorize(None, "products")
