"""API endpoint tests."""
from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.choices import Role
from accounts.models import User
from core.tokens import ShopAccessToken
from delivery import services as delivery_services
from delivery.models import District, DistrictFee
from managers import services as manager_services
from shops.choices import ApprovalStatus
from shops.models import Shop


def user_client(user):
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {AccessToken.for_user(user)}")
    return client


def shop_client(shop):
    client = APIClient()
    client.credentials(HTTP_X_SELLER_TOKEN=str(ShopAccessToken.for_shop(shop)))
    return client


class ShopAPITestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="s@t.com", password="password1")
        self.shop = Shop.objects.create(
            owner=self.owner,
            name="Test Shop",
            slug="test-shop",
            approval_status=ApprovalStatus.APPROVED,
        )


class ShopTokenAPITestCase(ShopAPITestCase):
    """Shop token issue and shop self-service."""

    def test_issue_shop_token(self):
        response = APIClient().post(
            "/api/auth/shop-token/",
            {"email": "s@t.com", "password": "password1", "shop": self.shop.pk},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        token = response.json()["seller_token"]
        self.assertIn("seller_token", response.cookies)

        client = APIClient()
        client.credentials(HTTP_X_SELLER_TOKEN=token)
        me = client.get("/api/shops/me/")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["slug"], "test-shop")

    def test_shop_token_wrong_password(self):
        response = APIClient().post(
            "/api/auth/shop-token/",
            {"email": "s@t.com", "password": "nope", "shop": self.shop.pk},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_shop_token_for_foreign_shop(self):
        User.objects.create_user(email="o@t.com", password="password1")
        response = APIClient().post(
            "/api/auth/shop-token/",
            {"email": "o@t.com", "password": "password1", "shop": self.shop.pk},
            format="json",
        )
        self.assertEqual(response.status_code, 400)

    def test_register_shop(self):
        response = APIClient().post(
            "/api/shops/register/",
            {
                "name": "Island Crafts",
                "owner_email": "new@t.com",
                "owner_password": "password1",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["shop"]["approval_status"], "pending")
        self.assertEqual(data["shop"]["slug"], "island-crafts")
        self.assertTrue(data["seller_token"])

    def test_missing_credentials(self):
        response = APIClient().get("/api/shops/me/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "missing_credential")

    def test_invalid_token(self):
        client = APIClient()
        client.credentials(HTTP_X_SELLER_TOKEN="garbage")
        response = client.get("/api/shops/me/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "invalid_credential")

    def test_approved_owner_updates_shop(self):
        response = shop_client(self.shop).patch(
            "/api/shops/me/", {"name": "Renamed"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.shop.refresh_from_db()
        self.assertEqual(self.shop.name, "Renamed")

    def test_rejected_shop_reads_but_cannot_write(self):
        self.shop.reject(None, "Missing trade licence")
        client = shop_client(self.shop)

        self.assertEqual(client.get("/api/shops/me/").status_code, 200)

        response = client.patch("/api/shops/me/", {"name": "Renamed"}, format="json")
        self.assertEqual(response.status_code, 403)
        data = response.json()
        self.assertFalse(data["success"])
        self.assertEqual(data["code"], "account_not_approved")
        self.assertEqual(data["status"], "rejected")
        self.assertEqual(data["reason"], "Missing trade licence")

    def test_banned_shop(self):
        client = shop_client(self.shop)
        self.shop.ban(None, "Counterfeit goods")

        response = client.get("/api/shops/me/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "account_banned")
        self.assertEqual(response.json()["reason"], "Counterfeit goods")

        status_response = client.get("/api/shops/me/ban-status/")
        self.assertEqual(status_response.status_code, 200)
        self.assertTrue(status_response.json()["is_banned"])
        self.assertEqual(status_response.json()["ban_reason"], "Counterfeit goods")

    def test_ban_status_requires_shop_token(self):
        response = APIClient().get("/api/shops/me/ban-status/")
        self.assertEqual(response.status_code, 401)


class AdminAPITestCase(ShopAPITestCase):
    """Administrator moderation is gated by role capabilities."""

    def setUp(self):
        super().setUp()
        self.shop.approval_status = ApprovalStatus.PENDING
        self.shop.save()
        self.sub_admin = User.objects.create_user(
            email="sub@t.com", password="pass", role=Role.SUB_ADMIN
        )
        self.manager_admin = User.objects.create_user(
            email="mgr@t.com", password="pass", role=Role.MANAGER
        )

    def test_sub_admin_approves(self):
        response = user_client(self.sub_admin).post(f"/api/admin/shops/{self.shop.pk}/approve/")
        self.assertEqual(response.status_code, 200)
        self.shop.refresh_from_db()
        self.assertEqual(self.shop.approval_status, ApprovalStatus.APPROVED)
        self.assertEqual(self.shop.approved_by, self.sub_admin)

    def test_manager_role_cannot_approve(self):
        response = user_client(self.manager_admin).post(
            f"/api/admin/shops/{self.shop.pk}/approve/"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "insufficient_capability")
        self.assertEqual(response.json()["capability"], "can_approve_vendors")

    def test_reject_requires_reason(self):
        response = user_client(self.sub_admin).post(
            f"/api/admin/shops/{self.shop.pk}/reject/", {}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_shop_token_is_not_admin(self):
        response = shop_client(self.shop).get("/api/admin/shops/")
        self.assertEqual(response.status_code, 403)

    def test_plain_user_has_no_principal(self):
        response = user_client(self.owner).get("/api/admin/shops/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "principal_not_assignable")

    def test_role_change_invalidates_old_token(self):
        token = AccessToken.for_user(self.sub_admin)
        issued = datetime.fromtimestamp(token["iat"], tz=dt_timezone.utc)
        self.sub_admin.change_role(Role.ADMIN, at=issued + timedelta(seconds=1))

        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = client.get("/api/admin/shops/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "stale_credential")

    def test_manager_role_changes_user_role(self):
        target = User.objects.create_user(email="t@t.com", password="pass")
        response = user_client(self.manager_admin).post(
            f"/api/admin/users/{target.pk}/role/", {"role": Role.SUB_ADMIN}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        target.refresh_from_db()
        self.assertEqual(target.role, Role.SUB_ADMIN)
        self.assertIsNotNone(target.role_changed_at)


class StoreManagerAPITestCase(ShopAPITestCase):
    """Store manager access through the shop's live service."""

    def setUp(self):
        super().setUp()
        self.manager = User.objects.create_user(email="m@t.com", password="pass")
        manager_services.activate_service(self.shop, "tx-1")

    def assign(self):
        response = shop_client(self.shop).post(
            "/api/store-manager/manager/", {"email": "m@t.com", "version": 0}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        # Log in after the role change rather than within the same second.
        User.objects.filter(pk=self.manager.pk).update(
            role_changed_at=timezone.now() - timedelta(seconds=2)
        )
        self.manager.refresh_from_db()
        return response

    def test_owner_assigns_manager(self):
        response = self.assign()
        self.assertEqual(response.json()["assigned_manager"]["email"], "m@t.com")
        self.assertEqual(response.json()["version"], 1)
        self.assertEqual(self.manager.role, Role.STORE_MANAGER)

    def test_stale_version_conflicts(self):
        self.assign()
        other = User.objects.create_user(email="x@t.com", password="pass")
        response = shop_client(self.shop).post(
            "/api/store-manager/manager/", {"email": other.email, "version": 0}, format="json"
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "assignment_conflict")

    def test_manager_sees_managed_shop(self):
        self.assign()
        response = user_client(self.manager).get("/api/store-manager/my-shop/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["shop"]["id"], self.shop.pk)

    def test_manager_cannot_configure_delivery(self):
        self.assign()
        response = user_client(self.manager).get("/api/delivery/my-config/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "insufficient_capability")
        self.assertEqual(response.json()["capability"], "delivery_config")

    def test_manager_cannot_edit_shop(self):
        self.assign()
        response = user_client(self.manager).patch(
            "/api/shops/me/", {"name": "Hijacked"}, format="json"
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["capability"], "store_settings")

    def test_manager_cannot_manage_service(self):
        self.assign()
        response = user_client(self.manager).get("/api/store-manager/service/")
        self.assertEqual(response.status_code, 403)

    def test_suspended_service_blocks_manager(self):
        self.assign()
        client = user_client(self.manager)
        manager_services.suspend(manager_services.service_status(self.shop), None, "Review")
        response = client.get("/api/store-manager/my-shop/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "principal_not_assignable")

    def test_purchase_while_active_requires_renewal(self):
        response = shop_client(self.shop).post(
            "/api/store-manager/service/purchase/", {}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_service_state")


class DeliveryAPITestCase(ShopAPITestCase):
    """Seller delivery configuration and public quotes."""

    def setUp(self):
        super().setUp()
        self.gt = District.objects.create(name="George Town", code="GT", sort_order=1)
        self.wb = District.objects.create(name="West Bay", code="WB", sort_order=2)

    def test_public_districts(self):
        District.objects.create(name="Old Zone", code="OZ", is_active=False)
        response = APIClient().get("/api/delivery/districts/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual([d["code"] for d in response.json()], ["GT", "WB"])

    def test_check_delivery(self):
        delivery_services.toggle_delivery(self.shop, True)
        config = delivery_services.get_or_create_config(self.shop)
        config.free_delivery_threshold = 100
        config.save()
        delivery_services.upsert_district_fee(self.shop, self.gt, "10")
        url = f"/api/delivery/shops/{self.shop.pk}/check/"

        below = APIClient().get(url, {"district": self.gt.pk, "subtotal": "50"}).json()
        self.assertTrue(below["available"])
        self.assertEqual(below["fee"], "10.00")
        self.assertFalse(below["free_delivery"])

        at = APIClient().get(url, {"district": self.gt.pk, "subtotal": "100"}).json()
        self.assertEqual(at["fee"], "0.00")
        self.assertTrue(at["free_delivery"])

        missing = APIClient().get(url, {"district": self.wb.pk}).json()
        self.assertEqual(missing, {"available": False, "reason": "district not served"})

    def test_check_without_config(self):
        response = APIClient().get(
            f"/api/delivery/shops/{self.shop.pk}/check/", {"district": self.gt.pk}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["reason"], "not enabled")

    def test_my_config_is_created_on_read(self):
        response = shop_client(self.shop).get("/api/delivery/my-config/")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["delivery_enabled"])

    def test_upsert_fee(self):
        response = shop_client(self.shop).post(
            "/api/delivery/my-config/district-fees/",
            {"district": self.gt.pk, "fee": "0"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["fee"], "0.00")

    def test_negative_fee(self):
        response = shop_client(self.shop).post(
            "/api/delivery/my-config/district-fees/",
            {"district": self.gt.pk, "fee": "-3"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "invalid_fee")

    def test_inactive_district_fee(self):
        self.gt.is_active = False
        self.gt.save()
        response = shop_client(self.shop).post(
            "/api/delivery/my-config/district-fees/",
            {"district": self.gt.pk, "fee": "5"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "district_unavailable")

    def test_remove_missing_fee(self):
        response = shop_client(self.shop).delete(
            f"/api/delivery/my-config/district-fees/{self.gt.pk}/"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "removed": False})

    def test_bulk_fees(self):
        response = shop_client(self.shop).post(
            "/api/delivery/my-config/district-fees/bulk/",
            {"fees": [{"district": self.gt.pk, "fee": 5}, {"district": self.wb.pk, "fee": -1}]},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual([item["district_code"] for item in data["updated"]], ["GT"])
        self.assertEqual(data["failed"][0]["district"], self.wb.pk)
        self.assertEqual(DistrictFee.objects.count(), 1)

    def test_pending_shop_cannot_write_config(self):
        self.shop.approval_status = ApprovalStatus.PENDING
        self.shop.save()
        client = shop_client(self.shop)
        self.assertEqual(client.get("/api/delivery/my-config/").status_code, 200)
        response = client.post("/api/delivery/my-config/toggle/", {"enabled": True}, format="json")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["status"], "pending")

    def test_admin_seeds_districts(self):
        admin = User.objects.create_user(email="a@t.com", password="pass", role=Role.ADMIN)
        response = user_client(admin).post("/api/admin/districts/seed/")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(sorted(response.json()["skipped"]), ["GT", "WB"])

    def test_admin_delete_deactivates(self):
        admin = User.objects.create_user(email="a@t.com", password="pass", role=Role.ADMIN)
        response = user_client(admin).delete(f"/api/admin/districts/{self.gt.pk}/")
        self.assertEqual(response.status_code, 200)
        self.gt.refresh_from_db()
        self.assertFalse(self.gt.is_active)
