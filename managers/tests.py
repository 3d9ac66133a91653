"""Tests for the store manager service."""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from accounts.choices import Role
from core.exceptions import ConcurrentAssignmentError, ServiceStateError
from managers import services
from managers.choices import HistoryAction, PaymentMethod, ServiceStatus
from managers.models import AssignmentHistory, ServiceAssignment
from shops.models import Shop

User = get_user_model()

T0 = datetime(2026, 1, 10, 12, 0, tzinfo=dt_timezone.utc)


class ServiceTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@test.com", password="pass")
        self.shop = Shop.objects.create(owner=self.owner, name="Test Shop", slug="test-shop")

    def make_shop(self, slug):
        owner = User.objects.create_user(email=f"{slug}@test.com", password="pass")
        return Shop.objects.create(owner=owner, name=slug.title(), slug=slug)


class AddMonthsTest(TestCase):
    def test_clamps_to_month_end(self):
        self.assertEqual(
            services.add_months(datetime(2026, 1, 31, tzinfo=dt_timezone.utc), 1).day, 28
        )

    def test_crosses_year(self):
        result = services.add_months(datetime(2026, 12, 15, tzinfo=dt_timezone.utc), 1)
        self.assertEqual((result.year, result.month, result.day), (2027, 1, 15))


class ActivationTest(ServiceTestCase):
    def test_activate_new_service(self):
        service = services.activate_service(self.shop, "tx-1", now=T0)
        self.assertEqual(service.status, ServiceStatus.ACTIVE)
        self.assertEqual(service.subscription_start, T0)
        self.assertEqual(service.subscription_end, datetime(2026, 2, 10, 12, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(service.amount, Decimal("100.00"))
        self.assertEqual(service.payments.count(), 1)

    def test_renewal_extends_from_current_end(self):
        services.activate_service(self.shop, "tx-1", now=T0)
        renewed = services.activate_service(
            self.shop, "tx-2", renewal=True, now=T0 + timedelta(days=27)
        )
        self.assertEqual(renewed.subscription_end, datetime(2026, 3, 10, 12, 0, tzinfo=dt_timezone.utc))
        self.assertEqual(renewed.subscription_start, T0)
        self.assertEqual(renewed.payments.count(), 2)

    def test_renewal_after_expiry_starts_now(self):
        services.activate_service(self.shop, "tx-1", now=T0)
        later = T0 + timedelta(days=60)
        renewed = services.activate_service(self.shop, "tx-2", renewal=True, now=later)
        self.assertEqual(renewed.subscription_start, later)
        self.assertEqual(renewed.subscription_end, services.add_months(later, 1))

    def test_replayed_transaction_is_ignored(self):
        services.activate_service(self.shop, "tx-1", now=T0)
        again = services.activate_service(self.shop, "tx-1", renewal=True, now=T0 + timedelta(days=1))
        self.assertEqual(again.payments.count(), 1)
        self.assertEqual(again.subscription_end, datetime(2026, 2, 10, 12, 0, tzinfo=dt_timezone.utc))

    def test_suspended_service_cannot_activate(self):
        service = services.activate_service(self.shop, "tx-1", now=T0)
        services.suspend(service, None, "Fraud", now=T0)
        with self.assertRaises(ServiceStateError):
            services.activate_service(self.shop, "tx-2", renewal=True, now=T0)

    def test_renewal_detaches_manager_who_moved_to_another_shop(self):
        manager = User.objects.create_user(email="m@test.com", password="pass")
        other = self.make_shop("other")
        services.activate_service(self.shop, "tx-a1", now=T0)
        services.assign_manager(self.shop, manager, now=T0)
        services.expire_overdue(now=T0 + timedelta(days=40))
        services.activate_service(other, "tx-b1", now=T0 + timedelta(days=40))
        services.assign_manager(other, manager, now=T0 + timedelta(days=40))

        renewed = services.activate_service(
            self.shop, "tx-a2", renewal=True, now=T0 + timedelta(days=41)
        )

        manager.refresh_from_db()
        self.assertEqual(renewed.status, ServiceStatus.ACTIVE)
        self.assertIsNone(renewed.assigned_manager)
        self.assertEqual(renewed.version, 2)
        self.assertEqual(manager.role, Role.STORE_MANAGER)
        self.assertEqual(
            services.find_active_for_manager(manager, T0 + timedelta(days=41)).shop, other
        )
        last = AssignmentHistory.objects.filter(service=renewed).last()
        self.assertEqual((last.user, last.action), (manager, HistoryAction.REMOVED))

    def test_renewal_after_expiry_keeps_free_manager(self):
        manager = User.objects.create_user(email="m@test.com", password="pass")
        services.activate_service(self.shop, "tx-1", now=T0)
        services.assign_manager(self.shop, manager, now=T0)
        services.expire_overdue(now=T0 + timedelta(days=40))

        renewed = services.activate_service(
            self.shop, "tx-2", renewal=True, now=T0 + timedelta(days=41)
        )

        self.assertEqual(renewed.assigned_manager, manager)
        self.assertEqual(renewed.version, 1)

    def test_grant_free_service(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        service = services.grant_free_service(self.shop, admin, months=2, now=T0)
        self.assertEqual(service.payment_method, PaymentMethod.ADMIN_ASSIGNED)
        self.assertEqual(service.amount, Decimal("0"))
        self.assertEqual(service.subscription_end, datetime(2026, 3, 10, 12, 0, tzinfo=dt_timezone.utc))


class PurchaseTest(ServiceTestCase):
    def test_first_purchase(self):
        service = services.start_purchase(self.shop, now=T0)
        self.assertEqual(service.status, ServiceStatus.INACTIVE)
        self.assertEqual(service.amount, Decimal("100.00"))

    def test_active_service_needs_renewal_flag(self):
        services.activate_service(self.shop, "tx-1", now=T0)
        with self.assertRaises(ServiceStateError):
            services.start_purchase(self.shop, now=T0 + timedelta(days=1))

    def test_renewal_window(self):
        services.activate_service(self.shop, "tx-1", now=T0)
        with self.assertRaises(ServiceStateError):
            services.start_purchase(self.shop, renewal=True, now=T0 + timedelta(days=1))
        service = services.start_purchase(self.shop, renewal=True, now=T0 + timedelta(days=26))
        self.assertEqual(service.status, ServiceStatus.ACTIVE)

    def test_suspended_cannot_purchase(self):
        service = services.activate_service(self.shop, "tx-1", now=T0)
        services.suspend(service, None, now=T0)
        with self.assertRaises(ServiceStateError):
            services.start_purchase(self.shop, renewal=True, now=T0)


class ExpiryTest(ServiceTestCase):
    def test_expire_overdue_skips_suspended(self):
        other = self.make_shop("other")
        services.activate_service(self.shop, "tx-1", now=T0)
        suspended = services.activate_service(other, "tx-2", now=T0)
        services.suspend(suspended, None, "Review", now=T0)

        count = services.expire_overdue(now=T0 + timedelta(days=45))

        self.assertEqual(count, 1)
        self.assertEqual(ServiceAssignment.objects.get(shop=self.shop).status, ServiceStatus.EXPIRED)
        self.assertEqual(ServiceAssignment.objects.get(shop=other).status, ServiceStatus.SUSPENDED)

    def test_service_status_applies_expiry(self):
        services.activate_service(self.shop, "tx-1", now=T0)
        service = services.service_status(self.shop, now=T0 + timedelta(days=45))
        self.assertEqual(service.status, ServiceStatus.EXPIRED)

    def test_command(self):
        service = services.activate_service(
            self.shop, "tx-1", now=timezone.now() - timedelta(days=60)
        )
        out = StringIO()
        call_command("expire_store_manager_services", stdout=out)
        self.assertIn("Expired 1 service(s).", out.getvalue())
        service.refresh_from_db()
        self.assertEqual(service.status, ServiceStatus.EXPIRED)


class AssignmentTest(ServiceTestCase):
    def setUp(self):
        super().setUp()
        self.service = services.activate_service(self.shop, "tx-1")
        self.alice = User.objects.create_user(email="alice@test.com", password="pass")
        self.bob = User.objects.create_user(email="bob@test.com", password="pass")

    def test_assign(self):
        service = services.assign_manager(self.shop, self.alice, actor=self.owner)
        self.alice.refresh_from_db()
        self.assertEqual(service.assigned_manager, self.alice)
        self.assertEqual(service.version, 1)
        self.assertEqual(self.alice.role, Role.STORE_MANAGER)
        self.assertIsNotNone(self.alice.role_changed_at)
        self.assertEqual(services.find_active_for_manager(self.alice), service)

    def test_replace_writes_removed_then_assigned(self):
        services.assign_manager(self.shop, self.alice, actor=self.owner)
        service = services.assign_manager(self.shop, self.bob, actor=self.owner)
        self.alice.refresh_from_db()
        self.bob.refresh_from_db()

        self.assertEqual(service.assigned_manager, self.bob)
        self.assertEqual(self.alice.role, Role.USER)
        self.assertEqual(self.bob.role, Role.STORE_MANAGER)
        actions = list(
            AssignmentHistory.objects.filter(service=service).values_list("user__email", "action")
        )
        self.assertEqual(
            actions,
            [
                ("alice@test.com", HistoryAction.ASSIGNED),
                ("alice@test.com", HistoryAction.REMOVED),
                ("bob@test.com", HistoryAction.ASSIGNED),
            ],
        )

    def test_stale_version_is_rejected_without_changes(self):
        services.assign_manager(self.shop, self.alice, actor=self.owner, expected_version=0)
        with self.assertRaises(ConcurrentAssignmentError):
            services.assign_manager(self.shop, self.bob, actor=self.owner, expected_version=0)
        self.service.refresh_from_db()
        self.bob.refresh_from_db()
        self.assertEqual(self.service.assigned_manager, self.alice)
        self.assertEqual(self.service.version, 1)
        self.assertEqual(self.bob.role, Role.USER)
        self.assertFalse(AssignmentHistory.objects.filter(user=self.bob).exists())

    def test_reassigning_same_user_is_noop(self):
        services.assign_manager(self.shop, self.alice)
        service = services.assign_manager(self.shop, self.alice)
        self.assertEqual(service.version, 1)

    def test_owner_cannot_be_manager(self):
        with self.assertRaises(ValidationError):
            services.assign_manager(self.shop, self.owner)

    def test_admin_cannot_be_manager(self):
        admin = User.objects.create_user(email="admin@test.com", password="pass", role=Role.ADMIN)
        with self.assertRaises(ValidationError):
            services.assign_manager(self.shop, admin)

    def test_manager_of_another_shop(self):
        other = self.make_shop("other")
        services.activate_service(other, "tx-other")
        services.assign_manager(other, self.alice)
        with self.assertRaises(ValidationError):
            services.assign_manager(self.shop, self.alice)

    def test_requires_live_service(self):
        other = self.make_shop("other")
        services.get_or_create_service(other)
        with self.assertRaises(ServiceStateError):
            services.assign_manager(other, self.alice)

    def test_remove(self):
        services.assign_manager(self.shop, self.alice)
        service = services.remove_manager(self.shop, actor=self.owner, reason="Left")
        self.alice.refresh_from_db()
        self.assertIsNone(service.assigned_manager)
        self.assertEqual(self.alice.role, Role.USER)
        self.assertIsNone(services.find_active_for_manager(self.alice))
        last = AssignmentHistory.objects.filter(service=service).last()
        self.assertEqual((last.action, last.reason), (HistoryAction.REMOVED, "Left"))

    def test_remove_without_manager(self):
        with self.assertRaises(ServiceStateError):
            services.remove_manager(self.shop)

    def test_history_is_immutable(self):
        services.assign_manager(self.shop, self.alice)
        entry = AssignmentHistory.objects.get()
        entry.reason = "edited"
        with self.assertRaises(ValueError):
            entry.save()


class SuspensionTest(ServiceTestCase):
    def setUp(self):
        super().setUp()
        self.manager = User.objects.create_user(email="m@test.com", password="pass")
        services.activate_service(self.shop, "tx-1", now=T0)
        self.service = services.assign_manager(self.shop, self.manager, now=T0)

    def test_suspend_keeps_manager_but_blocks_access(self):
        service = services.suspend(self.service, None, "Chargeback", now=T0)
        self.manager.refresh_from_db()
        self.assertEqual(service.status, ServiceStatus.SUSPENDED)
        self.assertEqual(service.assigned_manager, self.manager)
        self.assertEqual(self.manager.role, Role.STORE_MANAGER)
        self.assertIsNone(services.find_active_for_manager(self.manager, T0))

    def test_double_suspend(self):
        services.suspend(self.service, None, now=T0)
        with self.assertRaises(ServiceStateError):
            services.suspend(self.service, None, now=T0)

    def test_unsuspend_restores(self):
        services.suspend(self.service, None, now=T0)
        service = services.unsuspend(self.service, None, now=T0 + timedelta(days=1))
        self.assertEqual(service.status, ServiceStatus.ACTIVE)
        self.assertFalse(service.suspended_by_admin)
        self.assertEqual(
            services.find_active_for_manager(self.manager, T0 + timedelta(days=1)), service
        )

    def test_unsuspend_after_window_expires(self):
        services.suspend(self.service, None, now=T0)
        service = services.unsuspend(self.service, None, now=T0 + timedelta(days=60))
        self.assertEqual(service.status, ServiceStatus.EXPIRED)

    def test_unsuspend_detaches_manager_active_elsewhere(self):
        services.suspend(self.service, None, now=T0)
        other = self.make_shop("other")
        services.activate_service(other, "tx-other", now=T0)
        services.assign_manager(other, self.manager, now=T0)

        service = services.unsuspend(self.service, None, now=T0 + timedelta(days=1))

        self.assertIsNone(service.assigned_manager)
        self.assertEqual(service.status, ServiceStatus.ACTIVE)
        self.assertEqual(service.version, 2)

    def test_unsuspend_unpaid_service_returns_to_inactive(self):
        other = self.make_shop("other")
        service = services.service_status(other, T0)
        self.assertEqual(service.status, ServiceStatus.INACTIVE)
        services.suspend(service, None, "Review", now=T0)

        service = services.unsuspend(service, None, now=T0 + timedelta(days=1))

        self.assertEqual(service.status, ServiceStatus.INACTIVE)
        self.assertIsNone(service.subscription_end)
        self.assertFalse(service.is_live(T0 + timedelta(days=365)))
        with self.assertRaises(ServiceStateError):
            services.assign_manager(other, self.manager, now=T0 + timedelta(days=1))
        purchase = services.start_purchase(other, now=T0 + timedelta(days=1))
        self.assertEqual(purchase.status, ServiceStatus.INACTIVE)

    def test_unsuspend_requires_suspension(self):
        with self.assertRaises(ServiceStateError):
            services.unsuspend(self.service, None, now=T0)
