"""
Store manager service lifecycle and manager assignment.

Status transitions::

    inactive -> active            payment captured (activate_service)
    active   -> active            renewal, extends from the current end
    active   -> expired           subscription_end passed (expire_overdue)
    expired  -> active            new purchase
    any      -> suspended         administrator (suspend)
    suspended -> active|expired|inactive
                                  administrator only (unsuspend)

A service that was never paid for returns to ``inactive`` on unsuspend.
Reactivation (renewal or unsuspend) detaches a manager who meanwhile
holds an active assignment elsewhere.

Nothing but ``unsuspend`` leaves ``suspended``.

Assignment changes run in a transaction, lock the service row and write
with a version check, so two concurrent assignments cannot both win.
"""
import calendar
import logging
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from accounts.choices import ASSIGNABLE_MANAGER_ROLES, Role
from core.exceptions import ConcurrentAssignmentError, ServiceStateError

from .choices import HistoryAction, PaymentMethod, ServiceStatus
from .models import AssignmentHistory, ServiceAssignment, ServicePayment

logger = logging.getLogger(__name__)


def add_months(value, months):
    """Same day ``months`` later, clamped to the end of shorter months."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def service_price():
    return Decimal(str(settings.STORE_MANAGER_SERVICE_PRICE))


def get_or_create_service(shop):
    service, created = ServiceAssignment.objects.get_or_create(
        shop=shop,
        defaults={
            "amount": service_price(),
            "currency": settings.STORE_MANAGER_SERVICE_CURRENCY,
        },
    )
    if created:
        logger.info("Created store manager service for shop %s", shop.pk)
    return service


def refresh_expiry(service, now=None):
    """Mark an overdue active service expired. Returns the service."""
    now = now or timezone.now()
    if service.status == ServiceStatus.ACTIVE and service.is_expired(now):
        service.status = ServiceStatus.EXPIRED
        service.save(update_fields=["status", "updated_at"])
        logger.info("Store manager service %s expired", service.pk)
    return service


def can_renew(service, now=None):
    if service.suspended_by_admin:
        return False
    if service.status != ServiceStatus.ACTIVE:
        return True
    return service.days_remaining(now) <= settings.STORE_MANAGER_RENEWAL_WINDOW_DAYS


def service_status(shop, now=None):
    """Service of ``shop`` with expiry applied."""
    return refresh_expiry(get_or_create_service(shop), now)


def start_purchase(shop, renewal=False, now=None):
    """
    Validate that the shop may buy (or renew) the service and record the
    price to be charged. Payment capture itself happens elsewhere and ends
    with ``activate_service``.
    """
    now = now or timezone.now()
    service = service_status(shop, now)
    if service.status == ServiceStatus.SUSPENDED:
        raise ServiceStateError("Your store manager service is suspended by an administrator.")
    if service.status == ServiceStatus.ACTIVE:
        if not renewal:
            raise ServiceStateError("Store manager service is already active.")
        if not can_renew(service, now):
            raise ServiceStateError(
                "Renewal is available within {} days of expiry.".format(
                    settings.STORE_MANAGER_RENEWAL_WINDOW_DAYS
                )
            )
    service.amount = service_price()
    service.currency = settings.STORE_MANAGER_SERVICE_CURRENCY
    service.save(update_fields=["amount", "currency", "updated_at"])
    return service


def activate_service(
    shop,
    transaction_id,
    *,
    renewal=False,
    months=None,
    payment_method=PaymentMethod.PAYPAL,
    amount=None,
    now=None,
):
    """
    Activate or renew after a captured payment.

    A renewal of a still running service extends from its current end.
    Replaying an already recorded ``transaction_id`` is a no-op.
    """
    now = now or timezone.now()
    months = months or settings.STORE_MANAGER_SERVICE_MONTHS
    amount = service_price() if amount is None else Decimal(amount)

    with transaction.atomic():
        service = get_or_create_service(shop)
        service = ServiceAssignment.objects.select_for_update().get(pk=service.pk)
        if transaction_id and service.payments.filter(transaction_id=transaction_id).exists():
            return service
        if service.status == ServiceStatus.SUSPENDED:
            raise ServiceStateError("Cannot activate a suspended store manager service.")

        running = (
            service.status == ServiceStatus.ACTIVE
            and service.subscription_end is not None
            and service.subscription_end > now
        )
        if renewal and running:
            period_start = service.subscription_end
        else:
            period_start = now
            service.subscription_start = now
            _detach_if_taken(service, None, now)
        service.subscription_end = add_months(period_start, months)
        service.status = ServiceStatus.ACTIVE
        service.amount = amount
        service.payment_method = payment_method
        service.transaction_id = transaction_id or ""
        service.pending_order_id = ""
        service.purchased_at = now
        service.save()

        ServicePayment.objects.create(
            service=service,
            amount=amount,
            payment_method=payment_method,
            transaction_id=transaction_id or "",
            period_start=period_start,
            period_end=service.subscription_end,
        )
    logger.info(
        "Store manager service %s for shop %s active until %s (%s)",
        service.pk,
        shop.pk,
        service.subscription_end,
        "renewal" if renewal and running else "new period",
    )
    return service


def grant_free_service(shop, admin, months=1, reason="", now=None):
    """Administrator grants the service without payment."""
    service = activate_service(
        shop,
        "admin-{}".format(uuid.uuid4().hex),
        renewal=True,
        months=months,
        payment_method=PaymentMethod.ADMIN_ASSIGNED,
        amount=Decimal("0"),
        now=now,
    )
    logger.info(
        "Admin %s granted %s month(s) of store manager service to shop %s: %s",
        getattr(admin, "pk", None),
        months,
        shop.pk,
        reason,
    )
    return service


def expire_overdue(now=None):
    """Expire active services past their end date. Returns the count."""
    now = now or timezone.now()
    count = ServiceAssignment.objects.overdue(now).update(
        status=ServiceStatus.EXPIRED, updated_at=now
    )
    if count:
        logger.info("Expired %s store manager service(s)", count)
    return count


def find_active_for_manager(user, now=None):
    """Live service the user manages, with its shop loaded, or None."""
    return (
        ServiceAssignment.objects.live(now)
        .for_manager(user)
        .select_related("shop", "shop__owner")
        .first()
    )


# ---------------------------------------------------------------------------
# Manager assignment
# ---------------------------------------------------------------------------


def _locked_service(shop):
    service = ServiceAssignment.objects.select_for_update().filter(shop=shop).first()
    if service is None:
        raise ServiceStateError("Purchase the store manager service first.")
    return service


def _swap_manager(service, manager, expected_version, now):
    """Version-checked write of the assigned manager."""
    if expected_version is not None and expected_version != service.version:
        raise ConcurrentAssignmentError()
    updated = ServiceAssignment.objects.filter(pk=service.pk, version=service.version).update(
        assigned_manager=manager,
        assigned_at=now if manager is not None else None,
        version=F("version") + 1,
        updated_at=now,
    )
    if updated != 1:
        raise ConcurrentAssignmentError()


def _detach_if_taken(service, actor, now):
    """
    Clear the manager of a service about to become active again when that
    user already holds an active assignment on another shop.
    """
    manager = service.assigned_manager
    if manager is None:
        return
    taken = (
        ServiceAssignment.objects.filter(status=ServiceStatus.ACTIVE, assigned_manager=manager)
        .exclude(pk=service.pk)
        .exists()
    )
    if not taken:
        return
    AssignmentHistory.objects.create(
        service=service,
        user=manager,
        action=HistoryAction.REMOVED,
        actor=actor,
        reason="Manager assigned to another shop",
    )
    ServiceAssignment.objects.filter(pk=service.pk).update(
        assigned_manager=None,
        assigned_at=None,
        version=F("version") + 1,
        updated_at=now,
    )
    service.refresh_from_db(fields=["assigned_manager", "assigned_at", "version"])
    logger.info(
        "Detached store manager %s from service %s: active on another shop",
        manager.pk,
        service.pk,
    )


def _revoke_manager_role(user, now):
    if user.role == Role.STORE_MANAGER:
        user.change_role(Role.USER, at=now)


def _validate_candidate(service, user):
    if user.pk == service.shop.owner_id:
        raise ValidationError({"user": "The shop owner cannot be assigned as store manager."})
    if user.is_banned or not user.is_active:
        raise ValidationError({"user": "This user cannot be assigned."})
    if user.role not in ASSIGNABLE_MANAGER_ROLES:
        raise ValidationError({"user": "Only regular users can be assigned as store manager."})
    busy = (
        ServiceAssignment.objects.filter(status=ServiceStatus.ACTIVE, assigned_manager=user)
        .exclude(pk=service.pk)
        .exists()
    )
    if busy:
        raise ValidationError({"user": "This user already manages another shop."})


def assign_manager(shop, user, actor=None, expected_version=None, now=None):
    """
    Make ``user`` the shop's store manager, replacing any current one.

    The replaced manager gets a ``removed`` history entry and loses the
    store manager role; ``user`` gets an ``assigned`` entry and the role.
    """
    now = now or timezone.now()
    with transaction.atomic():
        service = _locked_service(shop)
        if not service.is_live(now):
            raise ServiceStateError("Store manager service is not active.")
        if service.assigned_manager_id == user.pk:
            return service
        _validate_candidate(service, user)

        previous = service.assigned_manager
        _swap_manager(service, user, expected_version, now)
        if previous is not None:
            AssignmentHistory.objects.create(
                service=service,
                user=previous,
                action=HistoryAction.REMOVED,
                actor=actor,
                reason="Replaced by new manager",
            )
            _revoke_manager_role(previous, now)
        AssignmentHistory.objects.create(
            service=service, user=user, action=HistoryAction.ASSIGNED, actor=actor
        )
        user.change_role(Role.STORE_MANAGER, at=now)

    service.refresh_from_db()
    logger.info("Assigned user %s as store manager of shop %s", user.pk, shop.pk)
    return service


def remove_manager(shop, actor=None, reason="", expected_version=None, now=None):
    now = now or timezone.now()
    with transaction.atomic():
        service = _locked_service(shop)
        manager = service.assigned_manager
        if manager is None:
            raise ServiceStateError("No store manager is assigned.")
        _swap_manager(service, None, expected_version, now)
        AssignmentHistory.objects.create(
            service=service,
            user=manager,
            action=HistoryAction.REMOVED,
            actor=actor,
            reason=reason or "",
        )
        _revoke_manager_role(manager, now)

    service.refresh_from_db()
    logger.info("Removed store manager %s from shop %s", manager.pk, shop.pk)
    return service


def suspend(service, admin, reason="", now=None):
    now = now or timezone.now()
    with transaction.atomic():
        service = ServiceAssignment.objects.select_for_update().get(pk=service.pk)
        if service.status == ServiceStatus.SUSPENDED:
            raise ServiceStateError("Service is already suspended.")
        service.status = ServiceStatus.SUSPENDED
        service.suspended_by_admin = True
        service.suspension_reason = reason or ""
        service.suspended_at = now
        service.suspended_by = admin
        service.save()
        AssignmentHistory.objects.create(
            service=service,
            user=service.assigned_manager,
            action=HistoryAction.SUSPENDED,
            actor=admin,
            reason=reason or "",
        )
    logger.info("Suspended store manager service %s: %s", service.pk, reason)
    return service


def unsuspend(service, admin, now=None):
    """
    Lift a suspension. The service returns to ``active``, or ``expired`` if
    its window has passed meanwhile, or ``inactive`` if it was never paid
    for. A manager who took an active assignment elsewhere during the
    suspension is detached.
    """
    now = now or timezone.now()
    with transaction.atomic():
        service = ServiceAssignment.objects.select_for_update().get(pk=service.pk)
        if service.status != ServiceStatus.SUSPENDED:
            raise ServiceStateError("Service is not suspended.")
        if service.subscription_end is None:
            service.status = ServiceStatus.INACTIVE
        elif service.is_expired(now):
            service.status = ServiceStatus.EXPIRED
        else:
            _detach_if_taken(service, admin, now)
            service.status = ServiceStatus.ACTIVE
        service.suspended_by_admin = False
        service.suspension_reason = ""
        service.suspended_at = None
        service.suspended_by = None
        service.save()
        service.refresh_from_db()
        AssignmentHistory.objects.create(
            service=service,
            user=service.assigned_manager,
            action=HistoryAction.UNSUSPENDED,
            actor=admin,
        )
    logger.info("Unsuspended store manager service %s (%s)", service.pk, service.status)
    return service
