"""
Principal resolution.

``PrincipalResolver.resolve`` turns request credentials into a principal or
raises a typed ``AuthError``. Resolution runs an ordered list of
strategies; each either returns a principal, returns ``None`` when its
credential is absent, or raises. Credential failures are remembered and the
next strategy is tried, so a broken shop token does not hide a valid user
token. When nothing resolves, the first remembered failure is raised, or
``MissingCredential`` when no strategy saw a credential at all.

Account gates (ban, stale credential) are terminal: a banned shop never
falls back to another principal.
"""
import logging
from datetime import datetime, timezone as dt_timezone

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from accounts.choices import ADMIN_ROLES, Role
from managers.services import find_active_for_manager
from shops.choices import ApprovalStatus
from shops.models import Shop

from .capabilities import ROLE_PERMISSIONS, permissions_for_role, permits
from .exceptions import (
    AccountBanned,
    AccountNotApproved,
    AuthError,
    InsufficientCapability,
    InvalidOrExpiredCredential,
    MissingCredential,
    PrincipalNotAssignable,
    StaleCredentialAfterRoleChange,
)
from .principals import Administrator, ShopOwner, StoreManager, is_shop_principal
from .tokens import SHOP_ID_CLAIM, ShopAccessToken

logger = logging.getLogger(__name__)

# Resolution modes
DEFAULT = "default"
SELLER_OR_MANAGER = "seller_or_manager"

# Failures that let the next strategy run.
_FALL_THROUGH = (InvalidOrExpiredCredential, PrincipalNotAssignable)


def issued_before_role_change(issued_at, role_changed_at):
    """
    True if a token issued at ``issued_at`` (epoch seconds) predates the
    role change. Token ``iat`` has whole-second precision, so any change
    after the start of the issuing second makes the token stale.
    """
    if role_changed_at is None or issued_at is None:
        return False
    issued = datetime.fromtimestamp(int(issued_at), tz=dt_timezone.utc)
    return role_changed_at > issued


class PrincipalResolver:
    def __init__(
        self,
        role_permissions=ROLE_PERMISSIONS,
        clock=timezone.now,
        assignment_lookup=find_active_for_manager,
    ):
        self.role_permissions = role_permissions
        self.clock = clock
        self.assignment_lookup = assignment_lookup

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def strategies(self, mode):
        if mode == SELLER_OR_MANAGER:
            return (self._shop_owner, self._store_manager)
        return (self._shop_owner, self._user)

    def resolve(self, credentials, mode=DEFAULT):
        failures = []
        for strategy in self.strategies(mode):
            try:
                principal = strategy(credentials)
            except _FALL_THROUGH as exc:
                logger.debug("%s rejected credential: %s", strategy.__name__, exc.get_codes())
                failures.append(exc)
                continue
            if principal is not None:
                return principal
        if failures:
            logger.info("Principal resolution failed (%s): %s", mode, failures[0].get_codes())
            raise failures[0]
        raise MissingCredential()

    def resolve_optional(self, credentials, mode=SELLER_OR_MANAGER):
        """Like ``resolve`` but returns ``None`` instead of raising."""
        try:
            return self.resolve(credentials, mode)
        except AuthError as exc:
            logger.debug("Optional resolution left unauthenticated: %s", exc.get_codes())
            return None

    def identify_shop(self, credentials):
        """Verify the shop token and return the shop, skipping the ban gate."""
        if not credentials.shop_token:
            raise MissingCredential()
        return self._load_shop(credentials.shop_token)

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def check_approval(self, principal, mutating):
        """Pending or rejected shops may read but not write."""
        if not mutating or not is_shop_principal(principal):
            return
        shop = principal.shop
        if shop.approval_status == ApprovalStatus.APPROVED:
            return
        logger.info(
            "Blocked write by %s on shop %s (%s)",
            principal.kind,
            shop.pk,
            shop.approval_status,
        )
        raise AccountNotApproved(shop.approval_status, shop.rejection_reason)

    def authorize(self, principal, capability, mutating=False):
        """Approval gate, then capability check."""
        if principal is None:
            raise MissingCredential()
        self.check_approval(principal, mutating)
        if not permits(principal, capability):
            logger.info("Denied %s to %s", capability, principal.kind)
            raise InsufficientCapability(capability)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _shop_owner(self, credentials):
        if not credentials.shop_token:
            return None
        shop = self._load_shop(credentials.shop_token)
        if shop.is_banned:
            logger.info("Rejected banned shop %s", shop.pk)
            raise AccountBanned(shop.ban_reason, shop=True)
        return ShopOwner(shop_id=shop.pk, shop=shop)

    def _user(self, credentials):
        if not credentials.user_token:
            return None
        user = self.load_user(credentials.user_token)
        if user.role in ADMIN_ROLES:
            return Administrator(
                user_id=user.pk,
                role=user.role,
                permissions=permissions_for_role(user.role, self.role_permissions),
                user=user,
            )
        if user.role == Role.STORE_MANAGER:
            return self._manager_for(user)
        logger.debug("User %s with role %s has no principal", user.pk, user.role)
        raise PrincipalNotAssignable()

    def _store_manager(self, credentials):
        if not credentials.user_token:
            return None
        user = self.load_user(credentials.user_token)
        if user.role != Role.STORE_MANAGER:
            raise PrincipalNotAssignable()
        return self._manager_for(user)

    def _manager_for(self, user):
        service = self.assignment_lookup(user, self.clock())
        if service is None or not service.shop.is_active:
            logger.info("Store manager %s has no live service", user.pk)
            raise PrincipalNotAssignable(
                "Your store manager access is not active for any shop."
            )
        shop = service.shop
        if shop.is_banned:
            raise AccountBanned(shop.ban_reason, shop=True)
        return StoreManager(
            user_id=user.pk,
            shop_id=shop.pk,
            service_id=service.pk,
            user=user,
            shop=shop,
            service=service,
        )

    # ------------------------------------------------------------------
    # Token verification
    # ------------------------------------------------------------------

    def _load_shop(self, raw):
        try:
            token = ShopAccessToken(raw)
        except TokenError:
            raise InvalidOrExpiredCredential()
        shop_id = token.get(SHOP_ID_CLAIM)
        shop = (
            Shop.objects.select_related("owner")
            .filter(pk=shop_id, is_active=True)
            .first()
            if shop_id is not None
            else None
        )
        if shop is None:
            raise InvalidOrExpiredCredential()
        return shop

    def load_user(self, raw):
        """Verify a user token and apply the ban and stale-credential gates."""
        try:
            token = AccessToken(raw)
        except TokenError:
            raise InvalidOrExpiredCredential()
        user_id = token.get(api_settings.USER_ID_CLAIM)
        User = get_user_model()
        user = User.objects.filter(pk=user_id, is_active=True).first() if user_id else None
        if user is None:
            raise InvalidOrExpiredCredential()
        if user.is_banned:
            logger.info("Rejected banned user %s", user.pk)
            raise AccountBanned(user.ban_reason)
        if issued_before_role_change(token.get("iat"), user.role_changed_at):
            logger.info("Rejected stale token for user %s", user.pk)
            raise StaleCredentialAfterRoleChange()
        return user


default_resolver = PrincipalResolver()
