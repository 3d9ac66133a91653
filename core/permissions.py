"""
Reusable DRF permission classes for principal-based access control.

Definitions:
- Shop principal = ShopOwner (shop token) or StoreManager acting for a shop
- Administrator = platform staff with a role-derived permission set

Permission classes raise typed errors from ``core.exceptions`` instead of
returning False, so the client sees why a request was refused.
"""
from rest_framework import permissions

from .capabilities import permits
from .exceptions import InsufficientCapability, MissingCredential, PrincipalNotAssignable
from .principals import Administrator, ShopOwner, is_shop_principal
from .resolver import default_resolver


def get_principal(request):
    """Principal placed on ``request.auth`` by the authentication classes."""
    principal = getattr(request, "auth", None)
    if principal is None or not hasattr(principal, "kind"):
        return None
    return principal


def _require_principal(request):
    principal = get_principal(request)
    if principal is None:
        raise MissingCredential()
    return principal


def _required_capability(request, view):
    if hasattr(view, "get_required_capability"):
        return view.get_required_capability(request)
    return getattr(view, "required_capability", None)


def is_mutating(request):
    return request.method not in permissions.SAFE_METHODS


class HasPrincipal(permissions.BasePermission):
    """Any resolved principal."""

    def has_permission(self, request, view):
        _require_principal(request)
        return True


class IsShopPrincipal(permissions.BasePermission):
    """Shop owner or store manager acting for a shop."""

    def has_permission(self, request, view):
        principal = _require_principal(request)
        if not is_shop_principal(principal):
            raise PrincipalNotAssignable("This action requires a shop account.")
        return True

    def has_object_permission(self, request, view, obj):
        shop_id = getattr(obj, "shop_id", None)
        return shop_id is None or shop_id == request.auth.shop_id


class IsShopOwner(IsShopPrincipal):
    """
    Shop owner only. Store managers are refused even for their own shop.
    """

    def has_permission(self, request, view):
        super().has_permission(request, view)
        if not isinstance(request.auth, ShopOwner):
            raise InsufficientCapability(_required_capability(request, view) or "owner_only")
        return True


class HasCapability(permissions.BasePermission):
    """
    Checks ``view.required_capability`` for the resolved principal.

    Writes by shop principals also pass the approval gate first.
    """

    def has_permission(self, request, view):
        principal = _require_principal(request)
        capability = _required_capability(request, view)
        if capability is None:
            default_resolver.check_approval(principal, is_mutating(request))
            return True
        default_resolver.authorize(principal, capability, mutating=is_mutating(request))
        return True


class IsAdministrator(permissions.BasePermission):
    """Platform staff; with ``required_capability`` set, staff holding it."""

    def has_permission(self, request, view):
        principal = _require_principal(request)
        capability = _required_capability(request, view)
        if not isinstance(principal, Administrator):
            raise InsufficientCapability(capability or "admin")
        if capability is not None and not permits(principal, capability):
            raise InsufficientCapability(capability)
        return True
