"""
DRF authentication classes backed by ``PrincipalResolver``.

On success ``request.auth`` is the principal and ``request.user`` the user
acting for it (the shop's owner for a shop token).
"""
from rest_framework.authentication import BaseAuthentication

from .credentials import credentials_from_request
from .resolver import DEFAULT, SELLER_OR_MANAGER, default_resolver


class PrincipalAuthentication(BaseAuthentication):
    mode = DEFAULT
    resolver = default_resolver

    def authenticate(self, request):
        credentials = credentials_from_request(request)
        if credentials.is_empty:
            return None
        principal = self.resolver.resolve(credentials, self.mode)
        return (principal.acting_user, principal)

    def authenticate_header(self, request):
        return 'Bearer realm="api"'


class SellerOrManagerAuthentication(PrincipalAuthentication):
    """Shop owner first, then store manager."""

    mode = SELLER_OR_MANAGER


class UserTokenAuthentication(BaseAuthentication):
    """
    Plain user token, for account endpoints any role may call.
    Ban and stale-credential gates still apply.
    """

    resolver = default_resolver

    def authenticate(self, request):
        raw = credentials_from_request(request).user_token
        if not raw:
            return None
        return (self.resolver.load_user(raw), None)

    def authenticate_header(self, request):
        return 'Bearer realm="api"'
