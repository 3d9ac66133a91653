"""Raw credentials carried by a request."""
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from rest_framework_simplejwt.settings import api_settings


@dataclass(frozen=True)
class Credentials:
    user_token: Optional[str] = None
    shop_token: Optional[str] = None

    @property
    def is_empty(self):
        return not (self.user_token or self.shop_token)


def _bearer_token(request):
    header = request.META.get(api_settings.AUTH_HEADER_NAME, "")
    parts = header.split()
    if len(parts) != 2 or parts[0] not in api_settings.AUTH_HEADER_TYPES:
        return None
    return parts[1]


def credentials_from_request(request) -> Credentials:
    """
    Collect tokens from headers and cookies.

    User token: ``Authorization: Bearer <token>`` or the ``token`` cookie.
    Shop token: ``X-Seller-Token`` header or the ``seller_token`` cookie.
    Headers win over cookies.
    """
    user_token = _bearer_token(request) or request.COOKIES.get(settings.USER_TOKEN_COOKIE)
    shop_token = request.META.get(settings.SELLER_TOKEN_HEADER) or request.COOKIES.get(
        settings.SELLER_TOKEN_COOKIE
    )
    return Credentials(user_token=user_token or None, shop_token=shop_token or None)
