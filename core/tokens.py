"""Shop-scoped access token issued to a shop's owner."""
from django.conf import settings
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import Token

SHOP_ID_CLAIM = "shop_id"


class ShopAccessToken(Token):
    token_type = "shop_access"
    lifetime = settings.SHOP_TOKEN_LIFETIME

    @classmethod
    def for_shop(cls, shop):
        token = cls()
        token[SHOP_ID_CLAIM] = shop.pk
        token[api_settings.USER_ID_CLAIM] = shop.owner_id
        return token
