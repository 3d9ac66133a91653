"""
API URL configuration. Each app owns its routes; they are mounted here
under /api/.
"""
from django.urls import path, include

urlpatterns = [
    # Accounts: register, user tokens, profile, admin users
    path("", include("accounts.urls")),
    # Shops: shop token, me, ban status, admin moderation
    path("", include("shops.urls")),
    # Store manager service
    path("", include("managers.urls")),
    # Districts, vendor delivery config, quotes
    path("", include("delivery.urls")),
]
