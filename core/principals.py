"""
Principals: who is acting in a request.

A principal is resolved per request and never persisted. It is one of:

- ``ShopOwner``: authenticated with a shop token.
- ``StoreManager``: a user acting for a shop through a live store manager
  service.
- ``Administrator``: platform staff; carries the permission set derived
  from its role.

Model instances are attached for convenience but do not take part in
equality, so two principals for the same ids compare equal.
"""
from dataclasses import dataclass, field
from typing import Any, FrozenSet


@dataclass(frozen=True)
class ShopOwner:
    shop_id: int
    shop: Any = field(default=None, compare=False, repr=False)

    kind = "shop_owner"

    @property
    def acting_user(self):
        return self.shop.owner if self.shop is not None else None


@dataclass(frozen=True)
class StoreManager:
    user_id: int
    shop_id: int
    service_id: int
    user: Any = field(default=None, compare=False, repr=False)
    shop: Any = field(default=None, compare=False, repr=False)
    service: Any = field(default=None, compare=False, repr=False)

    kind = "store_manager"

    @property
    def acting_user(self):
        return self.user


@dataclass(frozen=True)
class Administrator:
    user_id: int
    role: str
    permissions: FrozenSet[str] = frozenset()
    user: Any = field(default=None, compare=False, repr=False)

    kind = "administrator"

    @property
    def acting_user(self):
        return self.user


def is_shop_principal(principal) -> bool:
    """True for principals that act on a shop (owner or store manager)."""
    return isinstance(principal, (ShopOwner, StoreManager))

