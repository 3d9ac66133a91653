"""
District administration: create with duplicate checks, bulk create,
seed the Cayman Islands districts, reorder and soft delete.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from .models import District
from .serializers import DistrictSerializer

logger = logging.getLogger(__name__)

# (name, code, default fee, default estimated days)
CAYMAN_DISTRICTS = (
    ("George Town", "GT", Decimal("5.00"), 1),
    ("West Bay", "WB", Decimal("7.00"), 1),
    ("Bodden Town", "BT", Decimal("8.00"), 2),
    ("North Side", "NS", Decimal("10.00"), 2),
    ("East End", "EE", Decimal("12.00"), 2),
    ("Cayman Brac", "CB", Decimal("25.00"), 3),
    ("Little Cayman", "LC", Decimal("30.00"), 4),
)


def bulk_create_districts(items, user=None):
    """
    Create each item independently. Returns ``(created, errors)`` where
    errors are ``{"index", "name", "error"}`` dicts.
    """
    created, errors = [], []
    for index, item in enumerate(items):
        serializer = DistrictSerializer(data=item)
        if not serializer.is_valid():
            errors.append(
                {"index": index, "name": item.get("name"), "error": serializer.errors}
            )
            continue
        created.append(serializer.save(created_by=user, updated_by=user))
    logger.info("Bulk created %s district(s), %s error(s)", len(created), len(errors))
    return created, errors


def seed_cayman_districts(user=None):
    """Create the Cayman Islands districts that do not exist yet."""
    created, skipped = [], []
    for order, (name, code, fee, days) in enumerate(CAYMAN_DISTRICTS, start=1):
        if District.objects.duplicate_of(name, code) is not None:
            skipped.append(code)
            continue
        created.append(
            District.objects.create(
                name=name,
                code=code,
                default_fee=fee,
                default_estimated_days=days,
                sort_order=order,
                created_by=user,
                updated_by=user,
            )
        )
    logger.info("Seeded %s district(s), skipped %s", len(created), len(skipped))
    return created, skipped


@transaction.atomic
def reorder_districts(orders, user=None):
    """Apply ``[{"id": ..., "sort_order": ...}, ...]``. Returns the count."""
    count = 0
    for item in orders:
        count += District.objects.filter(pk=item["id"]).update(
            sort_order=item["sort_order"], updated_by=user, updated_at=timezone.now()
        )
    return count


def deactivate_district(district, user=None):
    """Soft delete; vendor fee entries are kept but no longer quoted."""
    district.is_active = False
    district.updated_by = user
    district.save(update_fields=["is_active", "updated_by", "updated_at"])
    logger.info("Deactivated district %s", district.code)
    return district
