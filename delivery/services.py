"""
Delivery fee resolver: per-district quotes for a shop and the vendor
configuration mutations.

A quote is either a ``DeliveryQuote`` or an ``Unavailable`` result; an
unserved district is an answer, not an error. Mutations raise
``DistrictUnavailable`` / ``InvalidFeeValue``, except ``bulk_set_fees`` which
collects per-item failures.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from django.db import transaction
from rest_framework.exceptions import ValidationError

from core.exceptions import DistrictUnavailable, InvalidFeeValue

from .models import (
    MAX_ESTIMATED_DAYS,
    MIN_ESTIMATED_DAYS,
    District,
    DistrictFee,
    VendorDeliveryConfig,
)

logger = logging.getLogger(__name__)

NOT_ENABLED = "not enabled"
DISTRICT_NOT_SERVED = "district not served"

CENT = Decimal("0.01")
MAX_FEE = Decimal("99999999.99")

CONFIG_FIELDS = (
    "delivery_enabled",
    "provider_type",
    "default_delivery_fee",
    "free_delivery_threshold",
    "pickup_enabled",
    "pickup_address",
    "pickup_instructions",
)


@dataclass(frozen=True)
class DeliveryQuote:
    fee: Decimal
    original_fee: Decimal
    free_delivery: bool
    estimated_days: int
    district_name: str
    district_id: Optional[int] = None
    district_code: str = ""
    available: bool = True


@dataclass(frozen=True)
class Unavailable:
    reason: str
    available: bool = False


@dataclass(frozen=True)
class BulkFeeFailure:
    district: object
    reason: str


@dataclass
class BulkFeeResult:
    updated: list = field(default_factory=list)
    failed: list = field(default_factory=list)


@dataclass
class DeliveryOptions:
    delivery_enabled: bool
    options: list
    pickup_enabled: bool
    pickup_address: str = ""
    pickup_instructions: str = ""
    free_delivery_threshold: Optional[Decimal] = None


def _pk(value):
    return getattr(value, "pk", value)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def parse_fee(value) -> Decimal:
    """Non-negative money amount with two decimals; 0 is valid."""
    if value is None or isinstance(value, bool) or value == "":
        raise InvalidFeeValue()
    try:
        fee = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidFeeValue()
    if not fee.is_finite() or fee < 0 or fee > MAX_FEE:
        raise InvalidFeeValue()
    return fee.quantize(CENT)


def parse_estimated_days(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError({"estimated_days": "Must be a whole number of days."})
    if not MIN_ESTIMATED_DAYS <= days <= MAX_ESTIMATED_DAYS:
        raise ValidationError(
            {
                "estimated_days": "Must be between {} and {}.".format(
                    MIN_ESTIMATED_DAYS, MAX_ESTIMATED_DAYS
                )
            }
        )
    return days


def active_district(district) -> District:
    try:
        district_pk = int(_pk(district))
    except (TypeError, ValueError):
        raise DistrictUnavailable("District not found or inactive.")
    found = District.objects.active().filter(pk=district_pk).first()
    if found is None:
        raise DistrictUnavailable("District not found or inactive.")
    return found


def _subtotal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({"subtotal": "Must be a number."})


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


def _quote_entry(entry: DistrictFee, threshold, subtotal) -> DeliveryQuote:
    free = threshold is not None and subtotal is not None and subtotal >= threshold
    return DeliveryQuote(
        fee=Decimal("0.00") if free else entry.fee,
        original_fee=entry.fee,
        free_delivery=free,
        estimated_days=entry.effective_estimated_days,
        district_name=entry.district_name,
        district_id=entry.district_id,
        district_code=entry.district_code,
    )


def quote_delivery(shop, district, subtotal) -> Union[DeliveryQuote, Unavailable]:
    """
    Delivery price for ``subtotal`` from ``shop`` to ``district``.

    Unavailable when the shop has no config or delivery is disabled
    ("not enabled"), or when the district has no available entry or the
    district itself is inactive ("district not served").
    """
    config = VendorDeliveryConfig.objects.for_shop(shop).first()
    if config is None or not config.delivery_enabled:
        return Unavailable(NOT_ENABLED)
    entry = (
        config.district_fees.select_related("district")
        .filter(district_id=_pk(district))
        .first()
    )
    if entry is None or not entry.is_available or not entry.district.is_active:
        return Unavailable(DISTRICT_NOT_SERVED)
    return _quote_entry(entry, config.free_delivery_threshold, _subtotal(subtotal))


def delivery_options(shop, subtotal=None) -> DeliveryOptions:
    """All districts the shop delivers to, priced for ``subtotal``."""
    config = VendorDeliveryConfig.objects.for_shop(shop).first()
    if config is None:
        return DeliveryOptions(delivery_enabled=False, options=[], pickup_enabled=False)

    options = []
    if config.delivery_enabled:
        amount = _subtotal(subtotal)
        entries = config.district_fees.select_related("district").filter(
            is_available=True, district__is_active=True
        )
        options = [_quote_entry(entry, config.free_delivery_threshold, amount) for entry in entries]
    return DeliveryOptions(
        delivery_enabled=config.delivery_enabled,
        options=options,
        pickup_enabled=config.pickup_enabled,
        pickup_address=config.pickup_address if config.pickup_enabled else "",
        pickup_instructions=config.pickup_instructions if config.pickup_enabled else "",
        free_delivery_threshold=config.free_delivery_threshold,
    )


def visible_fees(config):
    """Fee entries whose district is still active."""
    return config.district_fees.select_related("district").filter(district__is_active=True)


def public_config(shop) -> dict:
    config = VendorDeliveryConfig.objects.for_shop(shop).first()
    if config is None:
        return {
            "delivery_enabled": False,
            "provider_type": None,
            "free_delivery_threshold": None,
            "pickup_enabled": False,
            "pickup_address": "",
            "pickup_instructions": "",
            "district_fees": [],
        }
    return {
        "delivery_enabled": config.delivery_enabled,
        "provider_type": config.provider_type,
        "free_delivery_threshold": config.free_delivery_threshold,
        "pickup_enabled": config.pickup_enabled,
        "pickup_address": config.pickup_address,
        "pickup_instructions": config.pickup_instructions,
        "district_fees": [
            {
                "district": entry.district_id,
                "district_name": entry.district_name,
                "district_code": entry.district_code,
                "fee": entry.fee,
                "is_available": entry.is_available,
                "estimated_days": entry.effective_estimated_days,
            }
            for entry in visible_fees(config)
        ],
    }


# ---------------------------------------------------------------------------
# Vendor configuration
# ---------------------------------------------------------------------------


def get_or_create_config(shop) -> VendorDeliveryConfig:
    """Shop's config; a new one starts with delivery off and pickup on."""
    config, created = VendorDeliveryConfig.objects.get_or_create(
        shop=shop,
        defaults={
            "delivery_enabled": False,
            "pickup_enabled": True,
            "pickup_address": shop.address or "",
        },
    )
    if created:
        logger.info("Created delivery config for shop %s", shop.pk)
    return config


def toggle_delivery(shop, enabled) -> VendorDeliveryConfig:
    config = get_or_create_config(shop)
    config.delivery_enabled = bool(enabled)
    config.save(update_fields=["delivery_enabled", "updated_at"])
    logger.info("Shop %s delivery %s", shop.pk, "enabled" if enabled else "disabled")
    return config


def upsert_district_fee(
    shop, district, fee, is_available=True, estimated_days=None
) -> DistrictFee:
    """Create or replace the shop's fee entry for ``district``."""
    fee = parse_fee(fee)
    days = parse_estimated_days(estimated_days)
    district = active_district(district)
    config = get_or_create_config(shop)
    entry, created = DistrictFee.objects.update_or_create(
        config=config,
        district=district,
        defaults={
            "district_name": district.name,
            "district_code": district.code,
            "fee": fee,
            "is_available": bool(is_available),
            "estimated_days": days,
        },
    )
    logger.info(
        "%s fee %s for district %s on shop %s",
        "Created" if created else "Updated",
        fee,
        district.code,
        _pk(shop),
    )
    return entry


def remove_district_fee(shop, district) -> bool:
    """Remove the entry if present. Returns whether anything was deleted."""
    config = VendorDeliveryConfig.objects.for_shop(shop).first()
    if config is None:
        return False
    deleted, _ = DistrictFee.objects.filter(config=config, district_id=_pk(district)).delete()
    if deleted:
        logger.info("Removed district %s fee from shop %s", _pk(district), _pk(shop))
    return bool(deleted)


def _entry_district(entry):
    return entry.get("district", entry.get("district_id"))


def bulk_set_fees(shop, entries) -> BulkFeeResult:
    """
    Upsert each entry independently. A bad entry is reported in
    ``failed`` and does not affect the others.
    """
    result = BulkFeeResult()
    for entry in entries:
        district = _entry_district(entry)
        try:
            with transaction.atomic():
                saved = upsert_district_fee(
                    shop,
                    district,
                    entry.get("fee"),
                    is_available=entry.get("is_available", True),
                    estimated_days=entry.get("estimated_days"),
                )
        except (DistrictUnavailable, InvalidFeeValue, ValidationError) as exc:
            result.failed.append(BulkFeeFailure(district=district, reason=_reason(exc)))
            continue
        result.updated.append(saved)
    logger.info(
        "Bulk fee update for shop %s: %s updated, %s failed",
        _pk(shop),
        len(result.updated),
        len(result.failed),
    )
    return result


def _reason(exc):
    detail = exc.detail
    if isinstance(detail, dict):
        detail = next(iter(detail.values()))
    if isinstance(detail, list):
        detail = detail[0]
    return str(detail)


def save_config(shop, district_fees=None, **fields):
    """
    Update the scalar settings and, when ``district_fees`` is given,
    replace the whole fee set. Entries with an unknown or inactive district
    or an invalid fee are skipped and returned.
    """
    unknown = set(fields) - set(CONFIG_FIELDS)
    if unknown:
        raise ValueError("Unknown delivery config fields: {}".format(", ".join(sorted(unknown))))

    with transaction.atomic():
        config = get_or_create_config(shop)
        for name, value in fields.items():
            setattr(config, name, value)
        config.save()

        skipped = []
        if district_fees is not None:
            result = bulk_set_fees(shop, district_fees)
            skipped = result.failed
            kept = [fee.pk for fee in result.updated]
            config.district_fees.exclude(pk__in=kept).delete()
    logger.info("Saved delivery config for shop %s (%s skipped)", shop.pk, len(skipped))
    return config, skipped
