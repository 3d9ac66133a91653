"""Tests for delivery fees, quotes and district administration."""
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.exceptions import ValidationError

from core.exceptions import DistrictUnavailable, InvalidFeeValue
from delivery import districts, services
from delivery.models import District, DistrictFee, VendorDeliveryConfig
from delivery.serializers import DistrictSerializer
from shops.models import Shop

User = get_user_model()


class DeliveryTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(email="owner@test.com", password="pass")
        self.shop = Shop.objects.create(
            owner=self.owner, name="Test Shop", slug="test-shop", address="1 Harbour Dr"
        )
        self.gt = District.objects.create(
            name="George Town", code="gt", default_estimated_days=1, sort_order=1
        )
        self.wb = District.objects.create(
            name="West Bay", code="WB", default_estimated_days=2, sort_order=2
        )

    def enable(self, threshold=None):
        config = services.get_or_create_config(self.shop)
        config.delivery_enabled = True
        config.free_delivery_threshold = threshold
        config.save()
        return config


class QuoteTest(DeliveryTestCase):
    def test_no_config(self):
        quote = services.quote_delivery(self.shop, self.gt, 50)
        self.assertFalse(quote.available)
        self.assertEqual(quote.reason, "not enabled")

    def test_delivery_disabled(self):
        services.upsert_district_fee(self.shop, self.gt, "10")
        quote = services.quote_delivery(self.shop, self.gt, 50)
        self.assertEqual(quote.reason, services.NOT_ENABLED)

    def test_missing_entry(self):
        self.enable()
        quote = services.quote_delivery(self.shop, self.wb, 50)
        self.assertEqual(quote.reason, services.DISTRICT_NOT_SERVED)

    def test_unavailable_entry(self):
        self.enable()
        services.upsert_district_fee(self.shop, self.gt, "10", is_available=False)
        quote = services.quote_delivery(self.shop, self.gt, 50)
        self.assertEqual(quote.reason, services.DISTRICT_NOT_SERVED)

    def test_inactive_district(self):
        self.enable()
        services.upsert_district_fee(self.shop, self.gt, "10")
        districts.deactivate_district(self.gt)
        quote = services.quote_delivery(self.shop, self.gt.pk, 50)
        self.assertEqual(quote.reason, services.DISTRICT_NOT_SERVED)
        self.assertTrue(DistrictFee.objects.filter(district=self.gt).exists())

    def test_free_delivery_threshold(self):
        self.enable(threshold=Decimal("100"))
        services.upsert_district_fee(self.shop, self.gt, "10")

        below = services.quote_delivery(self.shop, self.gt, 50)
        self.assertTrue(below.available)
        self.assertEqual(below.fee, Decimal("10.00"))
        self.assertFalse(below.free_delivery)

        at = services.quote_delivery(self.shop, self.gt, 100)
        self.assertEqual(at.fee, Decimal("0"))
        self.assertEqual(at.original_fee, Decimal("10.00"))
        self.assertTrue(at.free_delivery)

    def test_no_threshold_never_free(self):
        self.enable()
        services.upsert_district_fee(self.shop, self.gt, "10")
        quote = services.quote_delivery(self.shop, self.gt, 10000)
        self.assertFalse(quote.free_delivery)
        self.assertEqual(quote.fee, Decimal("10.00"))

    def test_zero_threshold_makes_everything_free(self):
        self.enable(threshold=Decimal("0"))
        services.upsert_district_fee(self.shop, self.gt, "10")
        self.assertTrue(services.quote_delivery(self.shop, self.gt, 0).free_delivery)

    def test_estimated_days_fall_back_to_district(self):
        self.enable()
        services.upsert_district_fee(self.shop, self.gt, "10")
        services.upsert_district_fee(self.shop, self.wb, "12", estimated_days=5)
        self.assertEqual(services.quote_delivery(self.shop, self.gt, 0).estimated_days, 1)
        self.assertEqual(services.quote_delivery(self.shop, self.wb, 0).estimated_days, 5)

    def test_bad_subtotal(self):
        self.enable()
        services.upsert_district_fee(self.shop, self.gt, "10")
        with self.assertRaises(ValidationError):
            services.quote_delivery(self.shop, self.gt, "lots")


class OptionsTest(DeliveryTestCase):
    def test_options_skip_unavailable_and_inactive(self):
        ee = District.objects.create(name="East End", code="EE", sort_order=3)
        self.enable(threshold=Decimal("75"))
        services.upsert_district_fee(self.shop, self.gt, "5")
        services.upsert_district_fee(self.shop, self.wb, "7", is_available=False)
        services.upsert_district_fee(self.shop, ee, "12")
        districts.deactivate_district(ee)

        options = services.delivery_options(self.shop, "80")

        self.assertTrue(options.delivery_enabled)
        self.assertEqual([o.district_code for o in options.options], ["GT"])
        self.assertTrue(options.options[0].free_delivery)
        self.assertEqual(options.pickup_address, "1 Harbour Dr")

    def test_options_without_config(self):
        options = services.delivery_options(self.shop)
        self.assertFalse(options.delivery_enabled)
        self.assertEqual(options.options, [])

    def test_disabled_delivery_has_no_options(self):
        services.upsert_district_fee(self.shop, self.gt, "5")
        options = services.delivery_options(self.shop)
        self.assertEqual(options.options, [])
        self.assertTrue(options.pickup_enabled)

    def test_public_config_hides_inactive_districts(self):
        self.enable()
        services.upsert_district_fee(self.shop, self.gt, "5")
        services.upsert_district_fee(self.shop, self.wb, "7")
        districts.deactivate_district(self.wb)
        data = services.public_config(self.shop)
        self.assertEqual([f["district_code"] for f in data["district_fees"]], ["GT"])


class FeeMutationTest(DeliveryTestCase):
    def test_parse_fee(self):
        self.assertEqual(services.parse_fee("0"), Decimal("0.00"))
        self.assertEqual(services.parse_fee(12.5), Decimal("12.50"))
        for bad in (None, "", "-1", "abc", "NaN", True):
            with self.assertRaises(InvalidFeeValue):
                services.parse_fee(bad)

    def test_upsert_creates_then_replaces(self):
        first = services.upsert_district_fee(self.shop, self.gt, "10")
        second = services.upsert_district_fee(self.shop, self.gt, "8", estimated_days=3)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.fee, Decimal("8.00"))
        self.assertEqual(second.district_code, "GT")
        self.assertEqual(DistrictFee.objects.count(), 1)

    def test_zero_fee_is_valid(self):
        entry = services.upsert_district_fee(self.shop, self.gt, 0)
        self.assertEqual(entry.fee, Decimal("0.00"))

    def test_upsert_rejects_inactive_district(self):
        districts.deactivate_district(self.gt)
        with self.assertRaises(DistrictUnavailable):
            services.upsert_district_fee(self.shop, self.gt, "10")

    def test_upsert_rejects_unknown_district(self):
        with self.assertRaises(DistrictUnavailable):
            services.upsert_district_fee(self.shop, 9999, "10")

    def test_upsert_rejects_negative_fee(self):
        with self.assertRaises(InvalidFeeValue):
            services.upsert_district_fee(self.shop, self.gt, "-5")
        self.assertFalse(DistrictFee.objects.exists())

    def test_upsert_rejects_bad_days(self):
        with self.assertRaises(ValidationError):
            services.upsert_district_fee(self.shop, self.gt, "5", estimated_days=0)

    def test_remove_missing_entry_is_noop(self):
        self.assertFalse(services.remove_district_fee(self.shop, self.gt))
        services.upsert_district_fee(self.shop, self.wb, "7")
        self.assertFalse(services.remove_district_fee(self.shop, self.gt))
        self.assertEqual(DistrictFee.objects.count(), 1)

    def test_remove_entry(self):
        services.upsert_district_fee(self.shop, self.gt, "10")
        self.assertTrue(services.remove_district_fee(self.shop, self.gt.pk))
        self.assertFalse(DistrictFee.objects.exists())

    def test_bulk_partial_failure(self):
        services.upsert_district_fee(self.shop, self.gt, "10")
        result = services.bulk_set_fees(
            self.shop,
            [{"district": self.gt.pk, "fee": 5}, {"district": self.wb.pk, "fee": -1}],
        )
        self.assertEqual([entry.district_id for entry in result.updated], [self.gt.pk])
        self.assertEqual(len(result.failed), 1)
        self.assertEqual(result.failed[0].district, self.wb.pk)
        self.assertEqual(DistrictFee.objects.get(district=self.gt).fee, Decimal("5.00"))
        self.assertFalse(DistrictFee.objects.filter(district=self.wb).exists())

    def test_bulk_reports_unknown_district(self):
        result = services.bulk_set_fees(self.shop, [{"district": 9999, "fee": "3"}])
        self.assertEqual(result.updated, [])
        self.assertEqual(result.failed[0].reason, "District not found or inactive.")

    def test_bulk_reports_malformed_district(self):
        result = services.bulk_set_fees(
            self.shop,
            [
                {"district": self.gt.pk, "fee": 5},
                {"district": "abc", "fee": 3},
                {"fee": 1},
                {"district": [self.wb.pk], "fee": 2},
            ],
        )
        self.assertEqual([entry.district_id for entry in result.updated], [self.gt.pk])
        self.assertEqual([item.district for item in result.failed], ["abc", None, [self.wb.pk]])
        for item in result.failed:
            self.assertEqual(item.reason, "District not found or inactive.")
        self.assertEqual(DistrictFee.objects.count(), 1)

    def test_upsert_rejects_non_numeric_district(self):
        with self.assertRaises(DistrictUnavailable):
            services.upsert_district_fee(self.shop, "abc", "10")
        with self.assertRaises(DistrictUnavailable):
            services.upsert_district_fee(self.shop, None, "10")

    def test_toggle(self):
        config = services.toggle_delivery(self.shop, True)
        self.assertTrue(config.delivery_enabled)
        self.assertEqual(VendorDeliveryConfig.objects.for_shop(self.shop).count(), 1)

    def test_new_config_defaults(self):
        config = services.get_or_create_config(self.shop)
        self.assertFalse(config.delivery_enabled)
        self.assertTrue(config.pickup_enabled)
        self.assertEqual(config.pickup_address, "1 Harbour Dr")

    def test_save_config_replaces_fee_set(self):
        services.upsert_district_fee(self.shop, self.wb, "7")
        config, skipped = services.save_config(
            self.shop,
            district_fees=[{"district": self.gt.pk, "fee": "4"}, {"district": 9999, "fee": "1"}],
            delivery_enabled=True,
            free_delivery_threshold=Decimal("50"),
        )
        self.assertTrue(config.delivery_enabled)
        self.assertEqual(len(skipped), 1)
        self.assertEqual(
            list(config.district_fees.values_list("district_code", flat=True)), ["GT"]
        )

    def test_save_config_keeps_fees_when_omitted(self):
        services.upsert_district_fee(self.shop, self.wb, "7")
        config, skipped = services.save_config(self.shop, pickup_enabled=False)
        self.assertFalse(config.pickup_enabled)
        self.assertEqual(skipped, [])
        self.assertEqual(config.district_fees.count(), 1)

    def test_save_config_rejects_unknown_field(self):
        with self.assertRaises(ValueError):
            services.save_config(self.shop, colour="red")


class DistrictAdminTest(TestCase):
    def test_code_is_uppercased(self):
        district = District.objects.create(name=" Bodden Town ", code="bt")
        self.assertEqual((district.name, district.code), ("Bodden Town", "BT"))

    def test_duplicate_code_any_case(self):
        District.objects.create(name="George Town", code="GT")
        serializer = DistrictSerializer(data={"name": "Georgetown", "code": "gt"})
        self.assertFalse(serializer.is_valid())
        serializer = DistrictSerializer(data={"name": "george town", "code": "GX"})
        self.assertFalse(serializer.is_valid())

    def test_update_keeps_own_code(self):
        district = District.objects.create(name="George Town", code="GT")
        serializer = DistrictSerializer(district, data={"description": "Capital"}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)

    def test_seed_is_idempotent(self):
        created, skipped = districts.seed_cayman_districts()
        self.assertEqual(len(created), len(districts.CAYMAN_DISTRICTS))
        self.assertEqual(skipped, [])
        created, skipped = districts.seed_cayman_districts()
        self.assertEqual(created, [])
        self.assertEqual(len(skipped), len(districts.CAYMAN_DISTRICTS))

    def test_seed_command(self):
        out = StringIO()
        call_command("seed_districts", stdout=out)
        self.assertIn("Created 7 district(s), skipped 0.", out.getvalue())

    def test_bulk_create_collects_errors(self):
        District.objects.create(name="George Town", code="GT")
        created, errors = districts.bulk_create_districts(
            [{"name": "West Bay", "code": "WB"}, {"name": "Other", "code": "gt"}]
        )
        self.assertEqual([d.code for d in created], ["WB"])
        self.assertEqual(errors[0]["index"], 1)

    def test_reorder_and_active_listing(self):
        gt = District.objects.create(name="George Town", code="GT", sort_order=1)
        wb = District.objects.create(name="West Bay", code="WB", sort_order=2)
        count = districts.reorder_districts(
            [{"id": gt.pk, "sort_order": 5}, {"id": wb.pk, "sort_order": 1}]
        )
        self.assertEqual(count, 2)
        self.assertEqual([d.code for d in District.objects.active()], ["WB", "GT"])
        districts.deactivate_district(wb)
        self.assertEqual([d.code for d in District.objects.active()], ["GT"])
