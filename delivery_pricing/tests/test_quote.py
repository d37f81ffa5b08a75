"""
Tests: Quote assembly — end-to-end pricing of one order.

Run with:
    pytest delivery_pricing/tests/test_quote.py -v
"""

from decimal import Decimal

import pytest

from delivery_pricing.errors import ConfigurationError, InputError, ManualReviewRequired
from delivery_pricing.models.enums import AdjustmentKind, DiscountSource, RateBranch
from delivery_pricing.pricing import compute_quote, reconciles, try_compute_quote
from delivery_pricing.sources.seed import seed_source
from delivery_pricing.tests.factories import FIXED_TIME, make_config, make_facts


class TestWorkedExamples:
    def test_mileage_beyond_threshold(self, flat_config):
        quote = compute_quote(flat_config, make_facts(distanceMiles=15), FIXED_TIME)
        assert quote.base_client_fee == Decimal("50.00")
        assert quote.mileage_surcharge_client == Decimal("10.00")
        assert quote.discount_applied_client == Decimal("0.00")
        assert quote.total_client_fee == Decimal("60.00")
        assert quote.rate_branch is RateBranch.REGULAR

    def test_daily_drive_discount(self):
        config = make_config(
            pricingTiers=[{"headcountMin": 0, "headcountMax": None, "regularRate": 100, "within10Miles": 100}],
            dailyDriveDiscounts=[{"minDailyDrives": 5, "discountFraction": "0.10"}],
        )
        quote = compute_quote(config, make_facts(distanceMiles=5, dailyDriveCountForDriver=6), FIXED_TIME)
        assert quote.mileage_surcharge_client == Decimal("0.00")
        assert quote.discount_applied_client == Decimal("10.00")
        assert quote.discount_source is DiscountSource.DAILY_DRIVE
        assert quote.total_client_fee == Decimal("90.00")

    def test_unmatched_route_toll_rejected(self, config):
        facts = make_facts(crossesTolledRoute=True, routeTollId="nonexistent")
        with pytest.raises(ConfigurationError):
            compute_quote(config, facts, FIXED_TIME)


class TestSeedPresets:
    def test_standard_regular_delivery(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(configId=config.config_id, distanceMiles=15, orderHeadcountOrSubtotal=20)
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.total_client_fee == Decimal("75.00")
        assert quote.base_driver_pay == Decimal("23.00")
        assert quote.mileage_surcharge_driver == Decimal("10.50")
        assert quote.total_driver_pay == Decimal("33.50")

    def test_standard_auto_applied_toll(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(
            configId=config.config_id,
            distanceMiles=15,
            orderHeadcountOrSubtotal=20,
            deliveryArea="Oakland",
        )
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.toll_surcharge_client == Decimal("8.00")
        assert quote.toll_pass_through_driver == Decimal("8.00")
        assert quote.total_client_fee == Decimal("83.00")
        assert quote.total_driver_pay == Decimal("41.50")

    def test_large_order_needs_manual_review(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(configId=config.config_id, orderHeadcountOrSubtotal=320)
        with pytest.raises(ManualReviewRequired):
            compute_quote(config, facts, FIXED_TIME)

    def test_driver_max_is_reported_not_enforced(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(configId=config.config_id, distanceMiles=30, orderHeadcountOrSubtotal=20)
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.base_driver_pay == Decimal("23.00")
        assert quote.mileage_surcharge_driver == Decimal("21.00")
        assert quote.total_driver_pay == Decimal("44.00")
        assert quote.max_pay_per_drop == Decimal("40.00")
        assert not quote.has_adjustment(AdjustmentKind.DRIVER_PAY_CAPPED)

    def test_food_cost_tier_cheaper_than_headcount_tier(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(
            configId=config.config_id,
            distanceMiles=15,
            orderHeadcountOrSubtotal=80,
            orderSubtotal=200,
        )
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.base_client_fee == Decimal("60.00")
        assert quote.tier_applied == 0

    def test_headcount_tier_cheaper_than_food_cost_tier(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(
            configId=config.config_id,
            distanceMiles=15,
            orderHeadcountOrSubtotal=20,
            orderSubtotal=1000,
        )
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.base_client_fee == Decimal("60.00")
        assert quote.tier_applied == 0

    def test_large_headcount_priced_on_food_cost(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(
            configId=config.config_id,
            distanceMiles=15,
            orderHeadcountOrSubtotal=320,
            orderSubtotal=500,
        )
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.tier_applied == 1
        assert quote.base_client_fee == Decimal("70.00")

    def test_zero_headcount_priced_on_food_cost(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(
            configId=config.config_id,
            distanceMiles=15,
            orderHeadcountOrSubtotal=0,
            orderSubtotal=700,
        )
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.tier_applied == 2
        assert quote.base_client_fee == Decimal("90.00")

    def test_platform_fee_reported_beside_driver_pay(self):
        config = seed_source().get_configuration("ready-set-food-standard")
        facts = make_facts(
            configId=config.config_id,
            distanceMiles=15,
            orderHeadcountOrSubtotal=20,
            deliveryArea="Oakland",
        )
        quote = compute_quote(config, facts, FIXED_TIME)
        assert quote.platform_fee == Decimal("70.00")
        assert quote.platform_total_fee == Decimal("78.00")
        assert quote.total_driver_pay == Decimal("41.50")
        assert quote.to_record()["platformFee"] == "70.00"

    def test_inactive_preset_rejected(self):
        config = seed_source().get_configuration("ready-set-food-premium")
        with pytest.raises(ConfigurationError) as exc:
            compute_quote(config, make_facts(configId=config.config_id), FIXED_TIME)
        assert exc.value.field == "isActive"


class TestDriverPay:
    def test_cap_limits_base_and_mileage(self):
        config = make_config(driverPaySettings={
            "basePayPerDrop": 23,
            "maxPayPerDrop": 40,
            "enforceMaxPayPerDrop": True,
            "mileageRate": "0.70",
            "distanceThreshold": 0,
        })
        quote = compute_quote(config, make_facts(distanceMiles=30), FIXED_TIME)
        assert quote.base_driver_pay == Decimal("23.00")
        assert quote.mileage_surcharge_driver == Decimal("17.00")
        assert quote.total_driver_pay == Decimal("40.00")
        assert quote.has_adjustment(AdjustmentKind.DRIVER_PAY_CAPPED)

    def test_bonus_outside_cap(self):
        config = make_config(driverPaySettings={
            "basePayPerDrop": 23, "maxPayPerDrop": 23, "enforceMaxPayPerDrop": True, "bonusPay": 10,
        })
        quote = compute_quote(config, make_facts(bonusQualified=True), FIXED_TIME)
        assert quote.bonus_driver_pay == Decimal("10.00")
        assert quote.total_driver_pay == Decimal("33.00")

    def test_driver_pay_never_discounted(self):
        config = make_config(dailyDriveDiscounts=[{"minDailyDrives": 2, "discountFraction": "0.5"}])
        quote = compute_quote(config, make_facts(dailyDriveCountForDriver=3), FIXED_TIME)
        assert quote.discount_applied_client == Decimal("15.00")
        assert quote.total_driver_pay == Decimal("20.00")


class TestRejections:
    def test_negative_distance(self, config):
        with pytest.raises(InputError) as exc:
            compute_quote(config, make_facts(distanceMiles=-1), FIXED_TIME)
        assert exc.value.field == "distanceMiles"

    def test_zero_daily_drives(self, config):
        with pytest.raises(InputError) as exc:
            compute_quote(config, make_facts(dailyDriveCountForDriver=0), FIXED_TIME)
        assert exc.value.field == "dailyDriveCountForDriver"

    def test_config_id_mismatch(self, config):
        with pytest.raises(InputError):
            compute_quote(config, make_facts(configId="someone-else"), FIXED_TIME)

    def test_input_checked_before_configuration(self):
        config = make_config(isActive=False)
        with pytest.raises(InputError):
            compute_quote(config, make_facts(distanceMiles=-3), FIXED_TIME)

    def test_inconsistent_tiers_rejected(self):
        config = make_config(pricingTiers=[
            {"headcountMin": 0, "headcountMax": 24, "regularRate": 60, "within10Miles": 30},
            {"headcountMin": 30, "headcountMax": None, "regularRate": 70, "within10Miles": 40},
        ])
        with pytest.raises(ConfigurationError) as exc:
            compute_quote(config, make_facts(), FIXED_TIME)
        assert exc.value.field == "pricingTiers[1].headcountMin"

    def test_zero_fee_tier_rejected_for_non_empty_order(self):
        config = make_config(pricingTiers=[
            {"headcountMin": 0, "headcountMax": None, "regularRate": 0, "within10Miles": 0},
        ])
        with pytest.raises(ConfigurationError) as exc:
            compute_quote(config, make_facts(distanceMiles=5, orderHeadcountOrSubtotal=10), FIXED_TIME)
        assert exc.value.field == "pricingTiers[0].within10Miles"

    def test_zero_fee_tier_names_regular_rate_beyond_radius(self):
        config = make_config(pricingTiers=[
            {"headcountMin": 0, "headcountMax": None, "regularRate": 0, "within10Miles": 30},
        ])
        with pytest.raises(ConfigurationError) as exc:
            compute_quote(config, make_facts(distanceMiles=15, orderHeadcountOrSubtotal=30), FIXED_TIME)
        assert exc.value.field == "pricingTiers[0].regularRate"

    def test_zero_fee_allowed_for_empty_order(self):
        config = make_config(pricingTiers=[
            {"headcountMin": 0, "headcountMax": None, "regularRate": 0, "within10Miles": 0},
        ])
        quote = compute_quote(config, make_facts(orderHeadcountOrSubtotal=0), FIXED_TIME)
        assert quote.base_client_fee == Decimal("0.00")

    def test_try_compute_returns_error_record(self, config):
        outcome = try_compute_quote(config, make_facts(distanceMiles=-1, orderId="ord-9"), FIXED_TIME)
        assert not outcome.ok
        assert outcome.order_id == "ord-9"
        assert outcome.error["kind"] == "InputError"
        assert outcome.error["field"] == "distanceMiles"


class TestAdjustments:
    def test_clamped_tier_is_recorded(self):
        config = make_config(pricingTiers=[
            {"headcountMin": 5, "headcountMax": 24, "regularRate": 60, "within10Miles": 30},
            {"headcountMin": 25, "headcountMax": None, "regularRate": 70, "within10Miles": 40},
        ])
        quote = compute_quote(config, make_facts(orderHeadcountOrSubtotal=2), FIXED_TIME)
        assert quote.clamped_tier
        assert quote.tier_applied == 0
        assert quote.adjustment_applied
        assert quote.has_adjustment(AdjustmentKind.TIER_CLAMPED)

    def test_capped_discount_is_recorded(self):
        config = make_config(customSettings={"discountOverride": {"amount": 500}})
        quote = compute_quote(config, make_facts(), FIXED_TIME)
        assert quote.discount_applied_client == quote.base_client_fee
        assert quote.total_client_fee == Decimal("0.00")
        assert quote.has_adjustment(AdjustmentKind.DISCOUNT_CAPPED)

    def test_clean_quote_has_no_adjustments(self, config):
        quote = compute_quote(config, make_facts(), FIXED_TIME)
        assert not quote.adjustment_applied
        assert quote.to_record()["adjustmentApplied"] is False


class TestProperties:
    def test_identical_inputs_identical_quotes(self, config):
        facts = make_facts(distanceMiles="17.3", orderHeadcountOrSubtotal=33)
        assert compute_quote(config, facts, FIXED_TIME) == compute_quote(config, facts, FIXED_TIME)

    def test_fingerprint_ignores_timestamp(self, config):
        facts = make_facts(distanceMiles="17.3")
        assert compute_quote(config, facts).fingerprint() == compute_quote(config, facts, FIXED_TIME).fingerprint()

    def test_total_never_decreases_with_distance(self, config):
        totals = [
            compute_quote(config, make_facts(distanceMiles=Decimal(d) / 2), FIXED_TIME).total_client_fee
            for d in range(0, 80)
        ]
        assert totals == sorted(totals)

    def test_total_never_decreases_with_order_size(self, config):
        totals = [
            compute_quote(config, make_facts(orderHeadcountOrSubtotal=n, distanceMiles=12), FIXED_TIME).total_client_fee
            for n in range(0, 120, 3)
        ]
        assert totals == sorted(totals)

    def test_flat_fee_ignores_distance_within_threshold(self, flat_config):
        near = compute_quote(flat_config, make_facts(distanceMiles=1), FIXED_TIME)
        far = compute_quote(flat_config, make_facts(distanceMiles=9), FIXED_TIME)
        assert near.base_client_fee == far.base_client_fee == Decimal("50.00")
        assert near.total_client_fee == far.total_client_fee

    def test_no_mileage_within_threshold(self, config):
        for distance in (0, 3, "9.99", 10):
            quote = compute_quote(config, make_facts(distanceMiles=distance), FIXED_TIME)
            assert quote.mileage_surcharge_client == Decimal("0.00")

    def test_discount_never_exceeds_base(self):
        config = make_config(dailyDriveDiscounts={"twoDrivers": 20, "threeDrivers": 25, "fourPlusDrivers": 30})
        for drives in range(1, 8):
            quote = compute_quote(config, make_facts(dailyDriveCountForDriver=drives), FIXED_TIME)
            assert quote.discount_applied_client <= quote.base_client_fee
            assert quote.total_client_fee >= 0

    def test_quotes_reconcile(self):
        config = make_config(
            dailyDriveDiscounts=[{"minDailyDrives": 2, "discountFraction": "0.15"}],
            driverPaySettings={"basePayPerDrop": 20, "mileageRate": "0.70", "bonusPay": 5, "tollPassThrough": True},
        )
        for distance in ("0", "7.25", "13.33", "42.1"):
            for drives in (1, 2, 4):
                facts = make_facts(
                    distanceMiles=distance,
                    dailyDriveCountForDriver=drives,
                    crossesTolledRoute=drives == 4,
                    bonusQualified=drives == 2,
                )
                assert reconciles(compute_quote(config, facts, FIXED_TIME))


class TestStatements:
    def test_client_statement_lines(self):
        config = make_config(dailyDriveDiscounts=[{"minDailyDrives": 2, "discountAmount": 5}])
        quote = compute_quote(
            config,
            make_facts(distanceMiles=15, dailyDriveCountForDriver=2, crossesTolledRoute=True),
            FIXED_TIME,
        )
        items = [line["item"] for line in quote.client_statement()]
        assert items == ["Delivery fee", "Mileage surcharge", "Daily drive discount", "Bridge toll", "Total"]
        assert quote.client_statement()[-1]["amount"] == Decimal("72.00")

    def test_record_uses_camel_case(self, config):
        record = compute_quote(config, make_facts(orderId="ord-1"), FIXED_TIME).to_record()
        assert record["configId"] == "test-client"
        assert record["orderId"] == "ord-1"
        assert record["totalClientFee"] == "30.00"
        assert record["rateBranch"] == "within10Miles"
