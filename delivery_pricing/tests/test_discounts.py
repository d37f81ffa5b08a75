"""
Tests: Discount engine — rule selection, override and ceiling.

Run with:
    pytest delivery_pricing/tests/test_discounts.py -v
"""

from decimal import Decimal

import pytest

from delivery_pricing.errors import ConfigurationError
from delivery_pricing.models.enums import DiscountSource
from delivery_pricing.pricing.discounts import resolve_discount, select_discount_rule
from delivery_pricing.tests.factories import make_config, make_facts

RULES = [
    {"minDailyDrives": 2, "discountFraction": "0.05"},
    {"minDailyDrives": 5, "discountFraction": "0.10"},
    {"minDailyDrives": 8, "discountFraction": "0.20"},
]


class TestSelectDiscountRule:
    @pytest.mark.parametrize("drives,expected", [(1, None), (2, 0), (4, 0), (5, 1), (7, 1), (8, 2), (30, 2)])
    def test_highest_satisfied_threshold(self, drives, expected):
        config = make_config(dailyDriveDiscounts=RULES)
        assert select_discount_rule(config.daily_drive_discounts, drives) == expected

    def test_no_rules(self):
        assert select_discount_rule((), 10) is None


class TestResolveDiscount:
    def test_fraction_of_base_fee(self):
        config = make_config(dailyDriveDiscounts=RULES)
        discount = resolve_discount(config, make_facts(dailyDriveCountForDriver=6), Decimal("100.00"))
        assert discount.amount == Decimal("10.00")
        assert discount.source is DiscountSource.DAILY_DRIVE
        assert discount.rule_index == 1

    def test_single_driver_gets_no_discount(self):
        config = make_config(dailyDriveDiscounts=RULES)
        discount = resolve_discount(config, make_facts(), Decimal("100.00"))
        assert discount.amount == Decimal("0.00")
        assert discount.source is DiscountSource.NONE

    def test_per_drive_amount(self):
        config = make_config(dailyDriveDiscounts={"twoDrivers": 5, "threeDrivers": 10, "fourPlusDrivers": 15})
        discount = resolve_discount(config, make_facts(dailyDriveCountForDriver=3), Decimal("70.00"))
        assert discount.amount == Decimal("30.00")

    def test_discount_never_exceeds_base_fee(self):
        config = make_config(dailyDriveDiscounts={"twoDrivers": 5, "threeDrivers": 10, "fourPlusDrivers": 15})
        discount = resolve_discount(config, make_facts(dailyDriveCountForDriver=6), Decimal("60.00"))
        assert discount.amount == Decimal("60.00")
        assert discount.uncapped_amount == Decimal("90.00")
        assert discount.capped

    def test_override_wins_over_rules(self):
        config = make_config(
            dailyDriveDiscounts=RULES,
            customSettings={"discountOverride": {"fraction": "0.25"}},
        )
        discount = resolve_discount(config, make_facts(dailyDriveCountForDriver=8), Decimal("80.00"))
        assert discount.amount == Decimal("20.00")
        assert discount.source is DiscountSource.CUSTOM_OVERRIDE

    def test_override_amount(self):
        config = make_config(customSettings={"discountOverride": {"amount": 15}})
        discount = resolve_discount(config, make_facts(), Decimal("60.00"))
        assert discount.amount == Decimal("15.00")

    def test_malformed_override_raises(self):
        config = make_config(customSettings={"discountOverride": {"fraction": "0.1", "amount": 5}})
        with pytest.raises(ConfigurationError) as exc:
            resolve_discount(config, make_facts(), Decimal("60.00"))
        assert exc.value.field == "customSettings.discountOverride"
