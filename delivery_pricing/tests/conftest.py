"""Shared fixtures for the calculator tests."""

import pytest

from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.tests.factories import make_config


@pytest.fixture
def config() -> DeliveryConfiguration:
    return make_config()


@pytest.fixture
def flat_config() -> DeliveryConfiguration:
    """Single open-ended tier, regular and local rate both 50."""
    return make_config(pricingTiers=[
        {"headcountMin": 0, "headcountMax": None, "regularRate": 50, "within10Miles": 50, "flatFee": True},
    ])
