"""
Mileage Surcharge Calculator.

    surcharge = max(0, distance - threshold) * rate     (rounded per line item)

The driver add-on uses the same formula with the driver's own rate,
threshold and optional minimum.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.models.facts import OrderFacts
from .money import to_money

_ZERO = Decimal("0")


class MileageResolution(BaseModel):
    client_miles: Decimal
    client_surcharge: Decimal
    driver_miles: Decimal
    driver_surcharge: Decimal


def billable_miles(distance_miles: Decimal, threshold_miles: Decimal) -> Decimal:
    return max(_ZERO, distance_miles - threshold_miles)


def mileage_surcharge(
    distance_miles: Decimal,
    threshold_miles: Decimal,
    rate: Decimal,
    minimum: Optional[Decimal] = None,
) -> Decimal:
    """Per-mile charge beyond the threshold, rounded half-up to cents."""
    amount = to_money(billable_miles(distance_miles, threshold_miles) * rate)
    if minimum:
        amount = max(amount, to_money(minimum))
    return amount


def resolve_mileage(config: DeliveryConfiguration, facts: OrderFacts) -> MileageResolution:
    driver = config.driver_pay_settings
    distance = facts.distance_miles
    return MileageResolution(
        client_miles=billable_miles(distance, config.distance_threshold),
        client_surcharge=mileage_surcharge(distance, config.distance_threshold, config.mileage_rate),
        driver_miles=billable_miles(distance, driver.distance_threshold),
        driver_surcharge=mileage_surcharge(
            distance, driver.distance_threshold, driver.mileage_rate, driver.mileage_minimum,
        ),
    )
