"""
Discount Engine — client-side discount for the order.

Rules:
  1. An explicit customSettings.discountOverride wins over the daily-drive rules.
  2. Otherwise the highest-threshold rule with minDailyDrives <= the driver's
     drive count applies. At most one rule applies; rules never stack.
  3. The discount is taken from the client base fee only and never exceeds it.
     Driver pay is never discounted.
"""

from __future__ import annotations

from bisect import bisect_right
from decimal import Decimal
from typing import Optional, Sequence

from pydantic import BaseModel

from delivery_pricing.models.configuration import DeliveryConfiguration, DriveDiscountRule
from delivery_pricing.models.enums import DiscountSource
from delivery_pricing.models.facts import OrderFacts
from .extensions import discount_override
from .money import ZERO, to_money


class DiscountResolution(BaseModel):
    amount: Decimal
    source: DiscountSource = DiscountSource.NONE
    rule_index: Optional[int] = None
    uncapped_amount: Decimal = ZERO

    @property
    def capped(self) -> bool:
        return self.uncapped_amount > self.amount


def select_discount_rule(
    rules: Sequence[DriveDiscountRule], daily_drives: int
) -> Optional[int]:
    """Index of the highest-threshold satisfied rule, or None."""
    thresholds = [rule.min_daily_drives for rule in rules]
    idx = bisect_right(thresholds, daily_drives) - 1
    return idx if idx >= 0 else None


def rule_discount(rule: DriveDiscountRule, base_fee: Decimal, daily_drives: int) -> Decimal:
    if rule.discount_fraction is not None:
        return to_money(base_fee * rule.discount_fraction)
    amount = rule.discount_amount or ZERO
    if rule.per_drive:
        amount = amount * daily_drives
    return to_money(amount)


def resolve_discount(
    config: DeliveryConfiguration,
    facts: OrderFacts,
    base_client_fee: Decimal,
) -> DiscountResolution:
    override = discount_override(config)
    if override is not None:
        if override.fraction is not None:
            raw = to_money(base_client_fee * override.fraction)
        else:
            raw = to_money(override.amount)
        return DiscountResolution(
            amount=min(raw, base_client_fee),
            source=DiscountSource.CUSTOM_OVERRIDE,
            uncapped_amount=raw,
        )

    drives = facts.daily_drive_count_for_driver
    idx = select_discount_rule(config.daily_drive_discounts, drives)
    if idx is None:
        return DiscountResolution(amount=ZERO)

    raw = rule_discount(config.daily_drive_discounts[idx], base_client_fee, drives)
    return DiscountResolution(
        amount=min(raw, base_client_fee),
        source=DiscountSource.DAILY_DRIVE,
        rule_index=idx,
        uncapped_amount=raw,
    )
