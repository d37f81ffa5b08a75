"""
Tier Resolver — picks the pricing tier for an order and the base amount
(client fee or driver base pay) it carries.

The same functions price both sides: the client fee from
``config.pricing_tiers`` and the driver base pay from
``config.driver_pay_settings.pricing_tiers``.
"""

from __future__ import annotations

from bisect import bisect_right
from decimal import Decimal
from typing import Any, Optional, Sequence

from pydantic import BaseModel

from delivery_pricing.errors import ConfigurationError, InputError, ManualReviewRequired
from delivery_pricing.models.configuration import DeliveryConfiguration, PricingTier
from delivery_pricing.models.enums import RateBranch, TierKey
from delivery_pricing.models.facts import OrderFacts
from .money import CENT, ZERO, to_money

# Smallest step between one tier's max and the next tier's min
_BOUNDARY_STEP = {
    TierKey.HEADCOUNT: Decimal("1"),
    TierKey.SUBTOTAL: CENT,
}

_BOUNDARY_FIELDS = {
    TierKey.HEADCOUNT: ("headcountMin", "headcountMax"),
    TierKey.SUBTOTAL: ("foodCostMin", "foodCostMax"),
}


class TierSelection(BaseModel):
    index: int
    tier: PricingTier
    clamped: bool = False
    boundary: Optional[Decimal] = None  # the bound clamped to, if any


class TierAmount(BaseModel):
    index: int
    clamped: bool
    boundary: Optional[Decimal] = None
    amount: Decimal


class TierResolution(BaseModel):
    """Client fee and driver base pay for one order."""
    is_local: bool
    branch: RateBranch
    client: TierAmount
    driver: TierAmount
    driver_tiered: bool


# ── Table checks ─────────────────────────────────────────


def tier_table_violations(
    tiers: Sequence[PricingTier],
    key: TierKey,
    field: str = "pricingTiers",
) -> list[dict[str, Any]]:
    """
    Check a tier table for ordering, gaps, overlaps and open-ended tiers.
    Returns violations: {rule, field, detail}.
    """
    violations: list[dict[str, Any]] = []
    if not tiers:
        violations.append({
            "rule": "tiers_empty",
            "field": field,
            "detail": "At least one pricing tier is required",
        })
        return violations

    if key is TierKey.LESSER_OF:
        # Both boundary pairs must form valid tables
        return (
            tier_table_violations(tiers, TierKey.HEADCOUNT, field)
            + tier_table_violations(tiers, TierKey.SUBTOTAL, field)
        )

    step = _BOUNDARY_STEP[key]
    min_name, max_name = _BOUNDARY_FIELDS[key]
    last = len(tiers) - 1
    prev_high: Optional[Decimal] = None

    for i, tier in enumerate(tiers):
        path = f"{field}[{i}]"
        low, high = tier.bounds(key)

        if low is None:
            violations.append({
                "rule": "tier_boundary_missing",
                "field": f"{path}.{min_name}",
                "detail": f"Tier {i + 1} has no {min_name} for tier key '{key.value}'",
            })
            prev_high = high
            continue
        if low < 0:
            violations.append({
                "rule": "tier_boundary_negative",
                "field": f"{path}.{min_name}",
                "detail": f"Tier {i + 1}: {min_name} cannot be negative",
            })
        if high is None and i != last:
            violations.append({
                "rule": "tier_open_ended_not_last",
                "field": f"{path}.{max_name}",
                "detail": f"Tier {i + 1} is open-ended but is not the last tier",
            })
        if high is not None and high < low:
            violations.append({
                "rule": "tier_inverted",
                "field": f"{path}.{max_name}",
                "detail": f"Tier {i + 1}: {max_name} {high} is below {min_name} {low}",
            })

        if i > 0 and prev_high is not None:
            gap = low - prev_high
            if gap < step:
                violations.append({
                    "rule": "tier_overlap",
                    "field": f"{path}.{min_name}",
                    "detail": (
                        f"Tier {i + 1} starts at {low}, overlapping or preceding "
                        f"tier {i} which ends at {prev_high}"
                    ),
                })
            elif gap > step:
                violations.append({
                    "rule": "tier_gap",
                    "field": f"{path}.{min_name}",
                    "detail": (
                        f"Tier {i + 1} starts at {low}, leaving a gap after "
                        f"tier {i} which ends at {prev_high}"
                    ),
                })
        prev_high = high

    return violations


def ensure_tier_table(
    tiers: Sequence[PricingTier],
    key: TierKey,
    field: str = "pricingTiers",
    config_id: str = "",
) -> None:
    violations = tier_table_violations(tiers, key, field)
    if violations:
        first = violations[0]
        raise ConfigurationError(first["detail"], field=first["field"], config_id=config_id)


# ── Selection ────────────────────────────────────────────


def select_tier(tiers: Sequence[PricingTier], value: Decimal, key: TierKey) -> TierSelection:
    """
    Binary-search the tier containing ``value``.
    Values outside every tier are clamped to the nearest one.
    The table must already have passed ensure_tier_table().
    """
    minimums = [tier.bounds(key)[0] for tier in tiers]
    idx = bisect_right(minimums, value) - 1

    if idx < 0:
        return TierSelection(index=0, tier=tiers[0], clamped=True, boundary=minimums[0])

    _, high = tiers[idx].bounds(key)
    if high is None or value <= high:
        return TierSelection(index=idx, tier=tiers[idx])

    if idx == len(tiers) - 1:
        return TierSelection(index=idx, tier=tiers[idx], clamped=True, boundary=high)

    # Between this tier's max and the next tier's min (e.g. 299.995)
    next_min = minimums[idx + 1]
    if next_min - value < value - high:
        return TierSelection(index=idx + 1, tier=tiers[idx + 1], clamped=True, boundary=next_min)
    return TierSelection(index=idx, tier=tiers[idx], clamped=True, boundary=high)


def is_local_delivery(distance_miles: Decimal, radius_miles: Decimal) -> bool:
    return distance_miles <= radius_miles


def driver_tier_key(key: TierKey) -> TierKey:
    """Driver base pay tiers follow headcount when the client side uses the lesser-of rule."""
    return TierKey.HEADCOUNT if key is TierKey.LESSER_OF else key


def _comparison_fee(tier: PricingTier, branch: RateBranch, food_cost: Decimal) -> Decimal:
    # Manual-review tiers carry no price yet and compare as zero
    if tier.requires_manual_review:
        return ZERO
    percent = tier.percent_for(branch)
    if percent is not None:
        return to_money(food_cost * percent)
    return to_money(tier.rate_for(branch))


def select_lesser_tier(
    tiers: Sequence[PricingTier],
    headcount: Decimal,
    food_cost: Optional[Decimal],
    branch: RateBranch,
) -> TierSelection:
    """
    Pick between the tier matching the headcount and the tier matching the
    food cost, whichever charges the lesser fee.

    A zero headcount prices on food cost alone; a missing or zero food cost
    prices on headcount alone. When one side lands on a zero-fee tier (e.g. a
    manual-review tier) the other side is used. Ties go to the headcount tier.
    """
    if food_cost is None or food_cost == 0:
        return select_tier(tiers, headcount, TierKey.HEADCOUNT)
    if headcount == 0:
        return select_tier(tiers, food_cost, TierKey.SUBTOTAL)

    by_headcount = select_tier(tiers, headcount, TierKey.HEADCOUNT)
    by_food_cost = select_tier(tiers, food_cost, TierKey.SUBTOTAL)
    headcount_fee = _comparison_fee(by_headcount.tier, branch, food_cost)
    food_cost_fee = _comparison_fee(by_food_cost.tier, branch, food_cost)

    if headcount_fee == 0 and food_cost_fee > 0:
        return by_food_cost
    if food_cost_fee == 0 and headcount_fee > 0:
        return by_headcount
    return by_headcount if headcount_fee <= food_cost_fee else by_food_cost


def tier_amount(
    tiers: Sequence[PricingTier],
    key: TierKey,
    value: Decimal,
    branch: RateBranch,
    subtotal: Optional[Decimal],
    field: str = "pricingTiers",
    config_id: str = "",
    require_fee: bool = False,
) -> TierAmount:
    """
    Select the tier and price it on the given branch.

    With the lesser-of key, ``value`` is the headcount and ``subtotal`` the
    food cost. ``require_fee`` rejects a zero fee for a non-empty order.
    """
    if key is TierKey.LESSER_OF:
        selection = select_lesser_tier(tiers, value, subtotal, branch)
    else:
        selection = select_tier(tiers, value, key)
    tier = selection.tier

    if tier.requires_manual_review:
        raise ManualReviewRequired(
            f"Orders of size {value} fall in tier {selection.index + 1}, which requires manual review",
            field=f"{field}[{selection.index}]",
            config_id=config_id,
        )

    percent = tier.percent_for(branch)
    if percent is not None:
        if subtotal is None:
            raise InputError(
                f"Tier {selection.index + 1} is priced as a percentage of the order subtotal, "
                "but no subtotal was supplied",
                field="orderSubtotal",
                config_id=config_id,
            )
        amount = to_money(subtotal * percent)
    else:
        amount = to_money(tier.rate_for(branch))

    if require_fee and amount == 0 and (value > 0 or (subtotal or ZERO) > 0):
        rate_field = f"{branch.value}Percent" if percent is not None else branch.value
        raise ConfigurationError(
            f"Tier {selection.index + 1} prices a non-empty order (size {value}) at 0; "
            "unpriced tiers must be flagged requiresManualReview",
            field=f"{field}[{selection.index}].{rate_field}",
            config_id=config_id,
        )

    return TierAmount(
        index=selection.index,
        clamped=selection.clamped,
        boundary=selection.boundary,
        amount=amount,
    )


def resolve_base_amounts(config: DeliveryConfiguration, facts: OrderFacts) -> TierResolution:
    """Client base fee and driver base pay for the order."""
    key = config.tier_key
    value = facts.order_headcount_or_subtotal
    local = is_local_delivery(facts.distance_miles, config.effective_local_radius)
    branch = RateBranch.LOCAL if local else RateBranch.REGULAR

    subtotal = facts.order_subtotal
    if subtotal is None and key is TierKey.SUBTOTAL:
        subtotal = value

    client = tier_amount(
        config.pricing_tiers, key, value, branch, subtotal,
        field="pricingTiers", config_id=config.config_id, require_fee=True,
    )

    driver_settings = config.driver_pay_settings
    if driver_settings.pricing_tiers:
        driver = tier_amount(
            driver_settings.pricing_tiers, driver_tier_key(key), value, branch, subtotal,
            field="driverPaySettings.pricingTiers", config_id=config.config_id,
        )
    else:
        driver = TierAmount(
            index=client.index,
            clamped=False,
            amount=to_money(driver_settings.base_pay_per_drop),
        )

    return TierResolution(
        is_local=local,
        branch=branch,
        client=client,
        driver=driver,
        driver_tiered=bool(driver_settings.pricing_tiers),
    )
