"""
Validation — configuration consistency rules and order-facts checks.

check_configuration() returns every violation so a synchronization job can
report them all; ensure_valid_configuration() raises ConfigurationError for
the first one. validate_order_facts() raises InputError before any pricing
logic runs.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

from delivery_pricing.errors import ConfigurationError, InputError
from delivery_pricing.models.configuration import DeliveryConfiguration, PricingTier
from delivery_pricing.models.enums import RateBranch
from delivery_pricing.models.facts import OrderFacts
from .extensions import extension_violations
from .tiers import driver_tier_key, tier_table_violations
from .tolls import toll_violations

_ZERO = Decimal("0")
_ONE = Decimal("1")


def _rate_violations(tiers: Sequence[PricingTier], field: str) -> list[dict[str, Any]]:
    """Non-negative rates, percent range, flat-fee invariant, monotonic fees."""
    violations: list[dict[str, Any]] = []

    for i, tier in enumerate(tiers):
        path = f"{field}[{i}]"
        for name, value in (("regularRate", tier.regular_rate), ("within10Miles", tier.within_10_miles)):
            if value < 0:
                violations.append({
                    "rule": "rate_negative",
                    "field": f"{path}.{name}",
                    "detail": f"Tier {i + 1}: {name} cannot be negative",
                })
        for name, value in (
            ("regularRatePercent", tier.regular_rate_percent),
            ("within10MilesPercent", tier.within_10_miles_percent),
        ):
            if value is not None and not (_ZERO <= value <= _ONE):
                violations.append({
                    "rule": "percent_out_of_range",
                    "field": f"{path}.{name}",
                    "detail": f"Tier {i + 1}: {name} must be between 0 and 1",
                })
        if tier.flat_fee and tier.within_10_miles != tier.regular_rate:
            violations.append({
                "rule": "flat_fee_mismatch",
                "field": f"{path}.within10Miles",
                "detail": (
                    f"Tier {i + 1} is flat-fee but within10Miles {tier.within_10_miles} "
                    f"differs from regularRate {tier.regular_rate}"
                ),
            })

    # ── Monotonicity: a larger order never gets a cheaper fee ──
    for branch in (RateBranch.REGULAR, RateBranch.LOCAL):
        prev: tuple[int, Decimal] | None = None
        for i, tier in enumerate(tiers):
            if tier.requires_manual_review or tier.percent_for(branch) is not None:
                continue
            rate = tier.rate_for(branch)
            if prev is not None and rate < prev[1]:
                violations.append({
                    "rule": "tier_fee_decreasing",
                    "field": f"{field}[{i}].{branch.value}",
                    "detail": (
                        f"Tier {i + 1} {branch.value} {rate} is lower than "
                        f"tier {prev[0] + 1} {branch.value} {prev[1]}"
                    ),
                })
            prev = (i, rate)

    return violations


def check_configuration(config: DeliveryConfiguration) -> list[dict[str, Any]]:
    """
    Validate a configuration against every consistency rule.
    Returns list of violations: {rule, field, detail}.
    """
    violations: list[dict[str, Any]] = []

    # ── Client pricing ───────────────────────────────────
    violations.extend(tier_table_violations(config.pricing_tiers, config.tier_key, "pricingTiers"))
    violations.extend(_rate_violations(config.pricing_tiers, "pricingTiers"))

    for name, value in (
        ("mileageRate", config.mileage_rate),
        ("distanceThreshold", config.distance_threshold),
        ("localRadiusMiles", config.local_radius_miles),
    ):
        if value is not None and value < 0:
            violations.append({
                "rule": "value_negative",
                "field": name,
                "detail": f"{name} cannot be negative",
            })

    # ── Daily drive discounts ────────────────────────────
    prev_threshold = 0
    for i, rule in enumerate(config.daily_drive_discounts):
        path = f"dailyDriveDiscounts[{i}]"
        if rule.min_daily_drives < 1:
            violations.append({
                "rule": "discount_threshold_invalid",
                "field": f"{path}.minDailyDrives",
                "detail": "minDailyDrives must be at least 1",
            })
        elif rule.min_daily_drives <= prev_threshold:
            violations.append({
                "rule": "discount_rules_unordered",
                "field": f"{path}.minDailyDrives",
                "detail": "Discount rules must be strictly ascending by minDailyDrives",
            })
        prev_threshold = max(prev_threshold, rule.min_daily_drives)

        has_fraction = rule.discount_fraction is not None
        has_amount = rule.discount_amount is not None
        if has_fraction == has_amount:
            violations.append({
                "rule": "discount_rule_shape",
                "field": path,
                "detail": "Exactly one of discountFraction or discountAmount is required",
            })
        elif has_fraction and not (_ZERO <= rule.discount_fraction <= _ONE):
            violations.append({
                "rule": "discount_fraction_out_of_range",
                "field": f"{path}.discountFraction",
                "detail": "discountFraction must be between 0 and 1",
            })
        elif has_amount and rule.discount_amount < 0:
            violations.append({
                "rule": "discount_amount_negative",
                "field": f"{path}.discountAmount",
                "detail": "discountAmount cannot be negative",
            })

    # ── Driver pay ───────────────────────────────────────
    driver = config.driver_pay_settings
    for name, value in (
        ("basePayPerDrop", driver.base_pay_per_drop),
        ("bonusPay", driver.bonus_pay),
        ("mileageRate", driver.mileage_rate),
        ("distanceThreshold", driver.distance_threshold),
        ("mileageMinimum", driver.mileage_minimum),
    ):
        if value < 0:
            violations.append({
                "rule": "value_negative",
                "field": f"driverPaySettings.{name}",
                "detail": f"Driver {name} cannot be negative",
            })
    if driver.platform_fee is not None and driver.platform_fee < 0:
        violations.append({
            "rule": "value_negative",
            "field": "driverPaySettings.readySetFee",
            "detail": "Driver readySetFee cannot be negative",
        })
    if driver.max_pay_per_drop is not None and driver.max_pay_per_drop < driver.base_pay_per_drop:
        violations.append({
            "rule": "driver_max_below_base",
            "field": "driverPaySettings.maxPayPerDrop",
            "detail": "Max pay per drop must be greater than or equal to base pay per drop",
        })
    if driver.pricing_tiers:
        violations.extend(tier_table_violations(
            driver.pricing_tiers, driver_tier_key(config.tier_key), "driverPaySettings.pricingTiers",
        ))
        violations.extend(_rate_violations(driver.pricing_tiers, "driverPaySettings.pricingTiers"))

    # ── Tolls and extensions ─────────────────────────────
    violations.extend(toll_violations(config.bridge_toll_settings))
    violations.extend(extension_violations(config))

    return violations


def ensure_valid_configuration(config: DeliveryConfiguration) -> None:
    violations = check_configuration(config)
    if violations:
        first = violations[0]
        raise ConfigurationError(first["detail"], field=first["field"], config_id=config.config_id)


def ensure_active(config: DeliveryConfiguration) -> None:
    if not config.is_active:
        raise ConfigurationError(
            f"Configuration '{config.config_id}' is inactive and cannot be quoted",
            field="isActive",
            config_id=config.config_id,
        )


def validate_order_facts(facts: OrderFacts, config: DeliveryConfiguration) -> None:
    """Reject invalid order facts before any tier or discount logic runs."""
    if facts.config_id != config.config_id:
        raise InputError(
            f"Order facts reference configuration '{facts.config_id}' "
            f"but were priced against '{config.config_id}'",
            field="configId",
            config_id=config.config_id,
        )
    checks = (
        (facts.distance_miles < 0, "distanceMiles", "Distance cannot be negative"),
        (facts.order_headcount_or_subtotal < 0, "orderHeadcountOrSubtotal", "Order size cannot be negative"),
        (facts.daily_drive_count_for_driver < 1, "dailyDriveCountForDriver", "Daily drive count must be at least 1"),
        (facts.order_subtotal is not None and facts.order_subtotal < 0, "orderSubtotal", "Order subtotal cannot be negative"),
    )
    for failed, field, message in checks:
        if failed:
            raise InputError(message, field=field, config_id=config.config_id)
