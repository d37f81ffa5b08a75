"""
Quote Assembler — the calculator's entry point.

    compute_quote(config, facts) -> Quote         raises CalculatorError
    try_compute_quote(config, facts) -> QuoteOutcome

Pipeline: facts check → configuration check → tiers → mileage → discount
→ toll → assembly. Every stage is a pure function of its inputs; nothing
here performs I/O, logs, or keeps state between calls. A failure in any
stage raises before a Quote exists, so no partial Quote is ever produced.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from delivery_pricing.errors import CalculatorError
from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.models.enums import AdjustmentKind
from delivery_pricing.models.facts import OrderFacts
from delivery_pricing.models.quote import ArithmeticAdjustment, Quote, QuoteOutcome
from .discounts import DiscountResolution, resolve_discount
from .mileage import MileageResolution, resolve_mileage
from .money import ZERO, to_money
from .tiers import TierResolution, resolve_base_amounts
from .tolls import TollResolution, resolve_toll
from .validation import ensure_active, ensure_valid_configuration, validate_order_facts


def compute_quote(
    config: DeliveryConfiguration,
    facts: OrderFacts,
    computed_at: Optional[datetime] = None,
) -> Quote:
    """
    Price one order against one configuration snapshot.

    Pass ``computed_at`` to make the result fully reproducible; when omitted
    the current UTC time is stamped. All other fields depend only on
    (config, facts).
    """
    validate_order_facts(facts, config)
    ensure_active(config)
    ensure_valid_configuration(config)

    tiers = resolve_base_amounts(config, facts)
    mileage = resolve_mileage(config, facts)
    discount = resolve_discount(config, facts, tiers.client.amount)
    toll = resolve_toll(config, facts)

    return assemble_quote(
        config, facts, tiers, mileage, discount, toll,
        computed_at=computed_at or datetime.now(timezone.utc),
    )


def try_compute_quote(
    config: DeliveryConfiguration,
    facts: OrderFacts,
    computed_at: Optional[datetime] = None,
) -> QuoteOutcome:
    """Same as compute_quote, with calculator errors returned as a typed outcome."""
    try:
        quote = compute_quote(config, facts, computed_at)
    except CalculatorError as exc:
        return QuoteOutcome(order_id=facts.order_id, error=exc.to_dict())
    return QuoteOutcome(order_id=facts.order_id, quote=quote)


def assemble_quote(
    config: DeliveryConfiguration,
    facts: OrderFacts,
    tiers: TierResolution,
    mileage: MileageResolution,
    discount: DiscountResolution,
    toll: TollResolution,
    computed_at: datetime,
) -> Quote:
    """Combine stage outputs into a Quote, recording every adjustment made."""
    adjustments: list[ArithmeticAdjustment] = []
    order_value = facts.order_headcount_or_subtotal

    # ── Tier clamping ────────────────────────────────────
    if tiers.client.clamped:
        adjustments.append(ArithmeticAdjustment(
            kind=AdjustmentKind.TIER_CLAMPED,
            field="pricingTiers",
            original=order_value,
            adjusted=tiers.client.boundary if tiers.client.boundary is not None else order_value,
            detail=f"Order size {order_value} is outside every tier; priced at tier {tiers.client.index + 1}",
        ))
    if tiers.driver_tiered and tiers.driver.clamped:
        adjustments.append(ArithmeticAdjustment(
            kind=AdjustmentKind.TIER_CLAMPED,
            field="driverPaySettings.pricingTiers",
            original=order_value,
            adjusted=tiers.driver.boundary if tiers.driver.boundary is not None else order_value,
            detail=f"Order size {order_value} is outside every driver tier; paid at tier {tiers.driver.index + 1}",
        ))

    # ── Client total ─────────────────────────────────────
    base_client_fee = tiers.client.amount
    if discount.capped:
        adjustments.append(ArithmeticAdjustment(
            kind=AdjustmentKind.DISCOUNT_CAPPED,
            field="discountAppliedClient",
            original=discount.uncapped_amount,
            adjusted=discount.amount,
            detail="Discount limited to the base client fee",
        ))

    total_client_fee = to_money(
        base_client_fee + mileage.client_surcharge + toll.client_amount - discount.amount
    )
    if total_client_fee < 0:
        adjustments.append(ArithmeticAdjustment(
            kind=AdjustmentKind.TOTAL_FLOORED,
            field="totalClientFee",
            original=total_client_fee,
            adjusted=ZERO,
            detail="Negative client total floored at zero",
        ))
        total_client_fee = ZERO

    # ── Driver total ─────────────────────────────────────
    driver_settings = config.driver_pay_settings
    base_driver_pay = tiers.driver.amount
    mileage_driver = mileage.driver_surcharge
    cap = driver_settings.max_pay_per_drop if driver_settings.enforce_max_pay else None
    if cap is not None and base_driver_pay + mileage_driver > cap:
        cap = to_money(cap)
        original = base_driver_pay + mileage_driver
        base_driver_pay = min(base_driver_pay, cap)
        mileage_driver = min(mileage_driver, cap - base_driver_pay)
        adjustments.append(ArithmeticAdjustment(
            kind=AdjustmentKind.DRIVER_PAY_CAPPED,
            field="totalDriverPay",
            original=original,
            adjusted=base_driver_pay + mileage_driver,
            detail=f"Driver base and mileage pay capped at maxPayPerDrop {cap}",
        ))

    bonus = to_money(driver_settings.bonus_pay) if facts.bonus_qualified else ZERO
    total_driver_pay = to_money(base_driver_pay + mileage_driver + bonus + toll.driver_amount)

    # Platform fee is reported alongside driver pay, never added to it
    platform_fee = None
    platform_total_fee = None
    if driver_settings.platform_fee is not None:
        platform_fee = to_money(driver_settings.platform_fee)
        platform_total_fee = to_money(platform_fee + toll.amount)

    return Quote(
        config_id=config.config_id,
        order_id=facts.order_id,
        tier_applied=tiers.client.index,
        clamped_tier=tiers.client.clamped,
        is_local=tiers.is_local,
        rate_branch=tiers.branch,
        base_client_fee=base_client_fee,
        mileage_surcharge_client=mileage.client_surcharge,
        discount_applied_client=discount.amount,
        discount_source=discount.source,
        toll_surcharge_client=toll.client_amount,
        total_client_fee=total_client_fee,
        base_driver_pay=base_driver_pay,
        mileage_surcharge_driver=mileage_driver,
        bonus_driver_pay=bonus,
        toll_pass_through_driver=toll.driver_amount,
        total_driver_pay=total_driver_pay,
        max_pay_per_drop=None if driver_settings.max_pay_per_drop is None else to_money(driver_settings.max_pay_per_drop),
        platform_fee=platform_fee,
        platform_total_fee=platform_total_fee,
        toll_id=toll.toll_id,
        adjustments=tuple(adjustments),
        computed_at=computed_at,
    )


def reconciles(quote: Quote) -> bool:
    """True when the quote's totals equal the sum of its line items."""
    client: Decimal = (
        quote.base_client_fee
        + quote.mileage_surcharge_client
        + quote.toll_surcharge_client
        - quote.discount_applied_client
    )
    if quote.has_adjustment(AdjustmentKind.TOTAL_FLOORED):
        client = max(client, ZERO)
    driver = (
        quote.base_driver_pay
        + quote.mileage_surcharge_driver
        + quote.bonus_driver_pay
        + quote.toll_pass_through_driver
    )
    return client == quote.total_client_fee and driver == quote.total_driver_pay
