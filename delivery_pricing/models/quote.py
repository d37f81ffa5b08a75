"""
Quote — the itemized, immutable output of one calculation.

A Quote carries every line item so the client bill and the driver pay
statement can be rendered without re-deriving anything. Re-quoting always
produces a new Quote; nothing here is edited in place.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field

from delivery_pricing.utils.hashing import canonical_hash
from .enums import AdjustmentKind, DiscountSource, RateBranch

_FROZEN = {"frozen": True, "populate_by_name": True}


class ArithmeticAdjustment(BaseModel):
    """A non-fatal correction made during assembly, kept for audit."""
    kind: AdjustmentKind
    field: str
    original: Decimal
    adjusted: Decimal
    detail: str = ""

    model_config = _FROZEN


class Quote(BaseModel):
    config_id: str = Field(alias="configId")
    order_id: Optional[str] = Field(default=None, alias="orderId")

    # ── Tier ─────────────────────────────────────────────
    tier_applied: int = Field(alias="tierApplied")  # index into pricingTiers
    clamped_tier: bool = Field(default=False, alias="clampedTier")
    is_local: bool = Field(alias="isLocal")
    rate_branch: RateBranch = Field(alias="rateBranch")

    # ── Client side ──────────────────────────────────────
    base_client_fee: Decimal = Field(alias="baseClientFee")
    mileage_surcharge_client: Decimal = Field(alias="mileageSurchargeClient")
    discount_applied_client: Decimal = Field(alias="discountAppliedClient")
    discount_source: DiscountSource = Field(default=DiscountSource.NONE, alias="discountSource")
    toll_surcharge_client: Decimal = Field(alias="tollSurchargeClient")
    total_client_fee: Decimal = Field(alias="totalClientFee")

    # ── Driver side ──────────────────────────────────────
    base_driver_pay: Decimal = Field(alias="baseDriverPay")
    mileage_surcharge_driver: Decimal = Field(alias="mileageSurchargeDriver")
    bonus_driver_pay: Decimal = Field(default=Decimal("0.00"), alias="bonusDriverPay")
    toll_pass_through_driver: Decimal = Field(default=Decimal("0.00"), alias="tollPassThroughDriver")
    total_driver_pay: Decimal = Field(alias="totalDriverPay")

    # ── Reported, not part of any total ─────────────────
    max_pay_per_drop: Optional[Decimal] = Field(default=None, alias="maxPayPerDrop")
    platform_fee: Optional[Decimal] = Field(default=None, alias="platformFee")
    platform_total_fee: Optional[Decimal] = Field(default=None, alias="platformTotalFee")  # fee + toll

    # ── Audit ────────────────────────────────────────────
    toll_id: Optional[str] = Field(default=None, alias="tollId")
    adjustments: tuple[ArithmeticAdjustment, ...] = ()
    computed_at: datetime = Field(alias="computedAt")

    model_config = _FROZEN

    @computed_field(alias="adjustmentApplied")
    @property
    def adjustment_applied(self) -> bool:
        return bool(self.adjustments)

    def has_adjustment(self, kind: AdjustmentKind) -> bool:
        return any(a.kind is kind for a in self.adjustments)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def fingerprint(self) -> str:
        """SHA-256 over every computed value except the timestamp."""
        payload = self.model_dump(by_alias=True, mode="json", exclude={"computed_at"})
        return canonical_hash(payload)

    def client_statement(self) -> list[dict[str, Any]]:
        """Line items of the client bill, in billing order."""
        lines = [
            {"item": "Delivery fee", "amount": self.base_client_fee},
            {"item": "Mileage surcharge", "amount": self.mileage_surcharge_client},
        ]
        if self.discount_applied_client:
            lines.append({"item": "Daily drive discount", "amount": -self.discount_applied_client})
        if self.toll_surcharge_client:
            lines.append({"item": "Bridge toll", "amount": self.toll_surcharge_client})
        lines.append({"item": "Total", "amount": self.total_client_fee})
        return lines

    def driver_statement(self) -> list[dict[str, Any]]:
        """Line items of the driver pay statement."""
        lines = [
            {"item": "Base pay", "amount": self.base_driver_pay},
            {"item": "Mileage pay", "amount": self.mileage_surcharge_driver},
        ]
        if self.bonus_driver_pay:
            lines.append({"item": "Bonus", "amount": self.bonus_driver_pay})
        if self.toll_pass_through_driver:
            lines.append({"item": "Bridge toll", "amount": self.toll_pass_through_driver})
        lines.append({"item": "Total", "amount": self.total_driver_pay})
        return lines


class QuoteOutcome(BaseModel):
    """Typed result of one calculation: either a quote or an error record."""
    order_id: Optional[str] = None
    quote: Optional[Quote] = None
    error: Optional[dict[str, str]] = None  # {kind, field, config_id, detail}

    model_config = _FROZEN

    @property
    def ok(self) -> bool:
        return self.quote is not None
