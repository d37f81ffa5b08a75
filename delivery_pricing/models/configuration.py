"""
Delivery configuration — the per-client pricing and driver pay record.

Field names on the wire are camelCase and match the synchronization shape
1:1 (``configId``, ``pricingTiers``, ``within10Miles`` ...). Python code uses
the snake_case attribute names. Configurations are frozen snapshots: the
calculator never mutates or re-reads them during a computation.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator

from delivery_pricing.errors import ConfigurationError, describe_validation_error
from .enums import RateBranch, TierKey

_FROZEN = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

# Legacy dailyDriveDiscounts mapping: key -> minimum drives for that rule
_LEGACY_DRIVE_DISCOUNT_KEYS = (
    ("twoDrivers", 2),
    ("threeDrivers", 3),
    ("fourPlusDrivers", 4),
)


# ── Tiers ────────────────────────────────────────────────


class PricingTier(BaseModel):
    """One order-size bracket with its client fee (or driver base pay)."""
    headcount_min: Optional[int] = Field(default=None, alias="headcountMin")
    headcount_max: Optional[int] = Field(default=None, alias="headcountMax")
    food_cost_min: Optional[Decimal] = Field(default=None, alias="foodCostMin")
    food_cost_max: Optional[Decimal] = Field(default=None, alias="foodCostMax")
    regular_rate: Decimal = Field(default=Decimal("0"), alias="regularRate")
    within_10_miles: Decimal = Field(default=Decimal("0"), alias="within10Miles")
    regular_rate_percent: Optional[Decimal] = Field(default=None, alias="regularRatePercent")
    within_10_miles_percent: Optional[Decimal] = Field(default=None, alias="within10MilesPercent")
    flat_fee: bool = Field(default=False, alias="flatFee")
    requires_manual_review: bool = Field(default=False, alias="requiresManualReview")

    model_config = _FROZEN

    def bounds(self, key: TierKey) -> tuple[Optional[Decimal], Optional[Decimal]]:
        """Return (min, max) on the given tiering key; max None = open-ended."""
        if key is TierKey.HEADCOUNT:
            low, high = self.headcount_min, self.headcount_max
        else:
            low, high = self.food_cost_min, self.food_cost_max
        return (
            None if low is None else Decimal(low),
            None if high is None else Decimal(high),
        )

    def rate_for(self, branch: RateBranch) -> Decimal:
        return self.within_10_miles if branch is RateBranch.LOCAL else self.regular_rate

    def percent_for(self, branch: RateBranch) -> Optional[Decimal]:
        if branch is RateBranch.LOCAL:
            return self.within_10_miles_percent
        return self.regular_rate_percent


# ── Discounts ────────────────────────────────────────────


class DriveDiscountRule(BaseModel):
    """
    Client discount keyed to the driver's same-day drive count.
    Exactly one of discount_fraction / discount_amount is set.
    """
    min_daily_drives: int = Field(alias="minDailyDrives")
    discount_fraction: Optional[Decimal] = Field(default=None, alias="discountFraction")
    discount_amount: Optional[Decimal] = Field(default=None, alias="discountAmount")
    per_drive: bool = Field(default=False, alias="perDrive")  # amount × drive count

    model_config = _FROZEN


def _legacy_drive_discounts(mapping: dict[str, Any]) -> list[dict[str, Any]]:
    """Convert {twoDrivers, threeDrivers, fourPlusDrivers} into per-drive rules."""
    rules = []
    for key, min_drives in _LEGACY_DRIVE_DISCOUNT_KEYS:
        amount = mapping.get(key)
        if not amount:
            continue
        rules.append({
            "minDailyDrives": min_drives,
            "discountAmount": amount,
            "perDrive": True,
        })
    return rules


# ── Driver pay ───────────────────────────────────────────


class DriverPaySettings(BaseModel):
    """Driver compensation, resolved by the same tier/mileage logic as the client fee."""
    base_pay_per_drop: Decimal = Field(default=Decimal("0"), alias="basePayPerDrop")
    max_pay_per_drop: Optional[Decimal] = Field(default=None, alias="maxPayPerDrop")
    enforce_max_pay: bool = Field(default=False, alias="enforceMaxPayPerDrop")  # off: maxPayPerDrop is reported only
    platform_fee: Optional[Decimal] = Field(default=None, alias="readySetFee")  # informational, never in driver pay
    bonus_pay: Decimal = Field(default=Decimal("0"), alias="bonusPay")
    pricing_tiers: tuple[PricingTier, ...] = Field(default=(), alias="pricingTiers")
    mileage_rate: Decimal = Field(default=Decimal("0"), alias="mileageRate")
    distance_threshold: Decimal = Field(default=Decimal("0"), alias="distanceThreshold")
    mileage_minimum: Decimal = Field(default=Decimal("0"), alias="mileageMinimum")
    toll_pass_through: bool = Field(default=False, alias="tollPassThrough")

    model_config = _FROZEN

    @model_validator(mode="before")
    @classmethod
    def _upgrade_base_pay_tiers(cls, data: Any) -> Any:
        # Older records carry driverBasePayTiers: [{headcountMin, headcountMax, basePay}]
        if not isinstance(data, dict) or "driverBasePayTiers" not in data:
            return data
        data = dict(data)
        legacy = data.pop("driverBasePayTiers") or []
        if "pricingTiers" not in data and "pricing_tiers" not in data:
            data["pricingTiers"] = [
                {
                    "headcountMin": t.get("headcountMin"),
                    "headcountMax": t.get("headcountMax"),
                    "regularRate": t.get("basePay", 0),
                    "within10Miles": t.get("basePay", 0),
                }
                for t in legacy
            ]
        return data


# ── Tolls ────────────────────────────────────────────────


class TollEntry(BaseModel):
    toll_id: str = Field(alias="tollId")
    amount: Decimal
    name: str = ""

    model_config = _FROZEN


class BridgeTollSettings(BaseModel):
    """When a fixed toll applies to a delivery and how much it is."""
    default_toll_amount: Optional[Decimal] = Field(default=None, alias="defaultTollAmount")
    tolls: tuple[TollEntry, ...] = ()
    auto_apply_for_areas: tuple[str, ...] = Field(default=(), alias="autoApplyForAreas")

    model_config = _FROZEN


# ── Configuration ────────────────────────────────────────


class DeliveryConfiguration(BaseModel):
    """Immutable pricing and pay rules for one client/vendor pairing."""
    config_id: str = Field(
        validation_alias=AliasChoices("configId", "config_id", "id"),
        serialization_alias="configId",
    )
    client_name: str = Field(default="", alias="clientName")
    vendor_name: str = Field(default="", alias="vendorName")
    description: str = ""
    is_active: bool = Field(default=True, alias="isActive")

    tier_key: TierKey = Field(default=TierKey.HEADCOUNT, alias="tierKey")
    pricing_tiers: tuple[PricingTier, ...] = Field(default=(), alias="pricingTiers")
    mileage_rate: Decimal = Field(default=Decimal("0"), alias="mileageRate")
    distance_threshold: Decimal = Field(default=Decimal("0"), alias="distanceThreshold")
    local_radius_miles: Optional[Decimal] = Field(default=None, alias="localRadiusMiles")

    daily_drive_discounts: tuple[DriveDiscountRule, ...] = Field(default=(), alias="dailyDriveDiscounts")
    driver_pay_settings: DriverPaySettings = Field(default_factory=DriverPaySettings, alias="driverPaySettings")
    bridge_toll_settings: BridgeTollSettings = Field(default_factory=BridgeTollSettings, alias="bridgeTollSettings")
    custom_settings: dict[str, Any] = Field(default_factory=dict, alias="customSettings")

    notes: str = ""

    model_config = _FROZEN

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("dailyDriveDiscounts", "daily_drive_discounts"):
            if isinstance(data.get(key), dict):
                data[key] = _legacy_drive_discounts(data[key])
        for key in ("customSettings", "custom_settings", "description", "notes"):
            if key in data and data[key] is None:
                data.pop(key)
        return data

    @property
    def effective_local_radius(self) -> Decimal:
        """Radius for the within10Miles branch; the distance threshold unless declared."""
        if self.local_radius_miles is not None:
            return self.local_radius_miles
        return self.distance_threshold

    # ── Serialization ────────────────────────────────────

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> DeliveryConfiguration:
        """Build from a synchronization record; malformed records raise ConfigurationError."""
        try:
            return cls.model_validate(record)
        except ValidationError as exc:
            field, msg = describe_validation_error(exc)
            config_id = ""
            if isinstance(record, dict):
                config_id = str(record.get("configId") or record.get("id") or "")
            raise ConfigurationError(
                f"Invalid configuration record: {msg}",
                field=field,
                config_id=config_id,
            ) from exc

    @classmethod
    def from_json(cls, text: str) -> DeliveryConfiguration:
        try:
            record = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Configuration is not valid JSON: {exc}") from exc
        return cls.from_record(record)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict in the camelCase synchronization shape."""
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_record(), indent=indent)
