"""
Order facts — the per-order input to the calculator, built by the caller
from an order record.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from delivery_pricing.errors import InputError, describe_validation_error


class OrderFacts(BaseModel):
    """Everything the calculator needs to know about one delivery order."""
    config_id: str = Field(alias="configId")
    distance_miles: Decimal = Field(alias="distanceMiles")
    order_headcount_or_subtotal: Decimal = Field(alias="orderHeadcountOrSubtotal")
    daily_drive_count_for_driver: int = Field(default=1, alias="dailyDriveCountForDriver")
    crosses_tolled_route: bool = Field(default=False, alias="crossesTolledRoute")
    route_toll_id: Optional[str] = Field(default=None, alias="routeTollId")

    # Optional context
    order_subtotal: Optional[Decimal] = Field(default=None, alias="orderSubtotal")  # percentage tiers
    delivery_area: Optional[str] = Field(default=None, alias="deliveryArea")  # auto-applied tolls
    bonus_qualified: bool = Field(default=False, alias="bonusQualified")
    order_id: Optional[str] = Field(default=None, alias="orderId")  # audit only

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> OrderFacts:
        """Build from a plain dict; malformed input raises InputError."""
        try:
            return cls.model_validate(record)
        except ValidationError as exc:
            field, msg = describe_validation_error(exc)
            raise InputError(f"Invalid order facts: {msg}", field=field) from exc
