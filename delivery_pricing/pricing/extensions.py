"""
Named extension points read from ``customSettings``.

The engine treats customSettings as opaque except for the keys below:

    discountOverride   {"fraction": 0.2} or {"amount": 15}
                       replaces the daily-drive discount for the client
    billTollToClient   false keeps bridge tolls off the client total
                       (the toll is then driver compensation only)
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from pydantic import BaseModel

from delivery_pricing.errors import ConfigurationError
from delivery_pricing.models.configuration import DeliveryConfiguration

DISCOUNT_OVERRIDE = "discountOverride"
BILL_TOLL_TO_CLIENT = "billTollToClient"


class DiscountOverride(BaseModel):
    fraction: Optional[Decimal] = None
    amount: Optional[Decimal] = None

    model_config = {"frozen": True}


def extension_violations(config: DeliveryConfiguration) -> list[dict[str, Any]]:
    """Shape checks for every known extension key."""
    violations: list[dict[str, Any]] = []
    settings = config.custom_settings

    if DISCOUNT_OVERRIDE in settings:
        field = f"customSettings.{DISCOUNT_OVERRIDE}"
        raw = settings[DISCOUNT_OVERRIDE]
        if not isinstance(raw, dict):
            violations.append({
                "rule": "extension_malformed",
                "field": field,
                "detail": "discountOverride must be an object with 'fraction' or 'amount'",
            })
        else:
            present = [k for k in ("fraction", "amount") if raw.get(k) is not None]
            if len(present) != 1:
                violations.append({
                    "rule": "extension_malformed",
                    "field": field,
                    "detail": "discountOverride needs exactly one of 'fraction' or 'amount'",
                })
            else:
                name = present[0]
                try:
                    value = Decimal(str(raw[name]))
                except (InvalidOperation, ValueError):
                    value = None
                if value is None or not value.is_finite():
                    violations.append({
                        "rule": "extension_malformed",
                        "field": f"{field}.{name}",
                        "detail": f"discountOverride.{name} is not a number",
                    })
                elif value < 0 or (name == "fraction" and value > 1):
                    violations.append({
                        "rule": "extension_out_of_range",
                        "field": f"{field}.{name}",
                        "detail": f"discountOverride.{name} {value} is out of range",
                    })

    if BILL_TOLL_TO_CLIENT in settings and not isinstance(settings[BILL_TOLL_TO_CLIENT], bool):
        violations.append({
            "rule": "extension_malformed",
            "field": f"customSettings.{BILL_TOLL_TO_CLIENT}",
            "detail": "billTollToClient must be true or false",
        })

    return violations


def _ensure(config: DeliveryConfiguration, key: str) -> None:
    for violation in extension_violations(config):
        if violation["field"].startswith(f"customSettings.{key}"):
            raise ConfigurationError(violation["detail"], field=violation["field"], config_id=config.config_id)


def discount_override(config: DeliveryConfiguration) -> Optional[DiscountOverride]:
    """The explicit custom discount, if the configuration declares one."""
    if DISCOUNT_OVERRIDE not in config.custom_settings:
        return None
    _ensure(config, DISCOUNT_OVERRIDE)
    raw = config.custom_settings[DISCOUNT_OVERRIDE]
    return DiscountOverride(
        fraction=None if raw.get("fraction") is None else Decimal(str(raw["fraction"])),
        amount=None if raw.get("amount") is None else Decimal(str(raw["amount"])),
    )


def bills_toll_to_client(config: DeliveryConfiguration) -> bool:
    if BILL_TOLL_TO_CLIENT not in config.custom_settings:
        return True
    _ensure(config, BILL_TOLL_TO_CLIENT)
    return config.custom_settings[BILL_TOLL_TO_CLIENT]
