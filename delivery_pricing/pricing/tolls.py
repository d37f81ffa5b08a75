"""
Toll & Surcharge Resolver.

A toll applies when the order crosses a tolled route, or when its delivery
area is one of the configuration's auto-apply areas. The amount comes from
the toll entry matching ``routeTollId``; without an id, the configuration's
single toll (its default amount, or its only entry) is used. A flagged
crossing that cannot be matched is a ConfigurationError: billing must not
silently under-charge for a known toll.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel

from delivery_pricing.errors import ConfigurationError
from delivery_pricing.models.configuration import BridgeTollSettings, DeliveryConfiguration
from delivery_pricing.models.facts import OrderFacts
from .extensions import bills_toll_to_client
from .money import ZERO, to_money


class TollResolution(BaseModel):
    applies: bool = False
    toll_id: Optional[str] = None
    amount: Decimal = ZERO
    client_amount: Decimal = ZERO
    driver_amount: Decimal = ZERO


def toll_violations(settings: BridgeTollSettings) -> list[dict[str, Any]]:
    violations: list[dict[str, Any]] = []
    if settings.default_toll_amount is not None and settings.default_toll_amount < 0:
        violations.append({
            "rule": "toll_negative",
            "field": "bridgeTollSettings.defaultTollAmount",
            "detail": "Default toll amount cannot be negative",
        })
    seen: set[str] = set()
    for i, entry in enumerate(settings.tolls):
        if entry.amount < 0:
            violations.append({
                "rule": "toll_negative",
                "field": f"bridgeTollSettings.tolls[{i}].amount",
                "detail": f"Toll '{entry.toll_id}' amount cannot be negative",
            })
        if entry.toll_id in seen:
            violations.append({
                "rule": "toll_duplicate_id",
                "field": f"bridgeTollSettings.tolls[{i}].tollId",
                "detail": f"Toll id '{entry.toll_id}' is defined more than once",
            })
        seen.add(entry.toll_id)
    return violations


def toll_applies(settings: BridgeTollSettings, facts: OrderFacts) -> bool:
    if facts.crosses_tolled_route:
        return True
    if facts.delivery_area:
        area = facts.delivery_area.strip().lower()
        return any(area == a.strip().lower() for a in settings.auto_apply_for_areas)
    return False


def match_toll(
    settings: BridgeTollSettings,
    route_toll_id: Optional[str],
    config_id: str = "",
) -> tuple[Optional[str], Decimal]:
    """Return (toll_id, amount) for a crossing, or raise ConfigurationError."""
    if route_toll_id:
        for entry in settings.tolls:
            if entry.toll_id == route_toll_id:
                return entry.toll_id, entry.amount
        raise ConfigurationError(
            f"Route toll '{route_toll_id}' has no matching toll entry",
            field="bridgeTollSettings.tolls",
            config_id=config_id,
        )

    if settings.default_toll_amount is not None:
        return None, settings.default_toll_amount
    if len(settings.tolls) == 1:
        entry = settings.tolls[0]
        return entry.toll_id, entry.amount
    if not settings.tolls:
        raise ConfigurationError(
            "Order crosses a tolled route but no toll is configured",
            field="bridgeTollSettings",
            config_id=config_id,
        )
    raise ConfigurationError(
        f"Order crosses a tolled route without a routeTollId and "
        f"{len(settings.tolls)} tolls are configured with no default",
        field="bridgeTollSettings.defaultTollAmount",
        config_id=config_id,
    )


def resolve_toll(config: DeliveryConfiguration, facts: OrderFacts) -> TollResolution:
    settings = config.bridge_toll_settings
    if not toll_applies(settings, facts):
        return TollResolution()

    toll_id, raw_amount = match_toll(settings, facts.route_toll_id, config.config_id)
    amount = to_money(raw_amount)
    return TollResolution(
        applies=True,
        toll_id=toll_id,
        amount=amount,
        client_amount=amount if bills_toll_to_client(config) else ZERO,
        driver_amount=amount if config.driver_pay_settings.toll_pass_through else ZERO,
    )
