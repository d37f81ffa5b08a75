"""
Pricing core — pure functions from (DeliveryConfiguration, OrderFacts) to Quote.

Callers import the entry points from here:
    from delivery_pricing.pricing import compute_quote
"""

from .assembler import compute_quote, reconciles, try_compute_quote
from .validation import check_configuration, ensure_valid_configuration

__all__ = [
    "compute_quote",
    "try_compute_quote",
    "reconciles",
    "check_configuration",
    "ensure_valid_configuration",
]
