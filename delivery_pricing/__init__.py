"""
Delivery pricing and driver compensation calculator.

    from delivery_pricing import DeliveryConfiguration, OrderFacts, compute_quote
    quote = compute_quote(config, facts)
"""

from delivery_pricing.errors import (
    CalculatorError,
    ConfigurationError,
    InputError,
    ManualReviewRequired,
)
from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.models.facts import OrderFacts
from delivery_pricing.models.quote import Quote, QuoteOutcome
from delivery_pricing.pricing import compute_quote, try_compute_quote

__all__ = [
    "CalculatorError",
    "ConfigurationError",
    "InputError",
    "ManualReviewRequired",
    "DeliveryConfiguration",
    "OrderFacts",
    "Quote",
    "QuoteOutcome",
    "compute_quote",
    "try_compute_quote",
]
