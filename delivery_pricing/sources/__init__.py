"""
Configuration sources — where DeliveryConfiguration snapshots come from.

The quoting service depends only on the ConfigurationSource interface:
    from delivery_pricing.sources import ConfigurationSource
"""

from .configuration_source import ConfigurationSource, InMemoryConfigurationSource
from .mongo_source import MongoConfigurationSource
from .seed import load_seed_configurations, seed_source

__all__ = [
    "ConfigurationSource",
    "InMemoryConfigurationSource",
    "MongoConfigurationSource",
    "load_seed_configurations",
    "seed_source",
]
