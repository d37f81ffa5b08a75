"""
Configuration Source — the narrow read interface the quoting service uses.

Sources hand out frozen DeliveryConfiguration snapshots. Replacing a
configuration swaps the snapshot; callers already holding the old one keep
pricing with it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from delivery_pricing.models.configuration import DeliveryConfiguration

logger = logging.getLogger(__name__)


class ConfigurationSource(ABC):
    """Read-only access to delivery configurations."""

    @abstractmethod
    def get_configuration(self, config_id: str) -> Optional[DeliveryConfiguration]:
        """Return the configuration snapshot, or None if unknown."""

    @abstractmethod
    def get_active_configurations(self) -> list[DeliveryConfiguration]:
        """Return every configuration with isActive = true."""


class InMemoryConfigurationSource(ConfigurationSource):
    """Fixed in-memory table of configurations (tests, CLI, seed data)."""

    def __init__(self, configurations: Iterable[DeliveryConfiguration] = ()):
        self._configurations: dict[str, DeliveryConfiguration] = {}
        for config in configurations:
            self.put(config)

    def put(self, config: DeliveryConfiguration) -> None:
        """Add or replace a configuration snapshot."""
        if config.config_id in self._configurations:
            logger.debug(f"Replacing configuration snapshot {config.config_id}")
        self._configurations[config.config_id] = config

    def get_configuration(self, config_id: str) -> Optional[DeliveryConfiguration]:
        return self._configurations.get(config_id)

    def get_active_configurations(self) -> list[DeliveryConfiguration]:
        return [c for c in self._configurations.values() if c.is_active]

    def __len__(self) -> int:
        return len(self._configurations)
