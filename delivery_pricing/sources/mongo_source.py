"""
Mongo Configuration Source — reads configurations from MongoDB.

Records are cached as frozen snapshots after the first read. refresh()
drops the cache so the next read picks up synchronized changes; quotes
already computed, or in flight with an old snapshot, are unaffected.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from delivery_pricing.config import get_settings
from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.persistence.mongo_client import MongoClient
from .configuration_source import ConfigurationSource

logger = logging.getLogger(__name__)


class MongoConfigurationSource(ConfigurationSource):
    """Configuration source backed by the configurations collection."""

    def __init__(self, collection: Any = None):
        self._collection = collection
        self._cache: dict[str, DeliveryConfiguration] = {}

    def _get_collection(self) -> Any:
        if self._collection is not None:
            return self._collection
        settings = get_settings()
        self._collection = MongoClient(settings).get_collection(settings.configurations_collection)
        if self._collection is None:
            raise RuntimeError("MongoConfigurationSource needs MongoDB; mock_mode is enabled")
        return self._collection

    def get_configuration(self, config_id: str) -> Optional[DeliveryConfiguration]:
        if config_id in self._cache:
            return self._cache[config_id]

        doc = self._get_collection().find_one({"configId": config_id}, {"_id": 0})
        if doc is None:
            logger.warning(f"Configuration not found in MongoDB: {config_id}")
            return None

        config = DeliveryConfiguration.from_record(doc)
        self._cache[config_id] = config
        return config

    def get_active_configurations(self) -> list[DeliveryConfiguration]:
        configs = []
        for doc in self._get_collection().find({"isActive": True}, {"_id": 0}):
            config = DeliveryConfiguration.from_record(doc)
            self._cache[config.config_id] = config
            configs.append(config)
        logger.debug(f"Loaded {len(configs)} active configurations from MongoDB")
        return configs

    def refresh(self) -> None:
        """Invalidate cached snapshots."""
        self._cache.clear()
        logger.info("Configuration cache cleared")
