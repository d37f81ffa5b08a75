"""
Seed configurations — the bundled client presets.

Usage:
    from delivery_pricing.sources.seed import seed_source
    source = seed_source()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from delivery_pricing.config import get_settings
from delivery_pricing.errors import ConfigurationError
from delivery_pricing.models.configuration import DeliveryConfiguration
from .configuration_source import InMemoryConfigurationSource

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> Any:
    """Read the seed JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_seed_records(path: str | Path | None = None) -> list[dict[str, Any]]:
    """Raw configuration records from the seed file."""
    seed_path = Path(path or get_settings().seed_file)
    records = _load_json(seed_path)
    if not isinstance(records, list):
        raise ConfigurationError(f"Seed file {seed_path} must contain a list of configurations")
    return records


def load_seed_configurations(path: str | Path | None = None) -> list[DeliveryConfiguration]:
    """Parse every record in the seed file into a DeliveryConfiguration."""
    configs = [DeliveryConfiguration.from_record(r) for r in load_seed_records(path)]
    logger.info(f"Loaded {len(configs)} seed configurations: {', '.join(c.config_id for c in configs)}")
    return configs


def seed_source(path: str | Path | None = None) -> InMemoryConfigurationSource:
    return InMemoryConfigurationSource(load_seed_configurations(path))
