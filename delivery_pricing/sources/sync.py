"""
Configuration sync — upserts configuration records into MongoDB, keyed by
configId. The camelCase record shape is stored 1:1.

Usage:
    python -m delivery_pricing.sources.sync                 # seed file → MongoDB
    python -m delivery_pricing.sources.sync --file my.json
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from delivery_pricing.config import get_settings
from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.persistence.mongo_client import MongoClient
from delivery_pricing.pricing.validation import check_configuration

logger = logging.getLogger(__name__)


def sync_configurations(
    configurations: Iterable[DeliveryConfiguration],
    collection: Any,
) -> dict[str, Any]:
    """
    Upsert each valid configuration into the collection.
    Configurations that fail validation are not written and are reported.
    Returns: {synced: [config_id], rejected: {config_id: [violations]}}
    """
    synced: list[str] = []
    rejected: dict[str, list[dict[str, Any]]] = {}

    for config in configurations:
        violations = check_configuration(config)
        if violations:
            rejected[config.config_id] = violations
            logger.error(
                f"Not syncing {config.config_id}: {len(violations)} violation(s), "
                f"first: {violations[0]['field']}: {violations[0]['detail']}"
            )
            continue

        record = config.to_record()
        record["syncedAt"] = datetime.now(timezone.utc).isoformat()
        collection.update_one(
            {"configId": config.config_id},
            {"$set": record},
            upsert=True,
        )
        synced.append(config.config_id)
        logger.info(f"Synced configuration {config.config_id} ({config.client_name})")

    logger.info(f"Sync complete: {len(synced)} synced, {len(rejected)} rejected")
    return {"synced": synced, "rejected": rejected}


# ── CLI entry point ──────────────────────────────────────

if __name__ == "__main__":
    import argparse

    from delivery_pricing.sources.seed import load_seed_configurations
    from delivery_pricing.utils.logger import setup_logging

    parser = argparse.ArgumentParser(description="Sync delivery configurations into MongoDB")
    parser.add_argument("--file", default=None, help="Configuration JSON file (default: bundled seed)")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)

    client = MongoClient(settings)
    target = client.get_collection(settings.configurations_collection)
    if target is None:
        raise SystemExit("MongoDB sync requires DELIVERY_PRICING_MOCK_MODE=false")

    result = sync_configurations(load_seed_configurations(args.file), target)
    client.close()
    print(f"Done. synced={len(result['synced'])} rejected={len(result['rejected'])}")
