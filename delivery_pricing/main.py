"""
Delivery Pricing Calculator — Main Entry Point

Quote one order from the command line:
    python -m delivery_pricing <config_id> <facts.json>

facts.json holds an OrderFacts record (camelCase keys); its configId may be
omitted and is taken from the command line. Configurations come from the
bundled seed file in mock mode, or from MongoDB otherwise.

Or import and run programmatically:
    from delivery_pricing.main import run
    quote = run("ready-set-food-standard", "order.json")
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from delivery_pricing.config import get_settings
from delivery_pricing.models.facts import OrderFacts
from delivery_pricing.models.quote import Quote
from delivery_pricing.persistence.mongo_client import MongoClient
from delivery_pricing.persistence.quote_repository import QuoteRepository
from delivery_pricing.services.quoting_service import QuotingService
from delivery_pricing.sources.configuration_source import ConfigurationSource
from delivery_pricing.sources.mongo_source import MongoConfigurationSource
from delivery_pricing.sources.seed import seed_source
from delivery_pricing.utils.logger import setup_logging


def build_source() -> ConfigurationSource:
    settings = get_settings()
    if settings.mock_mode:
        return seed_source(settings.seed_file)
    return MongoConfigurationSource()


def build_repository() -> QuoteRepository:
    settings = get_settings()
    return QuoteRepository(MongoClient(settings).get_collection(settings.quotes_collection))


def run(config_id: str, facts_path: str) -> Quote:
    """Quote the order in ``facts_path`` against ``config_id`` and log the result."""
    settings = get_settings()
    setup_logging("DEBUG" if settings.debug else settings.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()}")
    logger.info(f"  Mode: {'MOCK' if settings.mock_mode else 'MONGODB'} | Configuration: {config_id}")
    logger.info("=" * 60)

    with open(Path(facts_path), "r", encoding="utf-8") as f:
        record = json.load(f)
    record.setdefault("configId", config_id)
    facts = OrderFacts.from_record(record)

    service = QuotingService(build_source(), build_repository())
    quote = service.quote(facts)

    _print_summary(quote)
    return quote


def _print_summary(quote: Quote) -> None:
    """Log the client bill and driver pay statement."""
    logger = logging.getLogger(__name__)

    logger.info("")
    logger.info("-" * 60)
    logger.info("  QUOTE")
    logger.info("-" * 60)
    logger.info(f"  Configuration:  {quote.config_id}")
    logger.info(f"  Order:          {quote.order_id or 'N/A'}")
    logger.info(f"  Tier:           {quote.tier_applied + 1}{' (clamped)' if quote.clamped_tier else ''}")
    logger.info(f"  Rate:           {quote.rate_branch.value} ({'local' if quote.is_local else 'regular'})")
    logger.info(f"  Fingerprint:    {quote.fingerprint()[:16]}")

    logger.info("\n  Client bill:")
    for line in quote.client_statement():
        logger.info(f"    {line['item']:<24} {line['amount']:>10}")

    logger.info("\n  Driver pay:")
    for line in quote.driver_statement():
        logger.info(f"    {line['item']:<24} {line['amount']:>10}")
    if quote.max_pay_per_drop is not None:
        logger.info(f"    {'Max pay per drop':<24} {quote.max_pay_per_drop:>10}")
    if quote.platform_fee is not None:
        logger.info(f"    {'Platform fee':<24} {quote.platform_fee:>10}")
        logger.info(f"    {'Platform total fee':<24} {quote.platform_total_fee:>10}")

    if quote.adjustments:
        logger.info(f"\n  Adjustments: {len(quote.adjustments)}")
        for adj in quote.adjustments:
            logger.info(f"    {adj.kind.value} | {adj.field} | {adj.original} → {adj.adjusted} | {adj.detail}")
    logger.info("")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: python -m delivery_pricing <config_id> <facts.json>")
        sys.exit(2)
    run(sys.argv[1], sys.argv[2])
