"""
Quoting Service — looks up configurations, runs the pure calculator and
hands quotes to the persistence sink.

The service snapshots a configuration once per request (or batch) and
passes that snapshot to every computation, so a refresh of the source
mid-batch never changes in-flight quotes.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Optional, Sequence

from delivery_pricing.config import get_settings
from delivery_pricing.errors import ConfigurationError
from delivery_pricing.models.configuration import DeliveryConfiguration
from delivery_pricing.models.facts import OrderFacts
from delivery_pricing.models.quote import Quote, QuoteOutcome
from delivery_pricing.persistence.quote_repository import QuoteRepository
from delivery_pricing.pricing.assembler import compute_quote, try_compute_quote
from delivery_pricing.sources.configuration_source import ConfigurationSource

logger = logging.getLogger(__name__)


class QuotingService:
    """Quote orders against configurations from a ConfigurationSource."""

    def __init__(
        self,
        source: ConfigurationSource,
        repository: Optional[QuoteRepository] = None,
    ):
        self._source = source
        self._repository = repository

    def _snapshot(self, config_id: str) -> DeliveryConfiguration:
        config = self._source.get_configuration(config_id)
        if config is None:
            raise ConfigurationError(
                f"Unknown configuration '{config_id}'",
                field="configId",
                config_id=config_id,
            )
        return config

    def quote(self, facts: OrderFacts, computed_at: Optional[datetime] = None) -> Quote:
        """Compute (and persist, when a repository is set) one quote."""
        config = self._snapshot(facts.config_id)
        try:
            quote = compute_quote(config, facts, computed_at)
        except ConfigurationError as exc:
            logger.error(f"Configuration problem quoting order {facts.order_id or '-'}: {exc}")
            raise

        if quote.adjustment_applied:
            kinds = ", ".join(a.kind.value for a in quote.adjustments)
            logger.warning(f"Quote for order {facts.order_id or '-'} carries adjustments: {kinds}")
        if self._repository is not None:
            self._repository.save_quote(quote)
        return quote

    def quote_batch(
        self,
        config_id: str,
        orders: Sequence[OrderFacts],
        max_workers: Optional[int] = None,
        computed_at: Optional[datetime] = None,
    ) -> list[QuoteOutcome]:
        """
        Quote many orders against one configuration snapshot.
        Outcomes come back in input order; failures are returned, not raised.
        max_workers defaults to the batch_max_workers setting.
        """
        config = self._snapshot(config_id)
        max_workers = max_workers or get_settings().batch_max_workers
        logger.info(f"Quoting batch of {len(orders)} orders against {config_id} (workers={max_workers})")

        def _one(facts: OrderFacts) -> QuoteOutcome:
            return try_compute_quote(config, facts, computed_at)

        if max_workers > 1 and len(orders) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                outcomes = list(pool.map(_one, orders))
        else:
            outcomes = [_one(facts) for facts in orders]

        failed = [o for o in outcomes if not o.ok]
        for outcome in failed:
            logger.warning(f"Order {outcome.order_id or '-'} not quoted: {outcome.error}")
        if self._repository is not None:
            for outcome in outcomes:
                if outcome.quote is not None:
                    self._repository.save_quote(outcome.quote)

        logger.info(f"Batch complete: {len(outcomes) - len(failed)} quoted, {len(failed)} failed")
        return outcomes
