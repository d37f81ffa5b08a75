"""
Quote Repository — persistence sink for produced quotes.

Append-only: every save creates a new version for the order, and stored
quotes are never edited. Uses an in-memory dict in mock mode and a MongoDB
collection otherwise. The pricing core never calls this; services do.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any

from delivery_pricing.models.quote import Quote

logger = logging.getLogger(__name__)


class QuoteRepository:
    """Save/load quote records, keyed by order id (or fingerprint)."""

    def __init__(self, collection: Any = None):
        # collection=None → in-memory store
        self._collection = collection
        self._memory_store: dict[str, list[dict[str, Any]]] = {}

    @staticmethod
    def key_for(quote: Quote) -> str:
        return quote.order_id or quote.fingerprint()

    def save_quote(self, quote: Quote) -> int:
        """Store a quote and return its version number for the order."""
        key = self.key_for(quote)
        record = quote.to_record()
        record["fingerprint"] = quote.fingerprint()

        if self._collection is None:
            versions = self._memory_store.setdefault(key, [])
            version = len(versions) + 1
            record["_version"] = version
            versions.append(record)
        else:
            version = self._collection.count_documents({"_key": key}) + 1
            record["_key"] = key
            record["_version"] = version
            self._collection.insert_one(record)

        logger.info(
            f"Saved quote v{version} for {key}: client={quote.total_client_fee} "
            f"driver={quote.total_driver_pay} adjusted={quote.adjustment_applied}"
        )
        return version

    def load_quotes(self, key: str) -> list[dict[str, Any]]:
        """All stored versions for an order, oldest first."""
        if self._collection is None:
            return deepcopy(self._memory_store.get(key, []))
        cursor = self._collection.find({"_key": key}, {"_id": 0}).sort("_version", 1)
        return list(cursor)

    def latest_quote(self, key: str) -> dict[str, Any] | None:
        versions = self.load_quotes(key)
        return versions[-1] if versions else None

    def list_keys(self) -> list[str]:
        if self._collection is None:
            return list(self._memory_store.keys())
        return list(self._collection.distinct("_key"))
