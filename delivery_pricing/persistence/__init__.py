"""Persistence — MongoClient, QuoteRepository."""

from delivery_pricing.persistence.mongo_client import MongoClient
from delivery_pricing.persistence.quote_repository import QuoteRepository

__all__ = ["MongoClient", "QuoteRepository"]
