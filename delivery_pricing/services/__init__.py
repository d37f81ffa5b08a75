"""Services — QuotingService."""

from delivery_pricing.services.quoting_service import QuotingService

__all__ = ["QuotingService"]
