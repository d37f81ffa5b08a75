"""
Calculator error hierarchy.

Every failure the pricing core can produce is a CalculatorError subclass
carrying the offending field path and configuration id, so callers can
decide whether to correct the input, reject the order or escalate.
"""

from __future__ import annotations

from pydantic import ValidationError

from delivery_pricing.models.enums import ErrorKind


class CalculatorError(Exception):
    """Base class for all pricing failures."""

    kind: ErrorKind

    def __init__(self, message: str, *, field: str = "", config_id: str = ""):
        super().__init__(message)
        self.message = message
        self.field = field
        self.config_id = config_id

    def __str__(self) -> str:
        parts = [self.message]
        if self.field:
            parts.append(f"field={self.field}")
        if self.config_id:
            parts.append(f"config={self.config_id}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "field": self.field,
            "config_id": self.config_id,
            "detail": self.message,
        }


class ConfigurationError(CalculatorError):
    """Malformed or inconsistent delivery configuration."""

    kind = ErrorKind.CONFIGURATION


class InputError(CalculatorError):
    """Invalid order facts, rejected before any pricing logic runs."""

    kind = ErrorKind.INPUT


class ManualReviewRequired(CalculatorError):
    """The order falls in a tier that is priced by a human, not by the engine."""

    kind = ErrorKind.MANUAL_REVIEW


# ── pydantic error translation ───────────────────────────

def field_path(loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as ``pricingTiers[2].regularRate``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def describe_validation_error(exc: ValidationError) -> tuple[str, str]:
    """Return (field, message) for the first error of a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return "", str(exc)
    first = errors[0]
    return field_path(tuple(first.get("loc", ()))), first.get("msg", str(exc))
