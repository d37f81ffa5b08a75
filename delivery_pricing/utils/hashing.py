"""
Hashing utilities for quote fingerprints and audit trails.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def sha256_hash(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of the given content."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def canonical_hash(payload: dict[str, Any]) -> str:
    """
    Hash a JSON-ready dict independent of key order and whitespace.
    Two equal payloads always give the same digest.
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return sha256_hash(canonical)
