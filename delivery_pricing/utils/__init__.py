from .logger import setup_logging
from .hashing import canonical_hash, sha256_hash

__all__ = ["setup_logging", "canonical_hash", "sha256_hash"]
