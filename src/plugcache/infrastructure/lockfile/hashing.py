"""Content hashing for cached plugin artifacts."""

from __future__ import annotations

import hashlib
import hmac


def compute_content_hash(data: bytes) -> str:
    """SHA-512 of *data* as 128 lowercase hex characters."""
    return hashlib.sha512(data).hexdigest()


def verify_content(data: bytes, expected_hash: str) -> bool:
    """Check *data* against a recorded hash (case-insensitive hex).

    A malformed *expected_hash* simply does not match.
    """
    expected = expected_hash.lower().encode("utf-8", errors="replace")
    return hmac.compare_digest(compute_content_hash(data).encode("ascii"), expected)
