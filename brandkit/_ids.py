"""
Consolidated identity module (internal).

Single source of truth for every digest brandkit computes:

- fingerprint: full-length digest of a value (context hashes)
- snapshot_id: short content address of (context, timestamp)
- checksum: full-length digest of a snapshot body

All three hash the canonical serialization from :mod:`brandkit._canonical`,
so logically equal values produce equal digests regardless of key order.
The module is stateless.
"""

from __future__ import annotations

import hashlib
from typing import Any

from brandkit._canonical import canonical_bytes

DIGEST_ALGORITHM = "sha256"

# Hex length of a full digest (256 bits)
DIGEST_LENGTH = 64

# Snapshot ids are content addresses for tamper detection, not a globally
# collision-free index, so a 128-bit prefix is kept.
SNAPSHOT_ID_LENGTH = 32


def _digest(obj: Any) -> str:
    return hashlib.new(DIGEST_ALGORITHM, canonical_bytes(obj)).hexdigest()


def fingerprint(obj: Any) -> str:
    """
    Compute a stable fingerprint (hash) of an object.

    Uses SHA-256 of the canonical representation.

    Args:
        obj: The object to fingerprint.

    Returns:
        A 64-character hex string.

    Raises:
        CanonicalizeError: If the object cannot be canonicalized.
    """
    return _digest(obj)


def snapshot_id(context: Any, timestamp: str) -> str:
    """
    Compute the snapshot identifier for a context at a generation timestamp.

    Args:
        context: The wire form of the branding context.
        timestamp: The snapshot generation timestamp, exactly as stored.

    Returns:
        A 32-character hex string.
    """
    return _digest({"context": context, "timestamp": timestamp})[:SNAPSHOT_ID_LENGTH]


def checksum(obj: Any) -> str:
    """
    Compute the integrity checksum of a snapshot body.

    Args:
        obj: The snapshot body (everything except id, checksum and expiry).

    Returns:
        A 64-character hex string.
    """
    return _digest(obj)
