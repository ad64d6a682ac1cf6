"""
Low-level canonicalization primitives (internal).

This module provides deterministic JSON encoding used as the sole input
to every hash computed by brandkit (context fingerprints, snapshot ids,
snapshot checksums).

Key design decisions:
- Keys are always sorted
- Sequence order is preserved; sets become sorted lists
- Floats keep their native JSON form so 1.5 and "1.5" stay distinct
- NaN/Inf raise CanonicalizeError (not silently encoded)
- Enums encode as their value
- Dataclasses encode field by field (read-only mappings included)
"""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any


class CanonicalizeError(Exception):
    """Raised when an object cannot be canonicalized."""

    pass


def _encode_value(obj: Any) -> Any:
    """
    Recursively encode a value for canonical JSON serialization.

    Raises:
        CanonicalizeError: If the value cannot be canonicalized (e.g., NaN, Inf)
    """
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return _encode_value(obj.value)
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, int):
        return obj
    if isinstance(obj, float):
        if math.isnan(obj):
            raise CanonicalizeError("NaN not allowed in canonical values")
        if math.isinf(obj):
            raise CanonicalizeError("Inf not allowed in canonical values")
        return obj
    if isinstance(obj, str):
        return obj
    if isinstance(obj, (list, tuple)):
        return [_encode_value(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        items = [_encode_value(item) for item in obj]
        try:
            return sorted(items)
        except TypeError as e:
            raise CanonicalizeError(f"Set members must be mutually orderable: {e}") from e
    if isinstance(obj, Mapping):
        for key in obj:
            if not isinstance(key, str):
                raise CanonicalizeError(
                    f"Mapping keys must be strings, got {type(key).__name__}"
                )
        return {key: _encode_value(obj[key]) for key in sorted(obj)}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        # Shallow walk: asdict() deep-copies and cannot copy mappingproxy
        return _encode_value(
            {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
        )

    raise CanonicalizeError(f"Cannot canonicalize type: {type(obj).__name__}")


def canonical(obj: Any) -> str:
    """
    Convert an object to a canonical JSON string.

    The output is deterministic: the same input always produces the same string,
    regardless of mapping insertion order.

    Args:
        obj: The object to canonicalize. Must be JSON-compatible or a dataclass.

    Returns:
        A compact JSON string with sorted keys.

    Raises:
        CanonicalizeError: If the object contains NaN, Inf, or non-serializable types.

    Example:
        >>> canonical({"b": 1, "a": 2})
        '{"a":2,"b":1}'
        >>> canonical({"x": [3, 1, 2]})
        '{"x":[3,1,2]}'
    """
    encoded = _encode_value(obj)
    return json.dumps(
        encoded,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_bytes(obj: Any) -> bytes:
    """Return the UTF-8 encoding of :func:`canonical`; this is what gets hashed."""
    return canonical(obj).encode("utf-8")
