# -*- coding: utf-8 -*-
"""
Provenance Hashing for the Indicator Quality Core

Deterministic SHA-256 hashes over canonical JSON so identical inputs and
configuration always produce byte-identical audit hashes.

Hash stability rules:
    - JSON keys sorted alphabetically
    - Compact separators, ASCII only
    - Pydantic models serialised through ``model_dump(mode="json")``
    - No timestamps or random identifiers in the payload

Example:
    >>> from econlang.indicator_quality.provenance import compute_provenance_hash
    >>> compute_provenance_hash({"b": 2, "a": 1}) == compute_provenance_hash({"a": 1, "b": 2})
    True
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel


def _json_default(obj: Any) -> Any:
    """Serialise the non-JSON types that appear in results."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if isinstance(obj, bytes):
        return obj.hex()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(data: Any) -> str:
    """Render data as canonical JSON (sorted keys, compact separators)."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        default=_json_default,
    )


def compute_provenance_hash(data: Any) -> str:
    """Compute a deterministic SHA-256 hash of data.

    Args:
        data: JSON-compatible structure or pydantic model.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()


__all__ = [
    "canonical_json",
    "compute_provenance_hash",
]
