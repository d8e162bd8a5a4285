"""
Canonical JSON serialization and hashing helpers for worksheet documents.

Provides a single canonical JSON policy and SHA-256 helpers so migrated schemas
and response snapshots serialize byte-identically across runs and consumers.
This module is zero-IO and uses only the Python standard library.

Notes:
    - Canonical JSON:
        - sort_keys=True
        - separators=(",", ":")
        - ensure_ascii=False
    - Hashing is performed over the UTF-8 encoded canonical JSON string.
    - Migration determinism is asserted by comparing canonical dumps.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

__all__ = [
    "json_dumps_canonical",
    "hash_schema",
    "hash_values",
]


def json_dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj (Any): JSON-serializable object.

    Returns:
        str: Canonical JSON string with sort_keys=True, compact separators,
        and ensure_ascii=False.

    Notes:
        This function assumes the input is JSON-serializable and does not perform
        coercion of unsupported types.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _sha256_hexdigest(s: str) -> str:
    """Compute SHA-256 hex digest of a UTF-8 string."""
    h = hashlib.sha256()
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def hash_schema(schema: Mapping[str, Any]) -> str:
    """
    Compute a stable fingerprint for a worksheet schema document.

    Args:
        schema (Mapping[str, Any]): Raw schema mapping.

    Returns:
        str: SHA-256 hex digest over the canonical JSON serialization.

    Examples:
        >>> from worksheet.core.hashing import hash_schema
        >>> hash_schema({"version": 1, "sections": []}) == hash_schema({"sections": [], "version": 1})
        True
    """
    return _sha256_hexdigest(json_dumps_canonical(dict(schema)))


def hash_values(values: Mapping[str, Any]) -> str:
    """
    Hash a response snapshot (answers keyed by field id).

    Notes:
        Re-ordering keys in the mapping does not change the result; row order
        inside table values does.
    """
    return _sha256_hexdigest(json_dumps_canonical(dict(values)))
