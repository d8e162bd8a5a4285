"""
Lightweight JSON serialization/deserialization utilities.

Provides `json_loads` as a thin wrapper around the stdlib `json` module and
re-exports `json_dumps_canonical` from `worksheet.core.hashing` to keep a single
canonical JSON policy across the codebase. This module is zero-IO.

Notes:
    - Use `json_dumps_canonical` for deterministic JSON strings prior to hashing,
      comparison, or persistence.
    - `model_to_json_dict` dumps pydantic models the way the wire format expects
      (aliases on, unset optional keys dropped).
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

# Re-export canonical dumps to keep a single canonicalization policy.
from .hashing import json_dumps_canonical  # noqa: F401

__all__ = [
    "json_loads",
    "json_dumps_canonical",
    "model_to_json_dict",
]


def json_loads(s: str) -> Any:
    """
    Deserialize a JSON string to Python objects using the stdlib json module.

    Args:
        s (str): JSON string to parse.

    Returns:
        Any: Decoded Python object (dict, list, str, int, float, bool, or None).
    """
    return json.loads(s)


def model_to_json_dict(model: BaseModel) -> dict[str, Any]:
    """
    Dump a schema model back to its JSON wire shape.

    Notes:
        ``from`` on connections is serialized via its alias; optional keys the
        author never set are omitted so a parse/dump cycle does not grow the
        document.
    """
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)
