"""
Lightweight typing aliases used across the schema model, engine, and migrator.

This module contains no runtime logic and is zero-IO.

Examples:
    >>> from worksheet.core.typing import FieldId, RowData
    >>> def first_cell(row: RowData, column: str) -> object:
    ...     return row.get(column, "")
    >>> first_cell({"rating": 4}, "rating")
    4
"""

from __future__ import annotations

from typing import Any, NewType, Union

__all__ = [
    "FieldId",
    "FieldRef",
    "CellValue",
    "RowData",
    "ResponseValues",
    "JsonDict",
]

FieldId = NewType("FieldId", str)
# "<tableId>.<columnId>"
FieldRef = NewType("FieldRef", str)

# "" means unset.
CellValue = Union[str, int, float]
RowData = dict[str, CellValue]

# Answer map for one completion of a worksheet, keyed by field id.
ResponseValues = dict[str, Any]

# Convenient JSON-like mapping alias. Kept intentionally broad for serde boundaries.
JsonDict = dict[str, Any]
