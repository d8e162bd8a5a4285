"""
Table data model: rows of typed cells keyed by column id.

A table field's runtime value is an ordered list of RowData mappings. Row order
matters for display only; aggregations treat the rows as a bag.

Notes:
    - Empty cells are the empty string. ``None`` is read as empty too.
    - Numeric extraction goes through a polars Float64 cast so that parsing is
      lenient and uniform (whitespace trimmed, unparseable text becomes null).
      Only "" and None are empty; a whitespace-only string counts as 0.
    - This is the only core module that touches polars; every function is pure
      and never mutates the rows it is given.

References:
    - schema: src/worksheet/core/schema.py (TableField, TableColumn)
    - engine: src/worksheet/compute/engine.py
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import polars as pl

from .constants import DEFAULT_MAX_ROWS, DEFAULT_MIN_ROWS
from .schema import TableColumn, TableField
from .typing import RowData

__all__ = [
    "NumericColumn",
    "blank_row",
    "initial_rows",
    "row_limits",
    "is_empty_cell",
    "is_filled_row",
    "filled_row_count",
    "coerce_rows",
    "numeric_column",
    "rows_frame",
]


@dataclass(frozen=True)
class NumericColumn:
    """
    Numbers extracted from one column, plus the cells that were dropped.

    Attributes:
        values (tuple[float, ...]): Parsed finite numbers in row order.
        skipped (tuple[tuple[int, Any, str], ...]): ``(row_index, raw_value, reason)``
            for every row whose cell did not yield a number.
    """

    values: tuple[float, ...]
    skipped: tuple[tuple[int, Any, str], ...] = ()


def _column_ids(columns: Iterable[TableColumn | str]) -> list[str]:
    return [c if isinstance(c, str) else c.id for c in columns]


def blank_row(columns: Iterable[TableColumn | str]) -> RowData:
    """
    Build a row with every column set to the empty string.

    Examples:
        >>> blank_row(["activity", "pleasure"])
        {'activity': '', 'pleasure': ''}
    """
    return {cid: "" for cid in _column_ids(columns)}


def row_limits(table: TableField) -> tuple[int, int]:
    """Return ``(min_rows, max_rows)`` with the defaults applied (1 and 20)."""
    lo = DEFAULT_MIN_ROWS if table.min_rows is None else table.min_rows
    hi = DEFAULT_MAX_ROWS if table.max_rows is None else table.max_rows
    return lo, hi


def initial_rows(table: TableField) -> list[RowData]:
    """Blank rows a new response starts with (``min_rows`` of them)."""
    lo, _ = row_limits(table)
    return [blank_row(table.columns) for _ in range(lo)]


def is_empty_cell(value: Any) -> bool:
    return value is None or value == ""


def is_filled_row(row: Mapping[str, Any]) -> bool:
    """A row counts as filled when any cell is non-empty."""
    return any(not is_empty_cell(v) for v in row.values())


def filled_row_count(rows: Iterable[Mapping[str, Any]]) -> int:
    return sum(1 for row in rows if is_filled_row(row))


def coerce_rows(value: Any) -> list[Mapping[str, Any]] | None:
    """
    Interpret a response value as table rows.

    Returns:
        The rows as a list, or None if ``value`` is not a sequence of mappings.
        Strings and mappings are not sequences of rows.
    """
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        return None
    if not all(isinstance(row, Mapping) for row in value):
        return None
    return list(value)


def _cell_text(value: Any) -> str | None:
    if is_empty_cell(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return repr(float(value))
    if isinstance(value, str):
        # Only "" is unset; a blank cell of spaces reads as zero.
        return value if value.strip() else "0"
    return None


def _skip_reason(value: Any) -> str:
    if is_empty_cell(value):
        return "empty"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return "not finite"
    return "not a number"


def numeric_column(rows: Sequence[Mapping[str, Any]], column_id: str) -> NumericColumn:
    """
    Extract the numbers of one column.

    Args:
        rows: Table rows (unchanged by this call).
        column_id: Column to read; rows without the key count as empty.

    Returns:
        NumericColumn: Finite numbers in row order and the skipped cells.

    Examples:
        >>> numeric_column([{"n": 5}, {"n": ""}, {"n": "10"}], "n").values
        (5.0, 10.0)
    """
    raw = [row.get(column_id) for row in rows]
    cells = pl.Series("cell", [_cell_text(v) for v in raw], dtype=pl.Utf8)
    parsed = cells.str.strip_chars().cast(pl.Float64, strict=False).to_list()

    values: list[float] = []
    skipped: list[tuple[int, Any, str]] = []
    for index, (value, number) in enumerate(zip(raw, parsed)):
        if number is None or not math.isfinite(number):
            skipped.append((index, value, _skip_reason(value)))
        else:
            values.append(number)
    return NumericColumn(values=tuple(values), skipped=tuple(skipped))


def rows_frame(rows: Sequence[Mapping[str, Any]], columns: Iterable[TableColumn | str]) -> pl.DataFrame:
    """
    Tabular view of the rows, one Utf8 column per table column.

    Missing and empty cells become "" so the frame mirrors what a client sees.
    """
    ids = _column_ids(columns)
    data = {
        cid: ["" if is_empty_cell(row.get(cid)) else str(row.get(cid)) for row in rows]
        for cid in ids
    }
    return pl.DataFrame(data, schema={cid: pl.Utf8 for cid in ids})
