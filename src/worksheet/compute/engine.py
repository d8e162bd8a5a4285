"""
Computed-field evaluation.

A computed field derives its displayed value from table columns elsewhere in the
same response. Evaluation is lenient: missing tables, non-table values and
unparseable cells never raise; they shrink the input or yield ``None``.

Operations
----------
| operation          | refs               | result                                     |
|--------------------|--------------------|--------------------------------------------|
| sum / min / max    | field or fields    | "15" (integer format) or "15.0"            |
| average            | field or fields    | mean, one decimal                          |
| count              | field or fields    | "<filled rows> items" over distinct tables |
| difference         | field_a, field_b   | mean(b) - mean(a), one decimal             |
| percentage_change  | field_a, field_b   | "+35% (45% → 80%)"                         |

``difference`` also renders the percentage form when ``format`` is
``percentage_change``. Note the operand order: ``field_a`` is "before" and the
result is after minus before.

Notes:
    - Pure: ``values`` is only read. Safe to call from several threads on one
      snapshot.
    - ``evaluate_with_diagnostics`` reports every dropped cell as a SkippedCell;
      ``evaluate`` keeps the lenient contract and returns the value only.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from functools import reduce
from typing import Any

from ..core.grammar import PAIRED_OPERATIONS, ComputeFormat, ComputeOperation, parse_field_ref
from ..core.schema import ComputedField, WorksheetSchema, classify
from ..core.tables import coerce_rows, filled_row_count, numeric_column
from .formatting import (
    format_aggregate,
    format_average,
    format_count,
    format_difference,
    format_percentage_change,
)

__all__ = [
    "SkippedCell",
    "Evaluation",
    "evaluate",
    "evaluate_with_diagnostics",
    "evaluate_all",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedCell:
    """
    A table cell left out of an aggregate.

    Attributes:
        ref (str): The ``tableId.columnId`` reference being read.
        row_index (int): Position of the row in the table value.
        value (Any): Raw cell value as stored in the response.
        reason (str): "empty", "not a number" or "not finite".
    """

    ref: str
    row_index: int
    value: Any
    reason: str


@dataclass(frozen=True)
class Evaluation:
    value: str | None
    skipped: tuple[SkippedCell, ...] = ()


class _Collector:
    """Reads referenced columns and records what was dropped along the way."""

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = values
        self.skipped: list[SkippedCell] = []

    def rows(self, table_id: str) -> list[Mapping[str, Any]] | None:
        return coerce_rows(self._values.get(table_id))

    def numbers(self, ref: str) -> list[float]:
        table_id, column_id = parse_field_ref(ref)
        rows = self.rows(table_id)
        if rows is None:
            return []
        column = numeric_column(rows, column_id)
        for row_index, value, reason in column.skipped:
            self.skipped.append(SkippedCell(ref, row_index, value, reason))
        return list(column.values)

    def pooled(self, refs: list[str]) -> list[float]:
        out: list[float] = []
        for ref in refs:
            out.extend(self.numbers(ref))
        return out


def _single_refs(field: ComputedField) -> list[str]:
    c = field.computation
    if c.fields:
        return list(c.fields)
    return [c.field] if c.field else []


def _total(xs: list[float]) -> float:
    # Left fold in row order, without compensated summation.
    return reduce(operator.add, xs, 0.0)


def _mean(xs: list[float]) -> float:
    return _total(xs) / len(xs)


def _count(field: ComputedField, collector: _Collector) -> str | None:
    tables: list[str] = []
    for ref in _single_refs(field):
        table_id, _ = parse_field_ref(ref)
        if table_id not in tables:
            tables.append(table_id)
    found = [rows for rows in (collector.rows(t) for t in tables) if rows is not None]
    if not found:
        return None
    return format_count(sum(filled_row_count(rows) for rows in found))


def _paired(field: ComputedField, collector: _Collector) -> str | None:
    c = field.computation
    if not c.field_a or not c.field_b:
        return None
    values_a = collector.numbers(c.field_a)
    values_b = collector.numbers(c.field_b)
    if not values_a or not values_b:
        return None
    mean_a, mean_b = _mean(values_a), _mean(values_b)
    diff = mean_b - mean_a
    if (
        c.op is ComputeOperation.PERCENTAGE_CHANGE
        or c.format == ComputeFormat.PERCENTAGE_CHANGE.value
    ):
        return format_percentage_change(diff, mean_a, mean_b)
    return format_difference(diff)


def _compute(field: ComputedField, collector: _Collector) -> str | None:
    op = field.computation.op
    if op in PAIRED_OPERATIONS:
        return _paired(field, collector)
    if op is ComputeOperation.COUNT:
        return _count(field, collector)

    values = collector.pooled(_single_refs(field))
    if not values:
        return None
    fmt = field.computation.format
    if op is ComputeOperation.SUM:
        return format_aggregate(_total(values), fmt)
    if op is ComputeOperation.AVERAGE:
        return format_average(_mean(values))
    if op is ComputeOperation.MIN:
        return format_aggregate(min(values), fmt)
    if op is ComputeOperation.MAX:
        return format_aggregate(max(values), fmt)
    return None


def _as_computed(field: Any) -> ComputedField | None:
    if isinstance(field, ComputedField):
        return field
    result = classify(field)
    return result if isinstance(result, ComputedField) else None


def evaluate_with_diagnostics(field: Any, values: Mapping[str, Any] | None) -> Evaluation:
    """
    Evaluate a computed field and report the cells it had to skip.

    Args:
        field: ComputedField model, or a raw mapping that classifies as one.
        values: Response values keyed by field id. Tables are lists of rows.

    Returns:
        Evaluation: ``value`` is the rendered result or None; ``skipped`` lists
        dropped cells in the order they were read.

    Examples:
        >>> field = {"id": "total", "type": "computed", "label": "Total",
        ...          "computation": {"operation": "sum", "field": "t1.n", "format": "integer"}}
        >>> ev = evaluate_with_diagnostics(field, {"t1": [{"n": 5}, {"n": ""}, {"n": 10}]})
        >>> ev.value, [s.reason for s in ev.skipped]
        ('15', ['empty'])
    """
    computed = _as_computed(field)
    if computed is None:
        logger.debug("not a computed field; nothing to evaluate")
        return Evaluation(None)
    if not isinstance(values, Mapping):
        values = {}

    collector = _Collector(values)
    try:
        result = _compute(computed, collector)
    except Exception:
        logger.warning("computed field %r failed to evaluate", computed.id, exc_info=True)
        return Evaluation(None, tuple(collector.skipped))

    for cell in collector.skipped:
        logger.debug(
            "computed field %r skipped %s row %d (%s): %r",
            computed.id,
            cell.ref,
            cell.row_index,
            cell.reason,
            cell.value,
        )
    return Evaluation(result, tuple(collector.skipped))


def evaluate(field: Any, values: Mapping[str, Any] | None) -> str | None:
    """
    Render a computed field against response values.

    Returns None when the referenced data is absent or holds no usable numbers.
    Never raises and never mutates ``values``.

    Examples:
        >>> field = {"id": "change", "type": "computed", "label": "Change",
        ...          "computation": {"operation": "difference", "field_a": "t.before",
        ...                          "field_b": "t.after", "format": "percentage_change"}}
        >>> evaluate(field, {"t": [{"before": 40, "after": 70}, {"before": 50, "after": 90}]})
        '+35% (45% → 80%)'
        >>> evaluate(field, {}) is None
        True
    """
    return evaluate_with_diagnostics(field, values).value


def _raw_fields(schema: Mapping[str, Any]) -> Iterator[Any]:
    sections = schema.get("sections")
    if not isinstance(sections, list):
        return
    for section in sections:
        if isinstance(section, Mapping) and isinstance(section.get("fields"), list):
            yield from section["fields"]


def evaluate_all(
    schema: WorksheetSchema | Mapping[str, Any], values: Mapping[str, Any] | None
) -> dict[str, str | None]:
    """
    Evaluate every computed field of a schema, in document order.

    Args:
        schema: Parsed schema model or raw schema mapping.
        values: Response values keyed by field id.

    Returns:
        dict[str, str | None]: Computed field id → rendered result.
    """
    if isinstance(schema, WorksheetSchema):
        fields: list[Any] = schema.computed_fields()
    else:
        fields = [
            f for f in _raw_fields(schema) if isinstance(f, Mapping) and f.get("type") == "computed"
        ]
    out: dict[str, str | None] = {}
    for f in fields:
        field_id = f.id if isinstance(f, ComputedField) else str(f.get("id", ""))
        out[field_id] = evaluate(f, values)
    return out
