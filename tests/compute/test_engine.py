from __future__ import annotations

import copy
import logging
from typing import Any

import pytest

from worksheet.compute.engine import evaluate, evaluate_all, evaluate_with_diagnostics
from worksheet.core.schema import WorksheetSchema, parse_field


def _computed(operation: str, **computation: Any) -> dict[str, Any]:
    return {
        "id": f"{operation}-result",
        "type": "computed",
        "label": operation.title(),
        "computation": {"operation": operation, **computation},
    }


VALUES: dict[str, Any] = {
    "t1": [{"n": 5, "label": "a"}, {"n": "", "label": ""}, {"n": 10, "label": "b"}],
    "scores": [
        {"before": 40, "after": 70},
        {"before": 50, "after": 90},
    ],
}


def test_sum_integer_format() -> None:
    assert evaluate(_computed("sum", field="t1.n", format="integer"), VALUES) == "15"
    assert evaluate(_computed("sum", field="t1.n"), VALUES) == "15.0"


def test_average_min_max() -> None:
    assert evaluate(_computed("average", field="t1.n"), VALUES) == "7.5"
    assert evaluate(_computed("min", field="t1.n", format="integer"), VALUES) == "5"
    assert evaluate(_computed("max", field="t1.n"), VALUES) == "10.0"


def test_count_counts_filled_rows_not_numbers() -> None:
    values = {"t1": [{"n": "abc", "label": ""}, {"n": "", "label": ""}, {"n": "", "label": "x"}]}
    assert evaluate(_computed("count", field="t1.n"), values) == "2 items"


def test_count_over_distinct_tables() -> None:
    values = {"a": [{"x": 1}, {"x": 2}], "b": [{"y": 1}]}
    field = _computed("count", fields=["a.x", "a.y", "b.y"])
    assert evaluate(field, values) == "3 items"


def test_count_of_empty_table_is_zero_items() -> None:
    assert evaluate(_computed("count", field="t1.n"), {"t1": []}) == "0 items"


def test_difference_and_percentage_change() -> None:
    diff = _computed("difference", field_a="scores.before", field_b="scores.after")
    assert evaluate(diff, VALUES) == "35.0"

    pct = _computed("difference", field_a="scores.before", field_b="scores.after", format="percentage_change")
    assert evaluate(pct, VALUES) == "+35% (45% → 80%)"

    op = _computed("percentage_change", field_a="scores.before", field_b="scores.after")
    assert evaluate(op, VALUES) == "+35% (45% → 80%)"


def test_difference_is_after_minus_before() -> None:
    values = {"s": [{"before": 80, "after": 50}]}
    field = _computed("difference", field_a="s.before", field_b="s.after")
    assert evaluate(field, values) == "-30.0"


def test_fields_wins_over_field_and_pools_values() -> None:
    values = {"a": [{"x": 1}], "b": [{"y": 2}, {"y": 3}]}
    field = _computed("sum", field="a.x", fields=["b.y", "a.x"], format="integer")
    assert evaluate(field, values) == "6"


@pytest.mark.parametrize(
    "field",
    [
        _computed("sum", field="t1.n"),
        _computed("average", field="t1.n"),
        _computed("count", field="t1.n"),
        _computed("min", field="t1.n"),
        _computed("max", field="t1.n"),
        _computed("difference", field_a="t1.a", field_b="t1.b"),
        _computed("percentage_change", field_a="t1.a", field_b="t1.b"),
    ],
)
def test_absent_data_yields_none(field: dict[str, Any]) -> None:
    assert evaluate(field, {}) is None
    assert evaluate(field, {"t1": "not a table"}) is None
    assert evaluate(field, None) is None


def test_paired_operation_needs_both_sides() -> None:
    values = {"t": [{"a": 1, "b": ""}]}
    assert evaluate(_computed("difference", field_a="t.a", field_b="t.b"), values) is None


def test_only_unparseable_cells_yield_none() -> None:
    values = {"t1": [{"n": "n/a"}, {"n": ""}]}
    assert evaluate(_computed("average", field="t1.n"), values) is None


def test_not_a_computed_field_yields_none() -> None:
    assert evaluate({"id": "x", "type": "text", "label": "X"}, VALUES) is None
    assert evaluate({"id": "x", "type": "computed", "label": "X"}, VALUES) is None


def test_accepts_parsed_model() -> None:
    field = parse_field(_computed("sum", field="t1.n", format="integer"))
    assert evaluate(field, VALUES) == "15"


def test_diagnostics_report_skipped_cells(caplog: pytest.LogCaptureFixture) -> None:
    values = {"t1": [{"n": 4}, {"n": "four"}, {"n": ""}]}
    with caplog.at_level(logging.DEBUG, logger="worksheet.compute.engine"):
        ev = evaluate_with_diagnostics(_computed("sum", field="t1.n", format="integer"), values)
    assert ev.value == "4"
    assert [(s.ref, s.row_index, s.value, s.reason) for s in ev.skipped] == [
        ("t1.n", 1, "four", "not a number"),
        ("t1.n", 2, "", "empty"),
    ]
    assert "skipped t1.n row 1" in caplog.text


def test_evaluation_is_pure() -> None:
    values = copy.deepcopy(VALUES)
    evaluate(_computed("average", field="t1.n"), values)
    evaluate(_computed("count", field="t1.n"), values)
    assert values == VALUES


def test_evaluate_all_in_document_order() -> None:
    raw = {
        "version": 1,
        "sections": [
            {
                "id": "s1",
                "fields": [
                    {"id": "t1", "type": "table", "label": "T", "columns": [{"id": "n", "type": "number"}]},
                    {**_computed("sum", field="t1.n", format="integer"), "id": "total"},
                ],
            },
            {"id": "s2", "fields": [{**_computed("count", field="t1.n"), "id": "rows"}]},
        ],
    }
    expected = {"total": "15", "rows": "2 items"}
    assert evaluate_all(raw, VALUES) == expected
    assert evaluate_all(WorksheetSchema.model_validate(raw), VALUES) == expected
    assert list(evaluate_all(raw, VALUES)) == ["total", "rows"]


def test_whitespace_cell_counts_as_zero() -> None:
    values = {"t": [{"n": 10}, {"n": " "}]}
    assert evaluate(_computed("average", field="t.n"), values) == "5.0"
    assert evaluate(_computed("average", field="t.n"), {"t": [{"n": 10}, {"n": ""}]}) == "10.0"


def test_sum_is_a_left_fold_in_row_order() -> None:
    values = {"t": [{"n": 1e16}, {"n": 1}, {"n": -1e16}]}
    assert evaluate(_computed("sum", field="t.n"), values) == "0.0"
    assert evaluate(_computed("average", field="t.n"), values) == "0.0"
