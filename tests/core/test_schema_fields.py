from __future__ import annotations

import pytest

from worksheet.core.errors import FieldTypeError
from worksheet.core.schema import (
    ChecklistField,
    ClassificationError,
    ComputedField,
    LikertField,
    NumberField,
    TableField,
    TextField,
    classify,
    parse_field,
)


def _table(**overrides: object) -> dict[str, object]:
    base: dict[str, object] = {
        "id": "activity-log",
        "type": "table",
        "label": "Activity log",
        "columns": [
            {"id": "activity", "header": "Activity", "type": "text"},
            {"id": "pleasure", "header": "Pleasure", "type": "number", "min": 0, "max": 10},
        ],
    }
    base.update(overrides)
    return base


def test_classify_simple_variants() -> None:
    assert isinstance(classify({"id": "name", "type": "text", "label": "Name"}), TextField)
    n = classify({"id": "hours", "type": "number", "label": "Hours", "min": 0, "max": 24, "step": 0.5})
    assert isinstance(n, NumberField)
    assert n.step == 0.5


def test_classify_rejects_unknown_type_without_coercion() -> None:
    result = classify({"id": "x", "type": "slider", "label": "X"})
    assert isinstance(result, ClassificationError)
    assert result.field_type == "slider"
    assert result.reason.startswith("unsupported field type 'slider'")
    assert "formulation" in result.reason


@pytest.mark.parametrize(
    "raw, reason",
    [
        ("text", "field must be an object"),
        ({"id": "x", "label": "X"}, "field must have a type"),
        ({"id": "x", "type": "", "label": "X"}, "field must have a type"),
        ({"id": "x", "type": 3, "label": "X"}, "field must have a type"),
    ],
)
def test_classify_rejects_malformed_objects(raw: object, reason: str) -> None:
    result = classify(raw)
    assert isinstance(result, ClassificationError)
    assert result.reason == reason


def test_classify_requires_non_empty_label() -> None:
    missing = classify({"id": "x", "type": "text"})
    blank = classify({"id": "x", "type": "text", "label": "  "})
    assert isinstance(missing, ClassificationError)
    assert isinstance(blank, ClassificationError)
    assert "label" in blank.reason


def test_likert_bounds_and_anchors() -> None:
    field = classify(
        {
            "id": "distress",
            "type": "likert",
            "label": "Distress",
            "min": 0,
            "max": 10,
            "anchors": {"0": "None", "10": "Extreme"},
        }
    )
    assert isinstance(field, LikertField)
    assert field.anchors["10"] == "Extreme"

    inverted = classify({"id": "d", "type": "likert", "label": "D", "min": 10, "max": 0})
    assert isinstance(inverted, ClassificationError)
    assert "min must not exceed max" in inverted.reason

    unbounded = classify({"id": "d", "type": "likert", "label": "D"})
    assert isinstance(unbounded, ClassificationError)


def test_checklist_option_ids_must_be_unique() -> None:
    ok = classify(
        {
            "id": "symptoms",
            "type": "checklist",
            "label": "Symptoms",
            "options": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
        }
    )
    assert isinstance(ok, ChecklistField)

    dup = classify(
        {
            "id": "mood",
            "type": "select",
            "label": "Mood",
            "options": [{"id": "a", "label": "A"}, {"id": "a", "label": "Also A"}],
        }
    )
    assert isinstance(dup, ClassificationError)
    assert "duplicate option id 'a'" in dup.reason


def test_table_contract() -> None:
    table = classify(_table(min_rows=2, max_rows=5))
    assert isinstance(table, TableField)
    assert table.column("pleasure") is not None
    assert table.column("missing") is None

    for bad, needle in [
        (_table(columns=[]), "at least one column"),
        (_table(min_rows=5, max_rows=2), "min_rows must not exceed max_rows"),
        (_table(min_rows=-1), "min_rows"),
        (
            _table(columns=[{"id": "a", "type": "text"}, {"id": "a", "type": "number"}]),
            "duplicate column id 'a'",
        ),
        (_table(columns=[{"id": "a", "type": "checkbox"}]), "column type must be one of"),
    ]:
        result = classify(bad)
        assert isinstance(result, ClassificationError), bad
        assert needle in result.reason


def test_computed_reference_rules() -> None:
    ok = classify(
        {
            "id": "total",
            "type": "computed",
            "label": "Total",
            "computation": {"operation": "sum", "field": "activity-log.pleasure", "format": "integer"},
        }
    )
    assert isinstance(ok, ComputedField)
    assert ok.computation.refs() == ["activity-log.pleasure"]

    paired_missing = classify(
        {
            "id": "change",
            "type": "computed",
            "label": "Change",
            "computation": {"operation": "difference", "field_a": "t.before"},
        }
    )
    assert isinstance(paired_missing, ClassificationError)
    assert "field_a and field_b" in paired_missing.reason

    single_missing = classify(
        {"id": "avg", "type": "computed", "label": "Avg", "computation": {"operation": "average"}}
    )
    assert isinstance(single_missing, ClassificationError)
    assert "requires field or fields" in single_missing.reason

    bad_ref = classify(
        {
            "id": "avg",
            "type": "computed",
            "label": "Avg",
            "computation": {"operation": "average", "field": "pleasure"},
        }
    )
    assert isinstance(bad_ref, ClassificationError)
    assert "tableId.columnId" in bad_ref.reason

    bad_op = classify(
        {
            "id": "m",
            "type": "computed",
            "label": "M",
            "computation": {"operation": "median", "field": "t.n"},
        }
    )
    assert isinstance(bad_op, ClassificationError)
    assert "computation operation must be one of" in bad_op.reason


def test_parse_field_raises_field_type_error() -> None:
    with pytest.raises(FieldTypeError) as excinfo:
        parse_field({"id": "x", "type": "hierarchy", "label": "X"})
    assert excinfo.value.field_type == "hierarchy"
    assert isinstance(excinfo.value, ValueError)


def test_unknown_keys_survive() -> None:
    field = parse_field({"id": "n", "type": "textarea", "label": "Notes", "rows": 6})
    assert field.model_dump()["rows"] == 6
