from __future__ import annotations

from typing import Any

import pytest

from worksheet.core.errors import SchemaValidationError
from worksheet.core.schema import WorksheetSchema
from worksheet.io.config import EngineSettings
from worksheet.io.validate import ensure_valid, parse_schema, validate


def _schema(*fields: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"version": 1, "sections": [{"id": "s1", "title": "Main", "fields": list(fields)}], **extra}


def _table(table_id: str = "t1", **overrides: Any) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "id": table_id,
        "type": "table",
        "label": "Table",
        "columns": [{"id": "n", "header": "N", "type": "number"}],
    }
    raw.update(overrides)
    return raw


def _computed(**computation: Any) -> dict[str, Any]:
    return {"id": "c1", "type": "computed", "label": "Result", "computation": computation}


def test_valid_schema() -> None:
    result = validate(_schema(_table(), _computed(operation="sum", field="t1.n")))
    assert result.valid
    assert bool(result)
    assert result.to_dict() == {"valid": True}


@pytest.mark.parametrize(
    "schema, error",
    [
        ([], "Schema must be an object"),
        ({"version": 1}, "Schema must have a sections array"),
        ({"sections": {"id": "s1"}}, "Schema must have a sections array"),
        ({"sections": [{"id": "s1"}]}, "Each section must have an id and fields array"),
        ({"sections": [{"fields": []}]}, "Each section must have an id and fields array"),
        (_schema({"type": "text", "label": "X"}), "Each field must have an id and type"),
        (_schema({"id": "x", "label": "X"}), "Each field must have an id and type"),
        (_schema({"id": "x", "type": "text", "label": ""}), 'Field "x" must have a label'),
        (
            _schema({"id": "x", "type": "text", "label": "X"}, {"id": "x", "type": "date", "label": "Y"}),
            'Duplicate field id "x"',
        ),
        (_schema(_table(columns=[])), 'Table "t1" must have at least one column'),
        (_schema(_table(min_rows=4, max_rows=2)), 'Table "t1" has min_rows greater than max_rows'),
        (_schema(_table(min_rows=-1)), 'Table "t1" row limits must be non-negative integers'),
        (
            _schema(_computed(operation="sum", field="n")),
            "Computed field \"c1\" has invalid reference 'n'; expected \"tableId.columnId\"",
        ),
    ],
)
def test_rejections(schema: Any, error: str) -> None:
    result = validate(schema)
    assert not result.valid
    assert result.error == error
    assert result.to_dict() == {"valid": False, "error": error}


def test_unsupported_type_lists_allowed_types() -> None:
    result = validate(_schema({"id": "x", "type": "slider", "label": "X"}))
    assert result.error is not None
    assert result.error.startswith('Unsupported field type "slider". Allowed types: text, textarea')
    assert result.error.endswith("computed, formulation")


def test_duplicates_across_sections() -> None:
    schema = {
        "sections": [
            {"id": "a", "fields": [{"id": "mood", "type": "text", "label": "Mood"}]},
            {"id": "b", "fields": [{"id": "mood", "type": "text", "label": "Mood again"}]},
        ]
    }
    assert validate(schema).error == 'Duplicate field id "mood"'


def test_first_failure_wins() -> None:
    schema = _schema({"id": "x", "type": "slider", "label": ""}, {"id": "x", "type": "text", "label": "X"})
    assert validate(schema).error.startswith("Unsupported field type")


def test_contract_failures_are_reported_per_field() -> None:
    likert = {"id": "d", "type": "likert", "label": "Distress", "min": 10, "max": 0}
    result = validate(_schema(likert))
    assert result.error is not None
    assert result.error.startswith('Field "d" is invalid: ')
    assert "min must not exceed max" in result.error


def test_branch_section_with_fields_is_rejected() -> None:
    schema = {
        "sections": [
            {
                "id": "q1",
                "type": "branch",
                "question": "Can I do something about it?",
                "branches": {
                    "yes": {"label": "Yes", "colour": "green"},
                    "no": {"label": "No", "colour": "red"},
                },
                "fields": [{"id": "x", "type": "text", "label": "X"}],
            }
        ]
    }
    result = validate(schema)
    assert result.error is not None
    assert result.error.startswith('Section "q1" is invalid: ')

    schema["sections"][0]["fields"] = []
    assert validate(schema).valid
    assert validate(schema, EngineSettings(allow_branch_sections=False)).error == (
        "Decision tree sections are not allowed"
    )


def test_legacy_layout_policy() -> None:
    legacy = _schema(_table(), layout="formulation_cross_sectional")
    assert validate(legacy).error == (
        'Legacy formulation layout "formulation_cross_sectional" must be migrated before use'
    )
    assert validate(legacy, EngineSettings(reject_legacy_layouts=False)).valid
    assert validate(_schema(_table(), layout="safety_plan")).valid


def test_require_sections_policy() -> None:
    empty = {"version": 1, "sections": []}
    assert validate(empty).valid
    assert validate(empty, EngineSettings(require_sections=True)).error == (
        "Schema must have at least one section"
    )


def test_dangling_computed_reference_is_accepted() -> None:
    assert validate(_schema(_computed(operation="average", field="missing.n"))).valid


def test_ensure_valid_and_parse_schema() -> None:
    with pytest.raises(SchemaValidationError, match="Duplicate field id"):
        ensure_valid(_schema(_table("x"), _table("x")))
    schema = parse_schema(_schema(_table(), _computed(operation="count", field="t1.n")))
    assert isinstance(schema, WorksheetSchema)
    assert schema.computed_fields()[0].computation.operation == "count"
