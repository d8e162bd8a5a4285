from pathlib import Path

from worksheet.core.grammar import (
    EBNF_GRAMMAR,
    PARSED_GRAMMAR,
    ComputeOperation,
    FieldType,
    FormulationLayout,
    SchemaLayout,
)


def test_worksheet_ebnf_is_exposed_verbatim() -> None:
    file_text = Path("src/worksheet/core/worksheet.ebnf").read_text(encoding="utf-8")
    assert EBNF_GRAMMAR == file_text


def test_field_type_matches_enum() -> None:
    assert PARSED_GRAMMAR.lower_snake_terminals("field_type") == tuple(
        member.value for member in FieldType
    )


def test_compute_operation_matches_enum() -> None:
    assert PARSED_GRAMMAR.lower_snake_terminals("compute_operation") == tuple(
        member.value for member in ComputeOperation
    )


def test_layout_productions_match_enums() -> None:
    assert PARSED_GRAMMAR.lower_snake_terminals("formulation_layout") == tuple(
        member.value for member in FormulationLayout
    )
    assert PARSED_GRAMMAR.lower_snake_terminals("schema_layout") == tuple(
        member.value for member in SchemaLayout
    )
