import pytest

from worksheet.core.grammar import (
    ColumnType,
    ComputeFormat,
    ComputeOperation,
    ConnectionDirection,
    ConnectionStyle,
    DomainType,
    FieldType,
    FormulationLayout,
    NodeFieldType,
    SchemaLayout,
    ensure_all_enum_values_lower_snake,
    field_type_from_value,
    is_field_ref,
    legacy_layout_from_value,
    parse_field_ref,
)


def test_all_enum_values_are_lower_snake() -> None:
    ensure_all_enum_values_lower_snake(
        [
            FieldType,
            ColumnType,
            NodeFieldType,
            ComputeOperation,
            ComputeFormat,
            FormulationLayout,
            SchemaLayout,
            DomainType,
            ConnectionStyle,
            ConnectionDirection,
        ]
    )


def test_field_types_are_the_closed_set_of_eleven() -> None:
    assert len(FieldType) == 11
    for retired in ("hierarchy", "decision_tree", "safety_plan", "record", "slider"):
        with pytest.raises(ValueError):
            field_type_from_value(retired)


@pytest.mark.parametrize(
    "ref, ok",
    [
        ("activity-table.pleasure", True),
        ("t1.n", True),
        ("pleasure", False),
        ("a.b.c", False),
        (".col", False),
        ("tbl.", False),
        ("tbl .col", False),
        (42, False),
        (None, False),
    ],
)
def test_is_field_ref(ref: object, ok: bool) -> None:
    assert is_field_ref(ref) is ok


def test_parse_field_ref_splits_and_rejects() -> None:
    assert parse_field_ref("mood-log.rating") == ("mood-log", "rating")
    with pytest.raises(ValueError):
        parse_field_ref("rating")


def test_legacy_layout_from_value_is_lenient() -> None:
    assert legacy_layout_from_value("formulation_longitudinal") is SchemaLayout.FORMULATION_LONGITUDINAL
    assert legacy_layout_from_value("decision_tree") is SchemaLayout.DECISION_TREE
    assert legacy_layout_from_value("magazine") is None
    assert legacy_layout_from_value(None) is None
    assert legacy_layout_from_value("") is None
