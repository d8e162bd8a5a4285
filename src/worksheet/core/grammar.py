"""
Canonical worksheet grammar and helpers.

Defines field types, table column types, computation operations, formulation
layouts, legacy schema layouts, clinical domains, and connection styles. Includes
an authoritative EBNF (``worksheet.ebnf``) and zero-IO validators/helpers used
across the stack.

Responsibilities
- Define enums whose serialized values are the wire tags of the JSON schema.
- Keep the EBNF terminals and the enums in lockstep (checked at import).
- Provide parsing helpers for enum-like strings and computed-field references.

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE (Python constants)
   - Enum serialized values (JSON wire tags): lower_snake
   - Ids inside a schema are author-chosen (kebab-case in practice) and are
     never normalized.

2) Closed sets:
   - A field ``type`` outside FieldType is rejected, never coerced.
   - Legacy layout tags exist only so the migrator can recognize them.

Downstream usage
----------------
- ``worksheet.core.schema`` validators parse tags with the ``*_from_value``
  helpers and raise GrammarError on unknown values.
- ``worksheet.io.validate`` uses ``is_field_ref`` for reference syntax checks.
- ``worksheet.formulation.migrate`` maps SchemaLayout members onto
  FormulationLayout via ``LEGACY_LAYOUT_TARGETS``.

Examples
--------
>>> from worksheet.core.grammar import FieldType, field_type_from_value, parse_field_ref
>>> field_type_from_value("likert") is FieldType.LIKERT
True
>>> parse_field_ref("mood-log.rating")
('mood-log', 'rating')
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

__all__ = [
    "FieldType",
    "ColumnType",
    "NodeFieldType",
    "ComputeOperation",
    "ComputeFormat",
    "FormulationLayout",
    "SchemaLayout",
    "DomainType",
    "ConnectionStyle",
    "ConnectionDirection",
    "Highlight",
    "BranchColour",
    "LEGACY_LAYOUT_TARGETS",
    "PAIRED_OPERATIONS",
    "EBNF_GRAMMAR",
    "GrammarProduction",
    "ParsedGrammar",
    "PARSED_GRAMMAR",
    # helpers/validators
    "is_lower_snake",
    "assert_lower_snake",
    "field_type_from_value",
    "formulation_layout_from_value",
    "legacy_layout_from_value",
    "is_field_ref",
    "parse_field_ref",
    "ensure_all_enum_values_lower_snake",
]

# Canonical grammar file next to this module
_EBNF_PATH = Path(__file__).with_name("worksheet.ebnf")


def _load_ebnf_text() -> str:
    return _EBNF_PATH.read_text(encoding="utf-8")


EBNF_GRAMMAR: Final[str] = _load_ebnf_text()


@dataclass(slots=True, frozen=True)
class GrammarProduction:
    """Parsed production with convenient accessors."""

    name: str
    expression: str
    alternatives: tuple[str, ...]
    leading_terminals: tuple[str, ...]

    def lower_snake_terminals(self) -> tuple[str, ...]:
        return tuple(token for token in self.leading_terminals if is_lower_snake(token))


@dataclass(slots=True, frozen=True)
class ParsedGrammar:
    """Container for parsed grammar productions."""

    productions: dict[str, GrammarProduction]

    def production(self, name: str) -> GrammarProduction:
        try:
            return self.productions[name]
        except KeyError as exc:
            raise KeyError(f"Unknown grammar production: {name}") from exc

    def lower_snake_terminals(self, name: str) -> tuple[str, ...]:
        return self.production(name).lower_snake_terminals()

    @classmethod
    def from_text(cls, text: str) -> ParsedGrammar:
        stripped = _COMMENT_RE.sub(" ", text)
        productions: dict[str, GrammarProduction] = {}
        for match in _RULE_RE.finditer(stripped):
            rule_name = match.group(1)
            expression = match.group(2).strip()
            alternatives = _split_alternatives(expression)
            leading = tuple(
                literal
                for literal in (_first_literal(part) for part in alternatives)
                if literal is not None
            )
            productions[rule_name] = GrammarProduction(
                name=rule_name,
                expression=expression,
                alternatives=alternatives,
                leading_terminals=_dedupe_preserving_order(leading),
            )
        return cls(productions=productions)


_COMMENT_RE = re.compile(r"\(\*.*?\*\)", re.DOTALL)
_RULE_RE = re.compile(r"(?ms)^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*?)\s*;")
_LITERAL_RE = re.compile(r"[\"']([^\"']+)[\"']")


def _split_alternatives(expression: str) -> tuple[str, ...]:
    parts: list[str] = []
    buffer: list[str] = []
    depth = 0
    quote: str | None = None
    for ch in expression:
        if quote is not None:
            buffer.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ('"', "'"):
            quote = ch
            buffer.append(ch)
        elif ch in "([{":
            depth += 1
            buffer.append(ch)
        elif ch in ")]}":
            depth = max(0, depth - 1)
            buffer.append(ch)
        elif ch == "|" and depth == 0:
            part = "".join(buffer).strip()
            if part:
                parts.append(part)
            buffer = []
        else:
            buffer.append(ch)
    tail = "".join(buffer).strip()
    if tail:
        parts.append(tail)
    return tuple(parts)


def _first_literal(alt: str) -> str | None:
    match = _LITERAL_RE.search(alt)
    return match.group(1) if match else None


def _dedupe_preserving_order(items: Iterable[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return tuple(ordered)


# ============================================================================
# FIELDS
# ============================================================================


class FieldType(Enum):
    """
    The closed set of field variants a worksheet section may contain.

    Serialized values appear in:
      - fields[].type of every section
      - EBNF production ``field_type``

    Notes:
      Retired curated-only variants (hierarchy, decision_tree, safety_plan,
      record) are deliberately absent; schemas carrying them fail validation.
    """

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    LIKERT = "likert"
    CHECKLIST = "checklist"
    DATE = "date"
    TIME = "time"
    SELECT = "select"
    TABLE = "table"
    COMPUTED = "computed"
    FORMULATION = "formulation"


class ColumnType(Enum):
    """Cell kinds a table column may declare."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"


class NodeFieldType(Enum):
    """Input kinds available inside a formulation node."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    LIKERT = "likert"
    CHECKLIST = "checklist"


# ============================================================================
# COMPUTATION
# ============================================================================


class ComputeOperation(Enum):
    """
    Aggregations a computed field may apply to referenced table columns.

    Notes:
      ``difference`` and ``percentage_change`` are paired operations and take
      ``field_a`` / ``field_b``; every other operation takes ``field`` or
      ``fields``.
    """

    SUM = "sum"
    AVERAGE = "average"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    DIFFERENCE = "difference"
    PERCENTAGE_CHANGE = "percentage_change"


class ComputeFormat(Enum):
    """Rendering hints for computed results."""

    NUMBER = "number"
    INTEGER = "integer"
    PERCENTAGE_CHANGE = "percentage_change"


PAIRED_OPERATIONS: Final[frozenset[ComputeOperation]] = frozenset(
    {ComputeOperation.DIFFERENCE, ComputeOperation.PERCENTAGE_CHANGE}
)


# ============================================================================
# FORMULATIONS & LAYOUTS
# ============================================================================


class FormulationLayout(Enum):
    """
    Canonical formulation layouts and their slot naming conventions.

      - cross_sectional: top | left | centre | right | bottom
      - radial:          centre | petal-0 | petal-1 | ...
      - vertical_flow:   step-0 | step-1 | ... (optional grid-0..grid-3)
      - cycle:           cycle-0 | cycle-1 | ...
      - three_systems:   system-0 | system-1 | system-2 | centre (optional)
    """

    CROSS_SECTIONAL = "cross_sectional"
    RADIAL = "radial"
    VERTICAL_FLOW = "vertical_flow"
    CYCLE = "cycle"
    THREE_SYSTEMS = "three_systems"


class SchemaLayout(Enum):
    """
    Schema-level layout tags from the retired section-based generation.

    A schema carrying any of these in ``layout`` is a legacy schema. Only the
    three ``formulation_*`` tags are migratable.
    """

    FORMULATION_CROSS_SECTIONAL = "formulation_cross_sectional"
    FORMULATION_VICIOUS_FLOWER = "formulation_vicious_flower"
    FORMULATION_LONGITUDINAL = "formulation_longitudinal"
    DECISION_TREE = "decision_tree"
    SAFETY_PLAN = "safety_plan"


LEGACY_LAYOUT_TARGETS: Final[dict[SchemaLayout, FormulationLayout]] = {
    SchemaLayout.FORMULATION_CROSS_SECTIONAL: FormulationLayout.CROSS_SECTIONAL,
    SchemaLayout.FORMULATION_VICIOUS_FLOWER: FormulationLayout.RADIAL,
    SchemaLayout.FORMULATION_LONGITUDINAL: FormulationLayout.VERTICAL_FLOW,
}


class DomainType(Enum):
    """
    Clinical domains used for colour coding and legacy cross-sectional slots.
    """

    SITUATION = "situation"
    THOUGHTS = "thoughts"
    EMOTIONS = "emotions"
    PHYSICAL = "physical"
    BEHAVIOUR = "behaviour"
    REASSURANCE = "reassurance"
    ATTENTION = "attention"
    CORE_BELIEFS = "core_beliefs"


class ConnectionStyle(Enum):
    ARROW = "arrow"
    ARROW_DASHED = "arrow_dashed"


class ConnectionDirection(Enum):
    ONE_WAY = "one_way"
    BOTH = "both"


class Highlight(Enum):
    """Section highlight tags of legacy longitudinal schemas."""

    AMBER = "amber"
    RED_DASHED = "red_dashed"


class BranchColour(Enum):
    GREEN = "green"
    RED = "red"


# ============================================================================
# Helpers & Validators (zero I/O)
# ============================================================================

_LOWER_SNAKE_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")
_FIELD_REF_RE: Final[re.Pattern[str]] = re.compile(r"^([^.\s]+)\.([^.\s]+)$")


def is_lower_snake(value: str) -> bool:
    """
    Check whether a string is lower_snake.

    Examples:
      >>> is_lower_snake("percentage_change")
      True
      >>> is_lower_snake("PercentageChange")
      False
    """
    return bool(_LOWER_SNAKE_RE.match(value or ""))


def assert_lower_snake(value: str, what: str = "value") -> None:
    """
    Validate that a string is lower_snake.

    Raises:
      ValueError: If value is not lower_snake.
    """
    if not is_lower_snake(value):
        raise ValueError(f"{what} must be lower_snake (got: {value!r})")


def field_type_from_value(s: str) -> FieldType:
    """
    Parse a field ``type`` tag into a FieldType.

    Args:
      s (str): Serialized tag, e.g. "table".

    Returns:
      FieldType: Parsed field type.

    Raises:
      ValueError: If s is not one of the recognized field types.
    """
    try:
        return FieldType(s)
    except ValueError:
        allowed = ", ".join(t.value for t in FieldType)
        raise ValueError(f"unsupported field type {s!r}; allowed types: {allowed}") from None


def formulation_layout_from_value(s: str) -> FormulationLayout:
    """
    Parse a formulation ``layout`` tag.

    Raises:
      ValueError: If s is not a canonical formulation layout.
    """
    assert_lower_snake(s, "layout")
    return FormulationLayout(s)


def legacy_layout_from_value(s: str | None) -> SchemaLayout | None:
    """
    Resolve a schema-level ``layout`` tag, returning None for absent or unknown tags.

    Examples:
      >>> legacy_layout_from_value("formulation_vicious_flower")
      <SchemaLayout.FORMULATION_VICIOUS_FLOWER: 'formulation_vicious_flower'>
      >>> legacy_layout_from_value("magazine") is None
      True
    """
    if not s:
        return None
    try:
        return SchemaLayout(s)
    except ValueError:
        return None


def is_field_ref(ref: object) -> bool:
    """
    Check that a computed-field reference has the form ``"<tableId>.<columnId>"``.

    Examples:
      >>> is_field_ref("activity-table.pleasure")
      True
      >>> is_field_ref("pleasure")
      False
      >>> is_field_ref("a.b.c")
      False
    """
    return isinstance(ref, str) and bool(_FIELD_REF_RE.match(ref))


def parse_field_ref(ref: str) -> tuple[str, str]:
    """
    Split a field reference into ``(table_id, column_id)``.

    Raises:
      ValueError: If the reference is not of the form ``tableId.columnId``.
    """
    match = _FIELD_REF_RE.match(ref or "")
    if match is None:
        raise ValueError(f"field reference must look like 'tableId.columnId' (got {ref!r})")
    return match.group(1), match.group(2)


def ensure_all_enum_values_lower_snake(enums: Iterable[type[Enum]]) -> None:
    """
    Assert that every enum member's value is lower_snake.

    Raises:
      AssertionError: If any enum member has a non-lower_snake value.
    """
    for E in enums:
        for m in E:
            if not is_lower_snake(m.value):
                raise AssertionError(
                    f"{E.__name__}.{m.name} has non-lower_snake value: {m.value!r}"
                )


def _assert_production_matches_enum(
    grammar: ParsedGrammar, rule_name: str, enum_cls: type[Enum]
) -> None:
    actual = list(grammar.lower_snake_terminals(rule_name))
    expected = [member.value for member in enum_cls]
    if actual != expected:
        actual_set = set(actual)
        expected_set = set(expected)
        issues: list[str] = []
        missing = expected_set - actual_set
        extra = actual_set - expected_set
        if missing:
            issues.append(f"missing {sorted(missing)}")
        if extra:
            issues.append(f"unexpected {sorted(extra)}")
        if not issues:
            issues.append("ordering differs")
        raise ValueError(
            f"Grammar production {rule_name!r} out of sync with {enum_cls.__name__}: "
            + "; ".join(issues)
        )


PARSED_GRAMMAR: Final[ParsedGrammar] = ParsedGrammar.from_text(EBNF_GRAMMAR)

GRAMMAR_ENUMS: Final[dict[str, type[Enum]]] = {
    "field_type": FieldType,
    "column_type": ColumnType,
    "node_field_type": NodeFieldType,
    "compute_operation": ComputeOperation,
    "compute_format": ComputeFormat,
    "formulation_layout": FormulationLayout,
    "schema_layout": SchemaLayout,
    "domain": DomainType,
    "connection_style": ConnectionStyle,
    "connection_direction": ConnectionDirection,
}

for _rule, _enum in GRAMMAR_ENUMS.items():
    _assert_production_matches_enum(PARSED_GRAMMAR, _rule, _enum)
