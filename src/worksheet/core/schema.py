"""
Pydantic v2 models for worksheet schemas: field variants, sections, formulations,
and the top-level document. Validators parse enum-like tags through grammar helpers
and enforce structural contracts (row bounds, unique option/column/node ids, slot
conventions, connection endpoints, globally unique field ids).

Responsibilities
- Define the closed discriminated union of eleven field variants.
- Model plain and branch sections as a tagged union instead of one container.
- Provide ``classify`` (never raises) and ``parse_field`` (raises) for raw fields.

Style
- Zero-IO (stdlib + pydantic only).
- Unknown keys are kept (``extra="allow"``): authored and generated schemas carry
  presentation keys that must survive a parse/dump cycle.
- Google-style docstrings with Attributes, Raises and Examples sections.

References
- grammar: src/worksheet/core/grammar.py (tags, field reference syntax)
- layouts: src/worksheet/core/layouts.py (slot conventions)
- errors: src/worksheet/core/errors.py
- tests: tests/core/*
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .colours import domain_colour
from .errors import FieldTypeError, GrammarError, SchemaError
from .grammar import (
    PAIRED_OPERATIONS,
    BranchColour,
    ColumnType,
    ComputeFormat,
    ComputeOperation,
    ConnectionDirection,
    ConnectionStyle,
    DomainType,
    NodeFieldType,
    field_type_from_value,
    formulation_layout_from_value,
    is_field_ref,
    legacy_layout_from_value,
)
from .layouts import get_layout

__all__ = [
    # Building blocks
    "Option",
    "TableColumn",
    "Computation",
    "FormulationConfig",
    "FormulationNodeField",
    "FormulationNode",
    "FormulationConnection",
    # Field variants
    "TextField",
    "TextareaField",
    "NumberField",
    "LikertField",
    "ChecklistField",
    "DateField",
    "TimeField",
    "SelectField",
    "TableField",
    "ComputedField",
    "FormulationField",
    "WorksheetField",
    # Sections / document
    "BranchInput",
    "Branch",
    "Branches",
    "PlainSection",
    "BranchSection",
    "Section",
    "WorksheetSchema",
    # Classification
    "ClassificationError",
    "classify",
    "parse_field",
    "parse_section",
    "describe_validation_error",
]

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

Number = Union[int, float]


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


def _enum_value(enum_cls: Any, value: Any, what: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise GrammarError(f"{what} must be one of {allowed} (got {value!r})") from None


def _ensure_unique(ids: list[str], what: str) -> None:
    seen: set[str] = set()
    for i in ids:
        if i in seen:
            raise SchemaError(f"duplicate {what} id {i!r}")
        seen.add(i)


# ============================================================================
# Building blocks
# ============================================================================


class Option(_WireModel):
    """Choice offered by checklist and select fields."""

    id: str = Field(..., min_length=1)
    label: str


class TableColumn(_WireModel):
    """
    One column of a table field.

    Attributes:
        id (str): Column id, unique within the table; the key of each RowData cell.
        header (str): Column heading.
        type (str): One of {"text","textarea","number"}.
        min (int | float | None): Lower bound hint for number columns.
        max (int | float | None): Upper bound hint for number columns.
        step (int | float | None): Increment hint for number columns.
        suffix (str | None): Unit rendered after the cell (e.g. "%").
        width (str | None): One of {"narrow","normal","wide"}.
    """

    id: str = Field(..., min_length=1)
    header: str = ""
    type: str = ColumnType.TEXT.value
    min: Number | None = None
    max: Number | None = None
    step: Number | None = None
    suffix: str | None = None
    width: Literal["narrow", "normal", "wide"] | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _check_type(cls, v: Any) -> str:
        return _enum_value(ColumnType, v, "column type")


class Computation(_WireModel):
    """
    Aggregation recipe of a computed field.

    Attributes:
        operation (str): ComputeOperation serialized value.
        field (str | None): Single ``tableId.columnId`` reference.
        fields (list[str] | None): Several references pooled together.
        field_a (str | None): "Before" reference of paired operations.
        field_b (str | None): "After" reference of paired operations.
        format (str | None): ComputeFormat serialized value.

    Raises:
        GrammarError: On an unknown operation or format.
        SchemaError: If the references required by the operation are missing or
            not of the form ``tableId.columnId``.

    Examples:
        >>> Computation(operation="sum", field="diary.minutes", format="integer").operation
        'sum'
    """

    operation: str
    field: str | None = None
    fields: list[str] | None = None
    field_a: str | None = None
    field_b: str | None = None
    format: str | None = None

    @field_validator("operation", mode="before")
    @classmethod
    def _check_operation(cls, v: Any) -> str:
        return _enum_value(ComputeOperation, v, "computation operation")

    @field_validator("format", mode="before")
    @classmethod
    def _check_format(cls, v: Any) -> str | None:
        if v is None:
            return v
        return _enum_value(ComputeFormat, v, "computation format")

    @model_validator(mode="after")
    def _check_refs(self) -> Computation:
        op = ComputeOperation(self.operation)
        if op in PAIRED_OPERATIONS:
            if not self.field_a or not self.field_b:
                raise SchemaError(f"{op.value} requires both field_a and field_b")
        elif not self.field and not self.fields:
            raise SchemaError(f"{op.value} requires field or fields")
        for ref in self.refs():
            if not is_field_ref(ref):
                raise SchemaError(f"field reference must look like 'tableId.columnId' (got {ref!r})")
        return self

    @property
    def op(self) -> ComputeOperation:
        return ComputeOperation(self.operation)

    def refs(self) -> list[str]:
        """Every reference the computation names, in declaration order."""
        out: list[str] = []
        if self.field:
            out.append(self.field)
        out.extend(self.fields or [])
        out.extend(r for r in (self.field_a, self.field_b) if r)
        return out


class FormulationConfig(_WireModel):
    title: str = ""
    show_title: bool = True


class FormulationNodeField(_WireModel):
    """Input inside a formulation node. ``label`` is optional here."""

    id: str = Field(..., min_length=1)
    type: str = NodeFieldType.TEXTAREA.value
    label: str | None = None
    placeholder: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _check_type(cls, v: Any) -> str:
        return _enum_value(NodeFieldType, v, "node field type")


class FormulationNode(_WireModel):
    """
    One labelled box of a formulation diagram.

    Attributes:
        id (str): Unique within the formulation field; connection endpoints use it.
        slot (str): Position under the layout's naming convention.
        label (str): Heading shown on the node.
        domain_colour (str | None): Hex colour; defaults from ``domain`` when absent.
        domain (str | None): Optional DomainType used for the default colour.
        description (str | None): Helper text under the heading.
        fields (list[FormulationNodeField]): Inputs inside the node.
    """

    id: str = Field(..., min_length=1)
    slot: str = Field(..., min_length=1)
    label: str = ""
    domain_colour: str | None = None
    domain: str | None = None
    description: str | None = None
    fields: list[FormulationNodeField] = Field(default_factory=list)

    @field_validator("domain_colour")
    @classmethod
    def _check_colour(cls, v: str | None) -> str | None:
        if v is not None and not _HEX_RE.match(v):
            raise SchemaError(f"domain_colour must be a hex colour (got {v!r})")
        return v

    @field_validator("domain", mode="before")
    @classmethod
    def _check_domain(cls, v: Any) -> str | None:
        if v is None:
            return v
        return _enum_value(DomainType, v, "domain")

    @model_validator(mode="after")
    def _check_fields(self) -> FormulationNode:
        _ensure_unique([f.id for f in self.fields], f"field in node {self.id!r}:")
        return self

    @property
    def colour(self) -> str:
        """Explicit colour, else the domain default, else neutral grey."""
        return self.domain_colour or domain_colour(self.domain)


class FormulationConnection(_WireModel):
    """Arrow between two nodes. ``from`` is exposed as ``source`` in Python."""

    source: str = Field(..., alias="from", min_length=1)
    to: str = Field(..., min_length=1)
    style: str = ConnectionStyle.ARROW.value
    direction: str = ConnectionDirection.ONE_WAY.value
    label: str | None = None

    @field_validator("style", mode="before")
    @classmethod
    def _check_style(cls, v: Any) -> str:
        return _enum_value(ConnectionStyle, v, "connection style")

    @field_validator("direction", mode="before")
    @classmethod
    def _check_direction(cls, v: Any) -> str:
        return _enum_value(ConnectionDirection, v, "connection direction")


# ============================================================================
# Field variants
# ============================================================================


class _FieldBase(_WireModel):
    id: str = Field(..., min_length=1)
    label: str
    required: bool | None = None
    placeholder: str | None = None

    @field_validator("id")
    @classmethod
    def _check_id(cls, v: str) -> str:
        if not v.strip():
            raise SchemaError("field id must be non-empty")
        return v

    @field_validator("label")
    @classmethod
    def _check_label(cls, v: str) -> str:
        if not v.strip():
            raise SchemaError("field label must be non-empty")
        return v


class TextField(_FieldBase):
    type: Literal["text"]


class TextareaField(_FieldBase):
    type: Literal["textarea"]


class DateField(_FieldBase):
    type: Literal["date"]


class TimeField(_FieldBase):
    type: Literal["time"]


class NumberField(_FieldBase):
    type: Literal["number"]
    min: Number | None = None
    max: Number | None = None
    step: Number | None = None

    @model_validator(mode="after")
    def _check_bounds(self) -> NumberField:
        if self.min is not None and self.max is not None and self.min > self.max:
            raise SchemaError(f"min must not exceed max ({self.min} > {self.max})")
        return self


class LikertField(_FieldBase):
    """
    Rating scale. ``anchors`` maps a boundary value (as a string key) to its
    descriptive text, e.g. ``{"0": "Not at all", "10": "Extremely"}``.
    """

    type: Literal["likert"]
    min: Number
    max: Number
    step: Number | None = None
    anchors: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_bounds(self) -> LikertField:
        if self.min > self.max:
            raise SchemaError(f"min must not exceed max ({self.min} > {self.max})")
        return self


class _OptionsField(_FieldBase):
    options: list[Option]

    @model_validator(mode="after")
    def _check_options(self) -> _OptionsField:
        _ensure_unique([o.id for o in self.options], "option")
        return self


class ChecklistField(_OptionsField):
    type: Literal["checklist"]


class SelectField(_OptionsField):
    type: Literal["select"]


class TableField(_FieldBase):
    """
    Repeating rows of typed cells.

    Raises:
        SchemaError: If there are no columns, column ids repeat, or min_rows > max_rows.
    """

    type: Literal["table"]
    columns: list[TableColumn]
    min_rows: int | None = Field(default=None, ge=0)
    max_rows: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_table(self) -> TableField:
        if not self.columns:
            raise SchemaError("table needs at least one column")
        _ensure_unique([c.id for c in self.columns], "column")
        if (
            self.min_rows is not None
            and self.max_rows is not None
            and self.min_rows > self.max_rows
        ):
            raise SchemaError(f"min_rows must not exceed max_rows ({self.min_rows} > {self.max_rows})")
        return self

    def column(self, column_id: str) -> TableColumn | None:
        return next((c for c in self.columns if c.id == column_id), None)


class ComputedField(_FieldBase):
    type: Literal["computed"]
    computation: Computation


class FormulationField(_FieldBase):
    """
    Spatial clinical diagram: nodes placed in layout slots, joined by connections.

    Raises:
        GrammarError: If ``layout`` is not a canonical formulation layout.
        SchemaError: If node ids repeat, a slot breaks the layout convention or is
            used twice, or a connection names a missing node.

    Examples:
        >>> f = FormulationField(
        ...     id="f1", type="formulation", label="Cycle", layout="cycle",
        ...     nodes=[{"id": "a", "slot": "cycle-0"}, {"id": "b", "slot": "cycle-1"}],
        ...     connections=[{"from": "a", "to": "b"}],
        ... )
        >>> f.connections[0].source
        'a'
    """

    type: Literal["formulation"]
    layout: str
    formulation_config: FormulationConfig = Field(default_factory=FormulationConfig)
    nodes: list[FormulationNode] = Field(default_factory=list)
    connections: list[FormulationConnection] = Field(default_factory=list)

    @field_validator("layout", mode="before")
    @classmethod
    def _check_layout(cls, v: Any) -> str:
        try:
            return formulation_layout_from_value(str(v)).value
        except ValueError as e:
            raise GrammarError(f"unknown formulation layout {v!r}") from e

    @model_validator(mode="after")
    def _check_diagram(self) -> FormulationField:
        _ensure_unique([n.id for n in self.nodes], "node")
        spec = get_layout(self.layout)
        used: set[str] = set()
        for node in self.nodes:
            if not spec.accepts(node.slot):
                raise SchemaError(f"slot {node.slot!r} is not valid for layout {self.layout!r}")
            if node.slot in used:
                raise SchemaError(f"slot {node.slot!r} is used by more than one node")
            used.add(node.slot)
        ids = {n.id for n in self.nodes}
        for c in self.connections:
            for end in (c.source, c.to):
                if end not in ids:
                    raise SchemaError(f"connection endpoint {end!r} is not a node of this formulation")
        return self

    def node(self, node_id: str) -> FormulationNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)


WorksheetField = Annotated[
    Union[
        TextField,
        TextareaField,
        NumberField,
        LikertField,
        ChecklistField,
        DateField,
        TimeField,
        SelectField,
        TableField,
        ComputedField,
        FormulationField,
    ],
    Field(discriminator="type"),
]


# ============================================================================
# Sections
# ============================================================================


class BranchInput(_WireModel):
    id: str = Field(..., min_length=1)
    type: Literal["text", "textarea"] = "textarea"
    label: str = ""
    placeholder: str | None = None


class Branch(_WireModel):
    label: str
    colour: str
    outcome: str = ""
    fields: list[BranchInput] = Field(default_factory=list)

    @field_validator("colour", mode="before")
    @classmethod
    def _check_colour(cls, v: Any) -> str:
        return _enum_value(BranchColour, v, "branch colour")


class Branches(_WireModel):
    yes: Branch
    no: Branch


class _SectionBase(_WireModel):
    id: str = Field(..., min_length=1)
    title: str | None = None
    description: str | None = None
    domain: str | None = None

    @field_validator("domain", mode="before")
    @classmethod
    def _check_domain(cls, v: Any) -> str | None:
        if v is None:
            return v
        return _enum_value(DomainType, v, "section domain")


class PlainSection(_SectionBase):
    """
    Ordinary field container.

    ``highlight``, ``layout`` ("four_quadrant"), ``default_items`` and
    ``item_template`` only carry meaning on legacy formulation schemas and are
    consumed by the migrator.
    """

    fields: list[WorksheetField] = Field(default_factory=list)
    highlight: str | None = None
    layout: Literal["four_quadrant"] | None = None


class BranchSection(_SectionBase):
    """
    Decision-tree node: a yes/no question with an outcome per branch.

    Raises:
        SchemaError: If the section carries its own fields.
    """

    type: Literal["branch"]
    question: str
    branches: Branches
    fields: list[Any] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_no_fields(self) -> BranchSection:
        if self.fields:
            raise SchemaError(f"branch section {self.id!r} must not contain fields")
        return self


def _section_tag(v: Any) -> str:
    if isinstance(v, Mapping):
        return "branch" if v.get("type") == "branch" else "plain"
    return "branch" if isinstance(v, BranchSection) else "plain"


Section = Annotated[
    Union[Annotated[PlainSection, Tag("plain")], Annotated[BranchSection, Tag("branch")]],
    Discriminator(_section_tag),
]


class WorksheetSchema(_WireModel):
    """
    Structural definition of a worksheet.

    Attributes:
        version (int): Schema document version.
        sections (list[Section]): Ordered plain/branch sections.
        layout (str | None): Legacy layout tag; set only on schemas awaiting migration.

    Raises:
        SchemaError: If any field id repeats anywhere in the document.

    Examples:
        >>> s = WorksheetSchema(version=1, sections=[
        ...     {"id": "s1", "fields": [{"id": "mood", "type": "text", "label": "Mood"}]},
        ... ])
        >>> [f.id for f in s.iter_fields()]
        ['mood']
    """

    version: int = 1
    sections: list[Section] = Field(default_factory=list)
    layout: str | None = None

    @model_validator(mode="after")
    def _check_unique_field_ids(self) -> WorksheetSchema:
        _ensure_unique([f.id for f in self.iter_fields()], "field")
        return self

    @property
    def is_legacy(self) -> bool:
        return legacy_layout_from_value(self.layout) is not None

    def iter_fields(self) -> Iterator[Any]:
        for section in self.sections:
            if isinstance(section, PlainSection):
                yield from section.fields

    def field_by_id(self, field_id: str) -> Any | None:
        return next((f for f in self.iter_fields() if f.id == field_id), None)

    def computed_fields(self) -> list[ComputedField]:
        return [f for f in self.iter_fields() if isinstance(f, ComputedField)]

    def table_fields(self) -> list[TableField]:
        return [f for f in self.iter_fields() if isinstance(f, TableField)]


# ============================================================================
# Classification
# ============================================================================

_FIELD_ADAPTER: TypeAdapter[Any] = TypeAdapter(WorksheetField)
_SECTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Section)


@dataclass(frozen=True)
class ClassificationError:
    """
    Result of a failed ``classify`` call.

    Attributes:
        reason (str): Human-readable explanation.
        field_type (str | None): The ``type`` tag found on the raw object, if any.
    """

    reason: str
    field_type: str | None = None


def describe_validation_error(exc: ValidationError) -> str:
    """Collapse a pydantic ValidationError into a single-line reason (first error wins)."""
    err = exc.errors()[0]
    msg = str(err.get("msg", "invalid value"))
    for prefix in ("Value error, ", "Assertion failed, "):
        if msg.startswith(prefix):
            msg = msg[len(prefix):]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p is not None)
    return f"{loc}: {msg}" if loc else msg


def classify(raw: Any) -> WorksheetField | ClassificationError:
    """
    Classify a serialized field object as one of the eleven variants.

    Args:
        raw (Any): Decoded JSON object.

    Returns:
        The typed field model, or a ClassificationError describing why the object
        is not a valid field. Never raises.

    Examples:
        >>> classify({"id": "x", "type": "slider", "label": "X"}).reason.startswith("unsupported field type")
        True
        >>> type(classify({"id": "d", "type": "date", "label": "When"})).__name__
        'DateField'
    """
    if not isinstance(raw, Mapping):
        return ClassificationError("field must be an object")
    tag = raw.get("type")
    if not isinstance(tag, str) or not tag:
        return ClassificationError("field must have a type")
    try:
        field_type_from_value(tag)
    except ValueError as e:
        return ClassificationError(str(e), tag)
    try:
        return _FIELD_ADAPTER.validate_python(dict(raw))
    except ValidationError as e:
        return ClassificationError(describe_validation_error(e), tag)


def parse_field(raw: Any) -> WorksheetField:
    """
    Raising twin of ``classify``.

    Raises:
        FieldTypeError: If ``raw`` does not classify.
    """
    result = classify(raw)
    if isinstance(result, ClassificationError):
        raise FieldTypeError(result.reason, result.field_type)
    return result


def parse_section(raw: Any) -> PlainSection | BranchSection:
    """
    Parse one raw section into its tagged variant.

    Raises:
        pydantic.ValidationError: If the section breaks its variant's contract.
    """
    return _SECTION_ADAPTER.validate_python(raw)
