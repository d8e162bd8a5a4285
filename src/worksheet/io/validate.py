"""
Schema validation for worksheet documents.

Purpose
- Gate raw schemas (authored, imported, or produced by a generator) before they
  are stored or rendered.
- Report the first failure as one human-readable sentence; never raise.

Checks performed (in order, first failure wins)
0. Policy: a legacy formulation ``layout`` is rejected when
   ``reject_legacy_layouts`` is on (migrate first).
1. ``sections`` is an array (non-empty when ``require_sections`` is on); every
   section has an ``id`` and a ``fields`` array. Branch sections are rejected
   when ``allow_branch_sections`` is off.
2. Every field has an ``id``, a recognized ``type`` and a non-empty ``label``.
3. Field ids are unique across the whole schema.
4. Tables have at least one column and ``min_rows <= max_rows``.
5. Computed references have the form ``tableId.columnId``.
6. Every field satisfies its variant's full contract (``classify``).
7. Every section parses as a plain or branch section.

Notes
- The validator does not check that computed references point at existing
  tables; a dangling reference evaluates to None.
- ``ensure_valid`` and ``parse_schema`` are the raising variants.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from ..core.errors import SchemaValidationError
from ..core.grammar import LEGACY_LAYOUT_TARGETS, FieldType, is_field_ref, legacy_layout_from_value
from ..core.schema import (
    ClassificationError,
    WorksheetSchema,
    classify,
    describe_validation_error,
    parse_section,
)
from .config import EngineSettings

__all__ = ["ValidationResult", "validate", "ensure_valid", "parse_schema"]

logger = logging.getLogger(__name__)

_TYPE_VALUES = frozenset(t.value for t in FieldType)
_ALLOWED_TYPES = ", ".join(t.value for t in FieldType)


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of ``validate``.

    Attributes:
        valid (bool): True when every check passed.
        error (str | None): Reason for the first failed check.
    """

    valid: bool
    error: str | None = None

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> dict[str, Any]:
        """``{"valid": true}`` or ``{"valid": false, "error": "..."}``."""
        if self.valid:
            return {"valid": True}
        return {"valid": False, "error": self.error}


_OK = ValidationResult(True)


class _Rejected(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def _fields(schema: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    for section in schema["sections"]:
        yield from section["fields"]


def _check_policy(schema: Mapping[str, Any], settings: EngineSettings) -> None:
    if not settings.reject_legacy_layouts:
        return
    layout = schema.get("layout")
    tag = legacy_layout_from_value(layout if isinstance(layout, str) else None)
    if tag in LEGACY_LAYOUT_TARGETS:
        raise _Rejected(
            f'Legacy formulation layout "{tag.value}" must be migrated before use'
        )


def _check_sections(schema: Mapping[str, Any], settings: EngineSettings) -> None:
    sections = schema.get("sections")
    if not isinstance(sections, list):
        raise _Rejected("Schema must have a sections array")
    if settings.require_sections and not sections:
        raise _Rejected("Schema must have at least one section")
    for section in sections:
        if (
            not isinstance(section, Mapping)
            or not section.get("id")
            or not isinstance(section.get("fields"), list)
        ):
            raise _Rejected("Each section must have an id and fields array")
        if section.get("type") == "branch" and not settings.allow_branch_sections:
            raise _Rejected("Decision tree sections are not allowed")


def _check_field_heads(schema: Mapping[str, Any]) -> None:
    for field in _fields(schema):
        if (
            not isinstance(field, Mapping)
            or not isinstance(field.get("id"), str)
            or not isinstance(field.get("type"), str)
            or not field["id"]
            or not field["type"]
        ):
            raise _Rejected("Each field must have an id and type")
        field_type = field["type"]
        if field_type not in _TYPE_VALUES:
            raise _Rejected(
                f'Unsupported field type "{field_type}". Allowed types: {_ALLOWED_TYPES}'
            )
        label = field.get("label")
        if not isinstance(label, str) or not label.strip():
            raise _Rejected(f'Field "{field["id"]}" must have a label')


def _check_unique_ids(schema: Mapping[str, Any]) -> None:
    seen: set[Any] = set()
    for field in _fields(schema):
        field_id = field["id"]
        if field_id in seen:
            raise _Rejected(f'Duplicate field id "{field_id}"')
        seen.add(field_id)


def _is_count(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _check_tables(schema: Mapping[str, Any]) -> None:
    for field in _fields(schema):
        if field["type"] != FieldType.TABLE.value:
            continue
        field_id = field["id"]
        columns = field.get("columns")
        if not isinstance(columns, list) or not columns:
            raise _Rejected(f'Table "{field_id}" must have at least one column')
        lo, hi = field.get("min_rows"), field.get("max_rows")
        for v in (lo, hi):
            if v is not None and (not _is_count(v) or v < 0):
                raise _Rejected(f'Table "{field_id}" row limits must be non-negative integers')
        if lo is not None and hi is not None and lo > hi:
            raise _Rejected(f'Table "{field_id}" has min_rows greater than max_rows')


def _computation_refs(computation: Mapping[str, Any]) -> Iterator[Any]:
    for key in ("field", "field_a", "field_b"):
        if computation.get(key) is not None:
            yield computation[key]
    refs = computation.get("fields")
    if isinstance(refs, list):
        yield from refs
    elif refs is not None:
        yield refs


def _check_computed_refs(schema: Mapping[str, Any]) -> None:
    for field in _fields(schema):
        if field["type"] != FieldType.COMPUTED.value:
            continue
        computation = field.get("computation")
        if not isinstance(computation, Mapping):
            continue
        for ref in _computation_refs(computation):
            if not is_field_ref(ref):
                raise _Rejected(
                    f'Computed field "{field["id"]}" has invalid reference {ref!r}; '
                    'expected "tableId.columnId"'
                )


def _check_contracts(schema: Mapping[str, Any]) -> None:
    for field in _fields(schema):
        result = classify(field)
        if isinstance(result, ClassificationError):
            raise _Rejected(f'Field "{field["id"]}" is invalid: {result.reason}')


def _check_section_variants(schema: Mapping[str, Any]) -> None:
    for section in schema["sections"]:
        try:
            parse_section(section)
        except ValidationError as exc:
            raise _Rejected(
                f'Section "{section["id"]}" is invalid: {describe_validation_error(exc)}'
            ) from exc


_CHECKS = (
    _check_field_heads,
    _check_unique_ids,
    _check_tables,
    _check_computed_refs,
    _check_contracts,
    _check_section_variants,
)


def validate(schema: Any, settings: EngineSettings | None = None) -> ValidationResult:
    """
    Run the structural checks against a raw schema.

    Args:
        schema: Decoded JSON document.
        settings: Policy switches; defaults to ``EngineSettings()``.

    Returns:
        ValidationResult: ``valid`` plus the first failure reason. Never raises.

    Examples:
        >>> bad = {"sections": [{"id": "s1", "fields": [{"id": "x", "type": "slider", "label": "X"}]}]}
        >>> validate(bad).error.startswith('Unsupported field type "slider"')
        True
    """
    settings = settings or EngineSettings()
    if not isinstance(schema, Mapping):
        return ValidationResult(False, "Schema must be an object")
    try:
        _check_policy(schema, settings)
        _check_sections(schema, settings)
        for check in _CHECKS:
            check(schema)
    except _Rejected as rejected:
        logger.debug("schema rejected: %s", rejected.reason)
        return ValidationResult(False, rejected.reason)
    return _OK


def ensure_valid(schema: Any, settings: EngineSettings | None = None) -> None:
    """
    Raising variant of ``validate``.

    Raises:
        SchemaValidationError: With the first failure reason as its message.
    """
    result = validate(schema, settings)
    if not result.valid:
        raise SchemaValidationError(result.error or "invalid schema")


def parse_schema(schema: Any, settings: EngineSettings | None = None) -> WorksheetSchema:
    """
    Validate a raw schema and return the typed model.

    Legacy formulation schemas are accepted here only when
    ``reject_legacy_layouts`` is off; migrate them first otherwise.

    Raises:
        SchemaValidationError: If validation fails.
    """
    ensure_valid(schema, settings)
    try:
        return WorksheetSchema.model_validate(schema)
    except ValidationError as exc:
        raise SchemaValidationError(describe_validation_error(exc)) from exc
