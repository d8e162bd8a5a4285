"""
Core exception types raised by grammar parsing, field classification, and schema checks.

Provides typed exceptions for core-domain failures:
- GrammarError for unknown or malformed enum-like tags.
- SchemaError for structural constraints and cross-field combination rules.
- FieldTypeError when a raw field object does not classify as a known variant.
- SchemaValidationError when a whole schema is rejected by the validator.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - The validator and the computation engine never raise these to their callers
      by default; they return typed results. The raising twins (``parse_field``,
      ``ensure_valid``) use these classes.

Examples:
    >>> from worksheet.core.errors import SchemaValidationError
    >>> try:
    ...     raise SchemaValidationError("Duplicate field id 'mood'")
    ... except SchemaValidationError as e:
    ...     msg = str(e)
    >>> "mood" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "SchemaError",
    "GrammarError",
    "FieldTypeError",
    "SchemaValidationError",
]


class SchemaError(ValueError):
    """Schema-level validation failure (shape, constraints, cross-field rules)."""


class GrammarError(ValueError):
    """Unknown or malformed enum-like tag (field type, layout, operation, ...)."""


class FieldTypeError(SchemaError):
    """A raw field object is not one of the recognized variants or breaks its contract."""

    def __init__(self, reason: str, field_type: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.field_type = field_type


class SchemaValidationError(SchemaError):
    """A worksheet schema was rejected; ``str(exc)`` is the human-readable reason."""
