"""
worksheet.io — settings, document loading and schema validation.

## Responsibilities
- Load engine settings with precedence env > TOML > defaults.
- Read schema and response documents from JSON files, migrating legacy
  formulation schemas on the way in when configured to.
- Validate raw schemas before they are stored or rendered.

## Public API
- EngineSettings — policy switches for the validator and the CLI.
- read_schema / read_values / read_document — JSON document loading.
- validate / ensure_valid / parse_schema — schema acceptance.

## Import DAG discipline
- Depends on stdlib, pydantic, worksheet.core.* and worksheet.formulation.migrate.
- MUST NOT import the CLI.
"""

from __future__ import annotations

from .config import EngineSettings
from .errors import DocumentError, IoConfigError, IoError
from .read import read_document, read_schema, read_values
from .validate import ValidationResult, ensure_valid, parse_schema, validate

__all__ = [
    "EngineSettings",
    "DocumentError",
    "IoConfigError",
    "IoError",
    "read_document",
    "read_schema",
    "read_values",
    "ValidationResult",
    "ensure_valid",
    "parse_schema",
    "validate",
]
