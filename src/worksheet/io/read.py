"""
Read utilities for schema and response documents.

Overview
- read_document(): decode one JSON document from a path.
- read_schema(): decode a schema object, migrating legacy formulation layouts
  when the settings ask for it.
- read_values(): decode a response values object (field id → value).

Import DAG discipline
- Depends on stdlib, worksheet.core.serde, worksheet.formulation.migrate and
  worksheet.io helpers; does not import the CLI.

Notes
- Every failure to obtain a usable document surfaces as DocumentError.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..core.serde import json_loads
from ..core.typing import JsonDict
from ..formulation.migrate import migrate_with_report
from .config import EngineSettings
from .errors import DocumentError

__all__ = ["read_document", "read_schema", "read_values"]

logger = logging.getLogger(__name__)


def read_document(path: str | os.PathLike[str]) -> Any:
    """
    Read and decode one JSON document.

    Raises:
        DocumentError: If the file cannot be read or is not valid JSON.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentError(f"cannot read {str(p)!r}: {exc.strerror or exc}", str(p)) from exc
    try:
        return json_loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentError(
            f"{str(p)!r} is not valid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}",
            str(p),
        ) from exc


def _read_object(path: str | os.PathLike[str], what: str) -> JsonDict:
    doc = read_document(path)
    if not isinstance(doc, dict):
        raise DocumentError(f"{what} document {str(path)!r} must be a JSON object", str(path))
    return doc


def read_schema(
    path: str | os.PathLike[str], settings: EngineSettings | None = None
) -> JsonDict:
    """
    Read a raw schema document.

    Args:
        path: JSON file holding one schema object.
        settings: When ``auto_migrate`` is on (the default), legacy formulation
            schemas are migrated before being returned.

    Returns:
        JsonDict: The schema mapping. It has not been validated.

    Raises:
        DocumentError: If the file is unreadable or does not hold a JSON object.
    """
    settings = settings or EngineSettings()
    schema = _read_object(path, "schema")
    if settings.auto_migrate:
        schema, report = migrate_with_report(schema)
        if report.migrated:
            logger.info("%s: migrated legacy layout %s", path, report.source_layout.value)
    return schema


def read_values(path: str | os.PathLike[str]) -> JsonDict:
    """
    Read a response values document (field id → value).

    Raises:
        DocumentError: If the file is unreadable or does not hold a JSON object.
    """
    return _read_object(path, "values")
