"""
Core package aggregator for worksheet contracts (grammar, schemas, tables, layouts, hashing/serde).

## Contracts (single source of truth)
- Grammar — enums, EBNF, tag parsing helpers, field reference syntax.
- Schemas — pydantic models for fields, sections, formulations and whole schemas.
- Tables — row helpers and lenient numeric extraction for table responses.
- Layouts — formulation slot conventions and default connection sets.
- Colours — domain palettes shared by templates, the migrator and renderers.
- Hashing/Serde — canonical JSON utilities.

## Notes
- Zero‑IO policy: no file or network IO. Dependencies are stdlib, pydantic, and
  polars (tables only).
- Naming policy: enum `.value` tags are lower_snake.
- Sections are a tagged union: `PlainSection | BranchSection`.

## Downstream usage
- worksheet.compute — evaluates `ComputedField` models against response values.
- worksheet.formulation — builds formulation fields from templates and legacy schemas.
- worksheet.io — validates raw documents and parses them into `WorksheetSchema`.

## Examples
```python
from worksheet.core.grammar import FieldType, field_type_from_value
field_type_from_value("table") == FieldType.TABLE  # True

from worksheet.core.schema import classify
classify({"id": "x", "type": "slider", "label": "X"}).reason
# "unsupported field type 'slider'; allowed types: text, textarea, ..."
```
"""
