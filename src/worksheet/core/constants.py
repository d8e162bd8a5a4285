"""
Worksheet engine defaults shared by the schema model, table data model, and migrator.

This module is zero-IO and uses only the Python standard library.

Notes:
    - Table row limits mirror what the form renderer applies when a table field
      omits ``min_rows`` / ``max_rows``.
    - The synthetic ids are what the legacy migrator names the section and field
      wrapping a converted formulation.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MIN_ROWS",
    "DEFAULT_MAX_ROWS",
    "COUNT_SUFFIX",
    "FALLBACK_COLOUR",
    "FORMULATION_SECTION_ID",
    "FORMULATION_FIELD_ID",
]

# Rows a table starts with when min_rows is omitted.
DEFAULT_MIN_ROWS: int = 1

# Upper bound on rows when max_rows is omitted.
DEFAULT_MAX_ROWS: int = 20

# Unit rendered after the number of filled rows by the ``count`` operation.
COUNT_SUFFIX: str = "items"

# Neutral grey for nodes without a recognizable domain or highlight.
FALLBACK_COLOUR: str = "#6b7280"

FORMULATION_SECTION_ID: str = "formulation-section"
FORMULATION_FIELD_ID: str = "main-formulation"
