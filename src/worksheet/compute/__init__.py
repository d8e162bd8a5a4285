"""
worksheet.compute — computed-field evaluation.

## Public API
- evaluate — render one computed field (``str | None``; never raises).
- evaluate_with_diagnostics — same, plus the table cells dropped from aggregates.
- evaluate_all — every computed field of a schema, keyed by field id.

## Import DAG discipline
- Depends on stdlib, polars (through worksheet.core.tables) and worksheet.core.*.
- MUST NOT import worksheet.formulation, worksheet.io or the CLI.
"""

from __future__ import annotations

from .engine import Evaluation, SkippedCell, evaluate, evaluate_all, evaluate_with_diagnostics

__all__ = [
    "Evaluation",
    "SkippedCell",
    "evaluate",
    "evaluate_all",
    "evaluate_with_diagnostics",
]
