"""
worksheet.formulation — formulation templates, answers and legacy migration.

## Public API
- migrate / migrate_with_report — upgrade the three retired section-based
  formulation layouts into one ``formulation`` field.
- get_template / templates_by_layout / template_field — curated CBT models.
- empty_formulation_value — answer skeleton for a formulation field.

## Import DAG discipline
- Depends on stdlib, pydantic and worksheet.core.*.
- MUST NOT import worksheet.compute, worksheet.io or the CLI.
"""

from __future__ import annotations

from .migrate import MigrationReport, is_legacy_formulation, migrate, migrate_with_report
from .templates import (
    FORMULATION_TEMPLATES,
    FormulationTemplate,
    get_template,
    list_templates,
    template_field,
    templates_by_layout,
)
from .values import empty_formulation_value, node_answer

__all__ = [
    "MigrationReport",
    "is_legacy_formulation",
    "migrate",
    "migrate_with_report",
    "FORMULATION_TEMPLATES",
    "FormulationTemplate",
    "get_template",
    "list_templates",
    "template_field",
    "templates_by_layout",
    "empty_formulation_value",
    "node_answer",
]
