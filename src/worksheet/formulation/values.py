"""
Response values of formulation fields.

A formulation answer is keyed by node, then by node field:
``{"nodes": {node_id: {field_id: value}}}``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..core.schema import FormulationField
from ..core.typing import JsonDict

__all__ = ["empty_formulation_value", "node_answer"]


def empty_formulation_value(field: FormulationField) -> JsonDict:
    """
    Answer skeleton with every node field set to the empty string.

    Examples:
        >>> from worksheet.formulation.templates import template_field
        >>> value = empty_formulation_value(template_field("tpl-panic-cycle"))
        >>> value["nodes"]["cycle-0"]
        {'text': ''}
    """
    return {"nodes": {node.id: {f.id: "" for f in node.fields} for node in field.nodes}}


def node_answer(value: Any, node_id: str, field_id: str) -> Any:
    """Read one node field from a stored answer; missing pieces read as ""."""
    if not isinstance(value, Mapping):
        return ""
    nodes = value.get("nodes")
    if not isinstance(nodes, Mapping):
        return ""
    node = nodes.get(node_id)
    if not isinstance(node, Mapping):
        return ""
    answer = node.get(field_id)
    return "" if answer is None else answer
