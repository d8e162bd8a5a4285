"""
Legacy formulation migration.

Before formulations were a field type, three schema-level layouts drew a
diagram out of ordinary sections. This module converts such a schema into the
current shape: the diagram-bearing sections become nodes of one synthetic
``formulation`` field, appended in a new section after the sections that were
left alone.

| legacy ``layout``             | formulation layout | nodes from                         |
|-------------------------------|--------------------|------------------------------------|
| formulation_cross_sectional   | cross_sectional    | sections with a five-areas domain  |
| formulation_vicious_flower    | radial             | ``centre`` + ``petals`` items      |
| formulation_longitudinal      | vertical_flow      | every section with fields          |

Notes:
    - Works on raw JSON mappings; the input is never mutated and everything
      copied into the output is a deep copy.
    - Deterministic: the same input always yields an equal output, with keys in
      the same order, so canonical JSON of the result is byte-stable.
    - A schema without a legacy formulation tag comes back unchanged (as a
      copy), which makes ``migrate`` idempotent.
    - There is no failure state. A schema missing the expected sections simply
      yields fewer nodes; that case is logged at WARNING for human review.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from ..core.colours import CENTRE_COLOUR, domain_colour, highlight_colour
from ..core.constants import FORMULATION_FIELD_ID, FORMULATION_SECTION_ID
from ..core.grammar import (
    LEGACY_LAYOUT_TARGETS,
    DomainType,
    FormulationLayout,
    SchemaLayout,
    legacy_layout_from_value,
)
from ..core.layouts import (
    FIVE_AREAS_EDGES,
    chain_connections,
    connection,
    default_connections,
    prune_connections,
)
from ..core.typing import JsonDict

__all__ = [
    "CROSS_SECTIONAL_SLOT_MAP",
    "FORMULATION_TITLES",
    "MigrationReport",
    "is_legacy_formulation",
    "migrate",
    "migrate_with_report",
]

logger = logging.getLogger(__name__)

CROSS_SECTIONAL_SLOT_MAP: Final[dict[str, str]] = {
    DomainType.SITUATION.value: "top",
    DomainType.THOUGHTS.value: "left",
    DomainType.EMOTIONS.value: "centre",
    DomainType.PHYSICAL.value: "right",
    DomainType.BEHAVIOUR.value: "bottom",
}

FORMULATION_TITLES: Final[dict[FormulationLayout, str]] = {
    FormulationLayout.CROSS_SECTIONAL: "Cross-Sectional Formulation",
    FormulationLayout.RADIAL: "Vicious Flower Formulation",
    FormulationLayout.VERTICAL_FLOW: "Longitudinal Formulation",
}

_CENTRE_ID: Final[str] = "centre"
_PETALS_ID: Final[str] = "petals"

_SLOT_DOMAINS: Final[dict[str, str]] = {slot: domain for domain, slot in CROSS_SECTIONAL_SLOT_MAP.items()}


@dataclass(frozen=True)
class MigrationReport:
    """
    What a migration did.

    Attributes:
        source_layout (SchemaLayout | None): Legacy tag found on the input.
        layout (FormulationLayout | None): Layout of the synthetic field, or None
            when nothing was migrated.
        node_ids (tuple[str, ...]): Nodes created, in order.
        connection_count (int): Connections emitted.
        pruned_connections (int): Default connections dropped for a missing endpoint.
        untouched_sections (tuple[str, ...]): Ids of sections carried over as-is.
    """

    source_layout: SchemaLayout | None = None
    layout: FormulationLayout | None = None
    node_ids: tuple[str, ...] = ()
    connection_count: int = 0
    pruned_connections: int = 0
    untouched_sections: tuple[str, ...] = ()

    @property
    def migrated(self) -> bool:
        return self.layout is not None


def is_legacy_formulation(schema: Mapping[str, Any]) -> bool:
    """True when ``schema["layout"]`` is one of the three migratable tags."""
    tag = legacy_layout_from_value(_str(schema.get("layout")))
    return tag in LEGACY_LAYOUT_TARGETS


# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------


def _str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _text(value: Any) -> str:
    """Falsy-to-empty string, mirroring ``value || ''``."""
    return value if isinstance(value, str) and value else ""


def _fields(section: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    raw = section.get("fields")
    if not isinstance(raw, list):
        return []
    return [f for f in raw if isinstance(f, Mapping)]


def _node_field(field: Mapping[str, Any], field_id: str | None = None) -> JsonDict:
    return {
        "id": field_id if field_id is not None else field.get("id"),
        "type": "textarea" if field.get("type") == "textarea" else "text",
        "label": _text(field.get("label")),
        "placeholder": _text(field.get("placeholder")),
    }


def _default_field(field_id: str, placeholder: str) -> list[JsonDict]:
    return [{"id": field_id, "type": "textarea", "placeholder": placeholder}]


def _node(
    node_id: str,
    slot: str,
    label: str,
    colour: str,
    fields: list[JsonDict],
    description: Any = None,
) -> JsonDict:
    node: JsonDict = {"id": node_id, "slot": slot, "label": label, "domain_colour": colour}
    if description is not None:
        node["description"] = copy.deepcopy(description)
    node["fields"] = fields
    return node


def _five_areas_edges() -> list[JsonDict]:
    """The nine five-areas edges with domain names as endpoints."""
    return [
        connection(_SLOT_DOMAINS[a], _SLOT_DOMAINS[b], direction=direction)
        for a, b, direction in FIVE_AREAS_EDGES
    ]


def _unique_id(base: str, taken: set[str]) -> str:
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


# ----------------------------------------------------------------------------
# Per-layout conversions: (nodes, connections, untouched sections, pruned count)
# ----------------------------------------------------------------------------

_Converted = tuple[list[JsonDict], list[JsonDict], list[Mapping[str, Any]], int]


def _cross_sectional(sections: Iterable[Mapping[str, Any]]) -> _Converted:
    nodes: list[JsonDict] = []
    others: list[Mapping[str, Any]] = []
    claimed: set[str] = set()
    for section in sections:
        domain = _str(section.get("domain"))
        slot = CROSS_SECTIONAL_SLOT_MAP.get(domain or "")
        if slot is None or slot in claimed:
            others.append(section)
            continue
        claimed.add(slot)
        section_id = str(section.get("id", ""))
        fields = [_node_field(f) for f in _fields(section)]
        title = _text(section.get("title")) or _text(section.get("label")) or domain or ""
        if not fields:
            heading = (_text(section.get("title")) or domain or "").lower()
            fields = _default_field(f"{section_id}_text", f"Enter {heading}…")
        nodes.append(
            _node(section_id, slot, title, domain_colour(domain), fields, section.get("description"))
        )
    # Edges name domains, not section ids; a node whose id is not its domain
    # name keeps no edges.
    edges = _five_areas_edges()
    connections = prune_connections((n["id"] for n in nodes), edges)
    return nodes, connections, others, len(edges) - len(connections)


def _radial(sections: Iterable[Mapping[str, Any]]) -> _Converted:
    nodes: list[JsonDict] = []
    others: list[Mapping[str, Any]] = []
    petal_count = 0
    for section in sections:
        section_id = section.get("id")
        items = section.get("default_items")
        if section_id == _CENTRE_ID:
            fields = [_node_field(f) for f in _fields(section)]
            if not fields:
                fields = _default_field("centre_text", "What is the main problem?")
            label = _text(section.get("title")) or "Central Problem"
            nodes.append(_node(_CENTRE_ID, _CENTRE_ID, label, CENTRE_COLOUR, fields))
        elif section_id == _PETALS_ID and isinstance(items, list):
            template = section.get("item_template")
            template_fields = template.get("fields") if isinstance(template, Mapping) else None
            for i, item in enumerate(items):
                item = item if isinstance(item, Mapping) else {}
                if isinstance(template_fields, list):
                    fields = [
                        _node_field(f, f"{f.get('id')}_{i}")
                        for f in template_fields
                        if isinstance(f, Mapping)
                    ]
                else:
                    fields = _default_field(
                        f"petal_content_{i}", "How does this maintain the problem?"
                    )
                nodes.append(
                    _node(
                        f"petal-{i}",
                        f"petal-{i}",
                        _text(item.get("petal_label")),
                        domain_colour(_str(item.get("domain"))),
                        fields,
                    )
                )
                petal_count += 1
        else:
            others.append(section)
    connections = default_connections(FormulationLayout.RADIAL, nodes)
    return nodes, connections, others, petal_count - len(connections)


def _highlight_colour(section: Mapping[str, Any]) -> str:
    return highlight_colour(_str(section.get("highlight")))


def _longitudinal(sections: Iterable[Mapping[str, Any]]) -> _Converted:
    nodes: list[JsonDict] = []
    others: list[Mapping[str, Any]] = []
    for section in sections:
        section_id = str(section.get("id", ""))
        label = _text(section.get("title")) or _text(section.get("label"))
        fields = [_node_field(f) for f in _fields(section)]
        if section.get("layout") == "four_quadrant":
            # Quadrants have no node identity of their own; flatten into one node.
            if not fields:
                fields = _default_field(f"{section_id}_text", f"Enter {label.lower()}…")
        elif not fields:
            others.append(section)
            continue
        nodes.append(
            _node(
                section_id,
                f"step-{len(nodes)}",
                label,
                _highlight_colour(section),
                fields,
                section.get("description"),
            )
        )
    return nodes, chain_connections(n["id"] for n in nodes), others, 0


_CONVERTERS: Final = {
    FormulationLayout.CROSS_SECTIONAL: _cross_sectional,
    FormulationLayout.RADIAL: _radial,
    FormulationLayout.VERTICAL_FLOW: _longitudinal,
}


# ----------------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------------


def migrate_with_report(schema: Mapping[str, Any]) -> tuple[JsonDict, MigrationReport]:
    """
    Migrate a legacy formulation schema and describe the result.

    Args:
        schema: Raw schema mapping (decoded JSON).

    Returns:
        tuple[JsonDict, MigrationReport]: The current-shape schema (a new object)
        and a report. For non-legacy input the schema is an unchanged deep copy
        and ``report.migrated`` is False.

    Examples:
        >>> legacy = {
        ...     "version": 1,
        ...     "layout": "formulation_vicious_flower",
        ...     "sections": [
        ...         {"id": "centre", "title": "Problem", "fields": [{"id": "p", "type": "textarea", "label": "P"}]},
        ...         {"id": "petals", "fields": [], "default_items": [
        ...             {"petal_label": "Avoidance", "domain": "behaviour"},
        ...             {"petal_label": "Worry", "domain": "thoughts"},
        ...         ]},
        ...     ],
        ... }
        >>> out, report = migrate_with_report(legacy)
        >>> report.node_ids, report.connection_count
        (('centre', 'petal-0', 'petal-1'), 2)
    """
    source = legacy_layout_from_value(_str(schema.get("layout")))
    target = LEGACY_LAYOUT_TARGETS.get(source) if source is not None else None
    if target is None:
        return copy.deepcopy(dict(schema)), MigrationReport(source_layout=source)

    sections = [s for s in schema.get("sections") or [] if isinstance(s, Mapping)]
    nodes, connections, others, pruned = _CONVERTERS[target](sections)

    untouched = [copy.deepcopy(dict(s)) for s in others]
    section_ids = {str(s.get("id")) for s in untouched}
    field_ids = {str(f.get("id")) for s in untouched for f in _fields(s)}
    formulation_section: JsonDict = {
        "id": _unique_id(FORMULATION_SECTION_ID, section_ids),
        "title": "Formulation",
        "fields": [
            {
                "id": _unique_id(FORMULATION_FIELD_ID, field_ids),
                "type": "formulation",
                "label": "Formulation",
                "layout": target.value,
                "formulation_config": {"title": FORMULATION_TITLES[target], "show_title": False},
                "nodes": nodes,
                "connections": connections,
            }
        ],
    }

    out: JsonDict = {}
    for key, value in schema.items():
        if key == "layout":
            continue
        out[key] = untouched + [formulation_section] if key == "sections" else copy.deepcopy(value)
    if "sections" not in out:
        out["sections"] = untouched + [formulation_section]

    report = MigrationReport(
        source_layout=source,
        layout=target,
        node_ids=tuple(str(n["id"]) for n in nodes),
        connection_count=len(connections),
        pruned_connections=pruned,
        untouched_sections=tuple(str(s.get("id")) for s in untouched),
    )
    logger.info(
        "migrated %s schema to %s: %d nodes, %d connections, %d sections untouched",
        source.value,
        target.value,
        len(nodes),
        len(connections),
        len(untouched),
    )
    if not nodes:
        logger.warning("migration of %s schema produced no nodes; review the source", source.value)
    if pruned:
        logger.warning(
            "migration of %s schema dropped %d default connection(s) with a missing endpoint",
            source.value,
            pruned,
        )
    return out, report


def migrate(schema: Mapping[str, Any]) -> JsonDict:
    """
    Upgrade a legacy formulation schema; other schemas come back unchanged.

    ``migrate(migrate(s)) == migrate(s)`` for every schema ``s``.
    """
    migrated, _ = migrate_with_report(schema)
    return migrated
