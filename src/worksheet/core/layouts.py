"""
Formulation layout catalogue: slot naming conventions and default connection sets.

Each FormulationLayout positions nodes by ``slot``. This module is the single
vocabulary shared by the formulation field model (slot checks), the template
catalogue, the legacy migrator, and any renderer walking a formulation.

Slot conventions
----------------
| Layout          | Slots                                                    |
|-----------------|----------------------------------------------------------|
| cross_sectional | top, left, centre, right, bottom                         |
| radial          | centre, petal-0, petal-1, ...                            |
| vertical_flow   | step-0, step-1, ... and optional grid-0 .. grid-3        |
| cycle           | cycle-0, cycle-1, ...                                    |
| three_systems   | system-0 (apex), system-1, system-2, optional centre     |

Notes:
    - Connection helpers emit plain JSON mappings (``from``/``to``/``style``/
      ``direction``) so both raw-dict and model callers can use them.
    - ``prune_connections`` is the one place the "no dangling edges" invariant
      is enforced for generated connection sets.
    - Zero-IO; stdlib only.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from .grammar import ConnectionDirection, ConnectionStyle, FormulationLayout

__all__ = [
    "LayoutSpec",
    "LAYOUTS",
    "CROSS_SECTIONAL_SLOTS",
    "FIVE_AREAS_EDGES",
    "get_layout",
    "is_valid_slot",
    "slot_index",
    "connection",
    "chain_connections",
    "default_connections",
    "prune_connections",
]

_INDEXED_RE: Final[re.Pattern[str]] = re.compile(r"^([a-z]+-)(0|[1-9][0-9]*)$")


@dataclass(slots=True, frozen=True)
class LayoutSpec:
    """
    Slot vocabulary for one formulation layout.

    Attributes:
        layout (FormulationLayout): Layout this spec describes.
        fixed_slots (tuple[str, ...]): Named slots (positional order for fixed layouts).
        indexed_prefix (str | None): Prefix of open-ended indexed slots (``petal-``).
        grid_slots (int): Number of ``grid-N`` sub-grid slots accepted (vertical_flow only).
        required_slots (tuple[str, ...]): Slots a renderer expects to be filled.
    """

    layout: FormulationLayout
    fixed_slots: tuple[str, ...] = ()
    indexed_prefix: str | None = None
    grid_slots: int = 0
    required_slots: tuple[str, ...] = ()

    def accepts(self, slot: str) -> bool:
        if slot in self.fixed_slots:
            return True
        match = _INDEXED_RE.match(slot or "")
        if match is None:
            return False
        prefix, index = match.group(1), int(match.group(2))
        if self.indexed_prefix is not None and prefix == self.indexed_prefix:
            return True
        return prefix == "grid-" and index < self.grid_slots


CROSS_SECTIONAL_SLOTS: Final[tuple[str, ...]] = ("top", "left", "centre", "right", "bottom")

LAYOUTS: Final[dict[FormulationLayout, LayoutSpec]] = {
    FormulationLayout.CROSS_SECTIONAL: LayoutSpec(
        layout=FormulationLayout.CROSS_SECTIONAL,
        fixed_slots=CROSS_SECTIONAL_SLOTS,
    ),
    FormulationLayout.RADIAL: LayoutSpec(
        layout=FormulationLayout.RADIAL,
        fixed_slots=("centre",),
        indexed_prefix="petal-",
        required_slots=("centre",),
    ),
    FormulationLayout.VERTICAL_FLOW: LayoutSpec(
        layout=FormulationLayout.VERTICAL_FLOW,
        indexed_prefix="step-",
        grid_slots=4,
    ),
    FormulationLayout.CYCLE: LayoutSpec(
        layout=FormulationLayout.CYCLE,
        indexed_prefix="cycle-",
    ),
    FormulationLayout.THREE_SYSTEMS: LayoutSpec(
        layout=FormulationLayout.THREE_SYSTEMS,
        fixed_slots=("system-0", "system-1", "system-2", "centre"),
        required_slots=("system-0", "system-1", "system-2"),
    ),
}

# Five areas model, in slot terms: trigger feeds the middle three, the middle three
# interact, and all three drive behaviour.
FIVE_AREAS_EDGES: Final[tuple[tuple[str, str, ConnectionDirection], ...]] = (
    ("top", "left", ConnectionDirection.ONE_WAY),
    ("top", "centre", ConnectionDirection.ONE_WAY),
    ("top", "right", ConnectionDirection.ONE_WAY),
    ("left", "centre", ConnectionDirection.BOTH),
    ("left", "right", ConnectionDirection.BOTH),
    ("centre", "right", ConnectionDirection.BOTH),
    ("left", "bottom", ConnectionDirection.ONE_WAY),
    ("centre", "bottom", ConnectionDirection.ONE_WAY),
    ("right", "bottom", ConnectionDirection.ONE_WAY),
)

_GRID_EDGES: Final[tuple[tuple[int, int], ...]] = ((0, 1), (0, 2), (1, 3), (2, 3))


def get_layout(layout: FormulationLayout | str) -> LayoutSpec:
    """
    Look up the LayoutSpec for a layout enum or its serialized value.

    Raises:
        ValueError: If the layout is unknown.
    """
    return LAYOUTS[FormulationLayout(layout)]


def is_valid_slot(layout: FormulationLayout | str, slot: str) -> bool:
    """
    Check a slot name against a layout's naming convention.

    Examples:
        >>> is_valid_slot("radial", "petal-3")
        True
        >>> is_valid_slot("cross_sectional", "petal-3")
        False
        >>> is_valid_slot("vertical_flow", "grid-4")
        False
    """
    try:
        spec = get_layout(layout)
    except ValueError:
        return False
    return spec.accepts(slot)


def slot_index(slot: str, prefix: str) -> int | None:
    """Return N for ``<prefix>N`` slots, else None."""
    match = _INDEXED_RE.match(slot or "")
    if match is None or match.group(1) != prefix:
        return None
    return int(match.group(2))


def connection(
    source: str,
    target: str,
    *,
    direction: ConnectionDirection = ConnectionDirection.ONE_WAY,
    style: ConnectionStyle = ConnectionStyle.ARROW,
    label: str | None = None,
) -> dict[str, Any]:
    """Build one connection mapping in wire key order."""
    out: dict[str, Any] = {
        "from": source,
        "to": target,
        "style": style.value,
        "direction": direction.value,
    }
    if label:
        out["label"] = label
    return out


def chain_connections(node_ids: Iterable[str]) -> list[dict[str, Any]]:
    """One-way arrows between consecutive ids: ``a → b → c``."""
    ids = list(node_ids)
    return [connection(a, b) for a, b in zip(ids, ids[1:])]


def _id_and_slot(node: Any) -> tuple[str, str]:
    if isinstance(node, Mapping):
        return str(node.get("id", "")), str(node.get("slot", ""))
    return str(node.id), str(node.slot)


def _indexed(pairs: list[tuple[str, str]], prefix: str) -> list[str]:
    ranked = [(slot_index(slot, prefix), node_id) for node_id, slot in pairs]
    return [node_id for index, node_id in sorted((r for r in ranked if r[0] is not None))]


def default_connections(
    layout: FormulationLayout | str, nodes: Iterable[Any]
) -> list[dict[str, Any]]:
    """
    Build the canonical connection set for ``nodes`` placed under ``layout``.

    Args:
        layout: Formulation layout.
        nodes: Node models or mappings carrying ``id`` and ``slot``.

    Returns:
        list[dict[str, Any]]: Connections between existing node ids only.

    Notes:
        - cross_sectional: the nine five-areas edges, resolved slot → node id.
        - radial: every petal ↔ centre (bidirectional).
        - vertical_flow: step chain in index order; sub-grid cells adjacent in
          the 2×2 grid are bidirectional and the last step feeds the first cell.
        - cycle: ring in index order, last → first.
        - three_systems: every pair of systems bidirectional.
    """
    kind = FormulationLayout(layout)
    pairs = [_id_and_slot(n) for n in nodes]
    by_slot: dict[str, str] = {}
    for node_id, slot in pairs:
        by_slot.setdefault(slot, node_id)

    out: list[dict[str, Any]] = []
    if kind is FormulationLayout.CROSS_SECTIONAL:
        for a, b, direction in FIVE_AREAS_EDGES:
            if a in by_slot and b in by_slot:
                out.append(connection(by_slot[a], by_slot[b], direction=direction))
    elif kind is FormulationLayout.RADIAL:
        centre = by_slot.get("centre")
        if centre is not None:
            for petal in _indexed(pairs, "petal-"):
                out.append(connection(petal, centre, direction=ConnectionDirection.BOTH))
    elif kind is FormulationLayout.VERTICAL_FLOW:
        steps = _indexed(pairs, "step-")
        out.extend(chain_connections(steps))
        grid = {slot_index(slot, "grid-"): node_id for node_id, slot in pairs}
        grid.pop(None, None)
        if steps and grid:
            out.append(connection(steps[-1], grid[min(grid)]))
        for a, b in _GRID_EDGES:
            if a in grid and b in grid:
                out.append(connection(grid[a], grid[b], direction=ConnectionDirection.BOTH))
    elif kind is FormulationLayout.CYCLE:
        ring = _indexed(pairs, "cycle-")
        out.extend(chain_connections(ring))
        if len(ring) > 2:
            out.append(connection(ring[-1], ring[0]))
    elif kind is FormulationLayout.THREE_SYSTEMS:
        for a, b in (("system-0", "system-1"), ("system-1", "system-2"), ("system-0", "system-2")):
            if a in by_slot and b in by_slot:
                out.append(
                    connection(by_slot[a], by_slot[b], direction=ConnectionDirection.BOTH)
                )
    return out


def prune_connections(
    node_ids: Iterable[str], connections: Iterable[Mapping[str, Any]]
) -> list[dict[str, Any]]:
    """
    Keep only connections whose ``from`` and ``to`` both name an existing node.

    Examples:
        >>> prune_connections(["a", "b"], [{"from": "a", "to": "b"}, {"from": "a", "to": "x"}])
        [{'from': 'a', 'to': 'b'}]
    """
    known = set(node_ids)
    return [dict(c) for c in connections if c.get("from") in known and c.get("to") in known]
