from __future__ import annotations

import pytest

from worksheet.core.grammar import FormulationLayout
from worksheet.core.layouts import (
    chain_connections,
    default_connections,
    get_layout,
    is_valid_slot,
    prune_connections,
    slot_index,
)


def _nodes(*slots: str) -> list[dict[str, str]]:
    return [{"id": f"n-{slot}", "slot": slot} for slot in slots]


def _pairs(connections: list[dict[str, object]]) -> list[tuple[object, object]]:
    return [(c["from"], c["to"]) for c in connections]


@pytest.mark.parametrize(
    "layout, slot, ok",
    [
        ("cross_sectional", "top", True),
        ("cross_sectional", "middle", False),
        ("radial", "centre", True),
        ("radial", "petal-12", True),
        ("radial", "petal-01", False),
        ("vertical_flow", "step-0", True),
        ("vertical_flow", "grid-3", True),
        ("cycle", "cycle-4", True),
        ("cycle", "step-0", False),
        ("three_systems", "centre", True),
        ("three_systems", "system-2", True),
        ("unknown", "top", False),
    ],
)
def test_is_valid_slot(layout: str, slot: str, ok: bool) -> None:
    assert is_valid_slot(layout, slot) is ok


def test_required_slots() -> None:
    assert get_layout("radial").required_slots == ("centre",)
    assert get_layout(FormulationLayout.THREE_SYSTEMS).required_slots == ("system-0", "system-1", "system-2")


def test_slot_index() -> None:
    assert slot_index("petal-3", "petal-") == 3
    assert slot_index("petal-3", "step-") is None


def test_five_areas_has_nine_edges() -> None:
    edges = default_connections("cross_sectional", _nodes("top", "left", "centre", "right", "bottom"))
    assert len(edges) == 9
    assert ("n-top", "n-left") in _pairs(edges)
    both = [c for c in edges if c["direction"] == "both"]
    assert len(both) == 3


def test_five_areas_drops_edges_for_missing_slots() -> None:
    edges = default_connections("cross_sectional", _nodes("top", "left", "bottom"))
    assert _pairs(edges) == [("n-top", "n-left"), ("n-left", "n-bottom")]


def test_radial_petals_point_at_centre() -> None:
    edges = default_connections("radial", _nodes("petal-1", "centre", "petal-0"))
    assert _pairs(edges) == [("n-petal-0", "n-centre"), ("n-petal-1", "n-centre")]
    assert all(c["direction"] == "both" for c in edges)
    assert default_connections("radial", _nodes("petal-0")) == []


def test_vertical_flow_chain_and_grid() -> None:
    edges = default_connections("vertical_flow", _nodes("step-0", "step-1", "grid-0", "grid-1"))
    assert _pairs(edges) == [
        ("n-step-0", "n-step-1"),
        ("n-step-1", "n-grid-0"),
        ("n-grid-0", "n-grid-1"),
    ]


def test_cycle_closes_ring() -> None:
    edges = default_connections("cycle", _nodes("cycle-0", "cycle-1", "cycle-2"))
    assert _pairs(edges) == [("n-cycle-0", "n-cycle-1"), ("n-cycle-1", "n-cycle-2"), ("n-cycle-2", "n-cycle-0")]


def test_three_systems_all_pairs() -> None:
    edges = default_connections("three_systems", _nodes("system-0", "system-1", "system-2", "centre"))
    assert len(edges) == 3
    assert all(c["direction"] == "both" for c in edges)


def test_chain_and_prune() -> None:
    assert _pairs(chain_connections(["a", "b", "c"])) == [("a", "b"), ("b", "c")]
    kept = prune_connections(["a", "b"], [{"from": "a", "to": "b"}, {"from": "b", "to": "z"}])
    assert kept == [{"from": "a", "to": "b"}]
