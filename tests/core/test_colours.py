from worksheet.core.colours import (
    DOMAIN_COLOURS,
    HIGHLIGHT_COLOURS,
    domain_colour,
    domain_for_colour,
    highlight_colour,
)
from worksheet.core.grammar import DomainType, Highlight


def test_domain_colour_palette_and_fallback() -> None:
    assert domain_colour(DomainType.EMOTIONS) == "#c46b6b"
    assert domain_colour("core_beliefs") == "#a07850"
    assert domain_colour("unknown") == "#6b7280"
    assert domain_colour(None) == "#6b7280"
    assert set(DOMAIN_COLOURS) == set(DomainType)


def test_domain_for_colour_searches_both_palettes() -> None:
    assert domain_for_colour("#5B7FB5") is DomainType.THOUGHTS
    assert domain_for_colour("#64748b") is DomainType.SITUATION
    assert domain_for_colour("#8b8e94") is DomainType.SITUATION
    assert domain_for_colour("#000000") is None


def test_highlight_colour_keys_on_enum() -> None:
    assert set(HIGHLIGHT_COLOURS) == set(Highlight)
    assert highlight_colour(Highlight.AMBER) == "#d4a44a"
    assert highlight_colour("red_dashed") == "#c46b6b"
    assert highlight_colour("red") == "#6b7280"
    assert highlight_colour(None) == "#6b7280"
