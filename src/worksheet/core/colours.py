"""
Domain-to-colour conventions for formulation nodes.

Two palettes are recognized:
- ``DOMAIN_COLOURS`` — the muted palette curated formulations and the legacy
  migrator use (situation/attention grey, thoughts blue, emotions red, physical
  green, behaviour purple, reassurance amber, core beliefs brown).
- ``GENERATOR_COLOURS`` — the saturated palette schema generators are asked to
  emit (situation slate ``#64748b``, ...).

A node's explicit ``domain_colour`` always wins; these tables provide the default
when it is absent and let a renderer recover the domain from a colour.
"""

from __future__ import annotations

from typing import Final

from .constants import FALLBACK_COLOUR
from .grammar import DomainType, Highlight

__all__ = [
    "DOMAIN_COLOURS",
    "GENERATOR_COLOURS",
    "HIGHLIGHT_COLOURS",
    "CENTRE_COLOUR",
    "domain_colour",
    "highlight_colour",
    "domain_for_colour",
]

DOMAIN_COLOURS: Final[dict[DomainType, str]] = {
    DomainType.SITUATION: "#8b8e94",
    DomainType.THOUGHTS: "#5b7fb5",
    DomainType.EMOTIONS: "#c46b6b",
    DomainType.PHYSICAL: "#6b9e7e",
    DomainType.BEHAVIOUR: "#8b7ab5",
    DomainType.REASSURANCE: "#d4a44a",
    DomainType.ATTENTION: "#8b8e94",
    DomainType.CORE_BELIEFS: "#a07850",
}

GENERATOR_COLOURS: Final[dict[DomainType, str]] = {
    DomainType.SITUATION: "#64748b",
    DomainType.THOUGHTS: "#2563eb",
    DomainType.EMOTIONS: "#dc2626",
    DomainType.PHYSICAL: "#16a34a",
    DomainType.BEHAVIOUR: "#9333ea",
}

# Legacy longitudinal highlight tags; anything else falls back to grey.
HIGHLIGHT_COLOURS: Final[dict[Highlight, str]] = {
    Highlight.AMBER: "#d4a44a",
    Highlight.RED_DASHED: "#c46b6b",
}

# Radial centre ("central problem") node.
CENTRE_COLOUR: Final[str] = "#d4a44a"


def domain_colour(domain: DomainType | str | None) -> str:
    """
    Return the default hex colour for a domain.

    Args:
        domain: DomainType member, its serialized value, or None.

    Returns:
        str: Palette colour, or the neutral fallback for absent/unknown domains.

    Examples:
        >>> domain_colour("thoughts")
        '#5b7fb5'
        >>> domain_colour(None)
        '#6b7280'
    """
    if domain is None:
        return FALLBACK_COLOUR
    if not isinstance(domain, DomainType):
        try:
            domain = DomainType(domain)
        except ValueError:
            return FALLBACK_COLOUR
    return DOMAIN_COLOURS.get(domain, FALLBACK_COLOUR)


def domain_for_colour(hex_colour: str) -> DomainType | None:
    """
    Recover the first domain whose palette colour matches ``hex_colour``.

    Both palettes are searched, muted first. Grey is shared by situation and
    attention; situation wins because it is listed first.
    """
    needle = (hex_colour or "").strip().lower()
    for palette in (DOMAIN_COLOURS, GENERATOR_COLOURS):
        for domain, colour in palette.items():
            if colour == needle:
                return domain
    return None


def highlight_colour(tag: Highlight | str | None) -> str:
    """
    Colour of a legacy longitudinal ``highlight`` tag; grey for absent or unknown tags.

    Examples:
        >>> highlight_colour("red_dashed")
        '#c46b6b'
        >>> highlight_colour("red")
        '#6b7280'
    """
    if tag is None:
        return FALLBACK_COLOUR
    if not isinstance(tag, Highlight):
        try:
            tag = Highlight(tag)
        except ValueError:
            return FALLBACK_COLOUR
    return HIGHLIGHT_COLOURS.get(tag, FALLBACK_COLOUR)
