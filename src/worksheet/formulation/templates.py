"""
Curated clinical formulation templates.

A template is a ready-made node/connection set for a published CBT model. A
clinician picks one, the builder pre-populates a ``formulation`` field from it,
and the clinician edits from there. Templates are plain data; instantiating one
goes through the FormulationField model so every template is checked against
the same slot and connection rules as authored fields.

Notes:
    - Every node carries one ``text`` textarea with an example placeholder.
    - Dashed arrows mark maintaining loops and carry a short label
      ("maintains", "reinforces", ...).
    - The CFT threat → soothing edge is drawn dashed and labelled "inhibits".

References:
    - layouts: src/worksheet/core/layouts.py
    - model: src/worksheet/core/schema.py (FormulationField)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Final

from ..core.constants import FORMULATION_FIELD_ID
from ..core.grammar import ConnectionDirection, ConnectionStyle, FormulationLayout
from ..core.layouts import (
    CROSS_SECTIONAL_SLOTS,
    chain_connections,
    connection,
    default_connections,
)
from ..core.schema import FormulationField

__all__ = [
    "FormulationTemplate",
    "FORMULATION_TEMPLATES",
    "list_templates",
    "get_template",
    "templates_by_layout",
    "template_field",
]

_BOTH = ConnectionDirection.BOTH
_DASHED = ConnectionStyle.ARROW_DASHED


@dataclass(frozen=True)
class FormulationTemplate:
    """
    One curated formulation.

    Attributes:
        id (str): Stable template id (``tpl-...``).
        name (str): Display name.
        description (str): One-line summary.
        source (str): Author(s) of the clinical model.
        layout (FormulationLayout): Layout the nodes are placed in.
        tags (tuple[str, ...]): Search tags.
        nodes (tuple[dict[str, Any], ...]): Node mappings in wire shape.
        connections (tuple[dict[str, Any], ...]): Connection mappings in wire shape.
    """

    id: str
    name: str
    description: str
    source: str
    layout: FormulationLayout
    tags: tuple[str, ...]
    nodes: tuple[dict[str, Any], ...]
    connections: tuple[dict[str, Any], ...]

    def to_field(
        self, field_id: str = FORMULATION_FIELD_ID, label: str = "Formulation"
    ) -> FormulationField:
        """Instantiate a validated formulation field from this template."""
        return FormulationField.model_validate(
            {
                "id": field_id,
                "type": "formulation",
                "label": label,
                "layout": self.layout.value,
                "formulation_config": {"title": self.name, "show_title": True},
                "nodes": copy.deepcopy(list(self.nodes)),
                "connections": copy.deepcopy(list(self.connections)),
            }
        )


def _node(
    node_id: str,
    slot: str,
    label: str,
    colour: str,
    placeholder: str,
    description: str | None = None,
) -> dict[str, Any]:
    out: dict[str, Any] = {"id": node_id, "slot": slot, "label": label, "domain_colour": colour}
    if description:
        out["description"] = description
    out["fields"] = [{"id": "text", "type": "textarea", "placeholder": placeholder}]
    return out


def _loop(source: str, target: str, label: str) -> dict[str, Any]:
    return connection(source, target, style=_DASHED, label=label)


def _indexed(prefix: str, specs: list[tuple[str, str, str]]) -> tuple[dict[str, Any], ...]:
    return tuple(
        _node(f"{prefix}{i}", f"{prefix}{i}", label, colour, placeholder)
        for i, (label, colour, placeholder) in enumerate(specs)
    )


def _ids(prefix: str, n: int) -> list[str]:
    return [f"{prefix}{i}" for i in range(n)]


def _cross_sectional(
    template_id: str,
    name: str,
    description: str,
    source: str,
    tags: tuple[str, ...],
    nodes: list[tuple[str, str, str, str]],
    loop: str | None = "maintains",
) -> FormulationTemplate:
    """Five-areas shaped template; ``nodes`` are (id, label, colour, placeholder) top→bottom."""
    built = tuple(
        _node(node_id, slot, label, colour, placeholder)
        for slot, (node_id, label, colour, placeholder) in zip(CROSS_SECTIONAL_SLOTS, nodes)
    )
    ids = [n["id"] for n in built]
    edges = default_connections(FormulationLayout.CROSS_SECTIONAL, built)
    if loop:
        edges.append(_loop(ids[4], ids[0], loop))
    return FormulationTemplate(
        id=template_id,
        name=name,
        description=description,
        source=source,
        layout=FormulationLayout.CROSS_SECTIONAL,
        tags=tags,
        nodes=built,
        connections=tuple(edges),
    )


def _sequence(
    template_id: str,
    name: str,
    description: str,
    source: str,
    layout: FormulationLayout,
    tags: tuple[str, ...],
    specs: list[tuple[str, str, str]],
    loops: list[tuple[int, int, str]],
) -> FormulationTemplate:
    """Step or cycle shaped template: a one-way chain plus labelled dashed loops."""
    prefix = "cycle-" if layout is FormulationLayout.CYCLE else "step-"
    ids = _ids(prefix, len(specs))
    edges = chain_connections(ids) + [_loop(ids[a], ids[b], label) for a, b, label in loops]
    return FormulationTemplate(
        id=template_id,
        name=name,
        description=description,
        source=source,
        layout=layout,
        tags=tags,
        nodes=_indexed(prefix, specs),
        connections=tuple(edges),
    )


_GREY, _BLUE, _RED, _GREEN, _PURPLE, _AMBER, _BROWN = (
    "#8b8e94",
    "#5b7fb5",
    "#c46b6b",
    "#6b9e7e",
    "#8b7ab5",
    "#d4a44a",
    "#a07850",
)


_GENERIC_FIVE_AREAS = _cross_sectional(
    "tpl-five-areas",
    "Generic Five Areas",
    "Standard CBT five areas model with bidirectional relationships",
    "Generic CBT",
    ("CBT", "five areas", "generic"),
    [
        ("trigger", "Situation / Trigger", _GREY, "e.g. Noticed heart racing while sitting at desk"),
        ("thoughts", "Thoughts", _BLUE, "e.g. \"I'm having a heart attack\""),
        ("emotions", "Emotions", _RED, "e.g. Anxious, scared"),
        ("physical", "Physical Sensations", _GREEN, "e.g. Heart pounding, sweating, dizziness"),
        ("behaviour", "Behaviour", _PURPLE, "e.g. Left the room, called 999"),
    ],
    loop=None,
)

_HEALTH_ANXIETY = _cross_sectional(
    "tpl-health-anxiety",
    "Health Anxiety Maintenance",
    "Salkovskis & Warwick health anxiety maintenance model",
    "Salkovskis & Warwick",
    ("CBT", "health anxiety", "maintenance"),
    [
        ("trigger", "Trigger", _GREY, "e.g. Noticed a headache, read about brain tumours online"),
        ("interpretations", "Misinterpretations", _BLUE, "e.g. \"This headache must be a brain tumour\""),
        ("anxiety", "Anxiety", _RED, "e.g. Intense health anxiety, dread"),
        ("body", "Body Scanning / Sensations", _GREEN,
         "e.g. Heightened awareness of headache, checking body for symptoms"),
        ("safety", "Safety Behaviours", _PURPLE,
         "e.g. Googling symptoms, seeking reassurance from GP, avoiding exercise"),
    ],
)

_PANIC_CYCLE = _sequence(
    "tpl-panic-cycle",
    "Panic Maintenance Cycle",
    "Clark (1986) catastrophic misinterpretation cycle",
    "Clark (1986)",
    FormulationLayout.CYCLE,
    ("CBT", "panic", "cycle", "maintenance"),
    [
        ("Trigger", _GREY, "e.g. Internal sensation or external situation"),
        ("Catastrophic Misinterpretation", _BLUE,
         "e.g. \"I'm having a heart attack\", \"I'm going to faint\""),
        ("Anxiety / Panic", _RED, "e.g. Intense fear, sense of impending doom"),
        ("Safety Behaviour", _PURPLE, "e.g. Escape, sit down, call for help, avoid triggers"),
    ],
    [(3, 0, "maintains")],
)

_SOCIAL_ANXIETY = _cross_sectional(
    "tpl-social-anxiety",
    "Social Anxiety Maintenance",
    "Clark & Wells social anxiety maintenance model",
    "Clark & Wells",
    ("CBT", "social anxiety", "maintenance"),
    [
        ("trigger", "Social Situation", _GREY, "e.g. Meeting new people at a party"),
        ("predictions", "Negative Predictions", _BLUE,
         "e.g. \"They'll think I'm boring\", \"I'll say something stupid\""),
        ("anxiety", "Anxiety", _RED, "e.g. Anxious, embarrassed, self-conscious"),
        ("attention", "Self-Focused Attention", _GREEN,
         "e.g. Monitoring voice, face, hands for signs of anxiety"),
        ("safety", "Safety / Avoidance Behaviours", _PURPLE,
         "e.g. Avoiding eye contact, rehearsing sentences, leaving early"),
    ],
)

_GAD_METACOGNITIVE = _sequence(
    "tpl-gad-metacognitive",
    "GAD Metacognitive Model",
    "Wells (1995) metacognitive model of generalised anxiety",
    "Wells (1995)",
    FormulationLayout.VERTICAL_FLOW,
    ("CBT", "GAD", "metacognitive", "worry"),
    [
        ("Trigger", _GREY, "e.g. News report about job losses"),
        ("Type 1 Worry", _BLUE, "e.g. \"What if I lose my job?\", \"What if we can't pay rent?\""),
        ("Meta-Belief Activation", _BROWN,
         "e.g. \"Worrying is uncontrollable\", \"Worrying will make me go crazy\""),
        ("Type 2 Worry (Meta-Worry)", _RED,
         "e.g. \"I can't stop worrying\", \"This worrying will harm me\""),
        ("Behavioural Response", _PURPLE, "e.g. Thought suppression, reassurance seeking, avoidance"),
    ],
    [(4, 1, "maintains")],
)

_PTSD_EHLERS_CLARK = _sequence(
    "tpl-ptsd-ehlers-clark",
    "PTSD Cognitive Model",
    "Ehlers & Clark (2000) cognitive model of PTSD",
    "Ehlers & Clark (2000)",
    FormulationLayout.VERTICAL_FLOW,
    ("CBT", "PTSD", "trauma", "cognitive"),
    [
        ("Trauma Memory", _GREY, "e.g. Fragmented, disorganised memory of the traumatic event"),
        ("Negative Appraisals", _BLUE,
         "e.g. \"I'm permanently damaged\", \"Nowhere is safe\", \"It was my fault\""),
        ("Current Sense of Threat", _RED, "e.g. Intrusions, flashbacks, nightmares, hyperarousal"),
        ("Emotional Responses", "#b87090", "e.g. Fear, shame, guilt, anger, sadness"),
        ("Coping Strategies", _PURPLE,
         "e.g. Avoidance, rumination, substance use, thought suppression"),
    ],
    [(4, 0, "maintains"), (4, 1, "prevents change")],
)

_OCD_MAINTENANCE = _sequence(
    "tpl-ocd-maintenance",
    "OCD Maintenance Cycle",
    "Salkovskis (1985) OCD maintenance model",
    "Salkovskis (1985)",
    FormulationLayout.CYCLE,
    ("CBT", "OCD", "cycle", "maintenance"),
    [
        ("Intrusive Thought / Image", _GREY, "e.g. \"What if I left the door unlocked?\""),
        ("Appraisal / Meaning", _BLUE, "e.g. \"Having this thought means I'm irresponsible\""),
        ("Distress / Anxiety", _RED, "e.g. Intense anxiety, guilt, sense of responsibility"),
        ("Compulsion / Neutralising", _PURPLE, "e.g. Checking door 5 times, seeking reassurance"),
        ("Temporary Relief", _GREEN, "e.g. Brief reduction in anxiety, \"feels right\""),
    ],
    [(4, 0, "reinforces")],
)

_DEPRESSION_MAINTENANCE = _cross_sectional(
    "tpl-depression-maintenance",
    "Depression Maintenance",
    "Beck cognitive model of depression maintenance",
    "Beck",
    ("CBT", "depression", "maintenance"),
    [
        ("trigger", "Life Events / Trigger", _GREY,
         "e.g. Argument with partner, being passed over for promotion"),
        ("thoughts", "Negative Automatic Thoughts", _BLUE,
         "e.g. \"I'm useless\", \"Nothing will ever change\", \"Nobody cares\""),
        ("mood", "Low Mood", _RED, "e.g. Sad, hopeless, empty, irritable"),
        ("physical", "Physical Symptoms", _GREEN, "e.g. Poor sleep, low energy, appetite changes, aches"),
        ("behaviour", "Withdrawal / Inactivity", _PURPLE,
         "e.g. Staying in bed, cancelling plans, stopped exercising"),
    ],
)

_CBT_E = _sequence(
    "tpl-cbt-e",
    "CBT-E Formulation",
    "Fairburn CBT-E model for eating disorders",
    "Fairburn",
    FormulationLayout.VERTICAL_FLOW,
    ("CBT-E", "eating disorders", "maintenance"),
    [
        ("Core Low Self-Esteem", _BROWN, "e.g. \"I'm not good enough\", \"I'm worthless\""),
        ("Over-Evaluation of Shape & Weight", _BLUE,
         "e.g. \"My worth depends on my weight\", \"I must be thin to be accepted\""),
        ("Dietary Restraint / Restriction", _RED,
         "e.g. Rigid food rules, calorie counting, skipping meals"),
        ("Binge Eating", _PURPLE, "e.g. Loss of control eating episodes triggered by restriction"),
        ("Compensatory Behaviours", _GREEN, "e.g. Purging, excessive exercise, laxative use"),
    ],
    [(4, 1, "reinforces")],
)

_CFT_THREE_SYSTEMS = FormulationTemplate(
    id="tpl-cft-three-systems",
    name="CFT Three Systems",
    description="Gilbert compassion-focused therapy emotion regulation systems",
    source="Gilbert",
    layout=FormulationLayout.THREE_SYSTEMS,
    tags=("CFT", "compassion", "three systems", "emotion regulation"),
    nodes=(
        _node("system-0", "system-0", "Threat System", _RED,
              "e.g. Anxiety, anger, disgust: fight/flight/freeze responses",
              "Protection and safety-seeking"),
        _node("system-1", "system-1", "Drive System", _BLUE,
              "e.g. Excitement, motivation: achieve, acquire, consume",
              "Wanting, pursuing, achieving"),
        _node("system-2", "system-2", "Soothing System", _GREEN,
              "e.g. Calm, safe, connected: rest, digest, affiliate",
              "Contentment, safety, connection"),
    ),
    connections=(
        connection("system-0", "system-1", direction=_BOTH),
        connection("system-1", "system-2", direction=_BOTH),
        connection("system-0", "system-2", style=_DASHED, label="inhibits"),
    ),
)

_INSOMNIA_MAINTENANCE = _sequence(
    "tpl-insomnia-maintenance",
    "Insomnia Maintenance Cycle",
    "CBT-I sleep maintenance cycle",
    "Espie / Harvey",
    FormulationLayout.CYCLE,
    ("CBT-I", "insomnia", "sleep", "cycle"),
    [
        ("Poor Sleep", _GREY,
         "e.g. Difficulty falling asleep, frequent awakenings, unrefreshing sleep"),
        ("Daytime Fatigue & Worry", _RED,
         "e.g. Exhaustion, \"I won't cope today\", dread about tonight"),
        ("Compensatory Behaviours", _PURPLE,
         "e.g. Napping, caffeine, going to bed early, lying in, screen use in bed"),
        ("Perpetuating Factors", _BLUE,
         "e.g. Irregular sleep schedule, bed = worry place, reduced sleep drive"),
    ],
    [(3, 0, "maintains")],
)

_CHRONIC_PAIN = _sequence(
    "tpl-chronic-pain",
    "Chronic Pain Fear-Avoidance Cycle",
    "Vlaeyen & Linton fear-avoidance model of chronic pain",
    "Vlaeyen & Linton",
    FormulationLayout.CYCLE,
    ("CBT", "chronic pain", "fear-avoidance", "cycle"),
    [
        ("Pain Experience", _RED, "e.g. Sharp lower back pain when bending"),
        ("Catastrophising / Fear", _BLUE,
         "e.g. \"My back is damaged\", \"Movement will make it worse\""),
        ("Avoidance / Guarding", _PURPLE, "e.g. Avoiding bending, stopped exercising, not lifting"),
        ("Deconditioning / Disability", _GREEN,
         "e.g. Muscle weakness, stiffness, reduced mobility, low mood"),
        ("Increased Pain Sensitivity", _AMBER,
         "e.g. Lower pain threshold, hypervigilance to body sensations"),
    ],
    [(4, 0, "maintains")],
)

_BDD_MAINTENANCE = _cross_sectional(
    "tpl-bdd-maintenance",
    "BDD Maintenance",
    "Veale body dysmorphic disorder maintenance model",
    "Veale",
    ("CBT", "BDD", "body image", "maintenance"),
    [
        ("trigger", "Trigger", _GREY, "e.g. Looking in mirror, someone commenting on appearance"),
        ("beliefs", "Negative Image & Beliefs", _BLUE,
         "e.g. Distorted mental image, \"My nose is enormous\", \"Everyone notices\""),
        ("distress", "Distress", _RED, "e.g. Disgust, shame, anxiety, low mood"),
        ("rumination", "Rumination / Checking", _AMBER,
         "e.g. Repeated mirror checking, comparing to others, reassurance seeking"),
        ("avoidance", "Avoidance / Concealment", _PURPLE,
         "e.g. Wearing hats, avoiding photos, not going out, camouflage make-up"),
    ],
)

FORMULATION_TEMPLATES: Final[tuple[FormulationTemplate, ...]] = (
    _GENERIC_FIVE_AREAS,
    _HEALTH_ANXIETY,
    _PANIC_CYCLE,
    _SOCIAL_ANXIETY,
    _GAD_METACOGNITIVE,
    _PTSD_EHLERS_CLARK,
    _OCD_MAINTENANCE,
    _DEPRESSION_MAINTENANCE,
    _CBT_E,
    _CFT_THREE_SYSTEMS,
    _INSOMNIA_MAINTENANCE,
    _CHRONIC_PAIN,
    _BDD_MAINTENANCE,
)

_BY_ID: Final[dict[str, FormulationTemplate]] = {t.id: t for t in FORMULATION_TEMPLATES}


def list_templates() -> list[FormulationTemplate]:
    """All templates in catalogue order."""
    return list(FORMULATION_TEMPLATES)


def get_template(template_id: str) -> FormulationTemplate:
    """
    Look up a template by id.

    Raises:
        KeyError: If no template has that id.

    Examples:
        >>> get_template("tpl-panic-cycle").layout.value
        'cycle'
    """
    try:
        return _BY_ID[template_id]
    except KeyError:
        raise KeyError(f"unknown formulation template {template_id!r}") from None


def templates_by_layout() -> dict[FormulationLayout, list[FormulationTemplate]]:
    """Templates grouped by layout; every layout has an entry, possibly empty."""
    out: dict[FormulationLayout, list[FormulationTemplate]] = {layout: [] for layout in FormulationLayout}
    for t in FORMULATION_TEMPLATES:
        out[t.layout].append(t)
    return out


def template_field(
    template_id: str, field_id: str = FORMULATION_FIELD_ID, label: str = "Formulation"
) -> FormulationField:
    """Shortcut for ``get_template(template_id).to_field(field_id, label)``."""
    return get_template(template_id).to_field(field_id, label)
