"""Persona classification: three trait weights -> one of sixteen archetypes.

Rules are checked in order and the first match wins:

1. Balanced: dominant - tertiary < 0.10
2. Mixed: |dominant - secondary| < 0.08 and secondary - tertiary > 0.10
3. Dominant with secondary: dominant - secondary < 0.12
4. Dominant with balanced others: secondary - tertiary < 0.08
5. Pure dominant

Equal weights are ordered by TIE_PRIORITY (logic, psyche, instinct) so the
result never depends on input ordering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from personaengine.model.traits import TraitId, WeightVector

logger = logging.getLogger(__name__)

BALANCED_SPREAD = 0.10
MIXED_LEAD_GAP = 0.08
MIXED_TAIL_GAP = 0.10
SECONDARY_GAP = 0.12
BALANCED_OTHERS_GAP = 0.08

# Messages needed before the classification is fully trusted.
CONFIDENT_MESSAGE_COUNT = 100


class ClassificationUnresolved(Exception):
    """Raised when a rule produces a key missing from the archetype table."""


@dataclass(frozen=True)
class Archetype:
    key: str
    code: str
    name: str
    description: str


@dataclass(frozen=True)
class PersonaClassification:
    """An archetype plus how much interaction history backs it."""

    archetype: Archetype
    confidence_percent: int
    dominant: TraitId
    secondary: TraitId
    tertiary: TraitId

    @property
    def key(self) -> str:
        return self.archetype.key

    @property
    def code(self) -> str:
        return self.archetype.code

    @property
    def name(self) -> str:
        return self.archetype.name

    @property
    def description(self) -> str:
        return self.archetype.description


def _archetype(key: str, code: str, name: str, description: str) -> tuple[str, Archetype]:
    return key, Archetype(key, code, name, description)


ARCHETYPES: dict[str, Archetype] = dict(
    [
        _archetype(
            "balanced",
            "INFP",
            "Mediator",
            "No single voice leads. You weigh gut, reason and meaning almost equally.",
        ),
        # Mixed: two traits share the lead, the third trails well behind.
        _archetype(
            "mixed-instinct-logic",
            "ENFJ",
            "Protagonist",
            "Quick reads backed by careful reasoning. You act fast and can explain why.",
        ),
        _archetype(
            "mixed-instinct-psyche",
            "ENFP",
            "Campaigner",
            "Intuition and emotional depth together. You follow what feels true.",
        ),
        _archetype(
            "mixed-logic-psyche",
            "INFJ",
            "Advocate",
            "Analysis in service of meaning. You want answers that also make sense of you.",
        ),
        # Logic-led.
        _archetype(
            "logic-pure",
            "INTJ",
            "Architect",
            "Reason first and nearly always. You build plans and trust evidence.",
        ),
        _archetype(
            "logic-instinct",
            "ENTJ",
            "Commander",
            "Structured thinking with a decisive edge. You analyze, then move.",
        ),
        _archetype(
            "logic-psyche",
            "INTP",
            "Logician",
            "Systematic and reflective. You look for the model behind the feeling.",
        ),
        _archetype(
            "logic-balanced",
            "ENTP",
            "Debater",
            "Logic leads while gut and meaning argue on equal terms in the background.",
        ),
        # Psyche-led.
        _archetype(
            "psyche-pure",
            "ISFJ",
            "Defender",
            "Self-awareness above all. You care about motives and what sits beneath the surface.",
        ),
        _archetype(
            "psyche-logic",
            "ISTJ",
            "Logistician",
            "Emotional insight checked by careful thought.",
        ),
        _archetype(
            "psyche-instinct",
            "ESFJ",
            "Consul",
            "Feeling and instinct together. You read people and rooms quickly.",
        ),
        _archetype(
            "psyche-balanced",
            "ESTJ",
            "Executive",
            "Meaning leads, with reason and instinct in even support.",
        ),
        # Instinct-led.
        _archetype(
            "instinct-pure",
            "ESTP",
            "Entrepreneur",
            "Gut first. You act on pattern and impulse and adjust as you go.",
        ),
        _archetype(
            "instinct-logic",
            "ISTP",
            "Virtuoso",
            "Hands-on intuition sharpened by analysis.",
        ),
        _archetype(
            "instinct-psyche",
            "ISFP",
            "Adventurer",
            "Impulse guided by feeling. You move toward what resonates.",
        ),
        _archetype(
            "instinct-balanced",
            "ESFP",
            "Entertainer",
            "Instinct leads while reason and reflection keep level with each other.",
        ),
    ]
)


def archetype_key(weights: WeightVector) -> str:
    """Resolve the archetype table key for a weight vector."""
    (dominant, d), (secondary, s), (_, t) = weights.ranked()

    if d - t < BALANCED_SPREAD:
        return "balanced"

    if abs(d - s) < MIXED_LEAD_GAP and s - t > MIXED_TAIL_GAP:
        first, second = sorted((dominant.value, secondary.value))
        key = f"mixed-{first}-{second}"
        if key in ARCHETYPES:
            return key

    if d - s < SECONDARY_GAP:
        key = f"{dominant.value}-{secondary.value}"
        if key in ARCHETYPES:
            return key

    if s - t < BALANCED_OTHERS_GAP:
        return f"{dominant.value}-balanced"

    return f"{dominant.value}-pure"


def confidence(message_count: int) -> int:
    """Percentage confidence from interaction count; saturates at 100."""
    if message_count <= 0:
        return 0
    return min(100, round(message_count / CONFIDENT_MESSAGE_COUNT * 100))


def classify(weights: WeightVector, message_count: int = 0) -> PersonaClassification:
    """Classify settled weights into an archetype.

    Args:
        weights: Settled (not animated) trait weights.
        message_count: Interactions backing the weights.

    Returns:
        PersonaClassification with archetype and confidence.

    Raises:
        ClassificationUnresolved: If the archetype table lacks the resolved key.
    """
    key = archetype_key(weights)
    try:
        archetype = ARCHETYPES[key]
    except KeyError:
        raise ClassificationUnresolved(f"No archetype defined for {key!r}") from None

    ranked = [trait for trait, _ in weights.ranked()]
    logger.debug("Classified %s as %s (%s)", weights.as_dict(), key, archetype.code)
    return PersonaClassification(
        archetype=archetype,
        confidence_percent=confidence(message_count),
        dominant=ranked[0],
        secondary=ranked[1],
        tertiary=ranked[2],
    )
