"""Trait identifiers, activation modes and the weight vector value type."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum


class TraitId(Enum):
    """The three cognitive traits. Closed set."""

    INSTINCT = "instinct"
    LOGIC = "logic"
    PSYCHE = "psyche"


class ActivationMode(Enum):
    """Presentation mode of a trait voice."""

    OFF = "off"
    ON = "on"
    DISCO = "disco"


# Order used when listing active voices to a renderer.
DISPLAY_ORDER: tuple[TraitId, ...] = (TraitId.PSYCHE, TraitId.LOGIC, TraitId.INSTINCT)

# Earlier wins when two weights are numerically equal.
TIE_PRIORITY: tuple[TraitId, ...] = (TraitId.LOGIC, TraitId.PSYCHE, TraitId.INSTINCT)

TRAIT_NAMES: dict[TraitId, str] = {
    TraitId.INSTINCT: "Instinct",
    TraitId.LOGIC: "Logic",
    TraitId.PSYCHE: "Psyche",
}


def parse_trait(value: str | TraitId) -> TraitId:
    """Convert a trait name to a TraitId.

    Raises:
        ValueError: If the name is not one of the three traits.
    """
    if isinstance(value, TraitId):
        return value
    return TraitId(value.lower())


@dataclass(frozen=True)
class WeightVector:
    """Influence of each trait, each in [0, 1] and summing to roughly 1.

    Points-derived and externally learned vectors share this type.
    """

    instinct: float
    logic: float
    psyche: float

    def __getitem__(self, trait: TraitId) -> float:
        return getattr(self, trait.value)

    def __iter__(self) -> Iterator[tuple[TraitId, float]]:
        for trait in TraitId:
            yield trait, self[trait]

    @classmethod
    def from_mapping(cls, values: Mapping[TraitId, float] | Mapping[str, float]) -> WeightVector:
        """Build a vector from a mapping keyed by TraitId or trait name."""
        by_trait = {parse_trait(k): float(v) for k, v in values.items()}
        return cls(
            instinct=by_trait[TraitId.INSTINCT],
            logic=by_trait[TraitId.LOGIC],
            psyche=by_trait[TraitId.PSYCHE],
        )

    @classmethod
    def uniform(cls) -> WeightVector:
        return cls(1 / 3, 1 / 3, 1 / 3)

    def replace(self, trait: TraitId, value: float) -> WeightVector:
        values = self.as_dict()
        values[trait.value] = value
        return WeightVector(**values)

    def as_dict(self) -> dict[str, float]:
        return {"instinct": self.instinct, "logic": self.logic, "psyche": self.psyche}

    def total(self) -> float:
        return self.instinct + self.logic + self.psyche

    def ranked(self) -> list[tuple[TraitId, float]]:
        """Traits sorted by descending weight, ties broken by TIE_PRIORITY."""
        return sorted(self, key=lambda item: (-item[1], TIE_PRIORITY.index(item[0])))

    def dominant(self) -> TraitId:
        return self.ranked()[0][0]
