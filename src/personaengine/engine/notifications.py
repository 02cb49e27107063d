"""Human-readable notices describing how learned weights moved."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from personaengine.model.traits import TRAIT_NAMES, TraitId, WeightVector

# Below this total absolute change nothing is reported.
MIN_REPORTED_SHIFT = 0.01
# Above this (without a change of dominant trait) the shift is called out.
NOTABLE_SHIFT = 0.03

VOICE_NAMES: dict[TraitId, str] = {
    TraitId.INSTINCT: "Snap",
    TraitId.LOGIC: "Dot",
    TraitId.PSYCHE: "Puff",
}


class ChangeKind(StrEnum):
    MAJOR_SHIFT = "major_shift"
    SHIFT = "shift"
    MINOR = "minor"


@dataclass(frozen=True)
class WeightChangeNotice:
    kind: ChangeKind
    message: str
    old_dominant: TraitId
    new_dominant: TraitId


def total_shift(old: WeightVector, new: WeightVector) -> float:
    return sum(abs(new[trait] - old[trait]) for trait in TraitId)


def describe_weight_change(
    old: WeightVector,
    new: WeightVector,
    lead_trait: TraitId,
    had_support: bool = False,
) -> WeightChangeNotice | None:
    """Summarize a learned-weight update for display.

    Args:
        old: Weights before the exchange.
        new: Weights after the exchange.
        lead_trait: Voice that took the lead in the exchange.
        had_support: Whether a second voice also contributed.

    Returns:
        A notice, or None when the change is too small to mention.
    """
    shift = total_shift(old, new)
    if shift < MIN_REPORTED_SHIFT:
        return None

    old_dominant, new_dominant = old.dominant(), new.dominant()
    voice = VOICE_NAMES[lead_trait]

    if old_dominant is not new_dominant:
        kind = ChangeKind.MAJOR_SHIFT
        message = (
            f"Your dominant trait has shifted from {TRAIT_NAMES[old_dominant]} to "
            f"{TRAIT_NAMES[new_dominant]}. This conversation resonated more with {voice}."
        )
    elif shift > NOTABLE_SHIFT:
        kind = ChangeKind.SHIFT
        risen = next(
            (trait for trait in TraitId if new[trait] > old[trait]), TraitId.PSYCHE
        )
        message = (
            f"Your {TRAIT_NAMES[risen]} weight increased slightly. {voice} guided this exchange."
        )
    else:
        kind = ChangeKind.MINOR
        support = " with support" if had_support else ""
        message = f"Weights adjusted based on {voice} taking the lead{support}."

    return WeightChangeNotice(kind, message, old_dominant, new_dominant)
